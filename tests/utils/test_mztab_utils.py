from mztabtools.utils.file_utils import open_mztab, temp_file_path
from mztabtools.utils.mztab_utils import (
    clean_file_url,
    fetch_ms_runs_from_mztab_line,
    get_mztab_line_type,
    header_corresponds_to_column,
    is_null,
    parse_boolean_column,
    parse_metadata_line,
    split_modifications,
)


def test_get_mztab_line_type():
    assert get_mztab_line_type("MTD\tmzTab-version\t1.0.0") == "MTD"
    assert get_mztab_line_type("PSM\t1\tP1") == "PSM"
    assert get_mztab_line_type("") is None


def test_parse_metadata_line():
    parsed = parse_metadata_line("MTD\tms_run[1]-location\tfile:///data/a.mzML\n")
    assert parsed == {"key": "ms_run[1]-location", "value": "file:///data/a.mzML"}
    assert parse_metadata_line("MTD")["key"] is None


def test_fetch_ms_runs_strips_url_scheme():
    ms_runs = {}
    fetch_ms_runs_from_mztab_line("MTD\tms_run[2]-location\tfile:///x/b.mgf", ms_runs)
    fetch_ms_runs_from_mztab_line("MTD\tms_run[2]-format\t[MS, MS:1001062, ]", ms_runs)
    assert ms_runs == {2: "/x/b.mgf"}
    assert clean_file_url("ftp://host/run.mzML") == "host/run.mzML"


def test_parse_boolean_column():
    assert parse_boolean_column(" TRUE ") is True
    assert parse_boolean_column("yes") is True
    assert parse_boolean_column("0") is False
    assert parse_boolean_column("off") is False
    assert parse_boolean_column("maybe") is None
    assert parse_boolean_column(None) is None


def test_is_null():
    assert is_null(None)
    assert is_null("  ")
    assert is_null("NULL")
    assert not is_null("0")


def test_header_corresponds_to_column():
    assert header_corresponds_to_column("opt_global_MS-GF:QValue", "MS-GF:QValue")
    assert header_corresponds_to_column("QVALUE", "qvalue")
    assert not header_corresponds_to_column("opt_global_PepQValue", "Value")
    assert not header_corresponds_to_column("sequence", None)


def test_split_modifications_keeps_cv_terms_together():
    mods = split_modifications(
        "1-UNIMOD:1, 4-[MS, MS:1001460, unknown, 12.5],7-UNIMOD:35"
    )
    assert mods == ["1-UNIMOD:1", "4-[MS, MS:1001460, unknown, 12.5]", "7-UNIMOD:35"]
    assert split_modifications("null") == []


def test_open_mztab_reads_gzip(tmp_path):
    import gzip

    path = tmp_path / "test.mzTab.gz"
    with gzip.open(path, "wt", encoding="utf-8") as handle:
        handle.write("MTD\tmzTab-version\t1.0.0\n")
    with open_mztab(path) as mztab:
        assert mztab.readline().startswith("MTD")


def test_temp_file_path(tmp_path):
    assert temp_file_path(tmp_path / "out.mzTab", 2).name == "out.mzTab.2.temp"
