import pytest

from mztabtools.core.config import FDRConfig
from mztabtools.core.fdr.cleaner import MzTabFDRCleaner
from mztabtools.core.metadata import extract_global_fdr_values, format_fdr_line
from tests.conftest import METADATA, PEPTIDES, PROTEINS, PSM_HEADER

INJECTED = (
    "\topt_global_pass_threshold"
    "\topt_global_cv_MS:1002217_decoy_peptide"
    "\topt_global_cv_MS:1002354_PSM-level_q-value"
)
FDR_LINE = (
    "MTD\tfalse_discovery_rate\t[MS, MS:1002350, PSM-level global FDR, 0.33]|"
    "[MS, MS:1001364, peptide sequence-level global FDR, 0.50]|"
    "[MS, MS:1001214, protein-level global FDR, 0.50]"
)


@pytest.fixture
def config():
    return FDRConfig(decoy_column="opt_global_decoy", q_value_column="opt_global_q")


def test_fdr_annotation(fdr_mztab, tmp_path, config):
    output = tmp_path / "out.mzTab"

    fdr = MzTabFDRCleaner(config).clean(fdr_mztab, output)

    assert fdr == {"psm": "0.33", "peptide": "0.50", "protein": "0.50"}
    lines = output.read_text().splitlines()
    # spliced after the fields that must precede it
    assert lines[:6] == METADATA[:4] + [FDR_LINE, METADATA[4]]
    assert PSM_HEADER + INJECTED in lines
    assert (
        "PSM\t1\tP1\tPEPTIDEA\t3-UNIMOD:35\t2\t500.1\tms_run[1]:scan=5\t0\t0.001"
        "\ttrue\t0\t0.001"
    ) in lines
    assert (
        "PSM\t3\tDECOY_P2\tPEPTIDEB\tnull\t2\t600.2\tms_run[1]:scan=7\t1\t0.005"
        "\ttrue\t1\t0.005"
    ) in lines
    assert len(lines) == len(fdr_mztab.read_text().splitlines()) + 1
    assert not list(tmp_path.glob("*.temp"))


def test_fdr_annotation_is_stable(fdr_mztab, tmp_path, config):
    first, second = tmp_path / "first.mzTab", tmp_path / "second.mzTab"

    MzTabFDRCleaner(config).clean(fdr_mztab, first)
    MzTabFDRCleaner(config).clean(first, second)

    assert second.read_text() == first.read_text()


def test_existing_fdr_line_is_replaced(write_file, tmp_path, config):
    stale = format_fdr_line("0.90", "0.90", "0.90")
    mztab = write_file(
        METADATA + [stale] + PROTEINS + PEPTIDES + [PSM_HEADER]
        + ["PSM\t1\tP1\tPEPTIDEA\tnull\t2\t500.1\tms_run[1]:scan=5\t0\tnull"]
    )
    output = tmp_path / "out.mzTab"

    MzTabFDRCleaner(config).clean(mztab, output)

    lines = output.read_text().splitlines()
    assert lines.index(
        "MTD\tfalse_discovery_rate\t[MS, MS:1002350, PSM-level global FDR, 0.0]|"
        "[MS, MS:1001364, peptide sequence-level global FDR, 0.0]|"
        "[MS, MS:1001214, protein-level global FDR, 0.0]"
    ) == len(METADATA)
    assert stale not in lines
    # a missing Q-value is filled with the PSM-level FDR
    assert lines[-1].endswith("\ttrue\t0\t0.0")
    assert extract_global_fdr_values(output) == {
        "psm": 0.0,
        "peptide": 0.0,
        "protein": 0.0,
    }


def test_rows_without_fdr_columns_get_defaults(write_file, tmp_path):
    mztab = write_file(
        METADATA
        + ["PSH\tPSM_ID\tsequence\taccession\tmodifications\tcharge"]
        + ["PSM\t1\tPEPTIDE\tP1\tnull\t2"]
    )
    output = tmp_path / "out.mzTab"

    fdr = MzTabFDRCleaner().clean(mztab, output)

    assert fdr == {"psm": "null", "peptide": "null", "protein": "null"}
    lines = output.read_text().splitlines()
    assert lines[-1] == "PSM\t1\tPEPTIDE\tP1\tnull\t2\ttrue\tnull\tnull"
    # nothing to state, so no false_discovery_rate line is added
    assert lines[: len(METADATA)] == METADATA
    assert not any("false_discovery_rate" in line for line in lines)


def test_q_values_set_the_global_fdr_without_decoys(write_file, tmp_path):
    mztab = write_file(
        METADATA
        + ["PSH\tPSM_ID\taccession\tsequence\topt_global_pass\topt_global_q"]
        + [
            "PSM\t1\tP1\tPEPTIDEA\ttrue\t0.004",
            "PSM\t2\tP1\tPEPTIDEB\ttrue\t0.008",
            "PSM\t3\tP1\tPEPTIDEC\tfalse\t0.5",
        ]
    )
    config = FDRConfig(
        pass_threshold_column="opt_global_pass", q_value_column="opt_global_q"
    )
    output = tmp_path / "out.mzTab"

    fdr = MzTabFDRCleaner(config).clean(mztab, output)

    # rows failing the threshold do not count
    assert fdr == {"psm": "0.008", "peptide": "null", "protein": "null"}
    lines = output.read_text().splitlines()
    assert lines[4] == (
        "MTD\tfalse_discovery_rate\t[MS, MS:1002350, PSM-level global FDR, 0.008]"
    )
    assert extract_global_fdr_values(output)["psm"] == 0.008


def test_stated_and_filter_fdr_fill_unknown_levels(write_file, tmp_path):
    stated = "MTD\tfalse_discovery_rate\t[MS, MS:1002350, PSM-level global FDR, 0.05]"
    mztab = write_file(
        METADATA
        + [stated]
        + ["PSH\tPSM_ID\tsequence\taccession\tmodifications\tcharge"]
        + ["PSM\t1\tPEPTIDE\tP1\tnull\t2"]
    )
    config = FDRConfig(filter_fdr=0.02, filter_type="peptide")
    output = tmp_path / "out.mzTab"

    fdr = MzTabFDRCleaner(config).clean(mztab, output)

    assert fdr == {"psm": "0.05", "peptide": "0.02", "protein": "null"}
    assert output.read_text().splitlines()[len(METADATA)] == (
        "MTD\tfalse_discovery_rate\t[MS, MS:1002350, PSM-level global FDR, 0.05]|"
        "[MS, MS:1001364, peptide sequence-level global FDR, 0.02]"
    )


def test_fdr_line_placement_ignores_field_case(write_file, tmp_path, config):
    metadata = [
        "MTD\tMZTAB-VERSION\t1.0.0",
        "MTD\tTitle\tUpper-case fields",
        "MTD\tms_run[1]-location\tfile:///data/run_01.mzML",
    ]
    mztab = write_file(
        metadata
        + ["PSH\tPSM_ID\taccession\tsequence\topt_global_decoy"]
        + ["PSM\t1\tP1\tPEPTIDEA\t0"]
    )
    output = tmp_path / "out.mzTab"

    MzTabFDRCleaner(config).clean(mztab, output)

    lines = output.read_text().splitlines()
    assert lines[:2] == metadata[:2]
    assert lines[2].startswith("MTD\tfalse_discovery_rate\t")
    assert lines[3] == metadata[2]


def test_only_known_decoy_markers_flag_decoys(write_file, tmp_path):
    mztab = write_file(
        METADATA
        + ["PSH\tPSM_ID\taccession\tsequence"]
        + [
            "PSM\t1\tsp|Q9REV1|TARGET_HUMAN\tPEPTIDEA",
            "PSM\t2\tDECOY_P3\tPEPTIDEB",
            "PSM\t3\tXXX_sp|P2|TARGET_HUMAN\tPEPTIDEC",
        ]
    )
    output = tmp_path / "out.mzTab"

    MzTabFDRCleaner(FDRConfig(decoy_column="accession")).clean(mztab, output)

    rows = [line.split("\t") for line in output.read_text().splitlines()]
    assert [row[5] for row in rows if row[0] == "PSM"] == ["null", "null", "1"]


@pytest.mark.parametrize("filter_fdr", [None, 0.01])
def test_filter_mode(fdr_mztab, tmp_path, filter_fdr):
    config = FDRConfig(
        decoy_column="opt_global_decoy",
        q_value_column="opt_global_q",
        filter=True,
        filter_fdr=filter_fdr,
    )
    output = tmp_path / "filtered.mzTab"

    MzTabFDRCleaner(config).clean(fdr_mztab, output)

    lines = output.read_text().splitlines()
    psm_ids = [line.split("\t")[1] for line in lines if line.startswith("PSM\t")]
    assert psm_ids == ["1", "2"]
    assert [line for line in lines if line.startswith("PRT\t")] == [PROTEINS[1]]
    assert [line for line in lines if line.startswith("PEP\t")] == [PEPTIDES[1]]
    assert FDR_LINE in lines
    assert not list(tmp_path.glob("*.temp"))


def test_protein_level_filter(fdr_mztab, tmp_path):
    config = FDRConfig(
        decoy_column="opt_global_decoy",
        filter=True,
        filter_fdr=0.6,
        filter_type="protein",
    )
    output = tmp_path / "filtered.mzTab"

    MzTabFDRCleaner(config).clean(fdr_mztab, output)

    lines = output.read_text().splitlines()
    psm_ids = [line.split("\t")[1] for line in lines if line.startswith("PSM\t")]
    # no protein Q-value column: the global protein FDR (0.50) is used
    assert psm_ids == ["1", "2", "4"]


def test_invalid_filter_fdr():
    with pytest.raises(ValueError):
        FDRConfig(filter_fdr=1.5)
    with pytest.raises(ValueError):
        FDRConfig(filter_type="spectrum")


def test_failed_run_leaves_no_output(write_file, tmp_path):
    mztab = write_file(METADATA + ["PSH\tPSM_ID\tcharge", "PSM\t1\t2"])
    output = tmp_path / "out.mzTab"

    with pytest.raises(Exception, match="sequence"):
        MzTabFDRCleaner().clean(mztab, output)

    assert not output.exists()
    assert not list(tmp_path.glob("*.temp"))
