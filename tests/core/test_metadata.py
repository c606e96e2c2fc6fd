import pytest

from mztabtools.core.metadata import (
    format_fdr_line,
    parse_fdr_values,
    precedes_fdr_line,
)


@pytest.mark.parametrize(
    "field",
    [
        "mzTab-version",
        "MZTAB-VERSION",
        "Title",
        "DESCRIPTION",
        "Sample_Processing[1]",
        "INSTRUMENT[1]-name",
        "Software[1]",
        "psm_SEARCH_ENGINE_SCORE[1]",
    ],
)
def test_fields_before_fdr_line(field):
    assert precedes_fdr_line(field)


@pytest.mark.parametrize(
    "field", [None, "ms_run[1]-location", "fixed_mod[1]", "false_discovery_rate"]
)
def test_fields_after_fdr_line(field):
    assert not precedes_fdr_line(field)


def test_fdr_line_leaves_out_unknown_levels():
    assert format_fdr_line("0.01", None, "0.0") == (
        "MTD\tfalse_discovery_rate\t[MS, MS:1002350, PSM-level global FDR, 0.01]|"
        "[MS, MS:1001214, protein-level global FDR, 0.0]"
    )
    assert format_fdr_line(None, None, None) is None


def test_parse_fdr_values():
    line = format_fdr_line("0.01", "0.02", None)
    assert parse_fdr_values(line.split("\t")[2]) == {
        "psm": 0.01,
        "peptide": 0.02,
        "protein": None,
    }
