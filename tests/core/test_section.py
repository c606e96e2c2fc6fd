import pytest

from mztabtools.core.exceptions import (
    DuplicateHeader,
    MalformedHeader,
    MalformedRow,
    RowBeforeHeader,
)
from mztabtools.core.section import (
    ColumnInjector,
    MzTabSection,
    Row,
    SectionHeader,
    SectionHeaders,
)
from mztabtools.utils.constants import ControlledColumn as CC

HEADER = "PSH\tPSM_ID\tsequence\taccession\tmodifications\tcharge"
ROW = "PSM\t1\tPEPTIDE\tP1\tnull\t2"


def test_header_columns_and_lookup():
    header = SectionHeader(HEADER)
    assert header.section is MzTabSection.PSM
    assert header.get_column_index("psm_id") == 1
    assert header.get_column_index("SEQUENCE") == 2
    assert header.get_column_index("spectra_ref") is None


def test_header_with_unknown_prefix():
    with pytest.raises(MalformedHeader):
        SectionHeader("XXH\tsequence")


def test_validate_header_expectations():
    header = SectionHeader(HEADER)
    header.validate_header_expectations(MzTabSection.PSM, ["Sequence", "charge"])
    with pytest.raises(MalformedHeader, match="spectra_ref"):
        header.validate_header_expectations(MzTabSection.PSM, ["spectra_ref"])
    with pytest.raises(MalformedHeader):
        header.validate_header_expectations(MzTabSection.PEP, ["sequence"])


def test_append_column_returns_new_index():
    header = SectionHeader(HEADER)
    index = header.append_column("opt_global_valid")
    assert index == 6
    assert header.to_line().endswith("\tcharge\topt_global_valid")
    assert header.ensure_column("OPT_GLOBAL_VALID") == index


def test_row_set_pads_without_trailing_tab():
    row = Row(ROW)
    row.set(8, "VALID")
    assert row.width == 9
    assert row.to_line() == ROW + "\t\t\tVALID"
    assert row.get(20) is None


def test_row_before_header():
    headers = SectionHeaders()
    with pytest.raises(RowBeforeHeader):
        headers.header_for_row(Row(ROW))


def test_duplicate_header():
    headers = SectionHeaders()
    headers.observe_header(HEADER)
    with pytest.raises(DuplicateHeader):
        headers.observe_header(HEADER)


def test_row_width_must_fit_header():
    headers = SectionHeaders()
    headers.observe_header(HEADER)
    headers.header_for_row(Row(ROW))
    with pytest.raises(MalformedRow):
        headers.header_for_row(Row("PSM\t1\tPEPTIDE"))
    with pytest.raises(MalformedRow):
        headers.header_for_row(Row(ROW + "\textra"))


def test_row_type_must_match_header():
    header = SectionHeader(HEADER)
    with pytest.raises(MalformedRow):
        header.validate_mztab_row(Row("PEP\t1\tPEPTIDE\tP1\tnull\t2"))


def test_widened_header_accepts_short_rows():
    header = SectionHeader(HEADER)
    header.append_column("opt_global_valid")
    header.validate_mztab_row(Row(ROW))
    header.validate_mztab_row(Row(ROW + "\tVALID"))


def test_column_injection_is_idempotent():
    defaults = {CC.VALID: "VALID", CC.INVALID_REASON: "null"}

    injector = ColumnInjector(defaults)
    header = SectionHeader(HEADER)
    injector.inject(header)
    row = Row(ROW)
    injector.fill_defaults(row)
    first_header, first_row = header.to_line(), row.to_line()

    again = ColumnInjector(defaults)
    header = SectionHeader(first_header)
    again.inject(header)
    row = Row(first_row)
    again.fill_defaults(row)

    assert header.to_line() == first_header
    assert row.to_line() == first_row
    assert first_row == ROW + "\tVALID\tnull"


def test_column_injection_keeps_written_values():
    injector = ColumnInjector({CC.VALID: "VALID", CC.INVALID_REASON: "null"})
    header = SectionHeader(HEADER + "\topt_global_valid")
    injector.inject(header)
    assert injector.index(CC.VALID) == 6
    assert injector.index(CC.INVALID_REASON) == 7

    row = Row(ROW + "\tINVALID")
    injector.fill_defaults(row)
    assert injector.read(row, CC.VALID) == "INVALID"
    assert injector.read(row, CC.INVALID_REASON) == "null"
