import pytest

from mztabtools.core.exceptions import InvalidColumnValue
from mztabtools.core.models import (
    PSM,
    Modification,
    MsRun,
    add_mass_to_peptide,
    format_mass,
    parse_modifications,
)
from mztabtools.core.section import Row, SectionHeader
from tests.conftest import SPECTRA_HEADER, spectra_psm


def test_format_mass():
    assert format_mass(16.0) == "+16"
    assert format_mass(-17.026549) == "-17.026549"
    assert format_mass(None) is None


def test_add_mass_to_peptide():
    assert add_mass_to_peptide("PEPTIDE", 16.0, 3) == "PEP+16TIDE"
    assert add_mass_to_peptide("PEPTIDE", 42.0, 0) == "+42PEPTIDE"
    # masses written at the same spot are summed
    assert add_mass_to_peptide("PEP+16TIDE", 1.0, 3) == "PEP+17TIDE"


def test_parse_modification_positions():
    modification = Modification.parse("3|5-UNIMOD:21")
    assert modification.name == "UNIMOD:21"
    assert modification.positions == (3, 5)
    assert modification.position is None
    assert str(modification) == "3|5-UNIMOD:21"


def test_parse_modification_without_position():
    modification = Modification.parse("CHEMMOD:+15.99")
    assert modification.positions == ()
    assert str(modification) == "CHEMMOD:+15.99"


def test_chemmod_mass_is_applied_to_sequence():
    modifications = parse_modifications("3-CHEMMOD:+42,null")
    assert modifications[0].mass == 42.0
    psm = PSM(
        psm_id="1",
        index=1,
        spectra_ref=None,
        sequence="PEPTIDE",
        charge=2,
        modifications=modifications[:1],
    )
    assert psm.modified_sequence == "PEP+42TIDE"


def test_ms_run_index_starts_at_one():
    with pytest.raises(ValueError):
        MsRun(0, "/data/run.mzML")


def test_psm_from_row():
    header = SectionHeader(SPECTRA_HEADER)
    psm = PSM.from_row(header, Row(spectra_psm(7, "ms_run[1]:scan=5")), 3)
    assert psm.psm_id == "7"
    assert psm.index == 3
    assert psm.charge == 2
    assert psm.exp_mass_to_charge == pytest.approx(500.1)
    assert psm.spectra_ref == "ms_run[1]:scan=5"


@pytest.mark.parametrize("charge", ["0", "abc", "null"])
def test_psm_from_row_rejects_bad_charge(charge):
    header = SectionHeader(SPECTRA_HEADER)
    row = Row(spectra_psm(7, "ms_run[1]:scan=5", charge=charge))
    with pytest.raises(InvalidColumnValue, match="charge"):
        PSM.from_row(header, row, 1)
