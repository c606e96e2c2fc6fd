from pathlib import Path

import pytest

TEST_DATA_ROOT = Path(__file__).parent / "examples"
MZID_DIR = TEST_DATA_ROOT / "mzid"

METADATA = [
    "MTD\tmzTab-version\t1.0.0",
    "MTD\tmzTab-mode\tSummary",
    "MTD\tmzTab-type\tIdentification",
    "MTD\tdescription\tSmall identification file",
    "MTD\tms_run[1]-location\tfile:///data/run_01.mzML",
    "MTD\tpsm_search_engine_score[1]\t[MS, MS:1002053, MS-GF:EValue, ]",
]

PROTEINS = [
    "PRH\taccession\tdescription\tmodifications",
    "PRT\tP1\tfirst protein\tnull",
    "PRT\tDECOY_P2\treversed protein\tnull",
    "PRT\tP3\tthird protein\tnull",
]

PEPTIDES = [
    "PEH\tsequence\taccession\tmodifications",
    "PEP\tPEPTIDEA\tP1\tnull",
    "PEP\tPEPTIDEB\tDECOY_P2\tnull",
    "PEP\tPEPTIDEC\tP3\tnull",
]

PSM_HEADER = (
    "PSH\tPSM_ID\taccession\tsequence\tmodifications\tcharge\t"
    "exp_mass_to_charge\tspectra_ref\topt_global_decoy\topt_global_q"
)

FDR_PSMS = [
    "PSM\t1\tP1\tPEPTIDEA\t3-UNIMOD:35\t2\t500.1\tms_run[1]:scan=5\t0\t0.001",
    "PSM\t2\tP1\tPEPTIDEA\tnull\t2\t500.1\tms_run[1]:scan=6\t0\t0.002",
    "PSM\t3\tDECOY_P2\tPEPTIDEB\tnull\t2\t600.2\tms_run[1]:scan=7\t1\t0.005",
    "PSM\t4\tP3\tPEPTIDEC\tnull\t3\t700.3\tms_run[1]:scan=8\t0\t0.2",
]

SPECTRA_HEADER = (
    "PSH\tPSM_ID\taccession\tsequence\tmodifications\tcharge\t"
    "exp_mass_to_charge\tspectra_ref"
)


def spectra_psm(psm_id, spectra_ref, charge="2"):
    return (
        f"PSM\t{psm_id}\tP1\tPEPTIDEA\tnull\t{charge}\t500.1\t{spectra_ref}"
    )


@pytest.fixture
def write_file(tmp_path):
    """Write lines to a file under tmp_path and return its path."""

    def _write(lines, name="test.mzTab"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def fdr_mztab(write_file):
    return write_file(METADATA + PROTEINS + PEPTIDES + [PSM_HEADER] + FDR_PSMS)


@pytest.fixture
def spectra_mztab(write_file):
    """An mzTab file with the given spectra_refs, one PSM per value."""

    def _write(spectra_refs, name="spectra.mzTab"):
        rows = [
            spectra_psm(index, spectra_ref)
            for index, spectra_ref in enumerate(spectra_refs, start=1)
        ]
        return write_file(METADATA + [SPECTRA_HEADER] + rows, name)

    return _write
