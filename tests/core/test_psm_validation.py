import pytest

from mztabtools.core.exceptions import MalformedHeader
from mztabtools.core.models import MzTabContext
from mztabtools.core.pipeline import MzTabReader
from mztabtools.core.psm_validation import (
    PSMValidationProcessor,
    ValidityProcessor,
    new_counts,
)
from mztabtools.utils.constants import SOURCE_INVALID_REASON
from tests.conftest import METADATA, SPECTRA_HEADER, spectra_psm


def run(mztab, processors, tmp_path):
    output = tmp_path / "out.mzTab"
    MzTabReader(
        MzTabContext.from_file(mztab), processors, output_path=output
    ).process()
    return output.read_text().splitlines()


def test_validity_columns_are_injected_once(write_file, tmp_path):
    mztab = write_file(METADATA + [SPECTRA_HEADER, spectra_psm(1, "ms_run[1]:5")])

    lines = run(mztab, [ValidityProcessor(), ValidityProcessor()], tmp_path)

    assert lines[-2] == (
        SPECTRA_HEADER + "\topt_global_valid\topt_global_invalid_reason"
    )
    assert lines[-1] == spectra_psm(1, "ms_run[1]:5") + "\tVALID\tnull"


def test_psm_validation(write_file, tmp_path):
    header = SPECTRA_HEADER + "\topt_global_valid"
    mztab = write_file(
        METADATA
        + [
            header,
            spectra_psm(1, "ms_run[1]:5") + "\tVALID",
            spectra_psm(1, "ms_run[1]:6") + "\tINVALID",
            spectra_psm(2, "ms_run[1]:7", charge="abc") + "\tVALID",
            spectra_psm(3, "ms_run[1]:8", charge="3") + "\t",
        ]
    )
    counts = new_counts()

    lines = run(mztab, [PSMValidationProcessor(counts)], tmp_path)

    rows = [line.split("\t") for line in lines if line.startswith("PSM\t")]
    assert [row[8:] for row in rows] == [
        ["VALID", "null"],
        ["INVALID", SOURCE_INVALID_REASON],
        [
            "INVALID",
            'Invalid "charge" column value [abc]: this is not a valid integer.',
        ],
        ["VALID", "null"],
    ]
    assert counts == {"PSM": 4, "invalid_PSM": 2, "PSM_ID": 3}


def test_counts_accumulate_across_files(write_file, tmp_path):
    first = write_file(
        METADATA + [SPECTRA_HEADER, spectra_psm(1, "ms_run[1]:5")], "first.mzTab"
    )
    second = write_file(
        METADATA + [SPECTRA_HEADER, spectra_psm(1, "ms_run[1]:5", charge="0")],
        "second.mzTab",
    )
    counts = new_counts()

    run(first, [PSMValidationProcessor(counts)], tmp_path)
    run(second, [PSMValidationProcessor(counts)], tmp_path)

    assert counts["PSM"] == 2
    assert counts["invalid_PSM"] == 1
    # unique PSM ids are per file
    assert counts["PSM_ID"] == 1


def test_psm_id_column_is_required(write_file, tmp_path):
    mztab = write_file(METADATA + ["PSH\tsequence\tcharge", "PSM\tPEPTIDE\t2"])

    with pytest.raises(MalformedHeader, match="PSM_ID"):
        run(mztab, [PSMValidationProcessor(new_counts())], tmp_path)


def test_counts_mapping_is_required():
    with pytest.raises(ValueError):
        PSMValidationProcessor(None)
