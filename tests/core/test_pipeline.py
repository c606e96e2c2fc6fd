import pytest

from mztabtools.core.exceptions import RowBeforeHeader
from mztabtools.core.models import MzTabContext
from mztabtools.core.pipeline import MzTabProcessor, MzTabReader, SectionProcessor
from tests.conftest import METADATA, PEPTIDES, PROTEINS


class DropPeptides(SectionProcessor):
    def process_row(self, header, row, line_number):
        if row.prefix == "PEP":
            return None
        return row.to_line()


class Recorder(MzTabProcessor):
    def __init__(self):
        self.lines = []
        self.torn_down = False

    def process_line(self, line, line_number):
        self.lines.append((line_number, line))
        return line

    def tear_down(self):
        self.torn_down = True


def test_reader_chains_processors(write_file, tmp_path):
    mztab = write_file(METADATA + PROTEINS + PEPTIDES)
    output = tmp_path / "out.mzTab"
    recorder = Recorder()

    summary = MzTabReader(
        MzTabContext.from_file(mztab), [DropPeptides(), recorder], output_path=output
    ).process()

    written = output.read_text().splitlines()
    assert summary.lines_read == len(METADATA + PROTEINS + PEPTIDES)
    assert summary.lines_written == len(written)
    assert not any(line.startswith("PEP\t") for line in written)
    assert "PEH\tsequence\taccession\tmodifications" in written
    assert recorder.torn_down
    # dropped lines never reach later processors
    assert all(not line.startswith("PEP\t") for _, line in recorder.lines)
    assert set(summary.seconds) == {"DropPeptides", "Recorder"}


def test_reader_locates_errors(write_file):
    mztab = write_file(METADATA + ["PSM\t1\tPEPTIDE"])

    with pytest.raises(RowBeforeHeader) as error:
        MzTabReader(MzTabContext.from_file(mztab), [SectionProcessor()]).process()

    assert error.value.line_number == len(METADATA) + 1
    assert error.value.file_name == "test.mzTab"
    assert str(error.value).startswith(
        f"Line {len(METADATA) + 1} of mzTab file [test.mzTab] is invalid:"
    )


def test_context_reads_ms_runs(write_file):
    mztab = write_file(METADATA + PROTEINS)

    context = MzTabContext.from_file(mztab, peak_lists={2: "/other/run_02.mgf"})

    assert context.ms_runs[1].location == "/data/run_01.mzML"
    assert context.ms_runs[1].file_name == "run_01.mzML"
    assert context.ms_runs[2].location == "/other/run_02.mgf"
