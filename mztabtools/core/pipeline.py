"""
Single-pass streaming over an mzTab file through an ordered chain of processors.
"""

import logging
import time
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from mztabtools.core.exceptions import MzTabError
from mztabtools.core.models import MzTabContext
from mztabtools.core.section import MzTabSection, Row, SectionHeader, SectionHeaders
from mztabtools.utils.constants import MTD
from mztabtools.utils.file_utils import open_mztab
from mztabtools.utils.mztab_utils import get_mztab_line_type
from mztabtools.utils.system import log_memory_usage


class MzTabProcessor:
    """
    One step of the pipeline.

    ``process_line`` receives the line as left by the previous processor and
    returns the line to pass on, or None to drop it from the output.
    """

    def set_up(self, context: MzTabContext) -> None:
        pass

    def process_line(self, line: str, line_number: int) -> Optional[str]:
        return line

    def tear_down(self) -> None:
        pass

    @property
    def name(self) -> str:
        return self.__class__.__name__


class SectionProcessor(MzTabProcessor):
    """
    Processor that tracks section headers and dispatches lines by type.

    Subclasses override the ``process_*`` hooks they care about. Header and row
    ordering rules are enforced for every section.
    """

    def __init__(self):
        self.context: Optional[MzTabContext] = None
        self.headers = SectionHeaders()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def set_up(self, context: MzTabContext) -> None:
        self.context = context
        self.headers = SectionHeaders()

    def process_line(self, line: str, line_number: int) -> Optional[str]:
        line_type = get_mztab_line_type(line)
        if line_type is None:
            return line
        if line_type == MTD:
            return self.process_metadata(line, line_number)
        if MzTabSection.from_header_prefix(line_type) is not None:
            header = self.headers.observe_header(line)
            return self.process_header(header, line, line_number)
        if MzTabSection.from_row_prefix(line_type) is not None:
            row = Row(line)
            header = self.headers.header_for_row(row)
            return self.process_row(header, row, line_number)
        return line

    def process_metadata(self, line: str, line_number: int) -> Optional[str]:
        return line

    def process_header(
        self, header: SectionHeader, line: str, line_number: int
    ) -> Optional[str]:
        return line

    def process_row(
        self, header: SectionHeader, row: Row, line_number: int
    ) -> Optional[str]:
        return row.to_line()


@dataclass
class PassSummary:
    lines_read: int = 0
    lines_written: int = 0
    seconds: Dict[str, float] = field(default_factory=dict)


class MzTabReader:
    """
    Streams one mzTab file through a list of processors.

    Every processor sees every line in order; the output (if any) receives the
    line left by the last processor. Memory use does not grow with file size.
    """

    def __init__(
        self,
        context: MzTabContext,
        processors: List[MzTabProcessor],
        input_path: Optional[Union[str, Path]] = None,
        output_path: Optional[Union[str, Path]] = None,
    ):
        self.context = context
        self.processors = processors
        self.input_path = Path(input_path or context.mztab_path)
        self.output_path = Path(output_path) if output_path else None
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def process(self) -> PassSummary:
        summary = PassSummary(seconds={p.name: 0.0 for p in self.processors})
        for processor in self.processors:
            processor.set_up(self.context)

        self.logger.info(
            f"Processing {self.input_path.name} with "
            f"{', '.join(p.name for p in self.processors)}"
        )
        with ExitStack() as stack:
            reader = stack.enter_context(open_mztab(self.input_path))
            writer = None
            if self.output_path is not None:
                writer = stack.enter_context(
                    open(self.output_path, "w", encoding="utf-8", newline="\n")
                )
            for line_number, raw_line in enumerate(reader, start=1):
                summary.lines_read += 1
                line = self._process_line(raw_line.rstrip("\r\n"), line_number, summary)
                if line is None:
                    continue
                if writer is not None:
                    writer.write(line + "\n")
                summary.lines_written += 1

        for processor in self.processors:
            start = time.perf_counter()
            try:
                processor.tear_down()
            except MzTabError as error:
                raise error.locate(self.context.file_name, None, None)
            summary.seconds[processor.name] += time.perf_counter() - start

        self._log_summary(summary)
        log_memory_usage(self.logger, f"pass over {self.input_path.name}")
        return summary

    def _process_line(
        self, line: str, line_number: int, summary: PassSummary
    ) -> Optional[str]:
        original = line
        for processor in self.processors:
            start = time.perf_counter()
            try:
                line = processor.process_line(line, line_number)
            except MzTabError as error:
                raise error.locate(self.context.file_name, line_number, original)
            finally:
                summary.seconds[processor.name] += time.perf_counter() - start
            if line is None:
                return None
        return line

    def _log_summary(self, summary: PassSummary) -> None:
        total = sum(summary.seconds.values())
        self.logger.info(
            f"Read {summary.lines_read} lines, wrote {summary.lines_written} "
            f"in {total:.2f}s"
        )
        for name, seconds in summary.seconds.items():
            self.logger.info(f"  {name}: {seconds:.3f}s")
