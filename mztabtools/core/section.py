"""
Section headers and data rows of an mzTab file.

A header line (PRH, PEH, PSH, SMH) fixes the column layout of the data rows
(PRT, PEP, PSM, SML) that follow it. Column positions never move: processors
may only append new columns to the right of the ones already present.
"""

from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional

from mztabtools.core.exceptions import (
    DuplicateHeader,
    MalformedHeader,
    MalformedRow,
    RowBeforeHeader,
)
from mztabtools.utils.constants import ControlledColumn


class MzTabSection(Enum):
    PRT = ("PRH", "PRT")
    PEP = ("PEH", "PEP")
    PSM = ("PSH", "PSM")
    SML = ("SMH", "SML")

    def __init__(self, header_prefix: str, row_prefix: str):
        self.header_prefix = header_prefix
        self.row_prefix = row_prefix

    @classmethod
    def from_header_prefix(cls, prefix: str) -> Optional["MzTabSection"]:
        for section in cls:
            if section.header_prefix == prefix:
                return section
        return None

    @classmethod
    def from_row_prefix(cls, prefix: str) -> Optional["MzTabSection"]:
        for section in cls:
            if section.row_prefix == prefix:
                return section
        return None


class Row:
    """A data row as a mutable list of cells; index 0 is the line prefix."""

    def __init__(self, line: str):
        self.cells: List[str] = line.rstrip("\r\n").split("\t")

    @property
    def prefix(self) -> str:
        return self.cells[0].strip()

    @property
    def width(self) -> int:
        return len(self.cells)

    def get(self, index: Optional[int]) -> Optional[str]:
        if index is None or index >= len(self.cells):
            return None
        return self.cells[index]

    def set(self, index: int, value: str) -> None:
        """Write a cell, padding the row with empty cells up to ``index``."""
        if index >= len(self.cells):
            self.cells.extend([""] * (index + 1 - len(self.cells)))
        self.cells[index] = value

    def to_line(self) -> str:
        return "\t".join(self.cells)


class SectionHeader:
    """
    Ordered column names of one section, parsed from its header line.

    Column indexes match the cell indexes of :class:`Row`, so index 0 is the
    header prefix itself and the first real column sits at index 1.
    """

    def __init__(self, line: str):
        self.columns: List[str] = line.rstrip("\r\n").split("\t")
        prefix = self.columns[0].strip()
        self.section = MzTabSection.from_header_prefix(prefix)
        if self.section is None:
            raise MalformedHeader(
                f'Section header line starts with unknown prefix "{prefix}".',
                line=line,
            )
        # rows written before this header was widened stay legal
        self.original_width = len(self.columns)
        self._lookup: Dict[str, int] = {}
        for index, column in enumerate(self.columns[1:], start=1):
            self._lookup.setdefault(column.strip().lower(), index)

    def get_column_index(self, name: str) -> Optional[int]:
        """Case-insensitive column lookup; None when the column is absent."""
        return self._lookup.get(name.strip().lower())

    def has_column(self, name: str) -> bool:
        return self.get_column_index(name) is not None

    def append_column(self, name: str) -> int:
        """Append a column and return the index it was assigned."""
        self.columns.append(name)
        index = len(self.columns) - 1
        self._lookup.setdefault(name.strip().lower(), index)
        return index

    def ensure_column(self, name: str) -> int:
        index = self.get_column_index(name)
        if index is None:
            index = self.append_column(name)
        return index

    def validate_header_expectations(
        self, section: MzTabSection, required_columns: Iterable[str]
    ) -> None:
        if self.section != section:
            raise MalformedHeader(
                f'Expected a "{section.header_prefix}" header line but found '
                f'"{self.section.header_prefix}".'
            )
        missing = [
            column for column in required_columns if not self.has_column(column)
        ]
        if missing:
            raise MalformedHeader(
                f'"{section.header_prefix}" header line is missing required '
                f"column(s): {', '.join(missing)}."
            )

    def validate_mztab_row(self, row: Row) -> None:
        """Check that a data row belongs to this section and fits its columns."""
        if row.prefix != self.section.row_prefix:
            raise MalformedRow(
                f'Row of type "{row.prefix}" does not belong to the '
                f'"{self.section.header_prefix}" section.'
            )
        if row.width < self.original_width or row.width > len(self.columns):
            dump = "\n".join(
                f"{column} = {row.get(index)}"
                for index, column in enumerate(self.columns)
            )
            raise MalformedRow(
                f"Row has {row.width} columns but the "
                f'"{self.section.header_prefix}" header declares '
                f"{self.original_width}:\n{dump}"
            )

    def to_line(self) -> str:
        return "\t".join(self.columns)


class SectionHeaders:
    """
    Headers seen so far in one pass over one file.

    Enforces that each section has at most one header and that data rows only
    appear after the header of their section.
    """

    def __init__(self):
        self._headers: Dict[MzTabSection, SectionHeader] = {}

    def observe_header(self, line: str) -> SectionHeader:
        header = SectionHeader(line)
        if header.section in self._headers:
            raise DuplicateHeader(
                f'A "{header.section.header_prefix}" row was already seen '
                f"previously in this file."
            )
        self._headers[header.section] = header
        return header

    def get(self, section: MzTabSection) -> Optional[SectionHeader]:
        return self._headers.get(section)

    def header_for_row(self, row: Row) -> SectionHeader:
        section = MzTabSection.from_row_prefix(row.prefix)
        if section is None:
            raise MalformedRow(f'Unknown data row prefix "{row.prefix}".')
        header = self._headers.get(section)
        if header is None:
            raise RowBeforeHeader(
                f'A "{section.row_prefix}" row was found before any '
                f'"{section.header_prefix}" row.'
            )
        header.validate_mztab_row(row)
        return header


class ColumnInjector:
    """
    Adds controlled columns to a header and keeps them filled on every row.

    Re-running an injector over output it already produced changes nothing:
    existing columns are reused and non-empty cells are left alone.
    """

    def __init__(self, defaults: Mapping[ControlledColumn, str]):
        self.defaults = dict(defaults)
        self.indices: Dict[ControlledColumn, int] = {}

    def inject(self, header: SectionHeader) -> None:
        for column in self.defaults:
            self.indices[column] = header.ensure_column(column.value)

    def index(self, column: ControlledColumn) -> int:
        return self.indices[column]

    def read(self, row: Row, column: ControlledColumn) -> Optional[str]:
        """The current cell value, or None if the row is not yet that wide."""
        value = row.get(self.indices[column])
        if value is None or value == "":
            return None
        return value

    def write(self, row: Row, column: ControlledColumn, value: str) -> None:
        row.set(self.indices[column], value)

    def fill_defaults(self, row: Row) -> None:
        for column, default in self.defaults.items():
            if self.read(row, column) is None:
                self.write(row, column, default)
