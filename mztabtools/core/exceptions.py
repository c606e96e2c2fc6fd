"""
Exceptions raised while processing mzTab files.
"""

from typing import Optional


class MzTabError(Exception):
    """Base class for errors tied to a location in an mzTab file."""

    def __init__(
        self,
        message: str,
        file_name: Optional[str] = None,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.file_name = file_name
        self.line_number = line_number
        self.line = line

    def locate(
        self, file_name: str, line_number: Optional[int], line: Optional[str]
    ) -> "MzTabError":
        """Fill in the location fields that are still unknown."""
        if self.file_name is None:
            self.file_name = file_name
        if self.line_number is None:
            self.line_number = line_number
        if self.line is None:
            self.line = line
        return self

    def __str__(self) -> str:
        if self.line_number is None:
            if self.file_name is None:
                return self.message
            return f"mzTab file [{self.file_name}]: {self.message}"
        return (
            f"Line {self.line_number} of mzTab file [{self.file_name}] is invalid:"
            f"\n----------\n{(self.line or '').rstrip()}\n----------\n{self.message}"
        )


# Structural errors, always fatal for the file


class MalformedHeader(MzTabError):
    pass


class DuplicateHeader(MzTabError):
    pass


class RowBeforeHeader(MzTabError):
    pass


class MalformedRow(MzTabError):
    """A data row that does not fit the header of its section."""


# Reference errors


class SpectraRefError(MzTabError):
    """A spectra_ref that cannot be tied to an indexed spectrum."""


class MalformedSpectraRef(SpectraRefError):
    pass


class InvalidMsRunIndex(SpectraRefError):
    pass


class UnresolvedMsRun(SpectraRefError):
    pass


class NoSpectrumIndex(SpectraRefError):
    pass


class UnverifiableIdentifier(MzTabError):
    """
    A bare integer spectrum identifier could not be confirmed as either a scan
    number or an index. Raised by the sequence lookup when it has no answer and
    by the resolver when a pinned scheme turns out to be wrong for the file.
    """


class InvalidColumnValue(MzTabError):
    """A row-level value that cannot be interpreted, e.g. a bad charge."""


class TooManyInvalidRows(MzTabError):
    """A validated file whose share of invalid PSM rows exceeds the ceiling."""
