"""
Validation flavor of spectra_ref checking, used by ``mztabtools validate``.
"""

from pathlib import Path
from typing import Optional

from mztabtools.core.config import AmbiguityScheme, SpectraConfig
from mztabtools.core.exceptions import NoSpectrumIndex, SpectraRefError
from mztabtools.core.models import MzTabContext
from mztabtools.core.section import MzTabSection, Row, SectionHeader
from mztabtools.core.spectra.index import NativeIDIndex, SpectrumIndexCache
from mztabtools.core.spectra.native_id import (
    FILE_PATTERN,
    INDEX_PATTERN,
    INTEGER_PATTERN,
    QUERY_PATTERN,
    SCAN_ID_PATTERN,
    SCAN_PATTERN,
    NativeID,
    IdentifierKind,
    parse_spectra_ref,
)
from mztabtools.core.spectra.resolver import NOT_FOUND_REASON, SpectraRefProcessor
from mztabtools.utils.constants import SCANS_EXTENSION


def has_scans_files(scans_dir: Optional[Path]) -> bool:
    if scans_dir is None or not Path(scans_dir).is_dir():
        return False
    return any(Path(scans_dir).glob(f"*{SCANS_EXTENSION}"))


class SpectraRefValidationProcessor(SpectraRefProcessor):
    """
    Validates spectra_refs against :class:`NativeIDIndex` sidecars.

    Every failure, including a malformed reference or a missing sidecar, only
    marks the row INVALID. When the scans directory holds no sidecar at all
    the processor leaves rows untouched apart from the validity columns.
    """

    def __init__(self, config: SpectraConfig):
        super().__init__(config)
        self.indexes = SpectrumIndexCache(config.scans_dir, NativeIDIndex.load)
        self.enabled = True
        self.invalid_rows = 0

    def set_up(self, context: MzTabContext) -> None:
        super().set_up(context)
        self.invalid_rows = 0
        self.enabled = has_scans_files(self.config.scans_dir)
        if not self.enabled:
            self.logger.warning(
                f"No {SCANS_EXTENSION} files in {self.config.scans_dir}, "
                "spectra_ref values will not be validated"
            )

    def process_row(
        self, header: SectionHeader, row: Row, line_number: int
    ) -> Optional[str]:
        if header.section is not MzTabSection.PSM:
            return row.to_line()
        self.injector.fill_defaults(row)
        if not self.enabled or self.is_invalid(row):
            return row.to_line()

        spectra_ref = row.get(self.spectra_ref_index)
        try:
            ms_run_index, text = parse_spectra_ref(spectra_ref)
            ms_run = self.ms_run(ms_run_index, spectra_ref)
            index = self.indexes.get(ms_run.location)
            if index is None:
                raise NoSpectrumIndex(
                    f'No spectra were found for "ms_run" index {ms_run_index}, '
                    f"corresponding to peak list file [{ms_run.location}]."
                )
        except SpectraRefError as error:
            self.logger.debug(f"Line {line_number}: {error.message}")
            self.invalid_rows += 1
            self.mark_invalid(row, error.message)
            return row.to_line()

        text = text.strip()
        resolved = self.resolve(row, text, index)
        if resolved is None:
            self.invalid_rows += 1
            reason = NOT_FOUND_REASON.format(spectra_ref, ms_run.location)
            self.mark_invalid(row, reason)
        else:
            normalized = f"ms_run[{ms_run_index}]:{resolved}"
            if normalized != spectra_ref:
                row.set(self.spectra_ref_index, normalized)
        return row.to_line()

    def resolve(self, row: Row, text: str, index: NativeIDIndex) -> Optional[str]:
        """The nativeID under which the spectrum is indexed, or None."""
        if index.has(text):
            return text

        extracted_index = None
        for pattern in (SCAN_PATTERN, SCAN_ID_PATTERN):
            match = pattern.search(text)
            if match:
                return index.find_scan(int(match.group(1)))
        match = INDEX_PATTERN.search(text)
        if match:
            extracted_index = int(match.group(1))
        else:
            match = QUERY_PATTERN.search(text)
            if match:
                extracted_index = int(match.group(1)) - 1
            elif FILE_PATTERN.search(text):
                extracted_index = 0
        if extracted_index is not None:
            candidate = f"index={extracted_index}"
            if index.has(candidate) or index.find_index(extracted_index):
                return candidate
            return None

        if not INTEGER_PATTERN.match(text):
            return None
        value = int(text)
        is_scan = self.is_scan(row, NativeID(text, IdentifierKind.AMBIGUOUS, value))
        # the identification file is authoritative for ambiguous identifiers
        if is_scan is not None:
            return f"scan={value}" if is_scan else f"index={value}"

        if self.scheme is AmbiguityScheme.UNSET:
            found = index.find_scan(value)
            if found is not None:
                self.pin(AmbiguityScheme.SCAN)
                return found
            found = index.find_index(value)
            if found is not None:
                self.pin(AmbiguityScheme.INDEX)
            return found
        if self.scheme is AmbiguityScheme.SCAN:
            return index.find_scan(value)
        return index.find_index(value)

    def tear_down(self) -> None:
        if self.enabled:
            self.logger.info(
                f"{self.invalid_rows} PSM(s) with unresolvable spectra_ref in "
                f"{self.context.file_name}"
            )
