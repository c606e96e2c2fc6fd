"""
Checks each PSM's spectra_ref against the spectrum index of its peak list file.

Bare integer nativeIDs are ambiguous: they may be scan numbers or indexes.
When the source mzIdentML file cannot settle the question, the first
ambiguous row that resolves pins the reading for the rest of the file.
"""

from typing import Optional

from mztabtools.core.config import AmbiguityScheme, SpectraConfig
from mztabtools.core.exceptions import (
    NoSpectrumIndex,
    UnresolvedMsRun,
    UnverifiableIdentifier,
)
from mztabtools.core.models import MsRun, MzTabContext
from mztabtools.core.pipeline import SectionProcessor
from mztabtools.core.section import ColumnInjector, MzTabSection, Row, SectionHeader
from mztabtools.core.spectra.index import ScanIndex, SpectrumIndexCache
from mztabtools.core.spectra.lookup import SequenceLookup
from mztabtools.core.spectra.native_id import (
    IdentifierKind,
    NativeID,
    classify_native_id,
    parse_spectra_ref,
)
from mztabtools.utils.constants import INVALID, NULL_VALUE, SEQUENCE, SPECTRA_REF, VALID
from mztabtools.utils.constants import ControlledColumn as CC

REQUIRED_PSM_COLUMNS = [SPECTRA_REF, SEQUENCE]

NOT_FOUND_REASON = (
    'Invalid "spectra_ref" column value [{}]: this spectrum could not be '
    "found in peak list file [{}]."
)


class SpectraRefProcessor(SectionProcessor):
    """Shared header and column handling of the spectra_ref processors."""

    def __init__(self, config: SpectraConfig):
        super().__init__()
        self.config = config
        self.scheme = config.scheme
        self.injector = ColumnInjector({CC.VALID: VALID, CC.INVALID_REASON: NULL_VALUE})
        self.lookup: Optional[SequenceLookup] = None
        self.spectra_ref_index: Optional[int] = None
        self.sequence_index: Optional[int] = None

    def set_up(self, context: MzTabContext) -> None:
        super().set_up(context)
        self.scheme = self.config.scheme
        self.lookup = SequenceLookup(self.config.mzid_dir, context.mztab_path)

    def process_header(
        self, header: SectionHeader, line: str, line_number: int
    ) -> Optional[str]:
        if header.section is not MzTabSection.PSM:
            return line
        header.validate_header_expectations(MzTabSection.PSM, REQUIRED_PSM_COLUMNS)
        self.spectra_ref_index = header.get_column_index(SPECTRA_REF)
        self.sequence_index = header.get_column_index(SEQUENCE)
        self.injector.inject(header)
        return header.to_line()

    def is_invalid(self, row: Row) -> bool:
        value = self.injector.read(row, CC.VALID)
        return value is not None and value.strip().upper() == INVALID

    def mark_invalid(self, row: Row, reason: str) -> None:
        self.injector.write(row, CC.VALID, INVALID)
        self.injector.write(row, CC.INVALID_REASON, reason)

    def ms_run(self, ms_run_index: int, spectra_ref: str) -> MsRun:
        ms_run = self.context.ms_runs.get(ms_run_index)
        if ms_run is None:
            raise UnresolvedMsRun(
                f'Could not resolve any file mapping for "ms_run" index '
                f"{ms_run_index} in spectra_ref [{spectra_ref}]."
            )
        return ms_run

    def is_scan(self, row: Row, native_id: NativeID) -> Optional[bool]:
        """Ask the source identification file; None when it cannot tell."""
        try:
            return self.lookup.is_scan(row.get(self.sequence_index), native_id.value)
        except UnverifiableIdentifier:
            return None

    def pin(self, scheme: AmbiguityScheme) -> None:
        if self.scheme is AmbiguityScheme.UNSET:
            self.logger.info(
                f"Reading ambiguous nativeIDs in {self.context.file_name} "
                f"as {scheme.value} numbers"
            )
            self.scheme = scheme


class SpectraRefResolutionProcessor(SpectraRefProcessor):
    """
    Resolves spectra_refs against :class:`ScanIndex` sidecars.

    Reference errors are fatal here. If an ambiguous row fails while the file
    is pinned to scan numbers, :class:`UnverifiableIdentifier` is raised so the
    caller can restart the whole file reading them as indexes.
    """

    def __init__(self, config: SpectraConfig):
        super().__init__(config)
        self.indexes = SpectrumIndexCache(config.scans_dir, ScanIndex.load)

    def process_row(
        self, header: SectionHeader, row: Row, line_number: int
    ) -> Optional[str]:
        if header.section is not MzTabSection.PSM:
            return row.to_line()
        self.injector.fill_defaults(row)
        if self.is_invalid(row):
            return row.to_line()

        spectra_ref = row.get(self.spectra_ref_index)
        ms_run_index, text = parse_spectra_ref(spectra_ref)
        ms_run = self.ms_run(ms_run_index, spectra_ref)
        index = self.indexes.get(ms_run.location)
        if index is None:
            raise NoSpectrumIndex(
                f'No spectra were found for "ms_run" index {ms_run_index}, '
                f"corresponding to peak list file [{ms_run.location}]."
            )

        native_id = classify_native_id(text.strip())
        resolved = self.resolve(row, native_id, index)
        if resolved is not None:
            normalized = f"ms_run[{ms_run_index}]:{resolved}"
            if normalized != spectra_ref:
                row.set(self.spectra_ref_index, normalized)
        elif (
            native_id.kind is IdentifierKind.AMBIGUOUS
            and self.scheme is AmbiguityScheme.SCAN
        ):
            raise UnverifiableIdentifier(
                f"nativeID [{text}] could not be validated as a scan number in "
                f"peak list file [{ms_run.location}]; try validating it as a "
                "spectrum index."
            )
        else:
            reason = NOT_FOUND_REASON.format(spectra_ref, ms_run.location)
            self.mark_invalid(row, reason)
        return row.to_line()

    def resolve(self, row: Row, native_id: NativeID, index: ScanIndex) -> Optional[str]:
        if native_id.kind is IdentifierKind.UNKNOWN:
            return None
        if native_id.kind is IdentifierKind.SCAN:
            return native_id.normalized() if index.has_scan(native_id.value) else None
        if native_id.kind is IdentifierKind.INDEX:
            return native_id.normalized() if index.has_index(native_id.value) else None

        value = native_id.value
        is_scan = self.is_scan(row, native_id)
        if is_scan is not None:
            return f"scan={value}" if is_scan else f"index={value}"

        if self.scheme is AmbiguityScheme.UNSET:
            if index.has_scan(value):
                self.pin(AmbiguityScheme.SCAN)
                return f"scan={value}"
            if index.has_index(value):
                self.pin(AmbiguityScheme.INDEX)
                return f"index={value}"
            return None
        if self.scheme is AmbiguityScheme.SCAN:
            return f"scan={value}" if index.has_scan(value) else None
        return f"index={value}" if index.has_index(value) else None
