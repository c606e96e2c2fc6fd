"""
Parsing of ``spectra_ref`` values and classification of their nativeIDs.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from mztabtools.core.exceptions import InvalidMsRunIndex, MalformedSpectraRef

SPECTRA_REF_PATTERN = re.compile(r"^ms_run\[(\d+)\]:(.+)$")
SPECTRA_REF_FORMAT = "ms_run[1-n]:<nativeID-formatted identifier string>"

SCAN_PATTERN = re.compile(r"scan=(\d+)")
SCAN_ID_PATTERN = re.compile(r"scanId=(\d+)")
INDEX_PATTERN = re.compile(r"index=(\d+)")
QUERY_PATTERN = re.compile(r"query=(\d+)")
FILE_PATTERN = re.compile(r"file=(.+)")
INTEGER_PATTERN = re.compile(r"^\d+$")


class IdentifierKind(Enum):
    SCAN = "scan"
    INDEX = "index"
    AMBIGUOUS = "ambiguous"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class NativeID:
    text: str
    kind: IdentifierKind
    value: Optional[int] = None

    def normalized(self) -> Optional[str]:
        if self.kind is IdentifierKind.SCAN:
            return f"scan={self.value}"
        if self.kind is IdentifierKind.INDEX:
            return f"index={self.value}"
        return None


def parse_spectra_ref(spectra_ref: Optional[str]) -> Tuple[int, str]:
    """
    Split a ``spectra_ref`` cell into its ms_run index and nativeID.

    Example:
        >>> parse_spectra_ref("ms_run[2]:scan=1234")
        (2, 'scan=1234')
    """
    match = SPECTRA_REF_PATTERN.match((spectra_ref or "").strip())
    if match is None:
        raise MalformedSpectraRef(
            f'"spectra_ref" column value [{spectra_ref}] does not conform to '
            f"the expected format [{SPECTRA_REF_FORMAT}]."
        )
    ms_run_index = int(match.group(1))
    if ms_run_index <= 0:
        raise InvalidMsRunIndex(
            f'"spectra_ref" column value [{spectra_ref}] contains invalid '
            f"ms_run index {ms_run_index}; ms_run indices should start at 1."
        )
    return ms_run_index, match.group(2)


def classify_native_id(native_id: str) -> NativeID:
    """
    Read a nativeID as a scan number, a 0-based index or a bare integer.

    ``query=N`` is a 1-based Mascot query number and becomes index N-1;
    ``file=...`` denotes a single-spectrum file and becomes index 0.

    Example:
        >>> classify_native_id("controllerType=0 controllerNumber=1 scan=42").value
        42
        >>> classify_native_id("query=5").normalized()
        'index=4'
    """
    for pattern in (SCAN_PATTERN, SCAN_ID_PATTERN):
        match = pattern.search(native_id)
        if match:
            return NativeID(native_id, IdentifierKind.SCAN, int(match.group(1)))
    match = INDEX_PATTERN.search(native_id)
    if match:
        return NativeID(native_id, IdentifierKind.INDEX, int(match.group(1)))
    match = QUERY_PATTERN.search(native_id)
    if match:
        return NativeID(native_id, IdentifierKind.INDEX, int(match.group(1)) - 1)
    if FILE_PATTERN.search(native_id):
        return NativeID(native_id, IdentifierKind.INDEX, 0)
    if INTEGER_PATTERN.match(native_id.strip()):
        return NativeID(native_id, IdentifierKind.AMBIGUOUS, int(native_id))
    return NativeID(native_id, IdentifierKind.UNKNOWN)
