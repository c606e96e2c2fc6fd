"""
Spectrum indexes read from ``.scans`` sidecar files.

Each non-empty sidecar line has three columns: nativeID(s), MS level and the
spectrum's ordinal index. Two readings of the same file are supported:

* :class:`ScanIndex` (whitespace separated) keeps the scan numbers found in the
  second column and the number of spectra.
* :class:`NativeIDIndex` (tab separated) keeps every literal nativeID of the
  MS2+ spectra and the highest MS2+ ordinal.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Callable,
    Dict,
    Generic,
    Iterator,
    List,
    Optional,
    Set,
    Tuple,
    TypeVar,
    Union,
)

from mztabtools.utils.constants import NULL_VALUE, SCANS_EXTENSION

logger = logging.getLogger(__name__)

SCAN_PATTERN = re.compile(r"scan=(\d+)")
SCAN_ID_PATTERN = re.compile(r"scanId=(\d+)")

T = TypeVar("T")


def _read_tokens(
    path: Path, separator: Optional[str]
) -> Iterator[Tuple[int, str, List[str]]]:
    with open(path, encoding="utf-8") as scans:
        for line_number, line in enumerate(scans, start=1):
            line = line.rstrip("\r\n")
            if not line.strip():
                continue
            tokens = line.split(separator) if separator else line.split()
            if len(tokens) != 3:
                raise ValueError(
                    f"Line {line_number} of spectrum IDs file [{path.name}] is "
                    f"invalid:\n----------\n{line}\n----------\nEach non-empty "
                    "line is expected to consist of three tokens."
                )
            yield line_number, line, tokens


@dataclass
class ScanIndex:
    max_ordinal: int
    scan_numbers: Set[int] = field(default_factory=set)

    def has_scan(self, scan: int) -> bool:
        return scan in self.scan_numbers

    def has_index(self, index: int) -> bool:
        # 1-based upper bound so any plausible 0- or 1-based index is accepted
        return 0 <= index <= self.max_ordinal

    @classmethod
    def load(cls, path: Union[str, Path]) -> Optional["ScanIndex"]:
        path = Path(path)
        scans: Set[int] = set()
        count = 0
        for line_number, line, tokens in _read_tokens(path, None):
            try:
                scans.add(int(tokens[1]))
            except ValueError:
                raise ValueError(
                    f"Line {line_number} of spectrum IDs file [{path.name}] is "
                    f"invalid:\n----------\n{line}\n----------\nThe second token "
                    f"[{tokens[1]}] is expected to be an integer scan number."
                )
            count += 1
        if not scans:
            return None
        return cls(max_ordinal=count, scan_numbers=scans)


@dataclass
class NativeIDIndex:
    max_ms2_ordinal: int
    native_ids: Set[str] = field(default_factory=set)
    scans: Dict[int, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.scans:
            for native_id in self.native_ids:
                for pattern in (SCAN_PATTERN, SCAN_ID_PATTERN):
                    match = pattern.search(native_id)
                    if match:
                        self.scans.setdefault(int(match.group(1)), match.group())

    def has(self, native_id: str) -> bool:
        return native_id in self.native_ids

    def find_scan(self, scan: int) -> Optional[str]:
        """The nativeID under which a scan number is known in this file."""
        for candidate in (f"scan={scan}", f"scanId={scan}"):
            if candidate in self.native_ids:
                return candidate
        return self.scans.get(scan)

    def find_index(self, index: int) -> Optional[str]:
        if 0 <= index <= self.max_ms2_ordinal:
            return f"index={index}"
        return None

    @classmethod
    def load(cls, path: Union[str, Path]) -> Optional["NativeIDIndex"]:
        path = Path(path)
        native_ids: Set[str] = set()
        max_index: Optional[int] = None
        for _, _, tokens in _read_tokens(path, "\t"):
            try:
                if int(tokens[1]) <= 1:
                    continue
            except ValueError:
                continue
            for native_id in tokens[0].split(","):
                native_id = native_id.strip()
                if native_id and native_id.lower() != NULL_VALUE:
                    native_ids.add(native_id)
            try:
                index = int(tokens[2])
                if max_index is None or index > max_index:
                    max_index = index
            except ValueError:
                max_index = 0 if max_index is None else max_index + 1
        if not native_ids and max_index is None:
            return None
        # recorded indexes are 0-based; widen by one like ScanIndex
        return cls(max_ms2_ordinal=(max_index or 0) + 1, native_ids=native_ids)


def scans_file_name(peak_list: str) -> str:
    """
    Name of the sidecar index for a peak list file.

    Example:
        >>> scans_file_name("/data/run_01.mzML")
        'run_01.scans'
    """
    return Path(peak_list.replace("\\", "/")).stem + SCANS_EXTENSION


class SpectrumIndexCache(Generic[T]):
    """Loads each sidecar at most once; missing files are remembered as None."""

    def __init__(
        self,
        scans_dir: Optional[Union[str, Path]],
        loader: Callable[[Path], Optional[T]],
    ):
        self.scans_dir = Path(scans_dir) if scans_dir is not None else None
        self.loader = loader
        self._indexes: Dict[str, Optional[T]] = {}

    def get(self, peak_list: str) -> Optional[T]:
        name = scans_file_name(peak_list)
        if name not in self._indexes:
            path = self.scans_dir / name if self.scans_dir else Path(name)
            if self.scans_dir and path.is_file():
                self._indexes[name] = self.loader(path)
                logger.debug(f"Loaded spectrum index {name}")
            else:
                logger.warning(f"Spectrum index {path} does not exist")
                self._indexes[name] = None
        return self._indexes[name]

    def __len__(self) -> int:
        return sum(1 for index in self._indexes.values() if index is not None)
