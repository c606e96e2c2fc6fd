"""
Options for the FDR and spectra_ref processors, filled from the command line.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from mztabtools.utils.constants import (
    DECOY_PREFIXES,
    DEFAULT_PSM_FDR,
    KNOWN_PEPTIDE_QVALUE_COLUMNS,
    KNOWN_QVALUE_COLUMNS,
)

FILTER_TYPES = ("psm", "peptide", "protein")


class AmbiguityScheme(Enum):
    """How a bare integer nativeID is read for the rest of a file."""

    UNSET = "unset"
    SCAN = "scan"
    INDEX = "index"

    def flip(self) -> "AmbiguityScheme":
        if self is AmbiguityScheme.SCAN:
            return AmbiguityScheme.INDEX
        if self is AmbiguityScheme.INDEX:
            return AmbiguityScheme.SCAN
        return AmbiguityScheme.UNSET


@dataclass
class FDRConfig:
    pass_threshold_column: Optional[str] = None
    decoy_column: Optional[str] = None
    decoy_pattern: Optional[str] = None
    q_value_column: Optional[str] = None
    peptide_q_value_column: Optional[str] = None
    protein_q_value_column: Optional[str] = None
    filter: bool = False
    filter_fdr: Optional[float] = None
    filter_type: str = "psm"
    known_q_value_columns: List[str] = field(
        default_factory=lambda: list(KNOWN_QVALUE_COLUMNS)
    )
    known_peptide_q_value_columns: List[str] = field(
        default_factory=lambda: list(KNOWN_PEPTIDE_QVALUE_COLUMNS)
    )
    decoy_substrings: List[str] = field(default_factory=lambda: list(DECOY_PREFIXES))
    default_psm_fdr: float = DEFAULT_PSM_FDR

    def __post_init__(self):
        if self.filter_fdr is not None and not 0.0 <= self.filter_fdr <= 1.0:
            raise ValueError(
                f"filter FDR must be a number between 0 and 1, got {self.filter_fdr}"
            )
        if self.filter_type not in FILTER_TYPES:
            raise ValueError(
                f"filter type must be one of {', '.join(FILTER_TYPES)}, "
                f"got {self.filter_type}"
            )


@dataclass
class SpectraConfig:
    """
    Where to find spectrum indexes and source identification files.

    ``peak_lists`` overrides the ms_run locations read from the mzTab file.
    """

    scans_dir: Optional[Path] = None
    peak_lists: Dict[int, str] = field(default_factory=dict)
    mzid_dir: Optional[Path] = None
    scheme: AmbiguityScheme = AmbiguityScheme.UNSET
