"""
Target/decoy bookkeeping for one mzTab file and the global FDR derived from it.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Set, Tuple

logger = logging.getLogger(__name__)

LEVELS = ("psm", "peptide", "protein")


class FDRState(Enum):
    COLLECTING = "collecting"
    ROLLED_UP = "rolled-up"


@dataclass(frozen=True)
class FDRAttributes:
    pass_threshold: Optional[bool] = None
    is_decoy: Optional[bool] = None

    def merge(
        self, pass_threshold: Optional[bool], is_decoy: Optional[bool]
    ) -> "FDRAttributes":
        """
        Combine with another observation of the same element.

        A passing observation always wins over a failing one, and a failing one
        over an unknown one. For decoy status a target observation wins, then a
        decoy one, then unknown.
        """
        if self.pass_threshold is True or pass_threshold is None:
            pass_threshold = self.pass_threshold
        if self.is_decoy is False or is_decoy is None:
            is_decoy = self.is_decoy
        return FDRAttributes(pass_threshold, is_decoy)


def compute_fdr(target: Optional[int], decoy: Optional[int]) -> Optional[float]:
    """
    Decoy/target ratio; None when there are no targets.

    Example:
        >>> compute_fdr(0, 3), compute_fdr(10, 0), compute_fdr(10, 2)
        (None, 0.0, 0.2)
    """
    if not target or decoy is None:
        return None
    if decoy == 0:
        return 0.0
    return decoy / target


def format_fdr(target: Optional[int], decoy: Optional[int]) -> str:
    """FDR as written into mzTab: ``null``, ``0.0`` or two decimals."""
    fdr = compute_fdr(target, decoy)
    if fdr is None:
        return "null"
    if fdr == 0.0:
        return "0.0"
    return f"{fdr:.2f}"


class FDRStatistics:
    """
    Accumulates PSM facts during a pass, then rolls them up to peptides and
    proteins exactly once in :meth:`roll_up`.

    A PSM id is never both target and decoy: any passing target observation
    moves it to the target set for good.
    """

    def __init__(self):
        self.state = FDRState.COLLECTING
        self.target_psms: Set[str] = set()
        self.decoy_psms: Set[str] = set()
        self.peptides: Dict[str, FDRAttributes] = {}
        self.protein_peptides: Dict[str, Set[str]] = {}
        self.proteins: Dict[str, FDRAttributes] = {}
        self.counts: Dict[str, int] = {}
        self.max_q_values: Dict[str, float] = {}
        self.has_fdr_line = False

    def add_psm(
        self,
        psm_id: str,
        sequence: Optional[str],
        accession: Optional[str],
        pass_threshold: bool,
        is_decoy: Optional[bool],
    ) -> None:
        if self.state is not FDRState.COLLECTING:
            raise RuntimeError("FDR statistics were already rolled up")
        if pass_threshold:
            if is_decoy is False:
                self.target_psms.add(psm_id)
                self.decoy_psms.discard(psm_id)
            elif is_decoy is True and psm_id not in self.target_psms:
                self.decoy_psms.add(psm_id)
        if sequence is None:
            return
        current = self.peptides.get(sequence)
        if current is None:
            self.peptides[sequence] = FDRAttributes(pass_threshold, is_decoy)
        else:
            self.peptides[sequence] = current.merge(pass_threshold, is_decoy)
        if accession is not None:
            self.protein_peptides.setdefault(accession, set()).add(sequence)

    def record_q_value(self, level: str, q_value: Optional[float]) -> None:
        """Keep the highest Q-value seen at a level; None is ignored."""
        if q_value is None:
            return
        current = self.max_q_values.get(level)
        if current is None or q_value > current:
            self.max_q_values[level] = q_value

    def roll_up(self) -> None:
        if self.state is FDRState.ROLLED_UP:
            return
        for accession, sequences in self.protein_peptides.items():
            self.proteins[accession] = self._roll_up_protein(sequences)
        self.state = FDRState.ROLLED_UP

        self.counts = {
            "targetPSM": len(self.target_psms),
            "decoyPSM": len(self.decoy_psms),
            "targetPeptide": 0,
            "decoyPeptide": 0,
            "targetProtein": 0,
            "decoyProtein": 0,
        }
        for level, elements in (("Peptide", self.peptides), ("Protein", self.proteins)):
            for attributes in elements.values():
                if attributes.pass_threshold and attributes.is_decoy is not None:
                    kind = "decoy" if attributes.is_decoy else "target"
                    self.counts[f"{kind}{level}"] += 1
        logger.debug(f"FDR counts: {self.counts}")

    def _roll_up_protein(self, sequences: Set[str]) -> FDRAttributes:
        pass_threshold = None
        is_decoy = None
        decoy_seen = False
        # sorted so the outcome does not depend on set iteration order
        for sequence in sorted(sequences):
            attributes = self.peptides.get(sequence)
            if attributes is None:
                continue
            if attributes.pass_threshold is True:
                pass_threshold = True
            elif attributes.pass_threshold is False and pass_threshold is None:
                pass_threshold = False
            if attributes.is_decoy is None:
                continue
            if attributes.is_decoy:
                decoy_seen = True
            is_decoy = decoy_seen or attributes.is_decoy
        if pass_threshold is None:
            pass_threshold = True
        return FDRAttributes(pass_threshold, is_decoy)

    def _require_rolled_up(self) -> None:
        if self.state is not FDRState.ROLLED_UP:
            raise RuntimeError("FDR statistics are not rolled up yet")

    def fdr(self, level: str) -> Optional[float]:
        self._require_rolled_up()
        name = level.capitalize() if level != "psm" else "PSM"
        return compute_fdr(self.counts[f"target{name}"], self.counts[f"decoy{name}"])

    def formatted_fdr(self, level: str) -> str:
        self._require_rolled_up()
        name = level.capitalize() if level != "psm" else "PSM"
        return format_fdr(self.counts[f"target{name}"], self.counts[f"decoy{name}"])


def resolve_global_fdr(
    statistics: FDRStatistics,
    level: str,
    stated: Optional[float] = None,
    fallback: Optional[float] = None,
) -> Tuple[Optional[float], str]:
    """
    The global FDR written for one level, as a value and as mzTab text.

    The decoy/target ratio gives way to the highest recorded Q-value when that
    is larger. Without either, the value the file already stated is kept, and
    then ``fallback`` is used. The text is ``null`` when nothing is known.

    Example:
        >>> statistics = FDRStatistics()
        >>> statistics.record_q_value("psm", 0.008)
        >>> statistics.roll_up()
        >>> resolve_global_fdr(statistics, "psm")
        (0.008, '0.008')
        >>> resolve_global_fdr(statistics, "peptide", fallback=0.05)
        (0.05, '0.05')
    """
    fdr = statistics.fdr(level)
    q_value = statistics.max_q_values.get(level)
    if q_value is not None and (fdr is None or q_value > fdr):
        return q_value, str(q_value)
    if fdr is not None:
        return fdr, statistics.formatted_fdr(level)
    for value in (stated, fallback):
        if value is not None:
            return value, str(value)
    return None, "null"
