"""
Answers whether a bare integer spectrum identifier is a scan number, using the
mzIdentML file the mzTab was converted from.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Optional, Set, Tuple, Union

import pyopenms as oms

from mztabtools.core.exceptions import UnverifiableIdentifier
from mztabtools.utils.constants import MZIDENTML_EXTENSION

logger = logging.getLogger(__name__)

SCAN_PATTERN = re.compile(r"scan=(\d+)")
INDEX_PATTERN = re.compile(r"index=(\d+)")


class SequenceLookup:
    """
    Maps peptide sequences to the spectrum references they were identified in.

    The mzIdentML file is ``<mzTab stem>.mzid`` in ``mzid_dir`` and is only
    parsed the first time a question is asked. Answers are cached per
    (sequence, identifier).
    """

    def __init__(
        self, mzid_dir: Optional[Union[str, Path]], mztab_path: Union[str, Path]
    ):
        self.mzid_path: Optional[Path] = None
        if mzid_dir is not None:
            name = Path(mztab_path).stem + MZIDENTML_EXTENSION
            self.mzid_path = Path(mzid_dir) / name
        self._references: Optional[Dict[str, Set[str]]] = None
        self._answers: Dict[Tuple[str, int], Optional[bool]] = {}

    def _load(self) -> Dict[str, Set[str]]:
        if self._references is not None:
            return self._references
        self._references = {}
        if self.mzid_path is None or not self.mzid_path.is_file():
            logger.debug(f"No mzIdentML file available at {self.mzid_path}")
            return self._references

        protein_identifications = []
        peptide_identifications = []
        oms.MzIdentMLFile().load(
            str(self.mzid_path), protein_identifications, peptide_identifications
        )
        for peptide_id in peptide_identifications:
            reference = self._extract_spectrum_reference(peptide_id)
            if not reference:
                continue
            for peptide_hit in peptide_id.getHits():
                sequence = peptide_hit.getSequence().toUnmodifiedString()
                self._references.setdefault(sequence, set()).add(reference)
        logger.info(
            f"Loaded spectrum references for {len(self._references)} sequences "
            f"from {self.mzid_path.name}"
        )
        return self._references

    @staticmethod
    def _extract_spectrum_reference(peptide_id) -> str:
        try:
            return peptide_id.getSpectrumReference()
        except AttributeError:
            if peptide_id.metaValueExists("spectrum_reference"):
                return str(peptide_id.getMetaValue("spectrum_reference"))
            return ""

    def is_scan(self, sequence: Optional[str], identifier: int) -> bool:
        """
        True if ``identifier`` is a scan number for ``sequence``, False if it is
        an index; raises :class:`UnverifiableIdentifier` if neither is known.
        """
        key = (sequence or "", identifier)
        if key not in self._answers:
            self._answers[key] = self._answer(sequence, identifier)
        answer = self._answers[key]
        if answer is None:
            raise UnverifiableIdentifier(
                f"Could not determine whether identifier [{identifier}] for "
                f"sequence [{sequence}] is a scan number or an index."
            )
        return answer

    def _answer(self, sequence: Optional[str], identifier: int) -> Optional[bool]:
        if not sequence:
            return None
        for reference in self._load().get(sequence, ()):
            scan = SCAN_PATTERN.search(reference)
            if scan and int(scan.group(1)) == identifier:
                return True
            index = INDEX_PATTERN.search(reference)
            if index and int(index.group(1)) == identifier - 1:
                return False
        return None
