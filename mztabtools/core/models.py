"""
Value types shared by the processors: ms_runs, the per-file run context,
modifications and PSMs.
"""

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from pyopenms import ModificationsDB

from mztabtools.core.exceptions import InvalidColumnValue
from mztabtools.core.section import Row, SectionHeader
from mztabtools.utils.constants import (
    CHARGE,
    EXP_MASS_TO_CHARGE,
    MODIFICATIONS,
    PSM_ID,
    SEQUENCE,
    SPECTRA_REF,
)
from mztabtools.utils.file_utils import open_mztab
from mztabtools.utils.mztab_utils import (
    fetch_ms_runs_from_mztab_line,
    is_null,
    split_modifications,
)

logger = logging.getLogger(__name__)

CV_TERM_PATTERN = re.compile(
    r'^\[([^,]*),\s*([^,]*),\s*((?:"[^"]*")|(?:[^,]*)),\s*((?:"[^"]*")|(?:[^,]*))\]$'
)
CHEMMOD_PATTERN = re.compile(r"^CHEMMOD:(.*)$")
POSITION_PATTERN = re.compile(r"(\d+)(?:\[[^\]]*\])?")
MODIFICATION_PATTERN = re.compile(
    r"^((?:null|\d+)(?:\[[^\]]*\])?(?:\|(?:null|\d+)(?:\[[^\]]*\])?)*)-(.+)$"
)
AMINO_ACID_PATTERN = re.compile(r"[A-Z]")
LEADING_MASS_PATTERN = re.compile(r"^[+-]?\d+(?:\.\d+)?")


@dataclass(frozen=True)
class MsRun:
    index: int
    location: str

    def __post_init__(self):
        if self.index < 1:
            raise ValueError(f"ms_run index must be >= 1, got {self.index}")

    @property
    def file_name(self) -> str:
        return Path(self.location.replace("\\", "/")).name


@dataclass
class MzTabContext:
    """
    State scoped to one pass over one mzTab file.

    ``ms_runs`` maps ms_run indexes to locations. It is read from the MTD
    section by :meth:`from_file` and may be overridden by callers that know
    where the peak list files really live.
    """

    mztab_path: Path
    ms_runs: Dict[int, MsRun] = field(default_factory=dict)

    @property
    def file_name(self) -> str:
        return self.mztab_path.name

    @classmethod
    def from_file(
        cls,
        mztab_path: Union[str, Path],
        peak_lists: Optional[Dict[int, str]] = None,
    ) -> "MzTabContext":
        mztab_path = Path(mztab_path)
        locations: Dict[int, str] = {}
        with open_mztab(mztab_path) as mztab:
            for line in mztab:
                if line.startswith("MTD"):
                    fetch_ms_runs_from_mztab_line(line, locations)
                elif line.strip() and not line.startswith("COM"):
                    break
        if peak_lists:
            locations.update(peak_lists)
        ms_runs = {
            index: MsRun(index, location) for index, location in locations.items()
        }
        logger.debug(f"Found {len(ms_runs)} ms_run(s) in {mztab_path.name}")
        return cls(mztab_path=mztab_path, ms_runs=ms_runs)


@lru_cache(maxsize=None)
def lookup_modification_mass(identifier: str) -> Optional[float]:
    """Monoisotopic mass delta of a modification known to OpenMS, if any."""
    try:
        modification = ModificationsDB().getModification(identifier)
    except RuntimeError:
        return None
    if modification is None or modification.getName() == "unknown modification":
        return None
    return modification.getDiffMonoMass()


def format_mass(mass: Optional[float]) -> Optional[str]:
    """
    Render a mass offset the way it is written inside a modified sequence.

    Example:
        >>> format_mass(16.0), format_mass(-17.026549), format_mass(79.966331)
        ('+16', '-17.026549', '+79.966331')
    """
    if mass is None:
        return None
    if mass == int(mass):
        formatted = str(int(mass))
    else:
        formatted = repr(float(mass))
    if mass >= 0.0 and not formatted.startswith("+"):
        formatted = "+" + formatted
    return formatted


def add_mass_to_peptide(peptide: str, mass: float, position: int) -> str:
    """
    Insert a mass offset after the ``position``-th amino acid of ``peptide``.

    Position 0 (or less) means the N-terminus. If a mass offset is already
    written at that spot the two are summed.
    """
    if position <= 0:
        index = 0
    else:
        found = 0
        index = len(peptide)
        for offset, character in enumerate(peptide, start=1):
            if AMINO_ACID_PATTERN.match(character):
                found += 1
                if found == position:
                    index = offset
                    break
    suffix = peptide[index:]
    existing = LEADING_MASS_PATTERN.match(suffix)
    if existing:
        mass += float(existing.group())
        suffix = suffix[existing.end():]
    return f"{peptide[:index]}{format_mass(mass)}{suffix}"


@dataclass(frozen=True)
class Modification:
    name: str
    positions: Tuple[int, ...] = ()

    @classmethod
    def parse(cls, modification: str) -> "Modification":
        """Parse one element of an mzTab modifications cell, e.g. ``3|5-UNIMOD:21``."""
        modification = modification.strip()
        match = MODIFICATION_PATTERN.match(modification)
        if not match:
            # neutral losses and unlocalised modifications carry no position
            return cls(name=modification)
        positions = []
        for position in POSITION_PATTERN.finditer(match.group(1)):
            if int(position.group(1)) not in positions:
                positions.append(int(position.group(1)))
        return cls(name=match.group(2).strip(), positions=tuple(positions))

    @property
    def mass(self) -> Optional[float]:
        chemmod = CHEMMOD_PATTERN.match(self.name)
        if chemmod:
            try:
                return float(chemmod.group(1))
            except ValueError:
                return None
        accession, value = self.name, None
        cv_term = CV_TERM_PATTERN.match(self.name)
        if cv_term:
            accession, value = cv_term.group(2).strip(), cv_term.group(4).strip()
        mass = lookup_modification_mass(accession)
        if mass is None and value:
            try:
                return float(value.strip('"'))
            except ValueError:
                return None
        if not mass:
            return None
        return mass

    @property
    def position(self) -> Optional[int]:
        if len(self.positions) != 1:
            return None
        return self.positions[0]

    def add_to_peptide(self, peptide: str) -> str:
        mass = self.mass
        if mass is None or self.position is None:
            return peptide
        return add_mass_to_peptide(peptide, mass, self.position)

    def __str__(self) -> str:
        if not self.positions:
            return self.name
        return "|".join(str(position) for position in self.positions) + "-" + self.name


def parse_modifications(modification_string: Optional[str]) -> List[Modification]:
    return [Modification.parse(mod) for mod in split_modifications(modification_string)]


@dataclass
class PSM:
    """One peptide-spectrum match as read from a PSM row."""

    psm_id: str
    index: int
    spectra_ref: Optional[str]
    sequence: str
    charge: int
    exp_mass_to_charge: Optional[float] = None
    modifications: List[Modification] = field(default_factory=list)

    @property
    def modified_sequence(self) -> str:
        peptide = self.sequence
        # apply from the C-terminal end so earlier positions stay valid
        for modification in sorted(
            self.modifications, key=lambda mod: mod.position or 0, reverse=True
        ):
            peptide = modification.add_to_peptide(peptide)
        return peptide

    @classmethod
    def from_row(cls, header: SectionHeader, row: Row, index: int) -> "PSM":
        def cell(name: str) -> Optional[str]:
            return row.get(header.get_column_index(name))

        psm_id = cell(PSM_ID)
        if is_null(psm_id):
            raise InvalidColumnValue(f'"{PSM_ID}" column value is missing.')
        sequence = cell(SEQUENCE)
        if is_null(sequence):
            raise InvalidColumnValue(f'"{SEQUENCE}" column value is missing.')

        raw_charge = cell(CHARGE)
        try:
            charge = int(float(raw_charge))
        except (TypeError, ValueError):
            raise InvalidColumnValue(
                f'Invalid "{CHARGE}" column value [{raw_charge}]: '
                "this is not a valid integer."
            )
        if charge < 1:
            raise InvalidColumnValue(
                f'Invalid "{CHARGE}" column value [{raw_charge}]: '
                "charge must be a positive integer."
            )

        raw_mz = cell(EXP_MASS_TO_CHARGE)
        mz = None
        if not is_null(raw_mz):
            try:
                mz = float(raw_mz)
            except ValueError:
                raise InvalidColumnValue(
                    f'Invalid "{EXP_MASS_TO_CHARGE}" column value [{raw_mz}]: '
                    "this is not a valid number."
                )

        raw_mods = cell(MODIFICATIONS)
        try:
            modifications = parse_modifications(raw_mods)
        except ValueError as error:
            raise InvalidColumnValue(
                f'Invalid "{MODIFICATIONS}" column value [{raw_mods}]: {error}'
            )

        return cls(
            psm_id=psm_id.strip(),
            index=index,
            spectra_ref=cell(SPECTRA_REF),
            sequence=sequence.strip(),
            charge=charge,
            exp_mass_to_charge=mz,
            modifications=modifications,
        )
