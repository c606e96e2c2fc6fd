"""
Helpers for the MTD section: reading and writing the global FDR line.
"""

import re
from pathlib import Path
from typing import Dict, Optional, Union

from mztabtools.utils.constants import (
    FDR_MTD_FIELD,
    FDR_PRECEDING_FIELDS,
    FDR_PRECEDING_INFIX,
    FDR_PRECEDING_PREFIXES,
    MTD,
    PEPTIDE_FDR_ACCESSION,
    PEPTIDE_FDR_TERM,
    PROTEIN_FDR_ACCESSION,
    PROTEIN_FDR_TERM,
    PSM_FDR_ACCESSION,
    PSM_FDR_TERM,
)
from mztabtools.utils.file_utils import open_mztab
from mztabtools.utils.mztab_utils import parse_metadata_line

FDR_LINE_PATTERN = re.compile(r"^MTD\s+" + FDR_MTD_FIELD + r"\s+(.+)$")
CV_TERM_IN_LIST = re.compile(r"\[([^,\]]*),\s*([^,\]]*),\s*([^,\]]*),\s*([^\]]*)\]")

PRECEDING_FIELDS = {field.lower() for field in FDR_PRECEDING_FIELDS}

FDR_ACCESSIONS = {
    PSM_FDR_ACCESSION: "psm",
    PEPTIDE_FDR_ACCESSION: "peptide",
    PROTEIN_FDR_ACCESSION: "protein",
}


def is_fdr_line(line: str) -> bool:
    return FDR_LINE_PATTERN.match(line) is not None


def precedes_fdr_line(field: Optional[str]) -> bool:
    """Whether an MTD field is written before ``false_discovery_rate``."""
    if field is None:
        return False
    field = field.lower()
    return (
        field in PRECEDING_FIELDS
        or field.startswith(FDR_PRECEDING_PREFIXES)
        or FDR_PRECEDING_INFIX in field
    )


def format_fdr_line(
    psm_fdr: Optional[str], peptide_fdr: Optional[str], protein_fdr: Optional[str]
) -> Optional[str]:
    """
    The ``false_discovery_rate`` MTD line; levels given as None are left out.

    Returns None when no level has a value.
    """
    terms = [
        template.format(fdr)
        for template, fdr in (
            (PSM_FDR_TERM, psm_fdr),
            (PEPTIDE_FDR_TERM, peptide_fdr),
            (PROTEIN_FDR_TERM, protein_fdr),
        )
        if fdr is not None
    ]
    if not terms:
        return None
    return f"{MTD}\t{FDR_MTD_FIELD}\t{'|'.join(terms)}"


def parse_fdr_values(value: str) -> Dict[str, Optional[float]]:
    """
    Read global FDR values from a ``false_discovery_rate`` value.

    Example:
        >>> parse_fdr_values("[MS, MS:1002350, PSM-level global FDR, 0.01]")
        {'psm': 0.01, 'peptide': None, 'protein': None}
    """
    values: Dict[str, Optional[float]] = {
        level: None for level in FDR_ACCESSIONS.values()
    }
    for term in CV_TERM_IN_LIST.finditer(value):
        level = FDR_ACCESSIONS.get(term.group(2).strip())
        if level is None:
            continue
        try:
            values[level] = float(term.group(4).strip())
        except ValueError:
            values[level] = None
    return values


def extract_global_fdr_values(
    mztab_path: Union[str, Path]
) -> Dict[str, Optional[float]]:
    """Global FDR values already stated in a file's MTD section."""
    with open_mztab(mztab_path) as mztab:
        for line in mztab:
            if not line.startswith(MTD):
                if line.strip() and not line.startswith("COM"):
                    break
                continue
            if is_fdr_line(line.rstrip("\r\n")):
                value = parse_metadata_line(line)["value"] or ""
                return parse_fdr_values(value)
    return parse_fdr_values("")
