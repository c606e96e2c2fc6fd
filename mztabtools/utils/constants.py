"""
Constants used in mztabtools for reading, validating and annotating mzTab files.
"""

from enum import Enum


class ControlledColumn(str, Enum):
    """Optional PSM columns written by the processors of this package."""

    PASS_THRESHOLD = "opt_global_pass_threshold"
    IS_DECOY = "opt_global_cv_MS:1002217_decoy_peptide"
    Q_VALUE = "opt_global_cv_MS:1002354_PSM-level_q-value"
    VALID = "opt_global_valid"
    INVALID_REASON = "opt_global_invalid_reason"


# Line prefixes
MTD = "MTD"
COM = "COM"
PRH = "PRH"
PRT = "PRT"
PEH = "PEH"
PEP = "PEP"
PSH = "PSH"
PSM = "PSM"
SMH = "SMH"
SML = "SML"

NULL_VALUE = "null"

# mzTab specific columns
PSM_ID = "PSM_ID"
SEQUENCE = "sequence"
ACCESSION = "accession"
MODIFICATIONS = "modifications"
CHARGE = "charge"
EXP_MASS_TO_CHARGE = "exp_mass_to_charge"
SPECTRA_REF = "spectra_ref"

# Validity markers
VALID = "VALID"
INVALID = "INVALID"
SOURCE_INVALID_REASON = "This PSM was marked as invalid by its source."

# Known column names reported by common search engines
KNOWN_QVALUE_COLUMNS = ["QValue", "MS-GF:QValue"]
KNOWN_PEPTIDE_QVALUE_COLUMNS = ["PepQValue", "MS-GF:PepQValue"]
DECOY_PREFIXES = ["XXX_"]

# Global FDR metadata
FDR_MTD_FIELD = "false_discovery_rate"
PSM_FDR_ACCESSION = "MS:1002350"
PEPTIDE_FDR_ACCESSION = "MS:1001364"
PROTEIN_FDR_ACCESSION = "MS:1001214"
PSM_FDR_TERM = "[MS, MS:1002350, PSM-level global FDR, {}]"
PEPTIDE_FDR_TERM = "[MS, MS:1001364, peptide sequence-level global FDR, {}]"
PROTEIN_FDR_TERM = "[MS, MS:1001214, protein-level global FDR, {}]"
DEFAULT_PSM_FDR = 0.01

# MTD fields that must precede the false_discovery_rate line
FDR_PRECEDING_FIELDS = {
    "mzTab-version",
    "mzTab-mode",
    "mzTab-type",
    "mzTab-ID",
    "title",
    "description",
}
FDR_PRECEDING_PREFIXES = ("sample_processing", "instrument", "software")
FDR_PRECEDING_INFIX = "search_engine_score"

SCANS_EXTENSION = ".scans"
MZIDENTML_EXTENSION = ".mzid"

# Validation
DEFAULT_FAILURE_THRESHOLD = 10.0
MAX_RESOLUTION_ATTEMPTS = 2
