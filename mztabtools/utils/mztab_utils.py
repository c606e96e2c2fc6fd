import re
from typing import Dict, List, Optional

from mztabtools.utils.constants import NULL_VALUE

MS_RUN_KEY_PATTERN = re.compile(r"^ms_run\[(\d+)\]-location$")
URL_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
MODIFICATION_SEPARATOR = re.compile(r",(?![^\[]*\])")

TRUE_VALUES = {"true", "yes", "1", "on"}
FALSE_VALUES = {"false", "no", "0", "off"}


def parse_metadata_line(line: str) -> Dict[str, Optional[str]]:
    """
    Parse metadata line into dictionary.

    Parses mzTab metadata lines (starting with 'MTD') into key-value pairs.

    Args:
        line: Tab-separated metadata line from mzTab file

    Returns:
        Dictionary with 'key' and 'value' fields

    Example:
        >>> parse_metadata_line("MTD\tfixed_mod[1]\tCarbamidomethyl")
        {'key': 'fixed_mod[1]', 'value': 'Carbamidomethyl'}
    """
    parts = line.rstrip("\r\n").split("\t")
    return {
        "key": parts[1] if len(parts) > 1 else None,
        "value": parts[2] if len(parts) > 2 else None,
    }


def get_mztab_line_type(line: str) -> Optional[str]:
    """
    Get the type of an mzTab line.

    Args:
        line: mzTab line to check

    Returns:
        Line type identifier (e.g., 'MTD', 'PRH', 'PRT', 'PSH', 'PSM') or None

    Example:
        >>> get_mztab_line_type("MTD\tmzTab-version\t1.0.0")
        'MTD'
        >>> get_mztab_line_type("   ")
    """
    if not line.strip():
        return None
    return line.lstrip().split("\t", 1)[0].strip()


def clean_file_url(file_url: str) -> str:
    """
    Strip any URL scheme from an ms_run location, keeping the full path.

    Example:
        >>> clean_file_url("file:///data/run_01.mzML")
        '/data/run_01.mzML'
        >>> clean_file_url("ftp://host/run_01.mgf")
        'host/run_01.mgf'
    """
    return URL_SCHEME_PATTERN.sub("", file_url.strip(), count=1)


def fetch_ms_runs_from_mztab_line(mztab_line: str, ms_runs: dict) -> dict:
    """
    Extract the ms_run location from a single mzTab metadata line.

    Only lines of the form ``MTD  ms_run[N]-location  <url>`` are considered;
    the location is stored under its numeric index with the URL scheme removed.

    Example:
        >>> line = "MTD\tms_run[1]-location\tfile:///a/b.mzML"
        >>> fetch_ms_runs_from_mztab_line(line, {})
        {1: '/a/b.mzML'}
    """
    parts = mztab_line.rstrip("\r\n").split("\t")
    if len(parts) < 3 or parts[0] != "MTD":
        return ms_runs
    match = MS_RUN_KEY_PATTERN.match(parts[1].strip())
    if match:
        ms_runs[int(match.group(1))] = clean_file_url(parts[2])
    return ms_runs


def parse_boolean_column(value: Optional[str]) -> Optional[bool]:
    """
    Interpret an mzTab cell as a boolean.

    Returns None for empty, "null" or otherwise unrecognised values.

    Example:
        >>> parse_boolean_column("1"), parse_boolean_column("False")
        (True, False)
        >>> parse_boolean_column("null")
    """
    if value is None:
        return None
    value = value.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    return None


def is_null(value: Optional[str]) -> bool:
    """Whether a cell carries no value in the mzTab sense."""
    return value is None or value.strip() == "" or value.strip().lower() == NULL_VALUE


def parse_q_value(value: Optional[str]) -> Optional[float]:
    if is_null(value):
        return None
    try:
        return float(value)
    except ValueError:
        return None


def header_corresponds_to_column(
    header: Optional[str], column: Optional[str]
) -> bool:
    """
    Whether a header name refers to a user-specified column.

    A match is either the exact name (case-insensitive) or an optional column
    whose trailing name equals it, e.g. ``opt_global_QValue`` for ``QValue``.
    """
    if not header or not column:
        return False
    header = header.strip().lower()
    column = column.strip().lower()
    if header == column:
        return True
    return header.startswith("opt_") and header.endswith("_" + column)


def split_modifications(modification_string: Optional[str]) -> List[str]:
    """
    Split an mzTab modifications cell on commas that are not inside a CV term.

    Example:
        >>> split_modifications("3-UNIMOD:35,5-[MS, MS:1001524, neutral loss, 63.99]")
        ['3-UNIMOD:35', '5-[MS, MS:1001524, neutral loss, 63.99]']
    """
    if is_null(modification_string):
        return []
    return [
        modification.strip()
        for modification in MODIFICATION_SEPARATOR.split(modification_string)
        if modification.strip()
    ]
