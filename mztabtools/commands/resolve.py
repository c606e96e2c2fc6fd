from pathlib import Path
from typing import Dict, Optional

import click

from mztabtools.commands.options import (
    SCHEME_CHOICES,
    default_output,
    enable_verbose,
    parse_peak_lists,
    parse_scheme,
)
from mztabtools.core.config import AmbiguityScheme, SpectraConfig
from mztabtools.core.validator import MzTabValidator
from mztabtools.utils.file_utils import validate_file
from mztabtools.utils.logger import get_logger


@click.command(
    "resolve",
    short_help="Rewrite spectra_refs against the scan numbers of the peak lists",
)
@click.option(
    "--mztab-file",
    help="Input mzTab file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--scans-dir",
    help="Directory holding one .scans file per peak list file",
    required=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--output-file",
    help="Resolved mzTab file (default: <name>.resolved.<ext> next to the input)",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "--peak-list",
    "peak_lists",
    help="Peak list file of an ms_run, as N=path; overrides ms_run[N]-location",
    multiple=True,
    callback=parse_peak_lists,
)
@click.option(
    "--mzid-dir",
    help="Directory holding the mzIdentML file each mzTab was converted from",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--scheme",
    help="How bare integer nativeIDs are read; unset infers it per file",
    type=SCHEME_CHOICES,
    default=AmbiguityScheme.UNSET.value,
    show_default=True,
    callback=parse_scheme,
)
@click.option("--verbose", help="Enable verbose logging", is_flag=True)
def resolve_cmd(
    mztab_file: Path,
    scans_dir: Path,
    output_file: Optional[Path],
    peak_lists: Dict[int, str],
    mzid_dir: Optional[Path],
    scheme: AmbiguityScheme,
    verbose: bool = False,
):
    """
    Resolve the spectra_ref of every PSM to a scan number or index.

    Example:
        mztabtools resolve \\
            --mztab-file result.mzTab \\
            --scans-dir ./scans \\
            --peak-list 1=run_01.mzML
    """
    logger = get_logger("mztabtools.commands.resolve")
    enable_verbose(logger, verbose)

    try:
        validate_file(mztab_file)
        output_file = output_file or default_output(mztab_file, "resolved")
        config = SpectraConfig(
            scans_dir=scans_dir,
            peak_lists=peak_lists,
            mzid_dir=mzid_dir,
            scheme=scheme,
        )
        pinned = MzTabValidator(config).resolve(mztab_file, output_file)
        logger.info(
            f"Resolved file written to {output_file} (nativeID scheme: {pinned.value})"
        )
    except Exception as e:
        logger.error(f"Error resolving {mztab_file}: {str(e)}", exc_info=verbose)
        raise click.ClickException(
            f"Error: {str(e)}\nCheck the logs for more details."
        )
