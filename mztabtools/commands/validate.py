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
from mztabtools.utils.constants import DEFAULT_FAILURE_THRESHOLD
from mztabtools.utils.file_utils import validate_file
from mztabtools.utils.logger import get_logger


@click.command(
    "validate",
    short_help="Mark PSMs whose spectra or values cannot be verified as invalid",
)
@click.option(
    "--mztab-file",
    help="Input mzTab file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--scans-dir",
    help="Directory holding one .scans file per peak list file; "
    "spectra_refs are not checked when it has none",
    type=click.Path(file_okay=False, path_type=Path),
)
@click.option(
    "--output-file",
    help="Validated mzTab file (default: <name>.validated.<ext> next to the input)",
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
@click.option(
    "--failure-threshold",
    help="Highest acceptable percentage of invalid PSM rows",
    type=click.FloatRange(0.0, 100.0),
    default=DEFAULT_FAILURE_THRESHOLD,
    show_default=True,
)
@click.option("--verbose", help="Enable verbose logging", is_flag=True)
def validate_cmd(
    mztab_file: Path,
    scans_dir: Optional[Path],
    output_file: Optional[Path],
    peak_lists: Dict[int, str],
    mzid_dir: Optional[Path],
    scheme: AmbiguityScheme,
    failure_threshold: float,
    verbose: bool = False,
):
    """
    Validate the PSMs of an mzTab file.

    Every PSM row gets opt_global_valid and opt_global_invalid_reason. The
    command fails when more than --failure-threshold percent of the PSM rows
    end up invalid.
    """
    logger = get_logger("mztabtools.commands.validate")
    enable_verbose(logger, verbose)

    try:
        validate_file(mztab_file)
        output_file = output_file or default_output(mztab_file, "validated")
        config = SpectraConfig(
            scans_dir=scans_dir,
            peak_lists=peak_lists,
            mzid_dir=mzid_dir,
            scheme=scheme,
        )
        validator = MzTabValidator(config, failure_threshold=failure_threshold)
        result = validator.validate(mztab_file, output_file)
        click.echo(
            f"{result.mztab_file}\tPSM_rows={result.psm_rows}\t"
            f"invalid_PSM_rows={result.invalid_psm_rows}\t"
            f"unique_PSM_IDs={result.unique_psm_ids}"
        )
        logger.info(f"Validated file written to {output_file}")
    except Exception as e:
        logger.error(f"Error validating {mztab_file}: {str(e)}", exc_info=verbose)
        raise click.ClickException(
            f"Error: {str(e)}\nCheck the logs for more details."
        )
