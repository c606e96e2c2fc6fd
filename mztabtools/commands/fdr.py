from pathlib import Path
from typing import Optional

import click

from mztabtools.commands.options import default_output, enable_verbose
from mztabtools.core.config import FILTER_TYPES, FDRConfig
from mztabtools.core.fdr.cleaner import MzTabFDRCleaner
from mztabtools.utils.file_utils import validate_file
from mztabtools.utils.logger import get_logger


@click.command(
    "fdr",
    short_help="Annotate PSMs with target/decoy columns and the global FDR",
)
@click.option(
    "--mztab-file",
    help="Input mzTab file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--output-file",
    help="Annotated mzTab file (default: <name>.fdr.<ext> next to the input)",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "--pass-threshold-column",
    help="PSM column telling whether a PSM passed the search engine threshold",
)
@click.option(
    "--decoy-column",
    help="PSM column telling whether a PSM is a decoy",
)
@click.option(
    "--decoy-pattern",
    help="Substring of the decoy column value marking a decoy",
)
@click.option(
    "--q-value-column",
    help="PSM column holding the PSM-level Q-value",
)
@click.option(
    "--peptide-q-value-column",
    help="PSM column holding the peptide-level Q-value",
)
@click.option(
    "--protein-q-value-column",
    help="PSM column holding the protein-level Q-value",
)
@click.option(
    "--filter",
    "filter_rows",
    help="Drop PSMs failing the threshold, and proteins and peptides left "
    "without PSMs",
    is_flag=True,
)
@click.option(
    "--filter-fdr",
    help="FDR ceiling used when filtering, between 0 and 1",
    type=float,
)
@click.option(
    "--filter-type",
    help="Level at which --filter-fdr applies",
    type=click.Choice(list(FILTER_TYPES)),
    default="psm",
    show_default=True,
)
@click.option("--verbose", help="Enable verbose logging", is_flag=True)
def fdr_cmd(
    mztab_file: Path,
    output_file: Optional[Path],
    pass_threshold_column: Optional[str],
    decoy_column: Optional[str],
    decoy_pattern: Optional[str],
    q_value_column: Optional[str],
    peptide_q_value_column: Optional[str],
    protein_q_value_column: Optional[str],
    filter_rows: bool,
    filter_fdr: Optional[float],
    filter_type: str,
    verbose: bool = False,
):
    """
    Compute the global PSM, peptide and protein FDR of an mzTab file.

    Example:
        mztabtools fdr \\
            --mztab-file result.mzTab \\
            --decoy-column opt_global_cv_MS:1002217_decoy_peptide \\
            --q-value-column "opt_global_MS-GF:QValue" \\
            --filter --filter-fdr 0.01
    """
    logger = get_logger("mztabtools.commands.fdr")
    enable_verbose(logger, verbose)

    try:
        validate_file(mztab_file)
        config = FDRConfig(
            pass_threshold_column=pass_threshold_column,
            decoy_column=decoy_column,
            decoy_pattern=decoy_pattern,
            q_value_column=q_value_column,
            peptide_q_value_column=peptide_q_value_column,
            protein_q_value_column=protein_q_value_column,
            filter=filter_rows,
            filter_fdr=filter_fdr,
            filter_type=filter_type,
        )
        output_file = output_file or default_output(mztab_file, "fdr")
        fdr = MzTabFDRCleaner(config).clean(mztab_file, output_file)
        click.echo(
            "\t".join(f"{level}_FDR={value}" for level, value in fdr.items())
        )
    except Exception as e:
        logger.error(f"Error computing FDR of {mztab_file}: {str(e)}", exc_info=verbose)
        raise click.ClickException(
            f"Error: {str(e)}\nCheck the logs for more details."
        )
