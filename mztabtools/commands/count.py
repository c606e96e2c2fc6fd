from pathlib import Path
from typing import Dict, Optional, Tuple

import click

from mztabtools.commands.options import enable_verbose
from mztabtools.core.counter import COUNT_KEYS, CountProcessor, write_count_report
from mztabtools.core.models import MzTabContext
from mztabtools.core.pipeline import MzTabReader
from mztabtools.utils.file_utils import validate_file
from mztabtools.utils.logger import get_logger


@click.command(
    "count",
    short_help="Count rows and distinct elements of mzTab files",
)
@click.option(
    "--mztab-file",
    "mztab_files",
    help="Input mzTab file; repeat for several files",
    required=True,
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--output-file",
    help="Parquet count report with one row per mzTab file",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option("--verbose", help="Enable verbose logging", is_flag=True)
def count_cmd(
    mztab_files: Tuple[Path, ...],
    output_file: Optional[Path],
    verbose: bool = False,
):
    """
    Count PRT, PEP and PSM rows plus unique PSM ids, sequences, accessions
    and modifications of each mzTab file.
    """
    logger = get_logger("mztabtools.commands.count")
    enable_verbose(logger, verbose)

    try:
        report: Dict[str, Dict[str, int]] = {}
        for mztab_file in mztab_files:
            validate_file(mztab_file)
            counts: Dict[str, int] = {}
            context = MzTabContext.from_file(mztab_file)
            MzTabReader(context, [CountProcessor(counts)]).process()
            report[mztab_file.name] = counts
            click.echo(
                mztab_file.name
                + "\t"
                + "\t".join(f"{key}={counts.get(key, 0)}" for key in COUNT_KEYS)
            )
        if output_file:
            write_count_report(report, output_file)
    except Exception as e:
        logger.error(f"Error counting mzTab files: {str(e)}", exc_info=verbose)
        raise click.ClickException(
            f"Error: {str(e)}\nCheck the logs for more details."
        )
