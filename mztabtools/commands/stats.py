import sys
from pathlib import Path
from typing import Optional, TextIO, Tuple

import click
import pandas as pd

from mztabtools.commands.options import enable_verbose
from mztabtools.core.counter import COUNT_KEYS, aggregate_count_reports
from mztabtools.utils.logger import get_logger


@click.command(
    "stats",
    short_help="Aggregate parquet count reports",
)
@click.option(
    "--report",
    "reports",
    help="Count report written by the count command; repeat for several",
    required=True,
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--save-path",
    help="Output statistics file path (e.g. stats.tsv)",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option("--verbose", help="Enable verbose logging", is_flag=True)
def stats_cmd(
    reports: Tuple[Path, ...],
    save_path: Optional[Path],
    verbose: bool = False,
):
    """Summarise count reports per mzTab file and over the whole batch.

    Args:
        reports: Parquet count reports
        save_path: Output statistics file path. If not provided, prints to stdout.
    """
    logger = get_logger("mztabtools.commands.stats")
    enable_verbose(logger, verbose)

    def write_stats(file: TextIO, df: pd.DataFrame) -> None:
        df.to_csv(file, sep="\t", index=False)
        totals = df[COUNT_KEYS].sum()
        file.write(f"Number of mzTab files: {len(df)}\n")
        for key in COUNT_KEYS:
            file.write(f"Total {key}: {int(totals[key])}\n")

    try:
        df = aggregate_count_reports(reports)
        if save_path:
            with open(save_path, "w") as f:
                write_stats(f, df)
        else:
            write_stats(sys.stdout, df)
    except Exception as e:
        logger.error(f"Error aggregating count reports: {str(e)}", exc_info=verbose)
        raise click.ClickException(
            f"Error: {str(e)}\nCheck the logs for more details."
        )
