"""
Commandline interface for mztabtools: validation, spectra_ref resolution, FDR
annotation and counting of mzTab identification files.
"""

import click

from mztabtools import __version__ as __version__
from mztabtools.commands.count import count_cmd
from mztabtools.commands.fdr import fdr_cmd
from mztabtools.commands.resolve import resolve_cmd
from mztabtools.commands.stats import stats_cmd
from mztabtools.commands.validate import validate_cmd
from mztabtools.utils.logger import setup_logging

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


@click.version_option(
    version=__version__, package_name="mztabtools", message="%(package)s %(version)s"
)
@click.group(context_settings=CONTEXT_SETTINGS)
def cli() -> None:
    """
    mztabtools - Streaming validation and FDR annotation of mzTab files
    """
    setup_logging()


cli.add_command(validate_cmd)
cli.add_command(resolve_cmd)
cli.add_command(fdr_cmd)
cli.add_command(count_cmd)
cli.add_command(stats_cmd)


def mztabtools_main() -> None:
    """
    Main function to run the mztabtools command line interface
    :return: none
    """
    cli()


if __name__ == "__main__":
    mztabtools_main()
