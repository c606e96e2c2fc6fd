"""
Options and helpers shared by the mztabtools commands.
"""

import logging
from pathlib import Path
from typing import Dict, Tuple

import click

from mztabtools.core.config import AmbiguityScheme


def enable_verbose(logger: logging.Logger, verbose: bool) -> None:
    if verbose:
        logger.setLevel(logging.DEBUG)
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")


def parse_peak_lists(
    ctx: click.Context, param: click.Parameter, values: Tuple[str, ...]
) -> Dict[int, str]:
    """Turn repeated ``--peak-list N=path`` options into an ms_run mapping."""
    peak_lists: Dict[int, str] = {}
    for value in values:
        index, separator, path = value.partition("=")
        if not separator or not path:
            raise click.BadParameter(
                f"expected <ms_run index>=<peak list file>, got {value!r}"
            )
        try:
            ms_run_index = int(index)
        except ValueError:
            raise click.BadParameter(f"ms_run index must be an integer, got {index!r}")
        if ms_run_index < 1:
            raise click.BadParameter(f"ms_run index must be >= 1, got {ms_run_index}")
        peak_lists[ms_run_index] = path
    return peak_lists


def parse_scheme(
    ctx: click.Context, param: click.Parameter, value: str
) -> AmbiguityScheme:
    return AmbiguityScheme(value.lower())


SCHEME_CHOICES = click.Choice([scheme.value for scheme in AmbiguityScheme])


def default_output(mztab_file: Path, suffix: str) -> Path:
    """
    Output path next to the input, e.g. ``run.mzTab`` -> ``run.resolved.mzTab``.
    """
    name = mztab_file.name
    if name.endswith(".gz"):
        name = name[: -len(".gz")]
    stem, dot, extension = name.rpartition(".")
    if not dot:
        return mztab_file.with_name(f"{name}.{suffix}")
    return mztab_file.with_name(f"{stem}.{suffix}.{extension}")
