"""
Row and unique-element counting for mzTab files, plus the parquet count report.

Counts from several files can be accumulated in one mapping, or written as one
report row per file and summed later with :func:`aggregate_count_reports`.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, MutableMapping, Optional, Set, Union

import duckdb
import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from mztabtools.core.models import MzTabContext, parse_modifications
from mztabtools.core.pipeline import SectionProcessor
from mztabtools.core.section import MzTabSection, Row, SectionHeader
from mztabtools.utils.constants import ACCESSION, MODIFICATIONS, PSM_ID, SEQUENCE
from mztabtools.utils.mztab_utils import is_null

logger = logging.getLogger(__name__)

RELEVANT_COLUMNS = {
    MzTabSection.PRT: [ACCESSION, MODIFICATIONS],
    MzTabSection.PEP: [SEQUENCE, ACCESSION, MODIFICATIONS],
    MzTabSection.PSM: [PSM_ID, SEQUENCE, ACCESSION, MODIFICATIONS],
}
ROW_COUNT_KEYS = ["PRT", "PEP", "PSM"]
UNIQUE_COUNT_KEYS = [PSM_ID, SEQUENCE, ACCESSION, "modification"]
COUNT_KEYS = ROW_COUNT_KEYS + UNIQUE_COUNT_KEYS

COUNT_REPORT_SCHEMA = pa.schema(
    [pa.field("file", pa.string(), nullable=False)]
    + [pa.field(key, pa.int64(), nullable=False) for key in COUNT_KEYS]
)


class CountProcessor(SectionProcessor):
    """
    Counts PRT, PEP and PSM rows and the distinct PSM ids, sequences,
    accessions and modifications they mention.

    Row counts are added to ``counts`` as rows stream past; unique-element
    counts are stored at tear-down.
    """

    def __init__(self, counts: MutableMapping[str, int]):
        super().__init__()
        if counts is None:
            raise ValueError("counts mapping is required")
        self.counts = counts
        self.unique_elements: Dict[str, Set[str]] = {}

    def set_up(self, context: MzTabContext) -> None:
        super().set_up(context)
        self.unique_elements = {key: set() for key in UNIQUE_COUNT_KEYS}

    def process_header(
        self, header: SectionHeader, line: str, line_number: int
    ) -> Optional[str]:
        required = RELEVANT_COLUMNS.get(header.section)
        if required:
            header.validate_header_expectations(header.section, required)
        return line

    def process_row(
        self, header: SectionHeader, row: Row, line_number: int
    ) -> Optional[str]:
        columns = RELEVANT_COLUMNS.get(header.section)
        if columns is None:
            return row.to_line()
        key = header.section.row_prefix
        self.counts[key] = self.counts.get(key, 0) + 1
        for column in columns:
            value = row.get(header.get_column_index(column))
            if is_null(value):
                continue
            if column == MODIFICATIONS:
                for modification in parse_modifications(value):
                    self.unique_elements["modification"].add(modification.name)
            else:
                self.unique_elements[column].add(value)
        return row.to_line()

    def tear_down(self) -> None:
        for key in ROW_COUNT_KEYS:
            self.counts.setdefault(key, 0)
        for key, values in self.unique_elements.items():
            self.counts[key] = len(values)
        self.logger.info(
            f"Counted {self.context.file_name}: "
            + ", ".join(f"{key}={self.counts[key]}" for key in COUNT_KEYS)
        )


def write_count_report(
    counts: Dict[str, Dict[str, int]], output_path: Union[str, Path]
) -> Path:
    """
    Write one report row per mzTab file to a parquet file.

    Args:
        counts: Mapping of mzTab file name to its counts
        output_path: Parquet file to create

    Returns:
        The path written
    """
    output_path = Path(output_path)
    records = [
        {"file": name, **{key: int(values.get(key, 0)) for key in COUNT_KEYS}}
        for name, values in counts.items()
    ]
    df = pd.DataFrame.from_records(records, columns=["file"] + COUNT_KEYS)
    table = pa.Table.from_pandas(df, schema=COUNT_REPORT_SCHEMA, preserve_index=False)
    pq.write_table(table, output_path)
    logger.info(f"Wrote count report for {len(records)} file(s) to {output_path}")
    return output_path


def aggregate_count_reports(report_paths: Iterable[Union[str, Path]]) -> pd.DataFrame:
    """
    Sum the row counts of several count reports, one result row per mzTab file.

    Unique-element counts are kept per file; the same file appearing in
    several reports keeps its largest unique counts since they cannot be
    summed without the underlying elements.
    """
    paths: List[str] = [str(Path(path)) for path in report_paths]
    if not paths:
        raise ValueError("At least one count report is required")
    for path in paths:
        if not Path(path).exists():
            raise FileNotFoundError(f"Count report not found: {path}")

    row_sums = ", ".join(f'SUM("{key}") AS "{key}"' for key in ROW_COUNT_KEYS)
    unique_max = ", ".join(f'MAX("{key}") AS "{key}"' for key in UNIQUE_COUNT_KEYS)
    file_list = ", ".join(f"'{path}'" for path in paths)
    query = (
        f"SELECT file, {row_sums}, {unique_max} "
        f"FROM read_parquet([{file_list}]) GROUP BY file ORDER BY file"
    )
    with duckdb.connect() as connection:
        df = connection.execute(query).df()
    for key in COUNT_KEYS:
        df[key] = df[key].astype("int64")
    return df
