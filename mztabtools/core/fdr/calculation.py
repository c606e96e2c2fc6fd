"""
First FDR pass: make every PSM row state its pass_threshold, decoy flag and
Q-value, and collect the target/decoy statistics.
"""

from typing import List, Optional

from mztabtools.core.config import FDRConfig
from mztabtools.core.fdr.statistics import FDRStatistics
from mztabtools.core.metadata import is_fdr_line
from mztabtools.core.pipeline import SectionProcessor
from mztabtools.core.section import ColumnInjector, MzTabSection, Row, SectionHeader
from mztabtools.utils.constants import ACCESSION, NULL_VALUE, PSM_ID, SEQUENCE
from mztabtools.utils.constants import ControlledColumn as CC
from mztabtools.utils.mztab_utils import (
    header_corresponds_to_column,
    is_null,
    parse_boolean_column,
    parse_q_value,
)

REQUIRED_PSM_COLUMNS = [SEQUENCE, ACCESSION]


def find_column(header: SectionHeader, names: List[Optional[str]]) -> Optional[int]:
    """Index of the first header column that corresponds to one of ``names``."""
    for name in names:
        if not name:
            continue
        for index, column in enumerate(header.columns[1:], start=1):
            if header_corresponds_to_column(column, name):
                return index
    return None


class FDRCalculationProcessor(SectionProcessor):
    def __init__(self, statistics: FDRStatistics, config: Optional[FDRConfig] = None):
        super().__init__()
        self.statistics = statistics
        self.config = config or FDRConfig()
        self.injector = ColumnInjector(
            {CC.PASS_THRESHOLD: "true", CC.IS_DECOY: NULL_VALUE, CC.Q_VALUE: NULL_VALUE}
        )
        self.pass_threshold_index: Optional[int] = None
        self.decoy_index: Optional[int] = None
        self.q_value_index: Optional[int] = None
        self.peptide_q_value_index: Optional[int] = None
        self.protein_q_value_index: Optional[int] = None

    def process_metadata(self, line: str, line_number: int) -> Optional[str]:
        if is_fdr_line(line):
            self.statistics.has_fdr_line = True
        return line

    def process_header(
        self, header: SectionHeader, line: str, line_number: int
    ) -> Optional[str]:
        if header.section is not MzTabSection.PSM:
            return line
        header.validate_header_expectations(MzTabSection.PSM, REQUIRED_PSM_COLUMNS)
        self.pass_threshold_index = find_column(
            header, [self.config.pass_threshold_column]
        )
        self.decoy_index = find_column(header, [self.config.decoy_column])
        self.q_value_index = find_column(
            header, [self.config.q_value_column] + self.config.known_q_value_columns
        )
        self.peptide_q_value_index = find_column(
            header,
            [self.config.peptide_q_value_column]
            + self.config.known_peptide_q_value_columns,
        )
        self.protein_q_value_index = find_column(
            header, [self.config.protein_q_value_column]
        )
        self.injector.inject(header)
        return header.to_line()

    def process_row(
        self, header: SectionHeader, row: Row, line_number: int
    ) -> Optional[str]:
        if header.section is not MzTabSection.PSM:
            return row.to_line()

        pass_threshold = parse_boolean_column(
            self.injector.read(row, CC.PASS_THRESHOLD)
        )
        if pass_threshold is None:
            pass_threshold = parse_boolean_column(row.get(self.pass_threshold_index))
            if pass_threshold is None:
                pass_threshold = True
            self.injector.write(
                row, CC.PASS_THRESHOLD, "true" if pass_threshold else "false"
            )

        is_decoy = parse_boolean_column(self.injector.read(row, CC.IS_DECOY))
        if is_decoy is None:
            is_decoy = self._derive_decoy(row.get(self.decoy_index))
            if is_decoy is None:
                decoy_value = NULL_VALUE
            else:
                decoy_value = "1" if is_decoy else "0"
            self.injector.write(row, CC.IS_DECOY, decoy_value)

        q_value = self.injector.read(row, CC.Q_VALUE)
        if is_null(q_value):
            q_value = row.get(self.q_value_index)
            self.injector.write(
                row, CC.Q_VALUE, NULL_VALUE if is_null(q_value) else q_value.strip()
            )
        if pass_threshold and is_decoy is not True:
            self._record_q_values(row, q_value)

        psm_id = row.get(header.get_column_index(PSM_ID))
        if is_null(psm_id):
            psm_id = f"line:{line_number}"
        sequence = row.get(header.get_column_index(SEQUENCE))
        accession = row.get(header.get_column_index(ACCESSION))
        self.statistics.add_psm(
            psm_id.strip(),
            None if is_null(sequence) else sequence.strip(),
            None if is_null(accession) else accession.strip(),
            pass_threshold,
            is_decoy,
        )
        return row.to_line()

    def _record_q_values(self, row: Row, q_value: Optional[str]) -> None:
        # only accepted targets bound the FDR of the result
        self.statistics.record_q_value("psm", parse_q_value(q_value))
        for level, index in (
            ("peptide", self.peptide_q_value_index),
            ("protein", self.protein_q_value_index),
        ):
            self.statistics.record_q_value(level, parse_q_value(row.get(index)))

    def _derive_decoy(self, value: Optional[str]) -> Optional[bool]:
        if self.decoy_index is None or value is None:
            return None
        if self.config.decoy_pattern:
            return self.config.decoy_pattern in value
        if any(pattern in value for pattern in self.config.decoy_substrings):
            return True
        return parse_boolean_column(value)

    def tear_down(self) -> None:
        self.statistics.roll_up()
        self.logger.info(
            f"Decoy/target PSM FDR {self.statistics.formatted_fdr('psm')}, "
            f"peptide FDR {self.statistics.formatted_fdr('peptide')}, "
            f"protein FDR {self.statistics.formatted_fdr('protein')}"
        )
