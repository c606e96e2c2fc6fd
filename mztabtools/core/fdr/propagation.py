"""
Later FDR passes: write the global FDR into the MTD section, fill missing
Q-values and, in filter mode, drop rows that do not meet the threshold.
"""

from typing import Dict, Optional, Set

from mztabtools.core.config import FDRConfig
from mztabtools.core.exceptions import MalformedHeader
from mztabtools.core.fdr.calculation import find_column
from mztabtools.core.fdr.statistics import LEVELS, FDRStatistics, resolve_global_fdr
from mztabtools.core.metadata import format_fdr_line, is_fdr_line, precedes_fdr_line
from mztabtools.core.pipeline import SectionProcessor
from mztabtools.core.section import MzTabSection, Row, SectionHeader
from mztabtools.utils.constants import ACCESSION, COM, MTD, SEQUENCE
from mztabtools.utils.constants import ControlledColumn as CC
from mztabtools.utils.mztab_utils import (
    get_mztab_line_type,
    is_null,
    parse_boolean_column,
    parse_metadata_line,
    parse_q_value,
)


class FDRPropagationProcessor(SectionProcessor):
    """
    Second pass over a file already annotated by the calculation pass.

    ``stated_fdr`` holds the global FDR values the input file declared before
    any rewriting. They stand in for a global FDR that neither decoys nor
    Q-values determine, and decide the fate of rows with no pass_threshold of
    their own in filter mode. When no level has a global FDR the MTD section
    is left as it is.
    """

    def __init__(
        self,
        statistics: FDRStatistics,
        config: Optional[FDRConfig] = None,
        stated_fdr: Optional[Dict[str, Optional[float]]] = None,
    ):
        super().__init__()
        self.statistics = statistics
        self.config = config or FDRConfig()
        self.stated_fdr = stated_fdr or {}
        self.psm_fdr = statistics.formatted_fdr("psm")
        self.global_fdr = {
            level: resolve_global_fdr(
                statistics,
                level,
                self.stated_fdr.get(level),
                self.config.filter_fdr if level == self.config.filter_type else None,
            )
            for level in LEVELS
        }
        terms = [
            None if value is None else text for value, text in self.global_fdr.values()
        ]
        self.fdr_line = format_fdr_line(*terms)
        self.fdr_written = False
        self.kept_peptides: Set[str] = set()
        self.kept_proteins: Set[str] = set()
        self.dropped_psms = 0
        self.indices: Dict[str, Optional[int]] = {}

    def process_line(self, line: str, line_number: int) -> Optional[str]:
        if (
            self.fdr_line is not None
            and not self.fdr_written
            and not self.statistics.has_fdr_line
        ):
            line_type = get_mztab_line_type(line)
            key = parse_metadata_line(line)["key"] if line_type == MTD else None
            if line_type not in (None, COM) and not precedes_fdr_line(key):
                self.fdr_written = True
                processed = super().process_line(line, line_number)
                if processed is None:
                    return self.fdr_line
                return f"{self.fdr_line}\n{processed}"
        return super().process_line(line, line_number)

    def process_metadata(self, line: str, line_number: int) -> Optional[str]:
        if self.fdr_line is not None and is_fdr_line(line):
            if self.fdr_written:
                return None
            self.fdr_written = True
            return self.fdr_line
        return line

    def process_header(
        self, header: SectionHeader, line: str, line_number: int
    ) -> Optional[str]:
        if header.section is not MzTabSection.PSM:
            return line
        header.validate_header_expectations(
            MzTabSection.PSM,
            [CC.PASS_THRESHOLD.value, CC.IS_DECOY.value, CC.Q_VALUE.value],
        )
        config = self.config
        self.indices = {
            "pass_threshold": header.get_column_index(CC.PASS_THRESHOLD.value),
            "is_decoy": header.get_column_index(CC.IS_DECOY.value),
            "psm": header.get_column_index(CC.Q_VALUE.value),
            "source_pass_threshold": find_column(
                header, [config.pass_threshold_column]
            ),
            "source_q_value": find_column(
                header, [config.q_value_column] + config.known_q_value_columns
            ),
            "peptide": find_column(
                header,
                [config.peptide_q_value_column] + config.known_peptide_q_value_columns,
            ),
            "protein": find_column(header, [config.protein_q_value_column]),
        }
        if self.indices["psm"] is None:
            raise MalformedHeader(f'No "{CC.Q_VALUE.value}" column was found.')
        return line

    def process_row(
        self, header: SectionHeader, row: Row, line_number: int
    ) -> Optional[str]:
        if header.section is not MzTabSection.PSM:
            return row.to_line()
        q_index = self.indices["psm"]
        original_q_value = row.get(q_index)
        if parse_q_value(original_q_value) is None:
            row.set(q_index, self.psm_fdr)

        if self.config.filter and not self._keep(row, original_q_value):
            self.dropped_psms += 1
            return None

        sequence = row.get(header.get_column_index(SEQUENCE))
        accession = row.get(header.get_column_index(ACCESSION))
        if not is_null(sequence):
            self.kept_peptides.add(sequence.strip())
        if not is_null(accession):
            self.kept_proteins.add(accession.strip())
        return row.to_line()

    def _keep(self, row: Row, original_q_value: Optional[str]) -> bool:
        if parse_boolean_column(row.get(self.indices["pass_threshold"])) is False:
            return False
        if parse_boolean_column(row.get(self.indices["is_decoy"])) is True:
            return False

        if self.config.filter_fdr is not None:
            level = self.config.filter_type
            if level == "psm":
                q_value = parse_q_value(original_q_value)
            else:
                q_value = parse_q_value(row.get(self.indices[level]))
            if q_value is None:
                q_value = self.global_fdr[level][0]
            return q_value is not None and q_value <= self.config.filter_fdr

        stated = parse_boolean_column(row.get(self.indices["source_pass_threshold"]))
        if stated is None:
            q_value = parse_q_value(original_q_value)
            if q_value is None:
                q_value = parse_q_value(row.get(self.indices["source_q_value"]))
            ceiling = self.stated_fdr.get("psm")
            if ceiling is None:
                ceiling = self.config.default_psm_fdr
            if q_value is not None and q_value > ceiling:
                return False
        return True

    def tear_down(self) -> None:
        if self.config.filter:
            self.logger.info(f"Dropped {self.dropped_psms} PSM row(s)")


class FDRCleanupProcessor(SectionProcessor):
    """Third pass in filter mode: drop PRT and PEP rows left without PSMs."""

    def __init__(self, kept_peptides: Set[str], kept_proteins: Set[str]):
        super().__init__()
        self.kept_peptides = kept_peptides
        self.kept_proteins = kept_proteins
        self.dropped = {MzTabSection.PRT: 0, MzTabSection.PEP: 0}

    def process_row(
        self, header: SectionHeader, row: Row, line_number: int
    ) -> Optional[str]:
        if header.section is MzTabSection.PRT:
            value = row.get(header.get_column_index(ACCESSION))
            kept = self.kept_proteins
        elif header.section is MzTabSection.PEP:
            value = row.get(header.get_column_index(SEQUENCE))
            kept = self.kept_peptides
        else:
            return row.to_line()
        if is_null(value) or value.strip() not in kept:
            self.dropped[header.section] += 1
            return None
        return row.to_line()

    def tear_down(self) -> None:
        self.logger.info(
            f"Dropped {self.dropped[MzTabSection.PRT]} protein row(s) and "
            f"{self.dropped[MzTabSection.PEP]} peptide row(s)"
        )
