"""
Validity bookkeeping for PSM rows.

:class:`ValidityProcessor` only guarantees that the validity columns exist.
:class:`PSMValidationProcessor` additionally checks each PSM row and keeps the
row counts reported at the end of validation.
"""

from typing import Dict, MutableMapping, Optional, Set

from mztabtools.core.exceptions import InvalidColumnValue
from mztabtools.core.models import PSM, MzTabContext
from mztabtools.core.pipeline import SectionProcessor
from mztabtools.core.section import ColumnInjector, MzTabSection, Row, SectionHeader
from mztabtools.utils.constants import (
    INVALID,
    NULL_VALUE,
    PSM_ID,
    SOURCE_INVALID_REASON,
    VALID,
)
from mztabtools.utils.constants import ControlledColumn as CC
from mztabtools.utils.mztab_utils import is_null


def validity_injector() -> ColumnInjector:
    return ColumnInjector({CC.VALID: VALID, CC.INVALID_REASON: NULL_VALUE})


class ValidityProcessor(SectionProcessor):
    """Adds ``opt_global_valid`` and ``opt_global_invalid_reason`` to PSMs."""

    def __init__(self):
        super().__init__()
        self.injector = validity_injector()

    def process_header(
        self, header: SectionHeader, line: str, line_number: int
    ) -> Optional[str]:
        if header.section is not MzTabSection.PSM:
            return line
        self.injector.inject(header)
        return header.to_line()

    def process_row(
        self, header: SectionHeader, row: Row, line_number: int
    ) -> Optional[str]:
        if header.section is MzTabSection.PSM:
            self.injector.fill_defaults(row)
        return row.to_line()


class PSMValidationProcessor(ValidityProcessor):
    """
    Checks every PSM row and counts it into ``counts``.

    Rows that cannot be read as a PSM (missing sequence, bad charge or m/z,
    unparseable modifications) are marked INVALID with the reason. Rows that
    arrive INVALID without a reason are given one. The caller owns ``counts``
    so that totals can be kept across a batch of files; the keys are ``PSM``,
    ``invalid_PSM`` and ``PSM_ID`` (unique PSM ids of this file).
    """

    def __init__(self, counts: MutableMapping[str, int]):
        super().__init__()
        if counts is None:
            raise ValueError("counts mapping is required")
        self.counts = counts
        self.psm_ids: Set[str] = set()
        self.psm_index = 0

    def set_up(self, context: MzTabContext) -> None:
        super().set_up(context)
        self.psm_ids = set()
        self.psm_index = 0

    def process_header(
        self, header: SectionHeader, line: str, line_number: int
    ) -> Optional[str]:
        if header.section is MzTabSection.PSM:
            header.validate_header_expectations(MzTabSection.PSM, [PSM_ID])
        return super().process_header(header, line, line_number)

    def process_row(
        self, header: SectionHeader, row: Row, line_number: int
    ) -> Optional[str]:
        if header.section is not MzTabSection.PSM:
            return row.to_line()
        self.injector.fill_defaults(row)
        self._increment("PSM")
        self.psm_index += 1
        psm_id = row.get(header.get_column_index(PSM_ID))
        if psm_id is not None:
            self.psm_ids.add(psm_id)

        valid = self.injector.read(row, CC.VALID)
        if valid is not None and valid.strip().upper() == INVALID:
            self._increment("invalid_PSM")
            if is_null(self.injector.read(row, CC.INVALID_REASON)):
                self.injector.write(row, CC.INVALID_REASON, SOURCE_INVALID_REASON)
            return row.to_line()

        try:
            PSM.from_row(header, row, self.psm_index)
        except InvalidColumnValue as error:
            self.logger.warning(
                f"Line {line_number} of {self.context.file_name}: {error.message}"
            )
            self._increment("invalid_PSM")
            self.injector.write(row, CC.VALID, INVALID)
            self.injector.write(row, CC.INVALID_REASON, error.message)
        return row.to_line()

    def tear_down(self) -> None:
        self.counts[PSM_ID] = len(self.psm_ids)
        self.logger.info(
            f"{self.context.file_name}: {self.counts.get('PSM', 0)} PSM row(s), "
            f"{self.counts.get('invalid_PSM', 0)} invalid, "
            f"{len(self.psm_ids)} unique PSM_ID(s)"
        )

    def _increment(self, key: str) -> None:
        self.counts[key] = self.counts.get(key, 0) + 1


def new_counts() -> Dict[str, int]:
    return {"PSM": 0, "invalid_PSM": 0, PSM_ID: 0}
