import logging
from pathlib import Path
from typing import Dict, Optional, Union

from mztabtools.core.config import FDRConfig
from mztabtools.core.fdr.calculation import FDRCalculationProcessor
from mztabtools.core.fdr.propagation import (
    FDRCleanupProcessor,
    FDRPropagationProcessor,
)
from mztabtools.core.fdr.statistics import FDRStatistics
from mztabtools.core.metadata import extract_global_fdr_values
from mztabtools.core.models import MzTabContext
from mztabtools.core.pipeline import MzTabReader
from mztabtools.utils.file_utils import move_file, remove_file, temp_file_path


class MzTabFDRCleaner:
    """
    Annotates an mzTab file with FDR columns and its global FDR.

    The global FDR is only known after a full pass, so the file is rewritten
    in two passes (three when filtering, to drop proteins and peptides left
    without any PSM).
    """

    def __init__(self, config: Optional[FDRConfig] = None):
        self.config = config or FDRConfig()
        self.statistics: Optional[FDRStatistics] = None
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def clean(
        self,
        mztab_path: Union[str, Path],
        output_path: Union[str, Path],
        context: Optional[MzTabContext] = None,
    ) -> Dict[str, str]:
        """Run every pass and return the global FDR values that were written."""
        mztab_path = Path(mztab_path)
        output_path = Path(output_path)
        context = context or MzTabContext.from_file(mztab_path)
        first = temp_file_path(output_path, 1)
        second = temp_file_path(output_path, 2)
        final = temp_file_path(output_path, 3)
        stated_fdr = extract_global_fdr_values(mztab_path)

        self.statistics = FDRStatistics()
        try:
            MzTabReader(
                context,
                [FDRCalculationProcessor(self.statistics, self.config)],
                input_path=mztab_path,
                output_path=first,
            ).process()

            propagation = FDRPropagationProcessor(
                self.statistics, self.config, stated_fdr
            )
            MzTabReader(
                context,
                [propagation],
                input_path=first,
                output_path=second if self.config.filter else final,
            ).process()

            if self.config.filter:
                MzTabReader(
                    context,
                    [
                        FDRCleanupProcessor(
                            propagation.kept_peptides, propagation.kept_proteins
                        )
                    ],
                    input_path=second,
                    output_path=final,
                ).process()
            move_file(final, output_path)
        finally:
            for temp in (first, second, final):
                remove_file(temp)

        fdr = {level: text for level, (_, text) in propagation.global_fdr.items()}
        self.logger.info(f"Wrote {output_path.name} with global FDR {fdr}")
        return fdr
