"""
File-level orchestration of spectra_ref resolution and PSM validation.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from mztabtools.core.config import AmbiguityScheme, SpectraConfig
from mztabtools.core.exceptions import TooManyInvalidRows, UnverifiableIdentifier
from mztabtools.core.models import MzTabContext
from mztabtools.core.pipeline import MzTabReader
from mztabtools.core.psm_validation import PSMValidationProcessor, new_counts
from mztabtools.core.spectra.resolver import SpectraRefResolutionProcessor
from mztabtools.core.spectra.validator import SpectraRefValidationProcessor
from mztabtools.utils.constants import (
    DEFAULT_FAILURE_THRESHOLD,
    MAX_RESOLUTION_ATTEMPTS,
    PSM_ID,
)
from mztabtools.utils.file_utils import remove_file


class ResolutionOutcome(Enum):
    RESOLVED = "resolved"
    AMBIGUOUS = "ambiguous"


@dataclass
class ValidationResult:
    mztab_file: str
    psm_rows: int = 0
    invalid_psm_rows: int = 0
    unique_psm_ids: int = 0
    scheme: AmbiguityScheme = AmbiguityScheme.UNSET
    counts: Dict[str, int] = field(default_factory=dict)

    @property
    def invalid_percentage(self) -> float:
        if self.psm_rows == 0:
            return 0.0
        return self.invalid_psm_rows / self.psm_rows * 100.0


class MzTabValidator:
    """
    Runs the spectra_ref processors over mzTab files, one file at a time.

    :meth:`resolve` rewrites spectra_refs against scan-number sidecars and
    restarts the file once with the opposite ambiguity scheme if the first
    scheme turns out to be wrong. :meth:`validate` marks unresolvable PSMs
    invalid and fails the file when too many of them are.
    """

    def __init__(
        self,
        config: SpectraConfig,
        failure_threshold: float = DEFAULT_FAILURE_THRESHOLD,
    ):
        if not 0.0 <= failure_threshold <= 100.0:
            raise ValueError(
                f"failure threshold must be a percentage between 0 and 100, "
                f"got {failure_threshold}"
            )
        self.config = config
        self.failure_threshold = failure_threshold
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def context_for(self, mztab_path: Union[str, Path]) -> MzTabContext:
        return MzTabContext.from_file(mztab_path, self.config.peak_lists)

    def resolve_file(
        self,
        context: MzTabContext,
        output_path: Path,
        scheme: AmbiguityScheme,
    ) -> Tuple[ResolutionOutcome, AmbiguityScheme]:
        """
        One resolution attempt under ``scheme``.

        Returns the outcome and the scheme the file ended up pinned to. An
        ambiguous outcome leaves no output behind.
        """
        config = replace(self.config, scheme=scheme)
        processor = SpectraRefResolutionProcessor(config)
        try:
            MzTabReader(context, [processor], output_path=output_path).process()
        except UnverifiableIdentifier as error:
            self.logger.warning(
                f"Ambiguous nativeIDs in {context.file_name} could not be read "
                f"as {processor.scheme.value} numbers: {error.message}"
            )
            remove_file(output_path)
            return ResolutionOutcome.AMBIGUOUS, processor.scheme
        except Exception:
            remove_file(output_path)
            raise
        return ResolutionOutcome.RESOLVED, processor.scheme

    def resolve(
        self,
        mztab_path: Union[str, Path],
        output_path: Union[str, Path],
        context: Optional[MzTabContext] = None,
    ) -> AmbiguityScheme:
        """Resolve every spectra_ref of a file; returns the scheme that held."""
        output_path = Path(output_path)
        context = context or self.context_for(mztab_path)
        scheme = self.config.scheme
        for attempt in range(1, MAX_RESOLUTION_ATTEMPTS + 1):
            outcome, pinned = self.resolve_file(context, output_path, scheme)
            if outcome is ResolutionOutcome.RESOLVED:
                self.logger.info(
                    f"Resolved spectra_refs of {context.file_name} "
                    f"(attempt {attempt}, scheme {pinned.value})"
                )
                return pinned
            scheme = pinned.flip()
            self.logger.info(
                f"Restarting {context.file_name} with ambiguous nativeIDs read "
                f"as {scheme.value} numbers"
            )
        raise UnverifiableIdentifier(
            f"Ambiguous nativeIDs could not be resolved after "
            f"{MAX_RESOLUTION_ATTEMPTS} attempts.",
            file_name=context.file_name,
        )

    def validate(
        self,
        mztab_path: Union[str, Path],
        output_path: Union[str, Path],
        context: Optional[MzTabContext] = None,
    ) -> ValidationResult:
        """
        Mark unresolvable or malformed PSMs invalid and count them.

        Raises:
            TooManyInvalidRows: if the share of invalid PSM rows exceeds
                ``failure_threshold`` percent. The output is kept for inspection.
        """
        output_path = Path(output_path)
        context = context or self.context_for(mztab_path)
        counts = new_counts()
        spectra = SpectraRefValidationProcessor(self.config)
        try:
            MzTabReader(
                context,
                [spectra, PSMValidationProcessor(counts)],
                output_path=output_path,
            ).process()
        except Exception:
            remove_file(output_path)
            raise

        result = ValidationResult(
            mztab_file=context.file_name,
            psm_rows=counts["PSM"],
            invalid_psm_rows=counts["invalid_PSM"],
            unique_psm_ids=counts[PSM_ID],
            scheme=spectra.scheme,
            counts=counts,
        )
        self.logger.info(
            f"{result.mztab_file}: {result.invalid_psm_rows} of {result.psm_rows} "
            f"PSM rows invalid ({result.invalid_percentage:.2f}%)"
        )
        if result.invalid_percentage > self.failure_threshold:
            raise TooManyInvalidRows(
                f"Result file contains {result.invalid_percentage:.2f}% invalid PSM "
                "rows. Please correct the file and ensure that its referenced "
                "spectra are accessible within linked peak list files.",
                file_name=context.file_name,
            )
        return result
