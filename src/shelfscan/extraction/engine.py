from __future__ import annotations

import time
from typing import Any, List, Optional

from ..domain.models import ExtractionResult
from ..logging import get_logger
from .assembler import assemble, bucket_classifications
from .classifier import LineClassification, LineClassifier, segment_lines
from .constants import MAX_RECORDS, UNINFORMATIVE_KINDS
from .patterns import DEFAULT_PATTERNS, PatternSet


LOG = get_logger("extraction-engine")

CONFIDENCE_COVERAGE = "coverage"
CONFIDENCE_OVERLAY = "overlay"
OVERLAY_CONFIDENCE = 0.9
NO_OVERLAY_CONFIDENCE = 0.7


def _elapsed_ms(started: float) -> int:
    return max(0, int(round((time.perf_counter() - started) * 1000)))


class ExtractionEngine:
    """Text-to-records engine: segment, classify, assemble, finalize.

    Instances hold only immutable configuration, so one engine can serve
    concurrent callers.
    """

    def __init__(
        self,
        patterns: PatternSet = DEFAULT_PATTERNS,
        *,
        max_records: int = MAX_RECORDS,
        confidence_policy: str = CONFIDENCE_COVERAGE,
    ) -> None:
        if confidence_policy not in {CONFIDENCE_COVERAGE, CONFIDENCE_OVERLAY}:
            raise ValueError(f"unknown confidence policy: {confidence_policy!r}")
        self.classifier = LineClassifier(patterns)
        self.max_records = int(max_records)
        self.confidence_policy = confidence_policy

    def classify_text(self, text: Any) -> List[LineClassification]:
        return self.classifier.classify_all(segment_lines(text if isinstance(text, str) else None))

    def _confidence(self, classified: List[LineClassification], has_overlay: Optional[bool]) -> float:
        if self.confidence_policy == CONFIDENCE_OVERLAY:
            return OVERLAY_CONFIDENCE if has_overlay else NO_OVERLAY_CONFIDENCE
        informative = sum(1 for c in classified if c.kind not in UNINFORMATIVE_KINDS)
        return round(informative / len(classified), 3)

    def extract(self, text: Any, *, has_overlay: Optional[bool] = None, started: Optional[float] = None) -> ExtractionResult:
        """Extract product records from raw OCR text.

        Never raises on bad input: anything that is not a non-blank string
        yields an empty result with confidence 0. ``started`` lets callers
        include time spent before the engine (the OCR round trip) in
        ``processing_time_ms``.
        """
        t0 = started if started is not None else time.perf_counter()
        classified = self.classify_text(text)
        if not classified:
            LOG.info("No usable text lines; returning empty result")
            return ExtractionResult.empty(_elapsed_ms(t0))

        buckets = bucket_classifications(classified)
        LOG.debug(
            "Lines=%d composite=%d names=%d skus=%d upcs=%d",
            len(classified),
            len(buckets.rows),
            len(buckets.names),
            len(buckets.skus),
            len(buckets.upcs),
        )
        mode, records = assemble(buckets, max_records=self.max_records)
        LOG.info("Assembled %d product(s) in %s mode", len(records), mode)
        if not records:
            return ExtractionResult.empty(_elapsed_ms(t0))
        return ExtractionResult(
            products=tuple(records),
            confidence=self._confidence(classified, has_overlay),
            processing_time_ms=_elapsed_ms(t0),
        )


def extract_products(text: Any, *, patterns: PatternSet = DEFAULT_PATTERNS) -> ExtractionResult:
    """Run a default-configured engine over ``text``."""
    return ExtractionEngine(patterns).extract(text)
