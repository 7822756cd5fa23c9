from __future__ import annotations

import os
import time
from typing import Any, Optional

from .config import Settings, load_settings
from .domain.models import ExtractionResult
from .extraction import ExtractionEngine
from .logging import get_logger
from .ocr import OcrError, OcrSpaceClient


LOG = get_logger("shelfscan-service")


def _elapsed_ms(started: float) -> int:
    return max(0, int(round((time.perf_counter() - started) * 1000)))


class ShelfScanService:
    """Coordinates the OCR round trip and the extraction engine.

    OCR failures never escape: they are logged and reported as an empty
    result with confidence 0 so callers can fall back to manual entry.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[OcrSpaceClient] = None,
        engine: Optional[ExtractionEngine] = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.client = client or OcrSpaceClient.from_settings(self.settings)
        self.engine = engine or ExtractionEngine(
            max_records=self.settings.max_records,
            confidence_policy=self.settings.confidence_policy,
        )

    def extract_from_text(self, text: Any) -> ExtractionResult:
        return self.engine.extract(text)

    def extract_from_bytes(self, data: bytes, filename: str = "upload.jpg") -> ExtractionResult:
        started = time.perf_counter()
        try:
            ocr = self.client.parse_bytes(data, filename)
        except OcrError as e:
            LOG.warning("OCR failed for %s: %s", filename, e)
            return ExtractionResult.empty(_elapsed_ms(started), error=str(e))
        result = self.engine.extract(ocr.text, has_overlay=ocr.has_overlay, started=started)
        LOG.info(
            "Extracted %d product(s) from %s (ocr=%d ms, total=%d ms)",
            len(result.products),
            filename,
            ocr.elapsed_ms,
            result.processing_time_ms,
        )
        return result

    def extract_from_image(self, source_path: str) -> ExtractionResult:
        started = time.perf_counter()
        try:
            with open(source_path, "rb") as fh:
                data = fh.read()
        except OSError as e:
            LOG.error("Cannot read image %s: %s", source_path, e)
            return ExtractionResult.empty(_elapsed_ms(started), error=f"cannot read {source_path}: {e}")
        return self.extract_from_bytes(data, os.path.basename(source_path))
