import mimetypes
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from ..config import Settings
from ..logging import get_logger

# OCR.space free tier rejects uploads above 1 MB.
FREE_TIER_LIMIT_BYTES = 1024 * 1024


class OcrError(Exception):
    pass


@dataclass(frozen=True)
class OcrResponse:
    text: str
    has_overlay: bool
    elapsed_ms: int


def _guess_mime(filename: str) -> str:
    mime, _ = mimetypes.guess_type(filename)
    return mime or "application/octet-stream"


class OcrSpaceClient:
    """Thin client for the OCR.space parse endpoint.

    Sends the image with fixed options (English, orientation detection,
    table-friendly engine) and returns only the first parsed text block.
    """

    def __init__(
        self,
        api_key: str,
        url: str,
        *,
        engine: str = "2",
        language: str = "eng",
        timeout: int = 60,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.url = url
        self.engine = str(engine)
        self.language = language
        self.timeout = int(timeout)
        self.log = get_logger("ocr-client")
        self.s = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings, *, session: Optional[requests.Session] = None) -> "OcrSpaceClient":
        return cls(
            settings.ocr_api_key,
            settings.ocr_url,
            engine=settings.ocr_engine,
            language=settings.ocr_language,
            timeout=settings.ocr_timeout,
            session=session,
        )

    def _form(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "language": self.language,
            "isOverlayRequired": "false",
            "detectOrientation": "true",
            "scale": "true",
            "OCREngine": self.engine,
        }

    def _json(self, r: requests.Response) -> Any:
        try:
            r.raise_for_status()
        except requests.HTTPError as e:
            raise OcrError(f"OCR service returned HTTP {r.status_code}") from e
        try:
            return r.json()
        except ValueError as e:
            raise OcrError("OCR service returned invalid JSON") from e

    def parse_bytes(self, data: bytes, filename: str = "upload.jpg") -> OcrResponse:
        if not data:
            raise OcrError("empty image payload")
        if len(data) > FREE_TIER_LIMIT_BYTES:
            self.log.warning(
                f"Image {filename!r} is {len(data) / 1024:.0f} KB; the free OCR tier may reject files above 1024 KB"
            )
        files = {"file": (filename, data, _guess_mime(filename))}
        self.log.info(f"POST {self.url}: file={filename!r} size={len(data)}")
        started = time.perf_counter()
        try:
            r = self.s.post(self.url, files=files, data=self._form(), timeout=self.timeout)
        except requests.RequestException as e:
            self.log.error(f"OCR request failed: {e}")
            raise OcrError(f"OCR request failed: {e}") from e
        body = self._json(r)
        elapsed_ms = int(round((time.perf_counter() - started) * 1000))

        if not isinstance(body, dict):
            raise OcrError("OCR service returned an unexpected payload")
        if body.get("IsErroredOnProcessing"):
            message = body.get("ErrorMessage") or "OCR processing failed"
            if isinstance(message, list):
                message = "; ".join(str(m) for m in message)
            self.log.error(f"OCR error: {message} ({body.get('ErrorDetails')})")
            raise OcrError(str(message))
        results = body.get("ParsedResults")
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            raise OcrError("No text could be extracted from the image")

        first = results[0]
        text = first.get("ParsedText") or ""
        overlay = first.get("TextOverlay")
        has_overlay = bool(overlay.get("HasOverlay")) if isinstance(overlay, dict) else False
        self.log.info(f"OCR finished in {elapsed_ms} ms; text length={len(text)}")
        self.log.debug(f"OCR text: {text!r}")
        return OcrResponse(text=str(text), has_overlay=has_overlay, elapsed_ms=elapsed_ms)
