"""Client for the external OCR service."""

from .client import OcrError, OcrResponse, OcrSpaceClient

__all__ = ["OcrError", "OcrResponse", "OcrSpaceClient"]
