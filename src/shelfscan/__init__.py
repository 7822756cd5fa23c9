"""
Shelfscan – structured product records from planogram OCR text.

The extraction engine lives in :mod:`shelfscan.extraction`; the OCR
boundary, HTTP API and CLI are thin layers around it.
"""

from .domain.models import ExtractionResult, ProductRecord
from .extraction import ExtractionEngine, extract_products

__all__ = [
    "ExtractionEngine",
    "ExtractionResult",
    "ProductRecord",
    "extract_products",
]
