"""OCR-text to product-record extraction engine.

Modules:
- patterns: immutable SKU/UPC shapes and header vocabulary
- classifier: line segmentation and per-line classification
- assembler: row-format and column-format assembly, output capping
- engine: the entry point tying the stages together
"""

from .classifier import LineClassification, LineClassifier, RawLine, segment_lines
from .engine import ExtractionEngine, extract_products
from .patterns import DEFAULT_PATTERNS, PatternSet

__all__ = [
    "DEFAULT_PATTERNS",
    "ExtractionEngine",
    "LineClassification",
    "LineClassifier",
    "PatternSet",
    "RawLine",
    "extract_products",
    "segment_lines",
]
