from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ProductRecord:
    product_name: str = ""
    sku: str = ""
    upc: str = ""

    def is_empty(self) -> bool:
        return not (self.product_name or self.sku or self.upc)

    def to_dict(self) -> Dict[str, str]:
        return {"productName": self.product_name, "sku": self.sku, "upc": self.upc}


@dataclass(frozen=True)
class ExtractionResult:
    products: Tuple[ProductRecord, ...] = field(default_factory=tuple)
    confidence: float = 0.0
    processing_time_ms: int = 0
    error: Optional[str] = None

    @classmethod
    def empty(cls, processing_time_ms: int = 0, *, error: Optional[str] = None) -> "ExtractionResult":
        return cls(products=(), confidence=0.0, processing_time_ms=max(0, int(processing_time_ms)), error=error)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "products": [p.to_dict() for p in self.products],
            "confidence": self.confidence,
            "processingTimeMs": self.processing_time_ms,
        }
        if self.error:
            out["error"] = self.error
        return out
