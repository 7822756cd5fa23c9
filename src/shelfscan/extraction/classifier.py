from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union

from ..logging import get_logger
from .constants import (
    KIND_COMPOSITE_ROW,
    KIND_HEADER,
    KIND_NAME_FRAGMENT,
    KIND_NOISE,
    KIND_SKU_ONLY,
    KIND_UPC_ONLY,
    MIN_LINE_LENGTH,
    MIN_NAME_LENGTH,
)
from .patterns import DEFAULT_PATTERNS, SKIP_VOCABULARY, PatternSet, collapse_ws


LOG = get_logger("extraction-classifier")

_LINE_BREAK = re.compile(r"\r?\n|\r")
_LEADING_INDEX = re.compile(r"^\d+\s+")


@dataclass(frozen=True)
class RawLine:
    line_no: int  # 1-based position in the OCR text, blank lines included
    text: str


@dataclass(frozen=True)
class LineClassification:
    kind: str
    line: RawLine
    name: str = ""
    skus: Tuple[str, ...] = ()
    upcs: Tuple[str, ...] = ()

    @property
    def sku(self) -> str:
        return self.skus[0] if self.skus else ""

    @property
    def upc(self) -> str:
        return self.upcs[0] if self.upcs else ""


def segment_lines(text: Optional[str]) -> List[RawLine]:
    """Split OCR text into trimmed, non-empty lines."""
    if not isinstance(text, str) or not text:
        return []
    out: List[RawLine] = []
    for idx, raw in enumerate(_LINE_BREAK.split(text), start=1):
        line = raw.strip()
        if line:
            out.append(RawLine(idx, line))
    return out


class LineClassifier:
    """Stateless per-line classifier; the first matching rule wins.

    Order: template text, too short, composite row, name fragment,
    SKU-only, UPC-only, noise.
    """

    def __init__(self, patterns: PatternSet = DEFAULT_PATTERNS, *, min_line_length: int = MIN_LINE_LENGTH) -> None:
        self.patterns = patterns
        self.min_line_length = int(min_line_length)

    def clean_name(self, text: str) -> str:
        """Return a usable product name from ``text`` or an empty string.

        Identifier digit runs are removed, whitespace collapsed and a leading
        row index dropped. Names that are too short, truncated, or that read
        as template text are rejected.
        """
        name = self.patterns.strip_identifiers(text)
        name = _LEADING_INDEX.sub("", name).strip()
        if len(name) < MIN_NAME_LENGTH:
            return ""
        if self.patterns.looks_truncated(name):
            return ""
        if self.patterns.is_header(name):
            return ""
        return name

    def classify(self, line: Union[RawLine, str]) -> LineClassification:
        raw = line if isinstance(line, RawLine) else RawLine(0, collapse_ws(str(line)))
        text = raw.text
        p = self.patterns

        reason = p.skip_reason(text)
        if reason == SKIP_VOCABULARY:
            return LineClassification(KIND_HEADER, raw)
        if reason is not None:
            return LineClassification(KIND_NOISE, raw)

        if len(text) < self.min_line_length:
            return LineClassification(KIND_NOISE, raw)

        scan = p.scan(text)
        has_letters = p.has_letter_run(text)

        if scan.skus and len(scan.identifiers) >= 2 and has_letters:
            sku = scan.skus[0]
            upc = next((t for t in scan.identifiers if not p.is_sku(t)), "")
            return LineClassification(
                KIND_COMPOSITE_ROW,
                raw,
                name=self.clean_name(text),
                skus=(sku,),
                upcs=(upc,) if upc else (),
            )

        if not scan.skus and not scan.upcs and has_letters and not p.looks_truncated(text):
            name = self.clean_name(text)
            if name:
                return LineClassification(KIND_NAME_FRAGMENT, raw, name=name)
            return LineClassification(KIND_NOISE, raw)

        if scan.skus and not has_letters:
            # Merged SKU+UPC column; its UPC tokens still feed the UPC column.
            return LineClassification(KIND_SKU_ONLY, raw, skus=scan.skus, upcs=scan.upcs)

        if scan.upcs and not has_letters:
            return LineClassification(KIND_UPC_ONLY, raw, upcs=scan.upcs)

        return LineClassification(KIND_NOISE, raw)

    def classify_all(self, lines: Iterable[Union[RawLine, str]]) -> List[LineClassification]:
        results = [self.classify(line) for line in lines]
        LOG.debug("Classified %d line(s)", len(results))
        return results
