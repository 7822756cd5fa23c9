"""Recognition rules shared by the line classifier and both assemblers.

A :class:`PatternSet` is immutable. Build a custom one (or derive one with
:meth:`PatternSet.with_skip_words`) and inject it into the classifier instead
of mutating module state.

SKU/UPC precedence: every maximal digit run is tested against the SKU shape
first. A run is a UPC only when it has the UPC shape and is not a SKU. All
extraction paths go through :meth:`PatternSet.scan`, so the rule holds
everywhere.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, List, Optional, Pattern, Tuple

from .constants import MIN_LETTER_RUN

# Label vocabulary printed on planogram sheets (column headers, location
# and fixture labels). Truncated forms are what OCR tends to return for
# clipped header cells.
DEFAULT_SKIP_WORDS: FrozenSet[str] = frozenset(
    {
        "CHANGE",
        "LOC ID",
        "SKU NO",
        "SKU",
        "UPC",
        "NAME",
        "SHELF",
        "DEPTH",
        "NOF",
        "TIER",
        "NOTCH",
        "GONDOLA",
        "GONDOL",
        "CATEGORY",
        "DEPARTMENT",
        "EPARTMENT",
        "VIEW BY",
        "ELEMENT",
        "STORE",
        "STORE NA",
        "HYPERMARKET",
        "HYPERMA",
        "LOCATION",
        "BRAND",
        "PAPER",
    }
)

DEFAULT_SKU_PREFIXES: Tuple[str, ...] = ("122", "11")

_DIGIT_RUN = re.compile(r"(?<!\d)\d+(?!\d)")
_WS = re.compile(r"\s+")
_LETTER_RUN_TEMPLATE = r"[A-Za-z]{{{n},}}"

# Shape-based skip rules (row/tier numbers, prices, residual "LABEL: VALUE").
_SHORT_INTEGER = re.compile(r"^\d{1,4}$")
_DECIMAL_ONLY = re.compile(r"^\d+[.,]\d+$")
_LABEL_FRAGMENT = re.compile(r"^[A-Za-z]+\s*:\s*[A-Za-z]+$")
_TRAILING_COLON = re.compile(r":\s*$")

# A truncated label token such as "gondol" or "loc2".
_TRUNCATED_TOKEN = re.compile(r"^[a-z]{1,8}\d*$")
_ELLIPSIS = ".."

SKIP_VOCABULARY = "vocabulary"
SKIP_SHAPE = "shape"


@dataclass(frozen=True)
class TokenScan:
    """Digit runs of one line, split by the SKU-before-UPC rule."""

    skus: Tuple[str, ...]
    upcs: Tuple[str, ...]
    # Long digit runs that are neither SKU nor UPC shaped.
    others: Tuple[str, ...]
    # Every identifier-length run (SKU, UPC or other) in line order.
    identifiers: Tuple[str, ...]


@dataclass(frozen=True)
class PatternSet:
    sku_prefixes: Tuple[str, ...] = DEFAULT_SKU_PREFIXES
    sku_min_digits: int = 11
    sku_max_digits: int = 13
    upc_min_digits: int = 12
    upc_max_digits: int = 14
    # Digit runs at least this long count as identifiers when stripping names
    # and when looking for the UPC of a composite row.
    identifier_min_digits: int = 8
    min_letter_run: int = MIN_LETTER_RUN
    skip_words: FrozenSet[str] = DEFAULT_SKIP_WORDS

    _sku_re: Pattern[str] = field(init=False, repr=False, compare=False)
    _upc_re: Pattern[str] = field(init=False, repr=False, compare=False)
    _letter_run_re: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.sku_min_digits > self.sku_max_digits or self.upc_min_digits > self.upc_max_digits:
            raise ValueError("digit-count minimum exceeds maximum")
        alternatives = []
        # Longest prefix first so "122" is tried before "12" style prefixes.
        for prefix in sorted(self.sku_prefixes, key=len, reverse=True):
            lo = max(0, self.sku_min_digits - len(prefix))
            hi = self.sku_max_digits - len(prefix)
            if hi < 0:
                raise ValueError(f"SKU prefix {prefix!r} longer than sku_max_digits")
            alternatives.append(f"{re.escape(prefix)}\\d{{{lo},{hi}}}")
        object.__setattr__(self, "_sku_re", re.compile("(?:" + "|".join(alternatives) + ")"))
        object.__setattr__(
            self, "_upc_re", re.compile(f"\\d{{{self.upc_min_digits},{self.upc_max_digits}}}")
        )
        object.__setattr__(
            self, "_letter_run_re", re.compile(_LETTER_RUN_TEMPLATE.format(n=self.min_letter_run))
        )
        object.__setattr__(self, "skip_words", frozenset(w.strip().upper() for w in self.skip_words if w.strip()))

    def with_skip_words(self, words: Iterable[str]) -> "PatternSet":
        """Return a copy whose vocabulary is extended by ``words``."""
        return replace(self, skip_words=self.skip_words | frozenset(words))

    # ---------- numeric identifiers ----------
    def is_sku(self, token: str) -> bool:
        return bool(self._sku_re.fullmatch(token))

    def is_upc(self, token: str) -> bool:
        return bool(self._upc_re.fullmatch(token)) and not self.is_sku(token)

    def scan(self, line: str) -> TokenScan:
        skus: List[str] = []
        upcs: List[str] = []
        others: List[str] = []
        identifiers: List[str] = []
        for m in _DIGIT_RUN.finditer(line):
            token = m.group(0)
            if self.is_sku(token):
                skus.append(token)
            elif self.is_upc(token):
                upcs.append(token)
            elif len(token) >= self.identifier_min_digits:
                others.append(token)
            else:
                continue
            identifiers.append(token)
        return TokenScan(tuple(skus), tuple(upcs), tuple(others), tuple(identifiers))

    def strip_identifiers(self, line: str) -> str:
        """Remove identifier-length digit runs and collapse whitespace."""

        def _drop(m: "re.Match[str]") -> str:
            token = m.group(0)
            if self.is_sku(token) or len(token) >= self.identifier_min_digits:
                return " "
            return token

        return collapse_ws(_DIGIT_RUN.sub(_drop, line))

    # ---------- text shape ----------
    def has_letter_run(self, text: str) -> bool:
        return bool(self._letter_run_re.search(text))

    def skip_reason(self, line: str) -> Optional[str]:
        """Return why ``line`` is template text, or None when it is not.

        Vocabulary matches: the line equals a skip word, starts or ends with
        one next to a space or colon, or has a colon and a skip word anywhere.
        """
        text = collapse_ws(line)
        if (
            _SHORT_INTEGER.match(text)
            or _DECIMAL_ONLY.match(text)
            or _LABEL_FRAGMENT.match(text)
        ):
            return SKIP_SHAPE
        upper = text.upper()
        has_colon = ":" in upper
        for word in self.skip_words:
            if upper == word:
                return SKIP_VOCABULARY
            n = len(word)
            if upper.startswith(word) and len(upper) > n and upper[n] in " :/":
                return SKIP_VOCABULARY
            if upper.endswith(word) and len(upper) > n and upper[-n - 1] in " :":
                return SKIP_VOCABULARY
            if has_colon and word in upper:
                return SKIP_VOCABULARY
        if _TRAILING_COLON.search(text):
            return SKIP_SHAPE
        return None

    def is_header(self, line: str) -> bool:
        return self.skip_reason(line) is not None

    def looks_truncated(self, text: str) -> bool:
        return bool(_TRUNCATED_TOKEN.match(text)) or _ELLIPSIS in text


def collapse_ws(text: str) -> str:
    return _WS.sub(" ", text or "").strip()


DEFAULT_PATTERNS = PatternSet()
