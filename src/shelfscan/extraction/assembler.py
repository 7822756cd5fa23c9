"""Turn line classifications into product records.

Two strategies exist. Composite rows carry name, SKU and UPC on one line and
are used as-is whenever at least one was found. Otherwise the standalone
names, SKUs and UPCs are zipped by position, which assumes the source table
had its three columns OCR'd as three contiguous groups of lines, each in row
order. Nothing checks that zipped fields belong together: a column that lost
or gained a line shifts every later record. Treat column-mode output as a
best-effort draft for manual review.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import zip_longest
from typing import Iterable, List, Sequence, Tuple

from ..domain.models import ProductRecord
from ..logging import get_logger
from .classifier import LineClassification
from .constants import (
    KIND_COMPOSITE_ROW,
    KIND_NAME_FRAGMENT,
    KIND_SKU_ONLY,
    KIND_UPC_ONLY,
    MAX_RECORDS,
)


LOG = get_logger("extraction-assembler")

MODE_ROWS = "rows"
MODE_COLUMNS = "columns"


@dataclass
class Buckets:
    """Classifier output split into resolved rows and three unresolved columns."""

    rows: List[LineClassification] = field(default_factory=list)
    names: List[str] = field(default_factory=list)
    skus: List[str] = field(default_factory=list)
    upcs: List[str] = field(default_factory=list)


def bucket_classifications(classified: Iterable[LineClassification]) -> Buckets:
    buckets = Buckets()
    for c in classified:
        if c.kind == KIND_COMPOSITE_ROW:
            buckets.rows.append(c)
        elif c.kind == KIND_NAME_FRAGMENT:
            buckets.names.append(c.name)
        elif c.kind == KIND_SKU_ONLY:
            buckets.skus.extend(c.skus)
            buckets.upcs.extend(c.upcs)
        elif c.kind == KIND_UPC_ONLY:
            buckets.upcs.extend(c.upcs)
    return buckets


def assemble_rows(rows: Sequence[LineClassification]) -> List[ProductRecord]:
    """One record per composite row, in document order."""
    return [ProductRecord(product_name=r.name, sku=r.sku, upc=r.upc) for r in rows]


def assemble_columns(names: Sequence[str], skus: Sequence[str], upcs: Sequence[str]) -> List[ProductRecord]:
    """Zip the three columns by position, padding short columns with ""."""
    if len({len(names), len(skus), len(upcs)}) > 1:
        LOG.debug(
            "Column lengths differ (names=%d, skus=%d, upcs=%d); padding short columns",
            len(names),
            len(skus),
            len(upcs),
        )
    return [
        ProductRecord(product_name=n, sku=s, upc=u)
        for n, s, u in zip_longest(names, skus, upcs, fillvalue="")
    ]


def finalize_records(records: Iterable[ProductRecord], *, max_records: int = MAX_RECORDS) -> List[ProductRecord]:
    """Drop all-empty records and cap the list; duplicates are kept."""
    out: List[ProductRecord] = []
    for record in records:
        if record.is_empty():
            continue
        if len(out) >= max_records:
            LOG.warning("Record cap of %d reached; dropping the rest", max_records)
            break
        out.append(record)
    return out


def assemble(buckets: Buckets, *, max_records: int = MAX_RECORDS) -> Tuple[str, List[ProductRecord]]:
    """Pick the assembly strategy and return ``(mode, records)``."""
    if buckets.rows:
        return MODE_ROWS, finalize_records(assemble_rows(buckets.rows), max_records=max_records)
    records = assemble_columns(buckets.names, buckets.skus, buckets.upcs)
    return MODE_COLUMNS, finalize_records(records, max_records=max_records)
