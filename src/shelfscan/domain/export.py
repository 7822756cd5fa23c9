from __future__ import annotations

from typing import Any, Iterable, List, Optional

from ..logging import get_logger
from .models import ProductRecord

LOG = get_logger("export")

MARKDOWN_HEADER = "Product Name | SKU Number | UPC"
MARKDOWN_SEPARATOR = "---|---|---"


class RecordValidationError(ValueError):
    pass


def _norm_s(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (int,)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    raise RecordValidationError(f"expected a string, got {type(value).__name__}")


def _cell(value: str) -> str:
    # Tabs and newlines would split a spreadsheet cell.
    return " ".join(value.split())


def to_tsv(records: Iterable[ProductRecord]) -> str:
    """One ``name<TAB>sku<TAB>upc`` row per record, ready for a spreadsheet paste."""
    return "\n".join(f"{_cell(r.product_name)}\t{_cell(r.sku)}\t{_cell(r.upc)}" for r in records)


def to_markdown_table(records: Iterable[ProductRecord]) -> str:
    rows = [f"{_cell(r.product_name)} | {_cell(r.sku)} | {_cell(r.upc)}" for r in records]
    return "\n".join([MARKDOWN_HEADER, MARKDOWN_SEPARATOR, *rows])


def manual_record(product_name: Optional[str] = "", sku: Optional[str] = "", upc: Optional[str] = "") -> ProductRecord:
    """Build an operator-authored record; at least one field must be non-empty."""
    record = ProductRecord(product_name=_norm_s(product_name), sku=_norm_s(sku), upc=_norm_s(upc))
    if record.is_empty():
        raise RecordValidationError("a product needs a name, a SKU or a UPC")
    return record


def records_from_json(payload: Any) -> List[ProductRecord]:
    """Parse a list of ``{productName, sku, upc}`` objects into records.

    Accepts the camelCase keys emitted by ``ProductRecord.to_dict`` as well as
    ``product_name`` and ``skuNumber``. Entries with every field empty are
    skipped rather than rejected.
    """
    if not isinstance(payload, list):
        raise RecordValidationError("products must be a list")
    out: List[ProductRecord] = []
    for idx, item in enumerate(payload):
        if not isinstance(item, dict):
            raise RecordValidationError(f"products[{idx}] must be an object")
        try:
            name = _norm_s(item.get("productName", item.get("product_name")))
            sku = _norm_s(item.get("sku", item.get("skuNumber")))
            upc = _norm_s(item.get("upc"))
        except RecordValidationError as exc:
            raise RecordValidationError(f"products[{idx}]: {exc}") from exc
        record = ProductRecord(product_name=name, sku=sku, upc=upc)
        if record.is_empty():
            LOG.debug("Skipping empty products[%d]", idx)
            continue
        out.append(record)
    return out
