"""Structural validation of extracted receipt data.

Two extraction schema generations are in circulation: the older one returns
``date`` and items without a category, the newer one returns ``datetime`` and
a per-item ``category``. Both validate into the same ReceiptRecord.

The validator accepts or rejects; it never edits values.
"""

from __future__ import annotations

import math
from typing import Any

from .errors import SchemaViolationError
from .models import ReceiptItem, ReceiptRecord

# Preferred key first.
TIMESTAMP_KEYS: tuple[str, ...] = ("datetime", "date")


def _is_number(value: Any) -> bool:
    # bool is an int subclass; JSON true/false are not prices
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _is_nonempty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _timestamp(value: dict) -> str:
    for key in TIMESTAMP_KEYS:
        if key in value and _is_nonempty_string(value[key]):
            return value[key]
    present = [key for key in TIMESTAMP_KEYS if key in value]
    if present:
        raise SchemaViolationError(present[0], "must be a non-empty string")
    raise SchemaViolationError(
        "date", "missing (expected 'date' or 'datetime')"
    )


def _item(index: int, raw: Any) -> ReceiptItem:
    field = f"items[{index}]"
    if not isinstance(raw, dict):
        raise SchemaViolationError(field, "must be an object")
    if not _is_nonempty_string(raw.get("name")):
        raise SchemaViolationError(f"{field}.name", "must be a non-empty string")
    if "price" not in raw or not _is_number(raw["price"]):
        raise SchemaViolationError(f"{field}.price", "must be a number")
    category = raw.get("category")
    if category is not None and not isinstance(category, str):
        raise SchemaViolationError(f"{field}.category", "must be a string")
    return ReceiptItem(name=raw["name"], price=raw["price"], category=category)


def validate_receipt(value: Any) -> ReceiptRecord:
    """Validate a parsed extraction result and build a ReceiptRecord.

    Checks run in a fixed order and stop at the first failure:
    object, storeName, date/datetime, items, each item, total.

    Category values outside the prompt's list are accepted as-is.

    Raises:
        SchemaViolationError: naming the first offending field.
    """
    if not isinstance(value, dict):
        raise SchemaViolationError("receipt", "must be a JSON object")

    if not _is_nonempty_string(value.get("storeName")):
        raise SchemaViolationError("storeName", "must be a non-empty string")

    timestamp = _timestamp(value)

    raw_items = value.get("items")
    if not isinstance(raw_items, list):
        raise SchemaViolationError("items", "must be a list")

    items = [_item(i, raw) for i, raw in enumerate(raw_items)]

    if "total" not in value or not _is_number(value["total"]):
        raise SchemaViolationError("total", "must be a number")

    return ReceiptRecord(
        store_name=value["storeName"],
        timestamp=timestamp,
        items=items,
        total=value["total"],
    )
