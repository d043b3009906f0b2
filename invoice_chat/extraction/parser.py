"""Reads an invoice candidate out of free-form assistant text.

Grammar: the first ```json fenced block wins; anything after it is ignored.
Keys may be camelCase (customerName) or snake_case (customer_name).
"""

import json
import re
from typing import Any

from invoice_chat.extraction.exceptions import (
    MalformedStructuredBlockError,
    NoStructuredBlockError,
)
from invoice_chat.extraction.models import StructuredInvoice

_JSON_FENCE_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")

_KEY_ALIASES: dict[str, tuple[str, ...]] = {
    "customer_name": ("customerName", "customer_name"),
    "vendor_name": ("vendorName", "vendor_name"),
    "invoice_number": ("invoiceNumber", "invoice_number"),
    "invoice_date": ("invoiceDate", "invoice_date"),
    "due_date": ("dueDate", "due_date"),
    "amount": ("amount",),
    "line_items": ("lineItems", "line_items"),
    "is_duplicate": ("isDuplicate", "is_duplicate"),
}


class StructuredExtractionParser:
    def parse(self, text: str) -> StructuredInvoice:
        """Parse the first fenced JSON block of text into a StructuredInvoice.

        Raises:
            NoStructuredBlockError: if there is no ```json block.
            MalformedStructuredBlockError: if the block is not a valid invoice object.
        """
        match = _JSON_FENCE_RE.search(text)
        if match is None or not match.group(1):
            raise NoStructuredBlockError("No JSON block found in assistant response")
        try:
            data = json.loads(match.group(1))
        except json.JSONDecodeError as exc:
            raise MalformedStructuredBlockError(f"JSON parse error: {exc}") from exc
        if not isinstance(data, dict):
            raise MalformedStructuredBlockError("JSON block must contain an object")
        return build_invoice(data)


def build_invoice(data: dict[str, Any]) -> StructuredInvoice:
    return StructuredInvoice(
        customer_name=_optional_str(_lookup(data, "customer_name"), "customerName"),
        vendor_name=_optional_str(_lookup(data, "vendor_name"), "vendorName"),
        invoice_number=_optional_str(_lookup(data, "invoice_number"), "invoiceNumber"),
        invoice_date=_optional_str(_lookup(data, "invoice_date"), "invoiceDate"),
        due_date=_optional_str(_lookup(data, "due_date"), "dueDate"),
        amount=_optional_amount(_lookup(data, "amount")),
        line_items=_line_items(_lookup(data, "line_items")),
        is_duplicate=_optional_bool(_lookup(data, "is_duplicate")),
    )


def _lookup(data: dict[str, Any], field: str) -> Any:
    for key in _KEY_ALIASES[field]:
        if key in data:
            return data[key]
    return None


def _optional_str(raw: Any, name: str) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        raise MalformedStructuredBlockError(f"'{name}' must be a string or null")
    value = str(raw).strip()
    return value or None


def _optional_amount(raw: Any) -> float | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise MalformedStructuredBlockError("'amount' must be a number or null")
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        cleaned = raw.replace(",", "").replace("$", "").strip()
        try:
            return float(cleaned)
        except ValueError as exc:
            raise MalformedStructuredBlockError(f"'amount' is not numeric: {raw!r}") from exc
    raise MalformedStructuredBlockError("'amount' must be a number or null")


def _line_items(raw: Any) -> list[dict[str, Any]]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedStructuredBlockError("'lineItems' must be a list")
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise MalformedStructuredBlockError(f"Line item at index {index} must be an object")
    return raw


def _optional_bool(raw: Any) -> bool | None:
    if raw is None:
        return None
    if not isinstance(raw, bool):
        raise MalformedStructuredBlockError("'isDuplicate' must be a boolean")
    return raw
