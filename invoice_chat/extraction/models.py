from dataclasses import dataclass, field
from typing import Any

INVOICE_FIELDS = (
    "customer_name",
    "vendor_name",
    "invoice_number",
    "invoice_date",
    "due_date",
    "amount",
    "line_items",
)
IDENTIFYING_FIELDS = ("customer_name", "vendor_name", "invoice_number")


@dataclass(frozen=True)
class StructuredInvoice:
    """Invoice candidate parsed from model output. Has no id until persisted."""

    customer_name: str | None = None
    vendor_name: str | None = None
    invoice_number: str | None = None
    invoice_date: str | None = None
    due_date: str | None = None
    amount: float | None = None
    line_items: list[dict[str, Any]] = field(default_factory=list)
    is_duplicate: bool | None = None

    def missing_identifying_fields(self) -> list[str]:
        return [name for name in IDENTIFYING_FIELDS if not getattr(self, name)]

    def fields(self) -> dict[str, Any]:
        """The recognized field set, without the duplicate flag."""
        return {name: getattr(self, name) for name in INVOICE_FIELDS}
