from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class ChatRecord:
    """Represents a row from the chats table."""

    id: str
    user_id: str
    title: str
    created_at: datetime | None = None


@dataclass
class MessageRecord:
    """Represents a row from the messages table."""

    id: str
    chat_id: str
    role: str
    content: Any
    created_at: datetime | None = None


@dataclass
class InvoiceRecord:
    """Represents a row from the invoices table."""

    id: str
    customer_name: str | None
    vendor_name: str | None
    invoice_number: str | None
    invoice_date: str | None = None
    due_date: str | None = None
    amount: float | None = None
    line_items: list[dict[str, Any]] = field(default_factory=list)
    created_at: datetime | None = None
