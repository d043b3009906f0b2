"""Request and response bodies for the HTTP API (camelCase on the wire)."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from invoice_chat.chat.models import Attachment, ConversationMessage
from invoice_chat.chat.service import ChatRequest
from invoice_chat.database.models import InvoiceRecord
from invoice_chat.upload.models import UploadResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AttachmentIn(CamelModel):
    url: str
    content_type: str = ""
    name: str = ""
    extracted_text: str = ""


class MessageIn(CamelModel):
    id: str
    role: str
    content: str = ""
    experimental_attachments: list[AttachmentIn] = Field(
        default_factory=list, alias="experimental_attachments"
    )

    def to_message(self, chat_id: str) -> ConversationMessage:
        return ConversationMessage(
            id=self.id,
            role=self.role,
            content=self.content,
            chat_id=chat_id,
            attachments=[
                Attachment(
                    url=a.url,
                    content_type=a.content_type,
                    name=a.name,
                    extracted_text=a.extracted_text,
                )
                for a in self.experimental_attachments
            ],
        )


class ChatRequestBody(CamelModel):
    id: str
    messages: list[MessageIn]
    selected_chat_model: str

    def to_request(self) -> ChatRequest:
        return ChatRequest(
            chat_id=self.id,
            messages=[m.to_message(self.id) for m in self.messages],
            model_key=self.selected_chat_model,
        )


class UploadResponse(CamelModel):
    url: str
    pathname: str
    content_type: str
    extracted_text: str

    @classmethod
    def from_result(cls, result: UploadResult) -> "UploadResponse":
        return cls(
            url=result.url,
            pathname=result.pathname,
            content_type=result.content_type,
            extracted_text=result.extracted_text,
        )


class InvoiceOut(CamelModel):
    id: str
    customer_name: str | None = None
    vendor_name: str | None = None
    invoice_number: str | None = None
    invoice_date: str | None = None
    due_date: str | None = None
    amount: float | None = None
    line_items: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: InvoiceRecord) -> "InvoiceOut":
        return cls(
            id=record.id,
            customer_name=record.customer_name,
            vendor_name=record.vendor_name,
            invoice_number=record.invoice_number,
            invoice_date=record.invoice_date,
            due_date=record.due_date,
            amount=record.amount,
            line_items=record.line_items,
        )


class InvoiceUpdate(CamelModel):
    customer_name: str | None = None
    vendor_name: str | None = None
    invoice_number: str | None = None
    invoice_date: str | None = None
    due_date: str | None = None
    amount: float | None = None
    line_items: list[dict[str, Any]] = Field(default_factory=list)

    def fields(self) -> dict[str, Any]:
        """Only the fields the client sent; absent keys leave the stored value alone."""
        return self.model_dump(exclude_unset=True)
