from collections.abc import Iterable

from invoice_chat.chat.exceptions import DisallowedDocumentError
from invoice_chat.chat.models import ConversationMessage
from invoice_chat.logging.logger import Log
from invoice_chat.upload.models import PDF_MEDIA_TYPE

EXTRACTED_TEXT_MARKER = "[PDF EXTRACTED TEXT]"

DEFAULT_DISALLOWED_KEYWORDS = ("receipt", "account statement")


class ContentSanitizer:
    """Folds extracted PDF text into messages and rejects disallowed documents."""

    def __init__(self, disallowed_keywords: Iterable[str] = DEFAULT_DISALLOWED_KEYWORDS) -> None:
        self._keywords = [k.lower() for k in disallowed_keywords if k.strip()]

    def fold_pdf_attachments(self, messages: list[ConversationMessage]) -> None:
        """Append PDF attachment text to each message and drop the PDF attachments.

        Non-PDF attachments are left in place. Mutates the messages.
        """
        for message in messages:
            if not message.attachments:
                continue
            pdf_texts = "\n".join(
                a.extracted_text
                for a in message.attachments
                if a.content_type == PDF_MEDIA_TYPE
            )
            if pdf_texts:
                message.content += f"\n\n{EXTRACTED_TEXT_MARKER}:\n{pdf_texts}"
            message.attachments = [
                a for a in message.attachments if a.content_type != PDF_MEDIA_TYPE
            ]

    def collect_document_text(self, messages: list[ConversationMessage]) -> str:
        """Recombine every marked segment into one document text blob.

        An empty result means the turn is a plain chat turn.
        """
        document_text = ""
        marker = f"{EXTRACTED_TEXT_MARKER}:"
        for message in messages:
            if marker not in message.content:
                continue
            segment = message.content.split(marker, 1)[1].strip()
            document_text += segment + "\n"
        return document_text if document_text.strip() else ""

    def ensure_allowed(self, text: str) -> None:
        """Reject text belonging to a disallowed document category.

        Raises:
            DisallowedDocumentError: naming the first matching keyword.
        """
        lowered = text.lower()
        for keyword in self._keywords:
            if keyword in lowered:
                Log.warning(f"Rejected document containing disallowed keyword '{keyword}'")
                raise DisallowedDocumentError(keyword)
