"""Bookkeeping run once per completed turn.

Output accounting, invoice extraction and message persistence run in that
order. Each step is isolated: its failure is logged and the next step still
runs. Nothing here reaches the user; the response has already been streamed.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from invoice_chat.accounting.models import DIRECTION_OUTPUT, TokenUsageRecord
from invoice_chat.accounting.token_accountant import TokenAccountant
from invoice_chat.chat.models import TurnResult
from invoice_chat.database.models import InvoiceRecord, MessageRecord
from invoice_chat.database.repositories.message_repository import MessageRepository
from invoice_chat.extraction.dedup import DeduplicationChecker
from invoice_chat.extraction.exceptions import StructuredOutputError
from invoice_chat.extraction.parser import StructuredExtractionParser
from invoice_chat.logging.logger import Log


@dataclass(frozen=True)
class TurnContext:
    chat_id: str
    user_id: str
    model_key: str
    is_document_turn: bool
    input_usage: TokenUsageRecord


@dataclass
class FinalizationReport:
    output_usage: TokenUsageRecord | None = None
    invoice: InvoiceRecord | None = None
    messages_saved: bool = False


class TurnFinalizer:
    def __init__(
        self,
        *,
        accountant: TokenAccountant,
        parser: StructuredExtractionParser,
        dedup_checker: DeduplicationChecker,
        message_repo: MessageRepository,
    ) -> None:
        self._accountant = accountant
        self._parser = parser
        self._dedup_checker = dedup_checker
        self._message_repo = message_repo

    def finalize(self, result: TurnResult, context: TurnContext) -> FinalizationReport:
        report = FinalizationReport()
        report.output_usage = self._account_output(result, context)
        if context.is_document_turn:
            report.invoice = self._extract_invoice(result)
        report.messages_saved = self._save_messages(result, context)
        return report

    def _account_output(
        self, result: TurnResult, context: TurnContext
    ) -> TokenUsageRecord | None:
        try:
            usage = self._accountant.record(
                DIRECTION_OUTPUT, result.first_message_text, context.model_key
            )
        except Exception as exc:
            Log.error(f"Output token accounting failed: {exc}")
            return None
        total = context.input_usage.cost_estimate + usage.cost_estimate
        Log.info(f"Total cost for chat {context.chat_id}: {total:.6f}")
        return usage

    def _extract_invoice(self, result: TurnResult) -> InvoiceRecord | None:
        try:
            candidate = self._parser.parse(result.text)
        except StructuredOutputError as exc:
            Log.error(f"Structured extraction skipped: {exc}")
            return None
        except Exception as exc:
            Log.error(f"Structured extraction failed: {exc}")
            return None
        return self._dedup_checker.check_and_save(candidate)

    def _save_messages(self, result: TurnResult, context: TurnContext) -> bool:
        now = datetime.now(timezone.utc)
        records = [
            MessageRecord(
                id=message.id,
                chat_id=context.chat_id,
                role=message.role,
                content=message.content,
                created_at=now,
            )
            for message in result.response_messages
            if message.content
        ]
        try:
            self._message_repo.save_messages(records)
        except Exception as exc:
            Log.error(f"Failed to save chat messages: {exc}")
            return False
        Log.info(f"Saved {len(records)} response messages for chat {context.chat_id}")
        return True
