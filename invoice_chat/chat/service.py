from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from invoice_chat.accounting.models import DIRECTION_INPUT
from invoice_chat.accounting.token_accountant import TokenAccountant
from invoice_chat.chat.exceptions import NoUserMessageError
from invoice_chat.chat.factory import ChatClientFactory
from invoice_chat.chat.finalizer import FinalizationReport, TurnContext, TurnFinalizer
from invoice_chat.chat.models import ROLE_USER, ConversationMessage, StreamChunk, TurnRequest
from invoice_chat.chat.orchestrator import ConversationOrchestrator, TurnStream
from invoice_chat.chat.prompts import PromptBuilder
from invoice_chat.chat.sanitizer import ContentSanitizer
from invoice_chat.chat.title_generator import TitleGenerator
from invoice_chat.chat.tools.get_weather import GetWeatherTool
from invoice_chat.chat.tools.registry import ToolRegistry
from invoice_chat.config.settings import Settings
from invoice_chat.database.models import MessageRecord
from invoice_chat.database.repositories.chat_repository import ChatRepository
from invoice_chat.database.repositories.invoice_repository import InvoiceRepository
from invoice_chat.database.repositories.message_repository import MessageRepository
from invoice_chat.extraction import DeduplicationChecker, StructuredExtractionParser
from invoice_chat.logging.logger import Log


@dataclass
class ChatRequest:
    chat_id: str
    messages: list[ConversationMessage]
    model_key: str


@dataclass
class ChatTurn:
    """A prepared turn: the live stream and what finalization needs to know."""

    stream: TurnStream
    context: TurnContext
    report: FinalizationReport | None = field(default=None)
    finalized: bool = False


def most_recent_user_message(messages: list[ConversationMessage]) -> ConversationMessage | None:
    for message in reversed(messages):
        if message.role == ROLE_USER:
            return message
    return None


class ChatService:
    """Prepares chat turns and relays them with exactly-once finalization.

    Everything that can reject a request (missing user message, disallowed
    document, unsupported model) happens in prepare_turn, before any model call.
    """

    def __init__(
        self,
        *,
        sanitizer: ContentSanitizer,
        accountant: TokenAccountant,
        prompts: PromptBuilder,
        orchestrator: ConversationOrchestrator,
        finalizer: TurnFinalizer,
        title_generator: TitleGenerator,
        chat_repo: ChatRepository,
        message_repo: MessageRepository,
        invoice_repo: InvoiceRepository,
    ) -> None:
        self._sanitizer = sanitizer
        self._accountant = accountant
        self._prompts = prompts
        self._orchestrator = orchestrator
        self._finalizer = finalizer
        self._title_generator = title_generator
        self._chat_repo = chat_repo
        self._message_repo = message_repo
        self._invoice_repo = invoice_repo

    def prepare_turn(self, request: ChatRequest, user_id: str) -> ChatTurn:
        """Validate the request, account input tokens and open the model stream.

        Raises:
            NoUserMessageError: if no message has the user role.
            DisallowedDocumentError: if attached document text is disallowed.
            UnsupportedModelError: if the model key has no token encoding.
        """
        user_message = most_recent_user_message(request.messages)
        if user_message is None:
            raise NoUserMessageError("No user message found")
        original_user_message = replace(user_message, attachments=list(user_message.attachments))

        self._sanitizer.fold_pdf_attachments(request.messages)
        document_text = self._sanitizer.collect_document_text(request.messages)
        if document_text:
            self._sanitizer.ensure_allowed(document_text)
            existing = self._invoice_repo.list_all()
            Log.info(f"Invoice extraction turn with {len(existing)} existing invoices")
            system_prompt = self._prompts.invoice_extraction_prompt(document_text, existing)
        else:
            system_prompt = self._prompts.system_prompt(request.model_key)

        contents = "\n".join(m.content for m in request.messages)
        input_usage = self._accountant.record(
            DIRECTION_INPUT, system_prompt + "\n" + contents, request.model_key
        )

        self._ensure_chat(request.chat_id, user_id, original_user_message)
        self._save_user_message(request.chat_id, original_user_message)

        stream = self._orchestrator.stream(
            TurnRequest(
                system_prompt=system_prompt,
                messages=request.messages,
                model_key=request.model_key,
            )
        )
        context = TurnContext(
            chat_id=request.chat_id,
            user_id=user_id,
            model_key=request.model_key,
            is_document_turn=bool(document_text),
            input_usage=input_usage,
        )
        return ChatTurn(stream=stream, context=context)

    def relay(self, turn: ChatTurn) -> Iterator[StreamChunk]:
        """Forward chunks, then finalize once if the model completed the turn.

        If the consumer stops early (client disconnect) before completion, the
        turn is not finalized.
        """
        try:
            yield from turn.stream
        except Exception as exc:
            Log.error(f"Chat stream failed: {exc}")
            raise
        finally:
            turn.stream.close()
            self._finalize_once(turn)

    def _finalize_once(self, turn: ChatTurn) -> None:
        if turn.finalized:
            return
        completion = turn.stream.completion
        if not completion.done() or completion.cancelled() or completion.exception() is not None:
            Log.warning(f"Turn for chat {turn.context.chat_id} did not complete, skipping finalization")
            return
        turn.finalized = True
        turn.report = self._finalizer.finalize(completion.result(), turn.context)

    def delete_chat(self, chat_id: str) -> None:
        self._chat_repo.delete_chat_by_id(chat_id)
        Log.info(f"Chat {chat_id} deleted")

    def _ensure_chat(self, chat_id: str, user_id: str, message: ConversationMessage) -> None:
        try:
            if self._chat_repo.get_chat_by_id(chat_id) is not None:
                return
            title = self._title_generator.generate(message)
            self._chat_repo.save_chat(chat_id, user_id, title)
            Log.info(f"Created chat {chat_id} titled '{title}'")
        except Exception as exc:
            Log.error(f"Failed to create chat {chat_id}: {exc}")

    def _save_user_message(self, chat_id: str, message: ConversationMessage) -> None:
        record = MessageRecord(
            id=message.id,
            chat_id=chat_id,
            role=message.role,
            content=message.content,
            created_at=datetime.now(timezone.utc),
        )
        try:
            self._message_repo.save_messages([record])
        except Exception as exc:
            Log.error(f"Failed to save user message {message.id}: {exc}")


def build_chat_service(settings: Settings) -> ChatService:
    """Build a ChatService with the configured model client and repositories."""
    client = ChatClientFactory.create(settings)
    prompts = PromptBuilder(settings.reasoning_model_key)
    accountant = TokenAccountant(settings.token_encodings, settings.cost_per_token)
    invoice_repo = InvoiceRepository()
    message_repo = MessageRepository()
    tools = ToolRegistry(
        [
            GetWeatherTool(
                base_url=settings.weather_api_base_url,
                timeout_seconds=settings.weather_timeout_seconds,
            )
        ]
    )
    orchestrator = ConversationOrchestrator(
        client=client,
        tools=tools,
        model_names=settings.chat_models,
        reasoning_model_key=settings.reasoning_model_key,
        max_steps=settings.max_steps,
        chunk_delay_ms=settings.stream_chunk_delay_ms,
    )
    finalizer = TurnFinalizer(
        accountant=accountant,
        parser=StructuredExtractionParser(),
        dedup_checker=DeduplicationChecker(invoice_repo),
        message_repo=message_repo,
    )
    title_generator = TitleGenerator(
        client=client,
        model=settings.chat_models.get(settings.title_model_key, settings.title_model_key),
        system_prompt=prompts.title_prompt,
    )
    return ChatService(
        sanitizer=ContentSanitizer(settings.disallowed_keywords),
        accountant=accountant,
        prompts=prompts,
        orchestrator=orchestrator,
        finalizer=finalizer,
        title_generator=title_generator,
        chat_repo=ChatRepository(),
        message_repo=message_repo,
        invoice_repo=invoice_repo,
    )
