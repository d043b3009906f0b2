from invoice_chat.chat.client_base import BaseChatClient
from invoice_chat.chat.models import ConversationMessage
from invoice_chat.logging.logger import Log

MAX_TITLE_LENGTH = 80


class TitleGenerator:
    """Summarizes a chat's first user message into a short title."""

    def __init__(
        self,
        *,
        client: BaseChatClient,
        model: str,
        system_prompt: str,
    ) -> None:
        self._client = client
        self._model = model
        self._system_prompt = system_prompt

    def generate(self, message: ConversationMessage) -> str:
        """Return a title. Falls back to the truncated message text if the model fails."""
        try:
            title = self._client.create_completion(
                model=self._model,
                system_prompt=self._system_prompt,
                user_prompt=message.content,
            )
        except Exception as exc:
            Log.warning(f"Title generation failed, using message text: {exc}")
            title = message.content
        cleaned = title.strip().replace('"', "").replace(":", "")
        return cleaned[:MAX_TITLE_LENGTH] or "New chat"
