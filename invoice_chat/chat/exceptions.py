class ChatError(Exception):
    """Base exception for conversational pipeline errors."""


class DisallowedDocumentError(ChatError):
    """Raised when extracted text belongs to a rejected document category."""

    def __init__(self, keyword: str) -> None:
        super().__init__(
            f"The uploaded file appears to be a {keyword}, which is not allowed."
        )
        self.keyword = keyword


class NoUserMessageError(ChatError):
    """Raised when a chat request carries no user message."""


class ChatClientError(ChatError):
    """Raised when the model provider returns an unusable response."""


class ChatClientNetworkError(ChatClientError):
    """Raised when the model provider call fails due to network/infrastructure issues."""
