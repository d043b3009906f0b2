from abc import ABC, abstractmethod
from typing import Any, ClassVar


class BaseTool(ABC):
    """Contract for tools the model may call during a turn."""

    name: ClassVar[str]
    description: ClassVar[str]
    parameters: ClassVar[dict[str, Any]]

    @abstractmethod
    def run(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Execute the tool and return a JSON-serializable result."""

    def definition(self) -> dict[str, Any]:
        """OpenAI-compatible function tool definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }
