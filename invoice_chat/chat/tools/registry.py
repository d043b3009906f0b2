import json
from typing import Any

from invoice_chat.chat.tools.base import BaseTool
from invoice_chat.logging.logger import Log


class ToolRegistry:
    """Looks up and runs tools by name. Tool failures become error results."""

    def __init__(self, tools: list[BaseTool]) -> None:
        self._tools = {tool.name: tool for tool in tools}

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self, active: list[str] | None = None) -> list[dict[str, Any]]:
        names = self.names if active is None else active
        return [self._tools[n].definition() for n in names if n in self._tools]

    def run(self, name: str, raw_arguments: str) -> tuple[dict[str, Any], dict[str, Any]]:
        """Parse arguments and run a tool.

        Returns:
            (parsed arguments, result). Unknown tools, bad JSON and tool
            exceptions are reported to the model as {"error": ...}.
        """
        try:
            arguments = json.loads(raw_arguments) if raw_arguments.strip() else {}
        except json.JSONDecodeError as exc:
            return {}, {"error": f"Invalid tool arguments: {exc}"}
        if not isinstance(arguments, dict):
            return {}, {"error": "Tool arguments must be an object"}

        tool = self._tools.get(name)
        if tool is None:
            return arguments, {"error": f"Unknown tool '{name}'"}
        try:
            return arguments, tool.run(arguments)
        except Exception as exc:
            Log.warning(f"Tool {name} failed: {exc}")
            return arguments, {"error": str(exc)}
