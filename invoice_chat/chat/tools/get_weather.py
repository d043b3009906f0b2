from typing import Any, ClassVar

import httpx

from invoice_chat.chat.tools.base import BaseTool


class GetWeatherTool(BaseTool):
    """Current weather for a location, from the Open-Meteo forecast API."""

    name: ClassVar[str] = "getWeather"
    description: ClassVar[str] = "Get the current weather at a location"
    parameters: ClassVar[dict[str, Any]] = {
        "type": "object",
        "properties": {
            "latitude": {"type": "number"},
            "longitude": {"type": "number"},
        },
        "required": ["latitude", "longitude"],
        "additionalProperties": False,
    }

    def __init__(self, *, base_url: str, timeout_seconds: int = 10) -> None:
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds

    def run(self, arguments: dict[str, Any]) -> dict[str, Any]:
        response = httpx.get(
            self._base_url,
            params={
                "latitude": arguments["latitude"],
                "longitude": arguments["longitude"],
                "current": "temperature_2m",
                "hourly": "temperature_2m",
                "daily": "sunrise,sunset",
                "timezone": "auto",
            },
            timeout=self._timeout_seconds,
        )
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        return data
