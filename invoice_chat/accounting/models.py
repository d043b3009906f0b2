from dataclasses import dataclass

DIRECTION_INPUT = "input"
DIRECTION_OUTPUT = "output"


@dataclass(frozen=True)
class TokenUsageRecord:
    """Locally estimated token usage for one side of a model call."""

    direction: str
    token_count: int
    cost_estimate: float
    model_key: str
