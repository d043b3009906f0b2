"""Token counting and cost estimation from a local encoding table.

Counts are estimates and will not always agree with the provider's billed
usage. The model-key to encoding mapping is injected so that alternate model
sets can be supplied without touching module state.
"""

from collections.abc import Mapping

import tiktoken

from invoice_chat.accounting.exceptions import UnsupportedModelError
from invoice_chat.accounting.models import TokenUsageRecord
from invoice_chat.logging.logger import Log


class TokenAccountant:
    def __init__(self, encodings: Mapping[str, str], cost_per_token: float) -> None:
        self._encodings = dict(encodings)
        self._cost_per_token = cost_per_token
        self._cache: dict[str, tiktoken.Encoding] = {}

    @property
    def cost_per_token(self) -> float:
        return self._cost_per_token

    def supports(self, model_key: str) -> bool:
        return model_key in self._encodings

    def count_tokens(self, text: str, model_key: str) -> int:
        """Return the number of tokens in text under the model's encoding.

        Raises:
            UnsupportedModelError: if model_key has no registered encoding.
        """
        return len(self._encoding_for(model_key).encode(text, disallowed_special=()))

    def estimate_cost(self, token_count: int) -> float:
        return token_count * self._cost_per_token

    def record(self, direction: str, text: str, model_key: str) -> TokenUsageRecord:
        tokens = self.count_tokens(text, model_key)
        usage = TokenUsageRecord(
            direction=direction,
            token_count=tokens,
            cost_estimate=self.estimate_cost(tokens),
            model_key=model_key,
        )
        Log.info(
            f"{direction.capitalize()} tokens: {usage.token_count}, "
            f"{direction} cost: {usage.cost_estimate:.6f} ({model_key})"
        )
        return usage

    def _encoding_for(self, model_key: str) -> tiktoken.Encoding:
        name = self._encodings.get(model_key)
        if name is None:
            raise UnsupportedModelError(f"No token encoding registered for model '{model_key}'")
        encoding = self._cache.get(name)
        if encoding is None:
            encoding = tiktoken.get_encoding(name)
            self._cache[name] = encoding
        return encoding
