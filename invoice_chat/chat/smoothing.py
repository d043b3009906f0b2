import re

_WORD_RE = re.compile(r"\s*\S+\s+")


class WordSmoother:
    """Re-chunks streamed text so that every emitted chunk ends on a word boundary."""

    def __init__(self) -> None:
        self._buffer = ""

    def push(self, text: str) -> list[str]:
        """Buffer text and return every complete word (with surrounding whitespace)."""
        self._buffer += text
        words: list[str] = []
        position = 0
        while match := _WORD_RE.match(self._buffer, position):
            words.append(match.group(0))
            position = match.end()
        self._buffer = self._buffer[position:]
        return words

    def flush(self) -> list[str]:
        """Return whatever is still buffered (a trailing partial word)."""
        rest, self._buffer = self._buffer, ""
        return [rest] if rest else []
