import json
from dataclasses import asdict
from pathlib import Path

from invoice_chat.chat.prompt_loader import load_prompt
from invoice_chat.database.models import InvoiceRecord


class PromptBuilder:
    """Builds system prompts for plain chat turns and invoice extraction turns."""

    def __init__(self, reasoning_model_key: str, prompt_dir: Path | None = None) -> None:
        self._reasoning_model_key = reasoning_model_key
        self._regular = load_prompt("regular_prompt.txt", prompt_dir)
        self._tools = load_prompt("tools_prompt.txt", prompt_dir)
        self._extraction = load_prompt("invoice_extraction_prompt.txt", prompt_dir)
        self._title = load_prompt("title_prompt.txt", prompt_dir)

    @property
    def title_prompt(self) -> str:
        return self._title

    def system_prompt(self, model_key: str) -> str:
        if model_key == self._reasoning_model_key:
            return self._regular
        return self._regular + self._tools

    def invoice_extraction_prompt(
        self,
        invoice_text: str,
        existing_invoices: list[InvoiceRecord],
    ) -> str:
        existing = json.dumps(
            [_invoice_context(invoice) for invoice in existing_invoices],
            ensure_ascii=False,
            indent=2,
        )
        return self._extraction.format(invoice_text=invoice_text.strip(), existing_invoices=existing)


def _invoice_context(invoice: InvoiceRecord) -> dict[str, object]:
    data = asdict(invoice)
    data.pop("created_at", None)
    return data
