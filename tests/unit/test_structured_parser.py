import pytest

from invoice_chat.extraction import StructuredExtractionParser
from invoice_chat.extraction.exceptions import (
    MalformedStructuredBlockError,
    NoStructuredBlockError,
    StructuredOutputError,
)

EXAMPLE_RESPONSE = """Here is the extracted invoice:

```json
{
  "customerName": "Globex",
  "vendorName": "Acme Corp",
  "invoiceNumber": "1042",
  "invoiceDate": "2024-03-01",
  "dueDate": "2024-03-31",
  "amount": 450.00,
  "lineItems": [{"description": "Widgets", "quantity": 3, "total": 450}],
  "isDuplicate": false
}
```
Let me know if anything needs correcting."""


class TestStructuredExtractionParser:
    def test_parses_example_block(self) -> None:
        invoice = StructuredExtractionParser().parse(EXAMPLE_RESPONSE)

        assert invoice.customer_name == "Globex"
        assert invoice.vendor_name == "Acme Corp"
        assert invoice.invoice_number == "1042"
        assert invoice.invoice_date == "2024-03-01"
        assert invoice.due_date == "2024-03-31"
        assert invoice.amount == 450.0
        assert invoice.line_items == [{"description": "Widgets", "quantity": 3, "total": 450}]
        assert invoice.is_duplicate is False

    def test_accepts_snake_case_keys(self) -> None:
        text = '```json\n{"customer_name": "A", "vendor_name": "B", "invoice_number": "1", "is_duplicate": true}\n```'
        invoice = StructuredExtractionParser().parse(text)
        assert invoice.customer_name == "A"
        assert invoice.is_duplicate is True

    def test_first_block_wins(self) -> None:
        text = '```json\n{"vendorName": "First"}\n```\n```json\n{"vendorName": "Second"}\n```'
        assert StructuredExtractionParser().parse(text).vendor_name == "First"

    def test_missing_duplicate_flag_is_none(self) -> None:
        invoice = StructuredExtractionParser().parse('```json\n{"vendorName": "X"}\n```')
        assert invoice.is_duplicate is None

    def test_amount_string_is_cleaned(self) -> None:
        invoice = StructuredExtractionParser().parse('```json\n{"amount": "$1,250.50"}\n```')
        assert invoice.amount == 1250.5

    def test_no_fence_raises(self) -> None:
        with pytest.raises(NoStructuredBlockError, match="No JSON block"):
            StructuredExtractionParser().parse('{"vendorName": "X"}')

    def test_unlabelled_fence_is_not_a_block(self) -> None:
        with pytest.raises(NoStructuredBlockError):
            StructuredExtractionParser().parse('```\n{"vendorName": "X"}\n```')

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(MalformedStructuredBlockError):
            StructuredExtractionParser().parse("```json\n{vendorName: X}\n```")

    def test_non_object_raises(self) -> None:
        with pytest.raises(MalformedStructuredBlockError):
            StructuredExtractionParser().parse("```json\n[1, 2]\n```")

    @pytest.mark.parametrize(
        "body",
        [
            '{"amount": "lots"}',
            '{"lineItems": "widgets"}',
            '{"lineItems": [1, 2]}',
            '{"isDuplicate": "no"}',
            '{"vendorName": {"name": "x"}}',
        ],
    )
    def test_wrong_field_types_raise(self, body: str) -> None:
        with pytest.raises(StructuredOutputError):
            StructuredExtractionParser().parse(f"```json\n{body}\n```")
