from invoice_chat.extraction.dedup import DeduplicationChecker
from invoice_chat.extraction.parser import StructuredExtractionParser

__all__ = ["DeduplicationChecker", "StructuredExtractionParser"]
