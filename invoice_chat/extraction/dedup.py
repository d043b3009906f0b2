import uuid

from invoice_chat.database.models import InvoiceRecord
from invoice_chat.database.repositories.invoice_repository import InvoiceRepository
from invoice_chat.extraction.models import StructuredInvoice
from invoice_chat.logging.logger import Log


class DeduplicationChecker:
    """Decides whether an invoice candidate is persisted.

    The duplicate decision is the model's own ``isDuplicate`` flag, computed
    from the existing invoices given to it in the extraction prompt. It is not
    recomputed here.
    """

    def __init__(self, invoice_repo: InvoiceRepository) -> None:
        self._invoice_repo = invoice_repo

    def check_and_save(self, candidate: StructuredInvoice) -> InvoiceRecord | None:
        """Persist the candidate unless it is a duplicate or incomplete.

        Returns the saved record, or None when nothing was persisted.
        Persistence failures are logged and swallowed.
        """
        if candidate.is_duplicate is None:
            Log.warning("Invoice candidate has no isDuplicate flag, not saved")
            return None
        if candidate.is_duplicate:
            Log.warning(
                f"Duplicate invoice, not saved: {candidate.vendor_name} "
                f"#{candidate.invoice_number}"
            )
            return None
        missing = candidate.missing_identifying_fields()
        if missing:
            Log.warning(f"Invoice candidate missing required fields {missing}, not saved")
            return None

        record = InvoiceRecord(id=str(uuid.uuid4()), **candidate.fields())
        try:
            self._invoice_repo.save_invoice(record)
        except Exception as exc:
            Log.error(f"Failed to save invoice {record.id}: {exc}")
            return None
        Log.info(f"Invoice saved: {record.id} ({record.vendor_name} #{record.invoice_number})")
        return record
