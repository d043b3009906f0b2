from fastapi import APIRouter, Depends, HTTPException, status

from invoice_chat.api.dependencies import get_invoice_repository
from invoice_chat.api.schemas import InvoiceOut, InvoiceUpdate
from invoice_chat.database.exceptions import InvoiceNotFoundError
from invoice_chat.database.repositories.invoice_repository import (
    DEFAULT_SORT_FIELD,
    InvoiceRepository,
)
from invoice_chat.logging.logger import Log

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.get("", response_model=list[InvoiceOut])
def list_invoices(
    sortField: str = DEFAULT_SORT_FIELD,  # noqa: N803
    sortOrder: str = "asc",  # noqa: N803
    repo: InvoiceRepository = Depends(get_invoice_repository),
) -> list[InvoiceOut]:
    records = repo.list_invoices(sort_field=sortField, sort_order=sortOrder)
    return [InvoiceOut.from_record(record) for record in records]


@router.get("/{invoice_id}", response_model=InvoiceOut)
def get_invoice(
    invoice_id: str,
    repo: InvoiceRepository = Depends(get_invoice_repository),
) -> InvoiceOut:
    record = repo.find_by_id(invoice_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return InvoiceOut.from_record(record)


@router.put("/{invoice_id}", response_model=InvoiceOut)
def update_invoice(
    invoice_id: str,
    body: InvoiceUpdate,
    repo: InvoiceRepository = Depends(get_invoice_repository),
) -> InvoiceOut:
    try:
        record = repo.update_invoice(invoice_id, body.fields())
    except InvoiceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found") from exc
    except Exception as exc:
        Log.error(f"Failed to update invoice {invoice_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Update failed"
        ) from exc
    return InvoiceOut.from_record(record)
