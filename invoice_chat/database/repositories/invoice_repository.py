from typing import Any

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from invoice_chat.database.connection import get_connection
from invoice_chat.database.exceptions import InvoiceNotFoundError
from invoice_chat.database.models import InvoiceRecord

_SELECT_COLUMNS = """
    id, customer_name, vendor_name, invoice_number, invoice_date,
    due_date, amount, line_items, created_at
"""

SORT_COLUMNS: dict[str, str] = {
    "invoiceDate": "invoice_date",
    "amount": "amount",
    "vendorName": "vendor_name",
}
DEFAULT_SORT_FIELD = "invoiceDate"
UPDATABLE_COLUMNS = (
    "customer_name",
    "vendor_name",
    "invoice_number",
    "invoice_date",
    "due_date",
    "amount",
    "line_items",
)


class InvoiceRepository:
    """Database operations for the invoices table."""

    def list_invoices(
        self,
        sort_field: str = DEFAULT_SORT_FIELD,
        sort_order: str = "asc",
    ) -> list[InvoiceRecord]:
        """List invoices sorted by invoiceDate, amount or vendorName.

        Unknown sort fields fall back to invoiceDate; anything other than
        'asc' sorts descending.
        """
        column = SORT_COLUMNS.get(sort_field, SORT_COLUMNS[DEFAULT_SORT_FIELD])
        direction = sql.SQL("ASC" if sort_order == "asc" else "DESC")
        query = sql.SQL("SELECT {columns} FROM invoices ORDER BY {column} {direction}").format(
            columns=sql.SQL(_SELECT_COLUMNS),
            column=sql.Identifier(column),
            direction=direction,
        )
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query)
                rows = cur.fetchall()
        return [_row_to_record(row) for row in rows]

    def list_all(self) -> list[InvoiceRecord]:
        """All invoices in insertion order, used as duplicate-check context."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(f"SELECT {_SELECT_COLUMNS} FROM invoices ORDER BY created_at")
                rows = cur.fetchall()
        return [_row_to_record(row) for row in rows]

    def find_by_id(self, invoice_id: str) -> InvoiceRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_SELECT_COLUMNS} FROM invoices WHERE id = %s",
                    (invoice_id,),
                )
                row = cur.fetchone()
        if row is None:
            return None
        return _row_to_record(row)

    def save_invoice(self, invoice: InvoiceRecord) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO invoices (
                    id, customer_name, vendor_name, invoice_number,
                    invoice_date, due_date, amount, line_items, created_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, NOW())
                """,
                (
                    invoice.id,
                    invoice.customer_name,
                    invoice.vendor_name,
                    invoice.invoice_number,
                    invoice.invoice_date,
                    invoice.due_date,
                    invoice.amount,
                    Jsonb(invoice.line_items),
                ),
            )
            conn.commit()

    def update_invoice(self, invoice_id: str, fields: dict[str, Any]) -> InvoiceRecord:
        """Update the given fields of an invoice and return the new row.

        Only keys present in ``fields`` are written. ``due_date`` is always
        written and stored as NULL when missing or empty.

        Raises:
            InvoiceNotFoundError: if no invoice with this ID exists.
        """
        values = {column: fields[column] for column in UPDATABLE_COLUMNS if column in fields}
        values["due_date"] = fields.get("due_date") or None
        if "line_items" in values:
            values["line_items"] = Jsonb(values["line_items"] or [])
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(column), sql.Placeholder(column))
            for column in values
        )
        query = sql.SQL(
            "UPDATE invoices SET {assignments} WHERE id = {invoice_id} RETURNING {columns}"
        ).format(
            assignments=assignments,
            invoice_id=sql.Placeholder("invoice_id"),
            columns=sql.SQL(_SELECT_COLUMNS),
        )
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, {**values, "invoice_id": invoice_id})
                row = cur.fetchone()
            if row is None:
                raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")
            conn.commit()
        return _row_to_record(row)


def _row_to_record(row: dict[str, Any]) -> InvoiceRecord:
    amount = row["amount"]
    return InvoiceRecord(
        id=str(row["id"]),
        customer_name=row["customer_name"],
        vendor_name=row["vendor_name"],
        invoice_number=row["invoice_number"],
        invoice_date=row["invoice_date"],
        due_date=row["due_date"],
        amount=float(amount) if amount is not None else None,
        line_items=row["line_items"] or [],
        created_at=row["created_at"],
    )
