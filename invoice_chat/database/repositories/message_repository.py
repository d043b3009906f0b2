from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from invoice_chat.database.connection import get_connection
from invoice_chat.database.models import MessageRecord


class MessageRepository:
    """Database operations for the messages table."""

    def save_messages(self, messages: list[MessageRecord]) -> None:
        """Insert messages in one transaction. Content is stored as JSONB."""
        if not messages:
            return
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.executemany(
                    """
                    INSERT INTO messages (id, chat_id, role, content, created_at)
                    VALUES (%s, %s, %s, %s, COALESCE(%s, NOW()))
                    """,
                    [
                        (m.id, m.chat_id, m.role, Jsonb(m.content), m.created_at)
                        for m in messages
                    ],
                )
            conn.commit()

    def get_messages_by_chat_id(self, chat_id: str) -> list[MessageRecord]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, chat_id, role, content, created_at
                    FROM messages
                    WHERE chat_id = %s
                    ORDER BY created_at
                    """,
                    (chat_id,),
                )
                rows = cur.fetchall()

        return [
            MessageRecord(
                id=str(row["id"]),
                chat_id=str(row["chat_id"]),
                role=row["role"],
                content=row["content"],
                created_at=row["created_at"],
            )
            for row in rows
        ]
