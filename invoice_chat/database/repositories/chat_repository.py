from psycopg.rows import dict_row

from invoice_chat.database.connection import get_connection
from invoice_chat.database.models import ChatRecord


class ChatRepository:
    """Database operations for the chats table."""

    def get_chat_by_id(self, chat_id: str) -> ChatRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, user_id, title, created_at
                    FROM chats
                    WHERE id = %s
                    """,
                    (chat_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        return ChatRecord(
            id=str(row["id"]),
            user_id=row["user_id"],
            title=row["title"],
            created_at=row["created_at"],
        )

    def save_chat(self, chat_id: str, user_id: str, title: str) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO chats (id, user_id, title, created_at)
                VALUES (%s, %s, %s, NOW())
                """,
                (chat_id, user_id, title),
            )
            conn.commit()

    def delete_chat_by_id(self, chat_id: str) -> None:
        """Delete a chat together with its messages."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM messages WHERE chat_id = %s", (chat_id,))
                cur.execute("DELETE FROM chats WHERE id = %s", (chat_id,))
            conn.commit()
