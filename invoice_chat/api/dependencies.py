from fastapi import Depends, Header, HTTPException, Request, status

from invoice_chat.chat.service import ChatService
from invoice_chat.database.repositories.invoice_repository import InvoiceRepository
from invoice_chat.upload.service import UploadService

USER_ID_HEADER = "X-User-Id"


def get_optional_session(
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
) -> str | None:
    """User id set by the upstream auth proxy, or None when unauthenticated."""
    if x_user_id is None or not x_user_id.strip():
        return None
    return x_user_id.strip()


def get_session(user_id: str | None = Depends(get_optional_session)) -> str:
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user_id


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_invoice_repository(request: Request) -> InvoiceRepository:
    return request.app.state.invoice_repo
