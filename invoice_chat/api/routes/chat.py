from collections.abc import Iterator

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse, StreamingResponse

from invoice_chat.api.dependencies import get_chat_service, get_optional_session, get_session
from invoice_chat.api.schemas import ChatRequestBody
from invoice_chat.chat.service import ChatService, ChatTurn
from invoice_chat.chat.stream_protocol import DATA_STREAM_HEADERS, encode_chunk
from invoice_chat.logging.logger import Log

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("")
def post_chat(
    body: ChatRequestBody,
    user_id: str = Depends(get_session),
    service: ChatService = Depends(get_chat_service),
) -> StreamingResponse:
    turn = service.prepare_turn(body.to_request(), user_id)
    return StreamingResponse(
        _data_stream(service, turn),
        media_type="text/plain; charset=utf-8",
        headers=DATA_STREAM_HEADERS,
    )


@router.delete("")
def delete_chat(
    id: str | None = None,
    user_id: str | None = Depends(get_optional_session),
    service: ChatService = Depends(get_chat_service),
) -> PlainTextResponse:
    if not id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    try:
        service.delete_chat(id)
    except Exception as exc:
        Log.error(f"Failed to delete chat {id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while processing your request",
        ) from exc
    return PlainTextResponse("Chat deleted")


def _data_stream(service: ChatService, turn: ChatTurn) -> Iterator[str]:
    chunks = service.relay(turn)
    try:
        for chunk in chunks:
            yield encode_chunk(chunk)
    finally:
        chunks.close()
