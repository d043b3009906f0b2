from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status

from invoice_chat.api.dependencies import get_session, get_upload_service
from invoice_chat.api.schemas import UploadResponse
from invoice_chat.upload.service import UploadService

router = APIRouter(prefix="/api/files", tags=["files"])


@router.post("/upload", response_model=UploadResponse)
def upload_file(
    request: Request,
    file: UploadFile | None = File(default=None),
    user_id: str = Depends(get_session),
    service: UploadService = Depends(get_upload_service),
) -> UploadResponse:
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")
    content = file.file.read()
    result = service.handle(
        content,
        media_type=file.content_type,
        filename=file.filename,
        base_url=str(request.base_url),
    )
    return UploadResponse.from_result(result)


@router.get("/upload")
def upload_route_exists() -> dict[str, str]:
    return {"message": "API route exists"}
