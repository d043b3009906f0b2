"""Translate application exceptions into ``{"error": message}`` responses."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from invoice_chat.accounting.exceptions import UnsupportedModelError
from invoice_chat.chat.exceptions import DisallowedDocumentError, NoUserMessageError
from invoice_chat.logging.logger import Log
from invoice_chat.upload.exceptions import ExtractionError, UploadValidationError

CLIENT_ERRORS: tuple[type[Exception], ...] = (
    UploadValidationError,
    DisallowedDocumentError,
    NoUserMessageError,
    UnsupportedModelError,
)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def handle_client_error(request: Request, exc: Exception) -> JSONResponse:
    Log.warning(f"Rejected {request.method} {request.url.path}: {exc}")
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc))


async def handle_extraction_error(request: Request, exc: ExtractionError) -> JSONResponse:
    Log.error(f"Extraction failed for {request.url.path}: {exc}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first_error = errors[0] if errors else {}
    loc = first_error.get("loc", [])
    field = ".".join(str(part) for part in loc if part != "body")
    msg = first_error.get("msg", "Invalid request")
    detail = f"{field}: {msg}" if field else msg
    Log.warning(f"Invalid request to {request.url.path}: {detail}")
    return error_response(status.HTTP_400_BAD_REQUEST, detail)


async def handle_unknown_error(request: Request, exc: Exception) -> JSONResponse:
    Log.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An error occurred while processing your request",
    )


def register_error_handlers(app: FastAPI) -> None:
    for exc_class in CLIENT_ERRORS:
        app.add_exception_handler(exc_class, handle_client_error)
    app.add_exception_handler(ExtractionError, handle_extraction_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unknown_error)
