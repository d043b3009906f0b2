from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from invoice_chat.api.error_handlers import register_error_handlers
from invoice_chat.api.routes import chat, health, invoices, upload
from invoice_chat.chat.service import build_chat_service
from invoice_chat.config.settings import Settings
from invoice_chat.database.connection import close_pool, init_pool
from invoice_chat.database.repositories.invoice_repository import InvoiceRepository
from invoice_chat.logging.logger import Log
from invoice_chat.upload.service import build_upload_service


def create_app(settings: Settings) -> FastAPI:
    """Build the HTTP application. Services and the DB pool live for the app lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        init_pool(settings)
        Log.info("Database pool ready")
        try:
            app.state.upload_service = build_upload_service(settings)
            app.state.chat_service = build_chat_service(settings)
            app.state.invoice_repo = InvoiceRepository()
            yield
        finally:
            close_pool()
            Log.info("Database pool closed")

    app = FastAPI(title="invoice-chat", version="0.1.0", lifespan=lifespan)
    register_error_handlers(app)
    app.include_router(health.router)
    app.include_router(upload.router)
    app.include_router(chat.router)
    app.include_router(invoices.router)
    return app
