import uvicorn

from invoice_chat.api.app import create_app
from invoice_chat.config.settings import Settings
from invoice_chat.logging.logger import Log


def main() -> None:
    """Entry point: load settings -> configure logging -> serve the HTTP API."""
    settings = Settings()
    Log.configure(settings.log_level)
    Log.info(f"Starting invoice-chat ({settings.app_env}) on {settings.http_host}:{settings.http_port}")
    uvicorn.run(create_app(settings), host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    main()
