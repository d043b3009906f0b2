from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"
    http_host: str = "0.0.0.0"
    http_port: int = 8000

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "invoice_chat"
    db_username: str = "invoice_chat"
    db_password: str = "secret"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10

    max_upload_size_bytes: int = 5 * 1024 * 1024
    allowed_media_types: list[str] = ["image/jpeg", "image/png", "application/pdf"]
    disallowed_keywords: list[str] = ["receipt", "account statement"]

    pdf_engine: str = "pdfplumber"
    rasterize_strategy: str = "render"
    rasterize_dpi: int = 300

    ocr_engine: str = "tesseract"
    ocr_language: str = "eng"
    tesseract_cmd: str = ""
    ocr_timeout_seconds: int = 60

    llm_provider: str = "openai"
    llm_api_key: str = ""
    llm_base_url: str = ""
    llm_timeout_seconds: int = 60

    chat_models: dict[str, str] = {
        "chat-model-small": "gpt-4o-mini",
        "chat-model-large": "gpt-4o",
        "chat-model-reasoning": "o3-mini",
        "title-model": "gpt-4o-mini",
        "block-model": "gpt-4o-mini",
    }
    reasoning_model_key: str = "chat-model-reasoning"
    title_model_key: str = "title-model"
    max_steps: int = 5
    stream_chunk_delay_ms: int = 10

    token_encodings: dict[str, str] = {
        "chat-model-large": "cl100k_base",
        "chat-model-small": "gpt2",
        "chat-model-reasoning": "cl100k_base",
        "title-model": "gpt2",
        "block-model": "gpt2",
    }
    cost_per_token: float = 0.00002

    weather_api_base_url: str = "https://api.open-meteo.com/v1/forecast"
    weather_timeout_seconds: int = 10
