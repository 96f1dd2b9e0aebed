from pathlib import Path

from pydantic_settings import BaseSettings

MIB = 1024 * 1024


class Settings(BaseSettings):
    PROJECT_NAME: str = "Portfolio"
    API_PREFIX: str = "/api"

    # Admin session (single shared credential)
    ADMIN_USER: str = "admin"
    ADMIN_PASSWORD: str = "admin123"
    SESSION_COOKIE_NAME: str = "admin_session"
    SESSION_SENTINEL: str = "authenticated"
    SESSION_MAX_AGE: int = 60 * 60 * 24 * 7
    COOKIE_SECURE: bool = False

    # Portfolio content document
    PORTFOLIO_DATA_PATH: str = "data.json"

    # Uploads
    UPLOAD_ROOT: str = "public/uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    CHUNK_ROOT: str = "data/chunks"
    IMAGE_MAX_BYTES: int = 10 * MIB
    VIDEO_MAX_BYTES: int = 500 * MIB
    WRITE_CHUNK_SIZE: int = 1 * MIB
    DISK_SPACE_FACTOR: int = 2
    UPLOAD_TIMEOUT_SECONDS: float = 120.0
    THUMBNAIL_TIMEOUT_SECONDS: float = 30.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    BACKEND_CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def upload_root(self) -> Path:
        return Path(self.UPLOAD_ROOT).resolve()

    @property
    def chunk_root(self) -> Path:
        return Path(self.CHUNK_ROOT).resolve()

    @property
    def data_path(self) -> Path:
        return Path(self.PORTFOLIO_DATA_PATH)


settings = Settings()
