"""Application configuration from environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All config comes from env vars or .env file."""

    DATABASE_URL: str = "sqlite+aiosqlite:///./files.db"
    FILE_STORAGE_PATH: str = "./uploads"
    COLLISION_POLICY: str = "overwrite"  # "overwrite", "rename" or "reject"
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 3000
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Import metadata enrichment (off by default)
    IMPORT_USE_MANIFEST: bool = False
    PROBE_MEDIA_DURATION: bool = False
    FFPROBE_PATH: str = "ffprobe"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
