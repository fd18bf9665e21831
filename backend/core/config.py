"""
PrintVault — Configuration settings.

Loads from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite:///./printvault.db"

    # Library storage
    library_dir: str = "./data/library"

    # Uploads larger than this are rejected with 413
    upload_max_bytes: int = 100 * 1024 * 1024

    # Background jobs
    # Upper bound on worker threads per bulk run (auto-tag, bulk-delete, scan)
    bulk_workers: int = 4
    # Run the describer on files as they are uploaded or picked up by a scan
    describe_on_ingest: bool = True

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Frontend - comma-separated list in .env, e.g. CORS_ORIGINS=http://localhost:3000,http://example.com
    cors_origins: str = ""

    # Set RATE_LIMIT_ENABLED=false to disable slowapi limits (tests, trusted networks)
    rate_limit_enabled: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
