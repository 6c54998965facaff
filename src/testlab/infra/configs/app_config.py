# infra/configs/app_config.py

from pydantic_settings import BaseSettings
from typing import Optional


class AppSettings(BaseSettings):
    """Application settings."""

    # Application info
    app_name: str = "API Test Lab"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Repository settings
    data_dir: str = "data"

    # HTTP executor settings
    http_timeout: float = 30.0  # seconds
    http_verify_ssl: bool = True
    http_follow_redirects: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = AppSettings()
