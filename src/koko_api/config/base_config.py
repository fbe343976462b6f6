from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):

    APP_NAME: str = "Koko API"
    LOG_LEVEL: str = "INFO"
    DATABASE_URL: str = Field(default="sqlite:///./koko.db")
    CORS_ORIGINS: list[str] = ["*"]

    # Bunny Stream
    BUNNY_API_KEY: Optional[str] = None
    BUNNY_LIBRARY_ID: Optional[str] = None
    BUNNY_CDN_HOSTNAME: Optional[str] = None
    BUNNY_API_BASE_URL: str = "https://video.bunnycdn.com"
    BUNNY_EMBED_BASE_URL: str = "https://iframe.mediadelivery.net/embed"
    BUNNY_TUS_ENDPOINT: str = "https://video.bunnycdn.com/tusupload"
    BUNNY_REQUEST_TIMEOUT_SECONDS: float = 10.0

    UPLOAD_SIGNATURE_TTL_SECONDS: int = 86400

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def bunny_configured(self) -> bool:
        """Both the API key and the library id are needed to talk to Bunny."""
        return bool(self.BUNNY_API_KEY) and bool(self.BUNNY_LIBRARY_ID)


@lru_cache()
def get_settings() -> BaseConfig:
    return BaseConfig()
