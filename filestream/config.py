import logging
import os
from functools import lru_cache
from typing import List, Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Set up logger directly instead of importing from utils to avoid circular imports
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",  # Allow extra fields in .env without validation errors
    )

    # Base configuration
    APP_NAME: str = "filestream"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    APP_PORT: int = Field(default=8000, description="HTTP port the server binds to")

    # File storage
    UPLOAD_DIR: str = Field(
        default=os.path.join(os.path.dirname(BASE_DIR), "uploads"),
        description="Directory for uploaded files",
    )
    UPLOAD_DIR_MODE: int = Field(
        default=0o775,
        description="Permission bits used when creating the upload directory",
    )
    MAX_UPLOAD_SIZE: int = Field(
        default=1073741824,
        description="Maximum declared upload size in bytes (1GB default)",
    )

    # Upload processing
    ALLOWED_EXTENSIONS: List[str] = [
        ".jpg", ".jpeg", ".png", ".webp", ".gif",
        ".pdf", ".txt"
    ]
    GENERATE_UNIQUE_NAME: bool = True
    UNIQUE_NAME_MODE: Literal["uuid", "original"] = Field(
        default="uuid",
        description="'uuid' generates a fresh name, 'original' mirrors the uploaded filename",
    )
    STRICT_SIZE_CHECK: bool = Field(
        default=False,
        description="Reject finalization when the on-disk size differs from the declared size",
    )
    STRIP_IMAGE_METADATA: bool = False
    IMAGE_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png"]

    # CORS Settings
    CORS_ORIGINS: List[str] = ["*"]

    @field_validator("ALLOWED_EXTENSIONS", "IMAGE_EXTENSIONS")
    @classmethod
    def normalize_extensions(cls, v: List[str]) -> List[str]:
        normalized = []
        for ext in v:
            ext = ext.strip().lower()
            if ext and not ext.startswith("."):
                ext = f".{ext}"
            normalized.append(ext)
        return normalized

    @field_validator("MAX_UPLOAD_SIZE")
    @classmethod
    def validate_max_upload_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("MAX_UPLOAD_SIZE must be greater than 0")
        return v

    @field_validator("ALLOWED_EXTENSIONS")
    @classmethod
    def warn_empty_allow_list(cls, v: List[str]) -> List[str]:
        if not v:
            logger.warning("ALLOWED_EXTENSIONS is empty, every upload will be rejected")
        return v


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings, using environment variables and defaults.
    The result is cached to avoid reading the environment each time.

    Returns:
        Settings instance
    """
    return Settings()
