"""Configuration settings for the face recall application."""
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    These settings are loaded from environment variables with the following precedence:
    1. Environment variables
    2. .env file
    3. Default values

    Attributes:
        DATA_DIR: Application data directory holding the people database
        RECOGNITION_THRESHOLD: Maximum embedding distance accepted as a match.
            InsightFace embeddings of the same person from different photos
            are usually 0.8 to 1.1 apart, so raise this (e.g. to 1.0) when
            known people are not recognized.
        ANNOUNCEMENT_MODE: Spoken announcement on recognition (none, name, full)
    """
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="FACERECALL_",
        env_nested_delimiter="__"
    )

    # Core Settings
    PROJECT_NAME: str = "Face Recall"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"

    # CORS Settings
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    @property
    def cors_origins(self) -> List[str]:
        """Get list of allowed origins."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Storage Settings
    DATA_DIR: Path = Path.home() / ".facerecall"
    DATABASE_FILE: str = "people.db"

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL of the embedded people database."""
        return f"sqlite+aiosqlite:///{self.DATA_DIR / self.DATABASE_FILE}"

    # Face Recognition Settings
    MODEL_NAME: str = "buffalo_l"
    MODEL_CACHE_DIR: str = "~/.insightface"
    DETECTION_SIZE: int = 640
    MIN_FACE_CONFIDENCE: float = 0.5
    MAX_IMAGE_PIXELS: int = 1920 * 1080  # ~2MP (Full HD)
    ALLOWED_IMAGE_EXTENSIONS: str = ".jpg,.jpeg,.png"

    @property
    def image_extensions(self) -> List[str]:
        """Get list of accepted photo file extensions."""
        return [ext.strip().lower() for ext in self.ALLOWED_IMAGE_EXTENSIONS.split(",")]

    # Matching settings
    RECOGNITION_THRESHOLD: float = 0.6

    # Announcement settings
    ANNOUNCEMENT_MODE: str = "name"
    SPEECH_RATE: float = 0.9  # Multiplier of the engine's default words per minute
    SPEECH_VOLUME: float = 1.0
    PREFERRED_VOICE: Optional[str] = None

    # Camera settings
    CAMERA_INDEX: int = 0
    CAMERA_PROBE_LIMIT: int = 5

    # Optional settings with defaults
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False
    HOST: str = "127.0.0.1"
    PORT: int = 8000

settings = Settings()
