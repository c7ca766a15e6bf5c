"""
Application configuration via Pydantic Settings
"""
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from inspection_ai.models.domain import AISettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application Settings
    APP_NAME: str = "inspection-ai-service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS Settings
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Remote inference (RunPod YOLO + OCR endpoint)
    AI_ENABLED: bool = False
    RUNPOD_API_KEY: Optional[str] = None
    RUNPOD_ENDPOINT: str = "https://api.runpod.ai/v2/voejm0cy20ca2m"
    INFERENCE_TIMEOUT_SECONDS: float = 10.0

    # Suggestion application flags, read by the calling workflow
    AUTO_POPULATE_ENABLED: bool = True
    DISTANCE_OCR_ENABLED: bool = True
    OBJECT_DETECTION_ENABLED: bool = True
    CONFIDENCE_THRESHOLD: float = 0.7

    # Used to normalize OCR positions when the image height is unreadable
    DEFAULT_FRAME_HEIGHT: int = 1080

    # Object class -> observation code table; in-memory when unset
    OBJECT_MAPPINGS_FILE: Optional[str] = None

    # Image Settings
    MAX_IMAGE_SIZE_MB: int = 10
    ALLOWED_IMAGE_FORMATS: str = "jpg,jpeg,png,webp,gif,bmp,tiff"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @property
    def allowed_origins_list(self) -> List[str]:
        """Split CORS origins into a list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def allowed_image_formats_list(self) -> List[str]:
        """Split allowed image formats into a list"""
        return [fmt.strip() for fmt in self.ALLOWED_IMAGE_FORMATS.split(",")]

    @property
    def runpod_api_key(self) -> Optional[str]:
        """API key with surrounding whitespace removed, None when blank"""
        if self.RUNPOD_API_KEY and self.RUNPOD_API_KEY.strip():
            return self.RUNPOD_API_KEY.strip()
        return None

    def ai_settings(self) -> AISettings:
        """
        Build the AI settings handed to the analysis pipeline
        """
        return AISettings(
            enabled=self.AI_ENABLED,
            api_key=self.runpod_api_key,
            auto_populate_enabled=self.AUTO_POPULATE_ENABLED,
            distance_ocr_enabled=self.DISTANCE_OCR_ENABLED,
            object_detection_enabled=self.OBJECT_DETECTION_ENABLED,
            confidence_threshold=self.CONFIDENCE_THRESHOLD,
        )

    @property
    def ai_configured(self) -> bool:
        """AI is switched on and a key is set"""
        return self.AI_ENABLED and self.runpod_api_key is not None


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the settings (singleton)"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
