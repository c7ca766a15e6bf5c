"""
Pydantic models for incoming requests
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from inspection_ai.models.domain import AISettings


class AISettingsOverrides(BaseModel):
    """Per-request overrides of the configured AI settings"""
    enabled: Optional[bool] = None
    api_key: Optional[str] = Field(None, description="Use this key instead of the configured one")
    auto_populate_enabled: Optional[bool] = None
    distance_ocr_enabled: Optional[bool] = None
    object_detection_enabled: Optional[bool] = None
    confidence_threshold: Optional[float] = Field(None, ge=0.0, le=1.0)

    def apply_to(self, base: AISettings) -> AISettings:
        """Return base with every field set in this request replaced"""
        return base.model_copy(update=self.model_dump(exclude_none=True))


class AnalyzeRequest(BaseModel):
    """Request to analyze one inspection frame"""
    image: str = Field(
        ...,
        description="Image as base64, a data URL prefix is allowed",
        min_length=4
    )
    settings: Optional[AISettingsOverrides] = Field(
        None,
        description="Overrides of the configured AI settings"
    )

    @field_validator('image')
    @classmethod
    def validate_image_not_empty(cls, v: str) -> str:
        """Check that the image is not blank"""
        if not v or not v.strip():
            raise ValueError("Image cannot be empty")
        return v.strip()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "image": "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg==",
                "settings": {
                    "distance_ocr_enabled": True
                }
            }
        }
    )


class MappingRequest(BaseModel):
    """Create or replace the mapping of one object class"""
    observation_code: str = Field(..., min_length=1, description="Observation code to suggest")
    confidence_threshold: float = Field(0.7, ge=0.0, le=1.0)
    is_active: bool = True


class MappingStatusRequest(BaseModel):
    """Activate or deactivate a mapping"""
    is_active: bool
