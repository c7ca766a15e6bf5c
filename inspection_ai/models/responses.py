"""
Pydantic models for API responses
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from inspection_ai.core.enums import AnalysisErrorKind
from inspection_ai.models.domain import (
    AnalysisSuggestion,
    AutofillFields,
    ObjectMapping,
    Predictions,
    Suggestions,
)


class AnalysisResponse(BaseModel):
    """Analysis result returned to the observation workflow"""
    success: bool = Field(..., description="Whether the analysis completed")
    distance: Optional[float] = Field(None, description="Suggested distance in meters")
    observation_code: Optional[str] = Field(None, description="Suggested observation code")
    confidence: float = Field(0.0, description="Overall confidence")
    error: Optional[str] = Field(None, description="Error message")
    error_kind: Optional[AnalysisErrorKind] = Field(None, description="Error category")
    suggestions: Suggestions = Field(default_factory=Suggestions)
    predictions: Optional[Predictions] = Field(None, description="Detections, OCR text and distances")
    autofill: AutofillFields = Field(
        default_factory=AutofillFields,
        description="Fields to populate according to the auto-populate switches"
    )
    processing_time_ms: int = Field(..., description="Processing time in milliseconds")

    @classmethod
    def from_suggestion(
        cls,
        suggestion: AnalysisSuggestion,
        autofill: AutofillFields,
        processing_time_ms: int
    ) -> "AnalysisResponse":
        return cls(
            success=suggestion.success,
            distance=suggestion.distance,
            observation_code=suggestion.observation_code,
            confidence=suggestion.confidence,
            error=suggestion.error,
            error_kind=suggestion.error_kind,
            suggestions=suggestion.suggestions,
            predictions=suggestion.predictions,
            autofill=autofill,
            processing_time_ms=processing_time_ms,
        )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "distance": 2.34,
                "observation_code": "RFJ",
                "confidence": 0.87,
                "suggestions": {
                    "distance": 2.34,
                    "observation_code": "RFJ",
                    "confidence": 0.87
                },
                "autofill": {
                    "distance": 2.34,
                    "observation_code": "RFJ"
                },
                "processing_time_ms": 1420
            }
        }
    )


class MappingListResponse(BaseModel):
    """Object mappings"""
    mappings: List[ObjectMapping] = Field(default_factory=list)
    total: int = Field(..., description="Number of mappings returned")


class HealthResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")
    ai_configured: bool = Field(..., description="AI enabled and an API key is set")
