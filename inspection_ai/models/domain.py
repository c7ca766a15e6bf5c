"""
Domain models - what the analysis pipeline consumes and produces
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from inspection_ai.core.enums import AnalysisErrorKind, DistanceSource

# Flat [x1, y1, x2, y2], a list of [x, y] points, or {"points": [[x, y], ...]}.
# utils.bbox.to_centroid decides which shapes are usable.
BoundingBox = Any


class OcrFragment(BaseModel):
    """One text region recognized by the remote model"""
    model_config = ConfigDict(frozen=True)

    text: str = Field("", description="Recognized text as returned by the model")
    confidence: float = Field(0.0, ge=0.0, le=1.0, description="Recognition confidence")
    bbox: BoundingBox = Field(None, description="Text region location")


class DetectedObject(BaseModel):
    """One classified object detection"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    class_name: str = Field(..., alias="class", description="Detected object class")
    confidence: float = Field(0.0, ge=0.0, le=1.0, description="Detection confidence")
    bbox: BoundingBox = Field(None, description="Object location")


class DistanceDetails(BaseModel):
    """Diagnostics explaining how a distance candidate was scored"""
    source: DistanceSource = Field(DistanceSource.OCR, description="Candidate origin")
    ocr_confidence: Optional[float] = Field(None, description="Confidence of the OCR fragment")
    pattern_confidence: Optional[float] = Field(
        None, description="Pattern confidence after decimal boost and millimeter cap"
    )
    position_score: Optional[float] = Field(None, description="Top/bottom of frame heuristic")
    pattern_name: Optional[str] = Field(None, description="Name of the winning pattern")
    full_text: Optional[str] = Field(None, description="Whole trimmed fragment text")
    has_decimal: bool = Field(False, description="Matched text contains a decimal point")
    position: BoundingBox = Field(None, description="Raw bounding box of the fragment")


class DistanceCandidate(BaseModel):
    """A parsed and scored distance hypothesis, in meters"""
    value: float = Field(..., ge=0.0, le=999.0, description="Distance in meters")
    original_text: str = Field(..., description="Matched substring, including a leading '+'")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Blended confidence")
    details: DistanceDetails = Field(default_factory=DistanceDetails)

    @property
    def rounded_value(self) -> float:
        """Key used to deduplicate candidates"""
        return round(self.value, 2)


class RawModelOutput(BaseModel):
    """Unparsed model output taken from the inference envelope"""
    payload: Dict[str, Any] = Field(default_factory=dict, description="Model output object")
    execution_time_ms: Optional[float] = Field(None, description="Remote execution time")


class Predictions(BaseModel):
    """Everything the model saw in one image, plus the merged distances"""
    objects: List[DetectedObject] = Field(default_factory=list)
    text: List[OcrFragment] = Field(default_factory=list)
    distances: List[DistanceCandidate] = Field(default_factory=list)
    confidence: float = Field(0.0, description="Mean of every object and text confidence")
    execution_time_ms: Optional[float] = Field(None, description="Remote execution time")
    anomalies: List[str] = Field(default_factory=list, description="Malformed output entries that were skipped")


class AISettings(BaseModel):
    """AI configuration supplied by the caller, read-only to the pipeline"""
    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(False, description="Master switch for AI analysis")
    api_key: Optional[str] = Field(None, description="Inference API key")
    auto_populate_enabled: bool = Field(True, description="Apply suggestions to the form")
    distance_ocr_enabled: bool = Field(True, description="Apply the suggested distance")
    object_detection_enabled: bool = Field(True, description="Apply the suggested code")
    confidence_threshold: float = Field(
        0.7, ge=0.0, le=1.0, description="Advisory threshold, not enforced by the pipeline"
    )


class Suggestions(BaseModel):
    """Field values proposed to the observation form"""
    distance: Optional[float] = None
    observation_code: Optional[str] = None
    confidence: float = 0.0


class AnalysisSuggestion(BaseModel):
    """Result of a single analysis call"""
    success: bool = Field(..., description="Whether the analysis completed")
    distance: Optional[float] = Field(None, description="Best distance in meters")
    observation_code: Optional[str] = Field(None, description="Resolved observation code")
    confidence: float = Field(0.0, description="Overall blended confidence")
    error: Optional[str] = Field(None, description="Error message when success is false")
    error_kind: Optional[AnalysisErrorKind] = Field(None, description="Error category")
    predictions: Optional[Predictions] = Field(None, description="Full diagnostic detail")

    @computed_field
    @property
    def suggestions(self) -> Suggestions:
        return Suggestions(
            distance=self.distance,
            observation_code=self.observation_code,
            confidence=self.confidence,
        )

    @classmethod
    def failure(cls, message: str, kind: AnalysisErrorKind) -> "AnalysisSuggestion":
        return cls(success=False, error=message, error_kind=kind, confidence=0.0)


class ObjectMapping(BaseModel):
    """Maps a detected object class to an observation code"""
    object_class: str = Field(..., min_length=1, description="Lower-cased object class")
    observation_code: str = Field(..., min_length=1, description="Observation code")
    confidence_threshold: float = Field(0.7, ge=0.0, le=1.0)
    is_active: bool = Field(True, description="Only active mappings are resolved")
    updated_at: Optional[datetime] = Field(None, description="Last modification time")

    @field_validator("object_class")
    @classmethod
    def normalize_object_class(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("object_class cannot be empty")
        return v

    @field_validator("observation_code")
    @classmethod
    def strip_observation_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("observation_code cannot be empty")
        return v


class AutofillFields(BaseModel):
    """Form fields the calling workflow should populate"""
    distance: Optional[float] = None
    observation_code: Optional[str] = None

    @property
    def fields_populated(self) -> bool:
        return self.distance is not None or self.observation_code is not None
