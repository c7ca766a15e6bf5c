"""
Enums for type safety
"""
from enum import Enum


class ImageFormat(str, Enum):
    """Image formats"""
    JPG = "jpg"
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    GIF = "gif"
    BMP = "bmp"
    TIFF = "tiff"


class AnalysisErrorKind(str, Enum):
    """Why an analysis call returned success=false"""
    CONFIGURATION = "configuration"  # AI disabled or no API key
    TIMEOUT = "timeout"
    INFERENCE_FAILED = "inference_failed"
    UNEXPECTED = "unexpected"


class DistanceSource(str, Enum):
    """Where a distance candidate came from"""
    OCR = "ocr"
    API_PRE_EXTRACTED = "api_pre_extracted"


class RunPodJobStatus(str, Enum):
    """Job statuses reported by the RunPod runsync envelope"""
    COMPLETED = "COMPLETED"
    IN_QUEUE = "IN_QUEUE"
    IN_PROGRESS = "IN_PROGRESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    TIMED_OUT = "TIMED_OUT"
