"""
Analysis handlers - AI suggestions for the observation form
"""
import time

from fastapi import APIRouter, Depends, HTTPException, status

from inspection_ai.config import Settings, get_settings
from inspection_ai.models.requests import AnalyzeRequest
from inspection_ai.models.responses import AnalysisResponse
from inspection_ai.services.analysis_service import AnalysisService
from inspection_ai.services.autofill import build_autofill
from inspection_ai.api.dependencies import get_analysis_service
from inspection_ai.core.exceptions import ImageValidationError
from inspection_ai.utils.image_utils import (
    decode_base64_image,
    validate_image_format,
    validate_image_size,
)
from inspection_ai.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/analysis", tags=["Analysis"])


@router.post("/observation", response_model=AnalysisResponse, status_code=status.HTTP_200_OK)
async def analyze_observation(
    request: AnalyzeRequest,
    analysis_service: AnalysisService = Depends(get_analysis_service),
    settings: Settings = Depends(get_settings)
) -> AnalysisResponse:
    """
    Suggest a distance and an observation code for an inspection frame

    Analysis failures (AI disabled, timeout, inference errors) are
    returned with success=false rather than as HTTP errors.

    Raises:
        HTTPException 400: Image validation failed
        HTTPException 500: Internal server error
    """
    start_time = time.time()

    try:
        image_bytes = decode_base64_image(request.image)
        validate_image_size(image_bytes, settings.MAX_IMAGE_SIZE_MB)
        image_format = validate_image_format(image_bytes, settings.allowed_image_formats_list)
    except ImageValidationError as e:
        logger.warning("Image validation failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Image validation failed",
                "message": e.message,
                "details": e.details
            }
        )

    ai_settings = settings.ai_settings()
    if request.settings is not None:
        ai_settings = request.settings.apply_to(ai_settings)

    logger.info("Received analysis request", format=image_format.value, image_size=len(image_bytes))

    try:
        suggestion = await analysis_service.analyze(image_bytes, ai_settings)
        autofill = build_autofill(suggestion, ai_settings)
    except Exception as e:
        logger.error("Unexpected error", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Internal server error",
                "message": "An unexpected error occurred"
            }
        )

    return AnalysisResponse.from_suggestion(
        suggestion,
        autofill=autofill,
        processing_time_ms=int((time.time() - start_time) * 1000)
    )
