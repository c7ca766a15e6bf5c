"""
Analysis service - orchestrates inference, distance extraction and code resolution
"""
import time
from functools import reduce
from typing import Callable, Iterable, List, Optional

from inspection_ai.core.enums import AnalysisErrorKind
from inspection_ai.core.exceptions import (
    ConfigurationError,
    InferenceFailedError,
    InferenceTimeoutError,
)
from inspection_ai.core.logging import get_logger
from inspection_ai.infrastructure.inference.base_client import BaseInferenceClient
from inspection_ai.models.domain import (
    AISettings,
    AnalysisSuggestion,
    DetectedObject,
    DistanceCandidate,
    OcrFragment,
    Predictions,
    RawModelOutput,
)
from inspection_ai.services.distance_extractor import (
    DEFAULT_FRAME_HEIGHT,
    DistanceExtractor,
    deduplicate_by_value,
)
from inspection_ai.services.object_code_resolver import ObjectCodeResolver
from inspection_ai.services.response_parser import (
    parse_model_output,
    parse_pre_extracted_distance,
)
from inspection_ai.utils.image_utils import get_image_dimensions

logger = get_logger(__name__)

# A candidate above this licenses dropping the ones below NOISE_CONFIDENCE
CLEAR_WINNER_CONFIDENCE = 0.7
NOISE_CONFIDENCE = 0.5
# Confidence gap under which decimal and position break the tie
NEAR_TIE_MARGIN = 0.1

InferenceClientFactory = Callable[[AISettings], BaseInferenceClient]


def merge_distance_candidates(
    pre_extracted: Optional[DistanceCandidate],
    extracted: Iterable[DistanceCandidate]
) -> List[DistanceCandidate]:
    """
    Merge the model's own distance with the OCR candidates

    Deduplicates by rounded value, sorts by confidence and, when a clear
    winner exists among several candidates, drops the low confidence ones.
    """
    candidates = [pre_extracted] if pre_extracted is not None else []
    candidates.extend(extracted)

    merged = deduplicate_by_value(candidates)

    if len(merged) > 1 and any(c.confidence > CLEAR_WINNER_CONFIDENCE for c in merged):
        filtered = [c for c in merged if c.confidence >= NOISE_CONFIDENCE]
        dropped = len(merged) - len(filtered)
        if dropped:
            logger.debug("Filtered low confidence distances", dropped_count=dropped)
        merged = filtered

    return merged


def _prefer(best: DistanceCandidate, current: DistanceCandidate) -> DistanceCandidate:
    confidence_diff = current.confidence - best.confidence
    if abs(confidence_diff) > NEAR_TIE_MARGIN:
        return current if confidence_diff > 0 else best

    if current.details.has_decimal != best.details.has_decimal:
        return current if current.details.has_decimal else best

    if (current.details.position_score or 0.0) > (best.details.position_score or 0.0):
        return current

    return best


def select_best_distance(candidates: List[DistanceCandidate]) -> Optional[DistanceCandidate]:
    """
    Pick one distance out of the merged candidates

    Clear confidence differences decide; near ties prefer a decimal value,
    then the better positioned text, then the earlier candidate.
    """
    if not candidates:
        return None
    return reduce(_prefer, candidates)


def select_best_object(objects: List[DetectedObject]) -> Optional[DetectedObject]:
    """Most confident detection; the first one wins ties"""
    if not objects:
        return None
    return reduce(lambda best, current: current if current.confidence > best.confidence else best, objects)


def overall_confidence(objects: List[DetectedObject], texts: List[OcrFragment]) -> float:
    """Mean of every object and text confidence, 0 when nothing was seen"""
    confidences = [o.confidence for o in objects] + [t.confidence for t in texts]
    if not confidences:
        return 0.0
    return sum(confidences) / len(confidences)


class AnalysisService:
    """
    Entry point of the observation analysis pipeline
    image → inference → distance extraction + code resolution → suggestion

    Stateless between calls; concurrent calls are independent.
    """

    def __init__(
        self,
        client_factory: InferenceClientFactory,
        resolver: ObjectCodeResolver,
        extractor: Optional[DistanceExtractor] = None,
        default_frame_height: int = DEFAULT_FRAME_HEIGHT
    ):
        """
        Args:
            client_factory: Builds an inference client for the given settings
            resolver: Object class → observation code resolver
            extractor: Distance extractor
            default_frame_height: Used when the image height cannot be read
        """
        self.client_factory = client_factory
        self.resolver = resolver
        self.extractor = extractor or DistanceExtractor(default_frame_height=default_frame_height)
        self.default_frame_height = default_frame_height

        logger.info("Analysis service initialized", default_frame_height=default_frame_height)

    async def analyze(self, image_bytes: bytes, settings: AISettings) -> AnalysisSuggestion:
        """
        Analyze one inspection frame

        Never raises: every failure comes back as success=False with an
        error message and kind.

        Args:
            image_bytes: Captured or uploaded image
            settings: AI settings of the caller

        Returns:
            AnalysisSuggestion
        """
        if not settings.enabled:
            logger.info("AI analysis skipped, disabled")
            return AnalysisSuggestion.failure("AI analysis is disabled", AnalysisErrorKind.CONFIGURATION)

        if not settings.api_key:
            logger.info("AI analysis skipped, no API key")
            return AnalysisSuggestion.failure("AI API key not configured", AnalysisErrorKind.CONFIGURATION)

        start_time = time.time()
        logger.info("Starting AI analysis", image_size=len(image_bytes))

        try:
            client = self.client_factory(settings)
            raw_output = await client.infer(image_bytes)

            predictions = self.build_predictions(raw_output, self._frame_height(image_bytes))

            best_distance = select_best_distance(predictions.distances)

            observation_code = None
            best_object = select_best_object(predictions.objects)
            if best_object is not None:
                observation_code = self.resolver.resolve(best_object.class_name)

        except InferenceTimeoutError as e:
            return self._failure(e.message, AnalysisErrorKind.TIMEOUT, start_time)
        except InferenceFailedError as e:
            return self._failure(e.message, AnalysisErrorKind.INFERENCE_FAILED, start_time)
        except ConfigurationError as e:
            return self._failure(e.message, AnalysisErrorKind.CONFIGURATION, start_time)
        except Exception as e:
            logger.error("Unexpected analysis error", error=str(e), error_type=type(e).__name__, exc_info=True)
            return self._failure(str(e) or type(e).__name__, AnalysisErrorKind.UNEXPECTED, start_time)

        processing_time_ms = int((time.time() - start_time) * 1000)

        logger.info(
            "AI analysis completed",
            distance=best_distance.value if best_distance else None,
            distance_pattern=best_distance.details.pattern_name if best_distance else None,
            observation_code=observation_code,
            confidence=round(predictions.confidence, 3),
            texts_count=len(predictions.text),
            distances_count=len(predictions.distances),
            processing_time_ms=processing_time_ms
        )

        return AnalysisSuggestion(
            success=True,
            distance=best_distance.value if best_distance is not None else None,
            observation_code=observation_code,
            confidence=predictions.confidence,
            predictions=predictions,
        )

    def build_predictions(self, raw_output: RawModelOutput, frame_height: int) -> Predictions:
        """Parse the model output and rank its distance candidates"""
        parsed = parse_model_output(raw_output)

        pre_extracted = None
        if parsed.pre_extracted_distance is not None:
            pre_extracted = parse_pre_extracted_distance(parsed.pre_extracted_distance)

        extracted = self.extractor.extract(parsed.texts, frame_height=frame_height)

        return Predictions(
            objects=parsed.objects,
            text=parsed.texts,
            distances=merge_distance_candidates(pre_extracted, extracted),
            confidence=overall_confidence(parsed.objects, parsed.texts),
            execution_time_ms=raw_output.execution_time_ms,
            anomalies=parsed.anomalies,
        )

    def _frame_height(self, image_bytes: bytes) -> int:
        _, height = get_image_dimensions(image_bytes)
        return height or self.default_frame_height

    @staticmethod
    def _failure(message: str, kind: AnalysisErrorKind, start_time: float) -> AnalysisSuggestion:
        logger.error(
            "AI analysis failed",
            error=message,
            error_kind=kind.value,
            processing_time_ms=int((time.time() - start_time) * 1000)
        )
        return AnalysisSuggestion.failure(message, kind)
