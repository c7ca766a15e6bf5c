"""
Parsing of the raw model output into detections and OCR fragments
"""
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import ValidationError

from inspection_ai.core.enums import DistanceSource
from inspection_ai.core.logging import get_logger
from inspection_ai.models.domain import (
    DetectedObject,
    DistanceCandidate,
    DistanceDetails,
    OcrFragment,
    RawModelOutput,
)
from inspection_ai.services.distance_extractor import MAX_DISTANCE_M, MIN_DISTANCE_M

logger = get_logger(__name__)

PRE_EXTRACTED_VALUE_PATTERN = re.compile(r"(\d+\.?\d*)")
PRE_EXTRACTED_METER_SUFFIX = re.compile(r"\d[Mm]$")

PRE_EXTRACTED_DECIMAL_CONFIDENCE = 0.9
PRE_EXTRACTED_INTEGER_CONFIDENCE = 0.6


@dataclass
class ParsedModelOutput:
    """Model output split into the parts the pipeline works with"""
    objects: List[DetectedObject] = field(default_factory=list)
    texts: List[OcrFragment] = field(default_factory=list)
    pre_extracted_distance: Optional[str] = None
    anomalies: List[str] = field(default_factory=list)


def _coerce_confidence(value: Any) -> float:
    if value is None:
        return 0.0
    confidence = float(value)
    return max(0.0, min(confidence, 1.0))


def _parse_detection(item: Any) -> DetectedObject:
    if not isinstance(item, dict) or item.get("class") in (None, ""):
        raise ValueError("detection without a class")
    return DetectedObject(
        class_name=str(item["class"]),
        confidence=_coerce_confidence(item.get("confidence")),
        bbox=item.get("bbox"),
    )


def _parse_text(item: Any) -> OcrFragment:
    if not isinstance(item, dict):
        raise ValueError("text entry is not an object")
    bbox = item.get("bbox")
    if isinstance(bbox, dict) and "points" in bbox:
        bbox = bbox["points"]
    text = item.get("text")
    return OcrFragment(
        text="" if text is None else str(text),
        confidence=_coerce_confidence(item.get("confidence")),
        bbox=bbox,
    )


def _parse_list(items: Any, parser, section: str, anomalies: List[str]) -> list:
    if items is None:
        return []
    if not isinstance(items, list):
        anomalies.append(f"{section} is not a list")
        logger.warning("Unexpected model output section", section=section, type=type(items).__name__)
        return []

    parsed = []
    for index, item in enumerate(items):
        try:
            parsed.append(parser(item))
        except (ValueError, TypeError, ValidationError) as e:
            anomalies.append(f"{section}[{index}]: {e}")
            logger.warning("Skipping malformed entry", section=section, index=index, error=str(e))
    return parsed


def parse_model_output(raw_output: RawModelOutput) -> ParsedModelOutput:
    """
    Parse a model payload of the form
    {"detections": [...], "ocr": {"texts": [...], "extracted_data": {"distance": ...}}}

    Unexpected shapes degrade to empty sections instead of failing.

    Args:
        raw_output: Output returned by the inference client

    Returns:
        ParsedModelOutput
    """
    payload = raw_output.payload or {}
    result = ParsedModelOutput()

    result.objects = _parse_list(
        payload.get("detections"), _parse_detection, "detections", result.anomalies
    )

    ocr = payload.get("ocr")
    if isinstance(ocr, dict):
        result.texts = _parse_list(ocr.get("texts"), _parse_text, "ocr.texts", result.anomalies)

        extracted = ocr.get("extracted_data")
        if isinstance(extracted, dict) and extracted.get("distance") not in (None, ""):
            result.pre_extracted_distance = str(extracted["distance"])
    elif ocr is not None:
        result.anomalies.append("ocr is not an object")
        logger.warning("Unexpected model output section", section="ocr", type=type(ocr).__name__)

    logger.debug(
        "Model output parsed",
        objects_count=len(result.objects),
        texts_count=len(result.texts),
        pre_extracted_distance=result.pre_extracted_distance,
        anomalies_count=len(result.anomalies)
    )

    return result


def parse_pre_extracted_distance(distance_text: str) -> Optional[DistanceCandidate]:
    """
    Turn the distance string supplied by the model into a candidate

    Only trusted when it has a decimal point or ends in a digit followed by
    'm'/'M'; a bare integer is left to the OCR extraction.
    """
    text = distance_text.strip()
    match = PRE_EXTRACTED_VALUE_PATTERN.search(text)
    if not match:
        return None

    has_decimal = "." in text
    if not has_decimal and not PRE_EXTRACTED_METER_SUFFIX.search(text):
        logger.debug("Ignoring pre-extracted distance", distance=text)
        return None

    value = float(match.group(1))
    if not MIN_DISTANCE_M <= value <= MAX_DISTANCE_M:
        logger.debug("Pre-extracted distance out of range", distance=text, value=value)
        return None

    return DistanceCandidate(
        value=value,
        original_text=text,
        confidence=(
            PRE_EXTRACTED_DECIMAL_CONFIDENCE if has_decimal else PRE_EXTRACTED_INTEGER_CONFIDENCE
        ),
        details=DistanceDetails(
            source=DistanceSource.API_PRE_EXTRACTED,
            has_decimal=has_decimal,
        )
    )
