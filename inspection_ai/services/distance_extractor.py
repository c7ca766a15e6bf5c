"""
Distance extraction from OCR fragments

Inspection video burns the camera's travelled distance into the frame,
usually at the very top or bottom. The model returns many text fragments
per frame; every fragment is matched against a table of distance formats,
scored, and the surviving candidates are ranked.
"""
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern

from inspection_ai.core.enums import DistanceSource
from inspection_ai.core.logging import get_logger
from inspection_ai.models.domain import DistanceCandidate, DistanceDetails, OcrFragment
from inspection_ai.utils.bbox import to_centroid

logger = get_logger(__name__)

MIN_DISTANCE_M = 0.0
MAX_DISTANCE_M = 999.0

DECIMAL_BOOST = 1.3
MILLIMETER_CAP = 0.15

OCR_WEIGHT = 0.3
PATTERN_WEIGHT = 0.4
POSITION_WEIGHT = 0.3

# Fraction of the frame height treated as the top/bottom overlay band
EDGE_BAND = 0.15
EDGE_SLOPE = 2.0
TOP_EDGE_SCORE = 0.9
BAND_EDGE_SCORE = 0.6
MIDDLE_SCORE = 0.2
NO_POSITION_SCORE = 0.3

DEFAULT_FRAME_HEIGHT = 1080

# Never part of a distance; these show up in timestamps and ratios
INVALID_CHARS = ("/", ":")


@dataclass(frozen=True)
class DistancePattern:
    """One entry of the distance format table"""
    name: str
    regex: Pattern
    confidence: float
    unit_divisor: float = 1.0
    is_millimeters: bool = False


# Ties keep the earlier entry, so the inspection overlay format comes first.
DISTANCE_PATTERNS: List[DistancePattern] = [
    # "002.34m", "4.00M": on-screen overlay of most inspection cameras
    DistancePattern("inspection_format_decimal", re.compile(r"^0*(\d{1,3}\.\d{1,2})[Mm]$"), 0.98),
    DistancePattern("exact_decimal_with_m", re.compile(r"^\+?(\d{1,3}\.\d{1,2})[Mm]$"), 1.0),
    DistancePattern("exact_decimal_no_suffix", re.compile(r"^\+?(\d{1,3}\.\d{1,2})$"), 0.95),
    DistancePattern("embedded_decimal_with_m", re.compile(r"\b\+?(\d{1,3}\.\d{1,2})[Mm]\b"), 0.9),
    DistancePattern("decimal_space_m", re.compile(r"\+?(\d{1,3}\.\d{1,2})\s*[Mm]\b"), 0.85),
    DistancePattern("integer_with_m", re.compile(r"\b\+?(\d{1,3})[Mm]\b"), 0.6),
    DistancePattern("standalone_integer", re.compile(r"^\+?(\d{1,3})$"), 0.4),
    DistancePattern(
        "double_M_millimeters", re.compile(r"\+?(\d{1,3}\.?\d{0,2})MM\b"), 0.1,
        unit_divisor=1000.0, is_millimeters=True,
    ),
    DistancePattern(
        "millimeters", re.compile(r"\+?(\d{1,3}\.?\d{0,2})\s*mm\b", re.IGNORECASE), 0.15,
        unit_divisor=1000.0, is_millimeters=True,
    ),
    DistancePattern("number_meters_word", re.compile(r"\+?(\d{1,3}\.?\d{0,2})\s*meters?\b", re.IGNORECASE), 0.7),
    DistancePattern(
        "centimeters", re.compile(r"\+?(\d{1,3}\.?\d{0,2})\s*cm\b", re.IGNORECASE), 0.3,
        unit_divisor=100.0,
    ),
]


@dataclass
class PatternMatch:
    value: float
    original_text: str
    pattern_name: str
    pattern_confidence: float
    has_decimal: bool


def normalize_y(bbox, frame_height: float) -> Optional[float]:
    """Vertical centroid of a bbox as a fraction of the frame height"""
    centroid = to_centroid(bbox)
    if centroid is None or frame_height <= 0:
        return None
    return max(0.0, min(centroid[1] / frame_height, 1.0))


def position_score(normalized_y: Optional[float]) -> float:
    """
    Score how likely a text position is to be the distance overlay

    0.9 at the very top falling to 0.6 at 15% of the height, mirrored at the
    bottom, and a flat 0.2 in between. Unknown positions score 0.3.
    """
    if normalized_y is None:
        return NO_POSITION_SCORE
    if normalized_y <= EDGE_BAND:
        return TOP_EDGE_SCORE - normalized_y * EDGE_SLOPE
    if normalized_y >= 1.0 - EDGE_BAND:
        return BAND_EDGE_SCORE + (normalized_y - (1.0 - EDGE_BAND)) * EDGE_SLOPE
    return MIDDLE_SCORE


def score_pattern(pattern: DistancePattern, text: str) -> Optional[PatternMatch]:
    """Match a single table entry against text, None if it does not apply"""
    match = pattern.regex.search(text)
    if not match:
        return None

    try:
        value = float(match.group(1)) / pattern.unit_divisor
    except ValueError:
        return None

    if not MIN_DISTANCE_M <= value <= MAX_DISTANCE_M:
        return None

    matched_text = match.group(0)
    has_decimal = "." in matched_text
    confidence = pattern.confidence

    if has_decimal and not pattern.is_millimeters:
        confidence = min(confidence * DECIMAL_BOOST, 1.0)

    if pattern.is_millimeters or "mm" in matched_text.lower():
        confidence = min(confidence, MILLIMETER_CAP)

    return PatternMatch(
        value=value,
        original_text=matched_text,
        pattern_name=pattern.name,
        pattern_confidence=confidence,
        has_decimal=has_decimal,
    )


def best_pattern_match(
    text: str,
    patterns: Iterable[DistancePattern] = DISTANCE_PATTERNS,
) -> Optional[PatternMatch]:
    """Highest scoring pattern match for text; earlier entries win ties"""
    best: Optional[PatternMatch] = None
    for pattern in patterns:
        candidate = score_pattern(pattern, text)
        if candidate and (best is None or candidate.pattern_confidence > best.pattern_confidence):
            best = candidate
    return best


def deduplicate_by_value(candidates: Iterable[DistanceCandidate]) -> List[DistanceCandidate]:
    """
    Keep the most confident candidate per value rounded to 2 decimals

    Returns:
        Survivors sorted by confidence, highest first
    """
    best_by_value = {}
    for candidate in candidates:
        key = candidate.rounded_value
        current = best_by_value.get(key)
        if current is None or candidate.confidence > current.confidence:
            best_by_value[key] = candidate

    return sorted(best_by_value.values(), key=lambda c: c.confidence, reverse=True)


class DistanceExtractor:
    """
    Finds distance measurements in OCR fragments

    Confidence of a candidate blends the OCR confidence, the pattern
    confidence and the position of the text in the frame.
    """

    def __init__(
        self,
        patterns: Optional[List[DistancePattern]] = None,
        default_frame_height: int = DEFAULT_FRAME_HEIGHT
    ):
        self.patterns = patterns if patterns is not None else DISTANCE_PATTERNS
        self.default_frame_height = default_frame_height

    def extract(
        self,
        fragments: Iterable[OcrFragment],
        frame_height: Optional[int] = None
    ) -> List[DistanceCandidate]:
        """
        Extract, score and rank distance candidates

        Args:
            fragments: OCR fragments from one image
            frame_height: Image height in pixels, the default height if unknown

        Returns:
            Candidates sorted by confidence, one per rounded value
        """
        height = frame_height or self.default_frame_height
        candidates = []

        for fragment in fragments:
            candidate = self._extract_from_fragment(fragment, height)
            if candidate is not None:
                candidates.append(candidate)

        unique = deduplicate_by_value(candidates)

        logger.debug(
            "Distance extraction completed",
            candidates_count=len(candidates),
            distances=[f"{c.value}m ({c.confidence})" for c in unique]
        )

        return unique

    def _extract_from_fragment(
        self,
        fragment: OcrFragment,
        frame_height: int
    ) -> Optional[DistanceCandidate]:
        text = fragment.text or ""

        if any(char in text for char in INVALID_CHARS):
            logger.debug("Skipping text with invalid characters", text=text)
            return None

        clean_text = text.strip()
        match = best_pattern_match(clean_text, self.patterns)
        if match is None:
            return None

        pos_score = position_score(normalize_y(fragment.bbox, frame_height))

        confidence = (
            fragment.confidence * OCR_WEIGHT
            + match.pattern_confidence * PATTERN_WEIGHT
            + pos_score * POSITION_WEIGHT
        )

        logger.debug(
            "Distance candidate found",
            text=clean_text,
            value=match.value,
            pattern=match.pattern_name,
            position_score=round(pos_score, 3),
            confidence=round(confidence, 3)
        )

        return DistanceCandidate(
            value=match.value,
            original_text=match.original_text,
            confidence=round(min(confidence, 1.0), 3),
            details=DistanceDetails(
                source=DistanceSource.OCR,
                ocr_confidence=fragment.confidence,
                pattern_confidence=match.pattern_confidence,
                position_score=pos_score,
                pattern_name=match.pattern_name,
                full_text=clean_text,
                has_decimal=match.has_decimal,
                position=fragment.bbox,
            )
        )
