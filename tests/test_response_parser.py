import pytest

from conftest import model_payload
from inspection_ai.core.enums import DistanceSource
from inspection_ai.models.domain import RawModelOutput
from inspection_ai.services.response_parser import (
    parse_model_output,
    parse_pre_extracted_distance,
)


def parse(payload):
    return parse_model_output(RawModelOutput(payload=payload))


def test_full_payload():
    parsed = parse(model_payload(
        texts=[{"text": "002.34m", "confidence": 0.95, "bbox": {"points": [[0, 0], [10, 0]]}}],
        detections=[{"class": "ROOT", "confidence": 0.8, "bbox": [0, 0, 10, 10]}],
        distance="2.34m",
    ))

    assert parsed.objects[0].class_name == "ROOT"
    assert parsed.objects[0].confidence == 0.8
    assert parsed.texts[0].text == "002.34m"
    assert parsed.texts[0].bbox == [[0, 0], [10, 0]]
    assert parsed.pre_extracted_distance == "2.34m"
    assert parsed.anomalies == []


def test_empty_payload():
    parsed = parse({})

    assert parsed.objects == []
    assert parsed.texts == []
    assert parsed.pre_extracted_distance is None
    assert parsed.anomalies == []


def test_malformed_entries_are_skipped():
    parsed = parse(model_payload(
        detections=[
            {"confidence": 0.5},
            "junk",
            {"class": "crack", "confidence": "high"},
            {"class": "joint", "confidence": 0.6},
        ],
        texts=[None, {"text": "3.2m", "confidence": 0.7}],
    ))

    assert [o.class_name for o in parsed.objects] == ["joint"]
    assert [t.text for t in parsed.texts] == ["3.2m"]
    assert len(parsed.anomalies) == 4


def test_unexpected_sections_degrade_to_empty():
    parsed = parse({"detections": {"class": "root"}, "ocr": "3.2m"})

    assert parsed.objects == []
    assert parsed.texts == []
    assert "detections is not a list" in parsed.anomalies
    assert "ocr is not an object" in parsed.anomalies


def test_confidence_is_clamped():
    parsed = parse(model_payload(texts=[
        {"text": "a", "confidence": 1.7},
        {"text": "b"},
        {"text": None, "confidence": -0.2},
    ]))

    assert [t.confidence for t in parsed.texts] == [1.0, 0.0, 0.0]
    assert parsed.texts[2].text == ""


def test_numeric_pre_extracted_distance():
    assert parse(model_payload(distance=12.5)).pre_extracted_distance == "12.5"
    assert parse(model_payload(distance="")).pre_extracted_distance is None


@pytest.mark.parametrize("text, value, confidence, has_decimal", [
    ("12.5", 12.5, 0.9, True),
    ("  2.34M ", 2.34, 0.9, True),
    ("15m", 15.0, 0.6, False),
    ("distance 7M", 7.0, 0.6, False),
])
def test_pre_extracted_accepted(text, value, confidence, has_decimal):
    candidate = parse_pre_extracted_distance(text)

    assert candidate.value == pytest.approx(value)
    assert candidate.confidence == confidence
    assert candidate.details.has_decimal is has_decimal
    assert candidate.details.source == DistanceSource.API_PRE_EXTRACTED


@pytest.mark.parametrize("text", ["15", "abc", "", "1500.5m", "15 m"])
def test_pre_extracted_rejected(text):
    assert parse_pre_extracted_distance(text) is None
