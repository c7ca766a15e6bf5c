import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import TOP_BBOX, make_image_bytes, model_payload
from inspection_ai.core.enums import AnalysisErrorKind, DistanceSource
from inspection_ai.core.exceptions import InferenceFailedError, InferenceTimeoutError
from inspection_ai.infrastructure.inference.base_client import BaseInferenceClient
from inspection_ai.infrastructure.mappings.memory_store import InMemoryMappingStore
from inspection_ai.models.domain import (
    AISettings,
    DistanceCandidate,
    DistanceDetails,
    RawModelOutput,
)
from inspection_ai.services.analysis_service import (
    AnalysisService,
    merge_distance_candidates,
    select_best_distance,
)
from inspection_ai.services.object_code_resolver import ObjectCodeResolver


def make_service(payload=None, side_effect=None, mappings=None, default_frame_height=1080):
    client = MagicMock(spec=BaseInferenceClient)
    client.infer = AsyncMock(
        return_value=RawModelOutput(payload=payload or {}, execution_time_ms=812),
        side_effect=side_effect,
    )
    factory = MagicMock(return_value=client)
    service = AnalysisService(
        client_factory=factory,
        resolver=ObjectCodeResolver(InMemoryMappingStore(mappings)),
        default_frame_height=default_frame_height,
    )
    return service, factory, client


def candidate(value, confidence, has_decimal=True, position=None):
    return DistanceCandidate(
        value=value,
        original_text=str(value),
        confidence=confidence,
        details=DistanceDetails(has_decimal=has_decimal, position_score=position),
    )


@pytest.mark.asyncio
async def test_inspection_overlay_distance(frame_bytes, ai_settings):
    service, _, client = make_service(model_payload(
        texts=[{"text": "002.34m", "confidence": 0.95, "bbox": TOP_BBOX}]
    ))

    result = await service.analyze(frame_bytes, ai_settings)

    assert result.success is True
    assert result.distance == 2.34
    assert result.suggestions.distance == 2.34
    assert result.confidence == pytest.approx(0.95)
    assert result.predictions.distances[0].confidence == pytest.approx(0.943, abs=1e-3)
    assert result.predictions.execution_time_ms == 812
    client.infer.assert_awaited_once_with(frame_bytes)


@pytest.mark.asyncio
async def test_timestamp_only_gives_no_distance(frame_bytes, ai_settings):
    service, _, _ = make_service(model_payload(texts=[{"text": "00:12", "confidence": 0.9}]))

    result = await service.analyze(frame_bytes, ai_settings)

    assert result.success is True
    assert result.predictions.distances == []
    assert result.distance is None
    assert result.suggestions.distance is None


@pytest.mark.asyncio
@pytest.mark.parametrize("settings, message", [
    (AISettings(enabled=False, api_key="test-key"), "AI analysis is disabled"),
    (AISettings(enabled=True, api_key=None), "AI API key not configured"),
    (AISettings(enabled=True, api_key=""), "AI API key not configured"),
])
async def test_configuration_errors_skip_inference(frame_bytes, settings, message):
    service, factory, client = make_service()

    result = await service.analyze(frame_bytes, settings)

    assert result.success is False
    assert result.error == message
    assert result.error_kind == AnalysisErrorKind.CONFIGURATION
    factory.assert_not_called()
    client.infer.assert_not_called()


@pytest.mark.asyncio
async def test_timeout_is_reported_distinctly(frame_bytes, ai_settings):
    timeout_service, _, _ = make_service(
        side_effect=InferenceTimeoutError("AI analysis timed out (10 seconds)")
    )
    failed_service, _, _ = make_service(
        side_effect=InferenceFailedError("RunPod API error: 500 - boom")
    )

    timed_out = await timeout_service.analyze(frame_bytes, ai_settings)
    failed = await failed_service.analyze(frame_bytes, ai_settings)

    assert timed_out.success is False
    assert timed_out.error_kind == AnalysisErrorKind.TIMEOUT
    assert "timed out" in timed_out.error
    assert failed.success is False
    assert failed.error_kind == AnalysisErrorKind.INFERENCE_FAILED
    assert failed.error != timed_out.error


@pytest.mark.asyncio
async def test_unexpected_errors_never_escape(frame_bytes, ai_settings):
    service, _, _ = make_service(side_effect=RuntimeError("boom"))

    result = await service.analyze(frame_bytes, ai_settings)

    assert result.success is False
    assert result.error == "boom"
    assert result.error_kind == AnalysisErrorKind.UNEXPECTED
    assert result.suggestions.distance is None
    assert result.suggestions.observation_code is None
    assert result.suggestions.confidence == 0.0


@pytest.mark.asyncio
async def test_object_resolution(frame_bytes, ai_settings):
    detections = [
        {"class": "crack", "confidence": 0.5},
        {"class": "ROOT", "confidence": 0.8},
    ]
    mapped, _, _ = make_service(model_payload(detections=detections), mappings={"root": "R"})
    unmapped, _, _ = make_service(model_payload(detections=detections), mappings={"joint": "JO"})

    mapped_result = await mapped.analyze(frame_bytes, ai_settings)
    unmapped_result = await unmapped.analyze(frame_bytes, ai_settings)

    assert mapped_result.observation_code == "R"
    assert mapped_result.confidence == pytest.approx(0.65)
    assert unmapped_result.success is True
    assert unmapped_result.observation_code is None


@pytest.mark.asyncio
async def test_pre_extracted_distance_is_one_more_candidate(frame_bytes, ai_settings):
    service, _, _ = make_service(model_payload(
        texts=[{"text": "3.40M", "confidence": 0.9, "bbox": TOP_BBOX}],
        distance="12.5m",
    ))

    result = await service.analyze(frame_bytes, ai_settings)

    sources = {c.value: c.details.source for c in result.predictions.distances}
    assert sources == {3.4: DistanceSource.OCR, 12.5: DistanceSource.API_PRE_EXTRACTED}
    assert result.distance == 3.4


@pytest.mark.asyncio
async def test_bare_integer_pre_extracted_distance_is_ignored(frame_bytes, ai_settings):
    service, _, _ = make_service(model_payload(distance="12"))

    result = await service.analyze(frame_bytes, ai_settings)

    assert result.success is True
    assert result.predictions.distances == []


@pytest.mark.asyncio
async def test_unreadable_image_uses_default_frame_height(ai_settings):
    # Centroid y = 1000 of the 1080 px default frame
    service, _, _ = make_service(model_payload(
        texts=[{"text": "4.5m", "confidence": 1.0, "bbox": [0, 990, 10, 1010]}]
    ))

    result = await service.analyze(b"not an image", ai_settings)

    assert result.predictions.distances[0].details.position_score == pytest.approx(0.6 + (1000 / 1080 - 0.85) * 2)


@pytest.mark.asyncio
async def test_concurrent_calls_are_independent(ai_settings):
    service, _, _ = make_service(model_payload(
        texts=[{"text": "002.34m", "confidence": 0.95, "bbox": TOP_BBOX}]
    ))

    results = await asyncio.gather(
        service.analyze(make_image_bytes(height=1000), ai_settings),
        service.analyze(make_image_bytes(height=100), ai_settings),
    )

    assert [r.distance for r in results] == [2.34, 2.34]
    assert results[0].predictions.distances[0].details.position_score == pytest.approx(0.86)
    assert results[1].predictions.distances[0].details.position_score == pytest.approx(0.2)


def test_merge_deduplicates_with_pre_extracted():
    merged = merge_distance_candidates(candidate(12.3, 0.9), [candidate(12.3, 0.7)])

    assert len(merged) == 1
    assert merged[0].confidence == 0.9


def test_merge_drops_noise_when_a_clear_winner_exists():
    merged = merge_distance_candidates(None, [candidate(1.0, 0.8), candidate(2.0, 0.45), candidate(3.0, 0.6)])
    assert [c.value for c in merged] == [1.0, 3.0]

    kept = merge_distance_candidates(None, [candidate(1.0, 0.6), candidate(2.0, 0.45)])
    assert [c.value for c in kept] == [1.0, 2.0]

    single = merge_distance_candidates(None, [candidate(1.0, 0.3)])
    assert [c.value for c in single] == [1.0]


def test_clear_confidence_gap_wins():
    best = select_best_distance([candidate(12.0, 0.95, has_decimal=False), candidate(1.2, 0.8)])
    assert best.value == 12.0


def test_near_tie_prefers_decimal():
    best = select_best_distance([
        candidate(12.0, 0.8, has_decimal=False, position=0.9),
        candidate(1.2, 0.75, has_decimal=True, position=0.2),
    ])
    assert best.value == 1.2


def test_near_tie_then_position():
    best = select_best_distance([candidate(1.2, 0.8, position=0.3), candidate(4.5, 0.78, position=0.9)])
    assert best.value == 4.5


def test_full_tie_keeps_first():
    best = select_best_distance([candidate(1.2, 0.8, position=0.5), candidate(4.5, 0.8, position=0.5)])
    assert best.value == 1.2
    assert select_best_distance([]) is None
