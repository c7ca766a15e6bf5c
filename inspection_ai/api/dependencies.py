"""
FastAPI dependencies for dependency injection
"""
from functools import lru_cache

from inspection_ai.config import get_settings
from inspection_ai.core.exceptions import MappingLookupError
from inspection_ai.infrastructure.inference.base_client import BaseInferenceClient
from inspection_ai.infrastructure.inference.runpod_client import RunPodInferenceClient
from inspection_ai.infrastructure.mappings.base_store import BaseMappingStore
from inspection_ai.infrastructure.mappings.memory_store import (
    InMemoryMappingStore,
    JsonFileMappingStore,
)
from inspection_ai.models.domain import AISettings
from inspection_ai.services.analysis_service import AnalysisService
from inspection_ai.services.object_code_resolver import ObjectCodeResolver
from inspection_ai.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache()
def get_mapping_store() -> BaseMappingStore:
    """
    Return the object mapping store (singleton)
    Backed by OBJECT_MAPPINGS_FILE when it is set, in memory otherwise.
    An unreadable file leaves the service running with no mappings.
    """
    settings = get_settings()

    if settings.OBJECT_MAPPINGS_FILE:
        logger.info("Using JSON mapping store", path=settings.OBJECT_MAPPINGS_FILE)
        try:
            return JsonFileMappingStore(settings.OBJECT_MAPPINGS_FILE)
        except MappingLookupError as e:
            logger.error(
                "Mapping file unusable, falling back to empty in-memory store",
                path=settings.OBJECT_MAPPINGS_FILE,
                error=e.message
            )
            return InMemoryMappingStore()

    logger.info("Using in-memory mapping store")
    return InMemoryMappingStore()


@lru_cache()
def get_object_code_resolver() -> ObjectCodeResolver:
    """Return the object code resolver (singleton)"""
    return ObjectCodeResolver(get_mapping_store())


def build_inference_client(ai_settings: AISettings) -> BaseInferenceClient:
    """Build a RunPod client for the key carried by the caller's settings"""
    settings = get_settings()

    return RunPodInferenceClient(
        api_key=ai_settings.api_key,
        endpoint=settings.RUNPOD_ENDPOINT,
        timeout_seconds=settings.INFERENCE_TIMEOUT_SECONDS
    )


@lru_cache()
def get_analysis_service() -> AnalysisService:
    """Return the analysis service (singleton)"""
    settings = get_settings()

    return AnalysisService(
        client_factory=build_inference_client,
        resolver=get_object_code_resolver(),
        default_frame_height=settings.DEFAULT_FRAME_HEIGHT
    )
