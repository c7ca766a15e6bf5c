"""
Object mapping handlers - maintain the object class -> observation code table
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status

from inspection_ai.models.domain import ObjectMapping
from inspection_ai.models.requests import MappingRequest, MappingStatusRequest
from inspection_ai.models.responses import MappingListResponse
from inspection_ai.infrastructure.mappings.base_store import BaseMappingStore
from inspection_ai.api.dependencies import get_mapping_store
from inspection_ai.core.exceptions import MappingLookupError, MappingNotFoundError
from inspection_ai.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/mappings", tags=["Mappings"])


def _not_found(e: MappingNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "error": "Mapping not found",
            "message": e.message,
            "details": e.details
        }
    )


def _store_error(e: MappingLookupError) -> HTTPException:
    logger.error("Mapping store failed", error=str(e))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "Mapping store failed",
            "message": e.message,
            "details": e.details
        }
    )


@router.get("", response_model=MappingListResponse)
async def list_mappings(
    active_only: bool = False,
    store: BaseMappingStore = Depends(get_mapping_store)
) -> MappingListResponse:
    """List mappings, optionally only the active ones"""
    try:
        mappings = store.list_mappings(active_only=active_only)
    except MappingLookupError as e:
        raise _store_error(e)

    return MappingListResponse(mappings=mappings, total=len(mappings))


@router.put("/{object_class}", response_model=ObjectMapping)
async def upsert_mapping(
    object_class: str,
    request: MappingRequest,
    store: BaseMappingStore = Depends(get_mapping_store)
) -> ObjectMapping:
    """Create or replace the mapping for an object class"""
    try:
        mapping = ObjectMapping(
            object_class=object_class,
            observation_code=request.observation_code,
            confidence_threshold=request.confidence_threshold,
            is_active=request.is_active
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "Invalid mapping",
                "message": str(e)
            }
        )

    try:
        saved = store.upsert(mapping)
    except MappingLookupError as e:
        raise _store_error(e)

    return saved


@router.patch("/{object_class}", response_model=ObjectMapping)
async def set_mapping_active(
    object_class: str,
    request: MappingStatusRequest,
    store: BaseMappingStore = Depends(get_mapping_store)
) -> ObjectMapping:
    """Activate or deactivate a mapping"""
    try:
        return store.set_active(object_class, request.is_active)
    except MappingNotFoundError as e:
        raise _not_found(e)
    except MappingLookupError as e:
        raise _store_error(e)


@router.delete("/{object_class}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_mapping(
    object_class: str,
    store: BaseMappingStore = Depends(get_mapping_store)
) -> Response:
    """Delete a mapping"""
    try:
        store.delete(object_class)
    except MappingNotFoundError as e:
        raise _not_found(e)
    except MappingLookupError as e:
        raise _store_error(e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
