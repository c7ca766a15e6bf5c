"""
Maps detected object classes to observation codes
"""
from typing import Optional

from inspection_ai.core.logging import get_logger
from inspection_ai.infrastructure.mappings.base_store import BaseMappingStore

logger = get_logger(__name__)


class ObjectCodeResolver:
    """
    Resolves an object class through the active mapping table

    A code suggestion is optional, so lookup failures are logged and
    reported as "no mapping".
    """

    def __init__(self, store: BaseMappingStore):
        self.store = store

    def resolve(self, class_name: str) -> Optional[str]:
        """
        Args:
            class_name: Detected object class, any case

        Returns:
            Observation code, or None if there is no active mapping
        """
        object_class = (class_name or "").strip().lower()
        if not object_class:
            return None

        try:
            mapping = self.store.get_active(object_class)
        except Exception as e:
            logger.error(
                "Error getting observation code mapping",
                object_class=object_class,
                error=str(e),
                error_type=type(e).__name__
            )
            return None

        if mapping is None:
            logger.info("No mapping found for object class", object_class=object_class)
            return None

        logger.info(
            "Found observation code mapping",
            object_class=object_class,
            observation_code=mapping.observation_code
        )
        return mapping.observation_code
