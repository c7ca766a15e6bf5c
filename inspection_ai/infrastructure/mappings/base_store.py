"""
Abstract base class for object mapping stores
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from inspection_ai.models.domain import ObjectMapping


class BaseMappingStore(ABC):
    """
    Storage for object class -> observation code mappings

    Object classes are always stored and looked up lower-cased.
    """

    @abstractmethod
    def get_active(self, object_class: str) -> Optional[ObjectMapping]:
        """Active mapping for a lower-cased object class, or None"""
        pass

    @abstractmethod
    def list_mappings(self, active_only: bool = False) -> List[ObjectMapping]:
        """All mappings ordered by object class"""
        pass

    @abstractmethod
    def upsert(self, mapping: ObjectMapping) -> ObjectMapping:
        """Create or replace the mapping for mapping.object_class"""
        pass

    @abstractmethod
    def delete(self, object_class: str) -> None:
        """
        Remove a mapping

        Raises:
            MappingNotFoundError: No mapping for the object class
        """
        pass

    @abstractmethod
    def set_active(self, object_class: str, is_active: bool) -> ObjectMapping:
        """
        Activate or deactivate a mapping

        Raises:
            MappingNotFoundError: No mapping for the object class
        """
        pass
