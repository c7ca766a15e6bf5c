"""
Mapping stores kept in memory, optionally persisted to a JSON file
"""
import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from inspection_ai.core.exceptions import MappingLookupError, MappingNotFoundError
from inspection_ai.core.logging import get_logger
from inspection_ai.infrastructure.mappings.base_store import BaseMappingStore
from inspection_ai.models.domain import ObjectMapping

logger = get_logger(__name__)


class InMemoryMappingStore(BaseMappingStore):
    """Dictionary-backed store"""

    def __init__(self, mappings: Optional[Dict[str, str]] = None):
        """
        Args:
            mappings: Optional seed of object class -> observation code
        """
        self._lock = threading.Lock()
        self._mappings: Dict[str, ObjectMapping] = {}
        for object_class, code in (mappings or {}).items():
            mapping = ObjectMapping(object_class=object_class, observation_code=code)
            self._mappings[mapping.object_class] = mapping

    def get_active(self, object_class: str) -> Optional[ObjectMapping]:
        mapping = self._mappings.get(object_class.strip().lower())
        if mapping is None or not mapping.is_active:
            return None
        return mapping

    def list_mappings(self, active_only: bool = False) -> List[ObjectMapping]:
        mappings = sorted(self._mappings.values(), key=lambda m: m.object_class)
        if active_only:
            mappings = [m for m in mappings if m.is_active]
        return mappings

    def upsert(self, mapping: ObjectMapping) -> ObjectMapping:
        stored = mapping.model_copy(update={"updated_at": datetime.now(timezone.utc)})
        with self._lock:
            updated = dict(self._mappings)
            updated[stored.object_class] = stored
            self._commit(updated)
        logger.info(
            "Object mapping saved",
            object_class=stored.object_class,
            observation_code=stored.observation_code,
            is_active=stored.is_active
        )
        return stored

    def delete(self, object_class: str) -> None:
        key = object_class.strip().lower()
        with self._lock:
            if key not in self._mappings:
                raise MappingNotFoundError(
                    f"No mapping for object class: {key}",
                    details={"object_class": key}
                )
            updated = dict(self._mappings)
            del updated[key]
            self._commit(updated)
        logger.info("Object mapping deleted", object_class=key)

    def set_active(self, object_class: str, is_active: bool) -> ObjectMapping:
        key = object_class.strip().lower()
        with self._lock:
            mapping = self._mappings.get(key)
            if mapping is None:
                raise MappingNotFoundError(
                    f"No mapping for object class: {key}",
                    details={"object_class": key}
                )
            mapping = mapping.model_copy(
                update={"is_active": is_active, "updated_at": datetime.now(timezone.utc)}
            )
            updated = dict(self._mappings)
            updated[key] = mapping
            self._commit(updated)
        logger.info("Object mapping status changed", object_class=key, is_active=is_active)
        return mapping

    def _commit(self, mappings: Dict[str, ObjectMapping]) -> None:
        """Persist the new table, then make it visible; called with the lock held"""
        self._persist(mappings)
        self._mappings = mappings

    def _persist(self, mappings: Dict[str, ObjectMapping]) -> None:
        """Hook for persistent subclasses"""
        pass


class JsonFileMappingStore(InMemoryMappingStore):
    """
    Store persisted as a JSON list of mappings

    The file is read once at construction and replaced after every change.
    A change only becomes visible once the file has been written.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            logger.info("Mapping file not found, starting empty", path=str(self.path))
            return

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise ValueError("mapping file must contain a JSON list")
            for item in raw:
                mapping = ObjectMapping.model_validate(item)
                self._mappings[mapping.object_class] = mapping
        except (OSError, ValueError, ValidationError) as e:
            logger.error("Failed to load mapping file", path=str(self.path), error=str(e))
            raise MappingLookupError(
                f"Failed to load mapping file {self.path}: {str(e)}",
                details={"path": str(self.path), "error": str(e)}
            )

        logger.info("Mapping file loaded", path=str(self.path), mappings_count=len(self._mappings))

    def _persist(self, mappings: Dict[str, ObjectMapping]) -> None:
        """Write to a sibling temp file and rename it over the mapping file"""
        data = [
            m.model_dump(mode="json")
            for m in sorted(mappings.values(), key=lambda m: m.object_class)
        ]
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            logger.error("Failed to write mapping file", path=str(self.path), error=str(e))
            raise MappingLookupError(
                f"Failed to write mapping file {self.path}: {str(e)}",
                details={"path": str(self.path), "error": str(e)}
            )
