"""Source to target identifier translation."""

from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..models.base import EntityKind
from .exceptions import TranslationConflictError, TranslationNotFoundError


class TranslationEntry(BaseModel):
    """Identifier pair of one created entity."""

    kind: EntityKind = Field(..., description='Entity kind')
    source_id: str = Field(..., description='Identifier in the source project')
    target_id: str = Field(..., description='Identifier in the target project')
    target_codename: Optional[str] = Field(
        default=None, description='Codename in the target project'
    )

    model_config = ConfigDict(frozen=True)


class TranslationTable:
    """Keyed mapping of (kind, source id) to translation entries.

    Entries are written once: target ids are assigned by the target project
    and do not change for the rest of the run.
    """

    def __init__(self, entries: Optional[Iterable[TranslationEntry]] = None):
        self._entries: Dict[Tuple[EntityKind, str], TranslationEntry] = {}
        for entry in entries or []:
            self.register(
                entry.kind, entry.source_id, entry.target_id, entry.target_codename
            )

    def register(
        self,
        kind: EntityKind,
        source_id: str,
        target_id: str,
        target_codename: Optional[str] = None,
    ) -> TranslationEntry:
        """Record the target identifier of a source entity.

        Registering the same pair again is a no-op.

        Args:
            kind: Entity kind
            source_id: Identifier in the source project
            target_id: Identifier in the target project
            target_codename: Codename in the target project

        Returns:
            The stored entry

        Raises:
            TranslationConflictError: If the source id already maps elsewhere
        """
        key = (kind, source_id)
        existing = self._entries.get(key)
        if existing is not None:
            if existing.target_id != target_id:
                raise TranslationConflictError(
                    kind, source_id, existing.target_id, target_id
                )
            return existing

        entry = TranslationEntry(
            kind=kind,
            source_id=source_id,
            target_id=target_id,
            target_codename=target_codename,
        )
        self._entries[key] = entry
        return entry

    def lookup(self, kind: EntityKind, source_id: str) -> Optional[TranslationEntry]:
        """Entry for a source entity, or None."""
        return self._entries.get((kind, source_id))

    def resolve(self, kind: EntityKind, source_id: str) -> str:
        """Target identifier of a source entity.

        Raises:
            TranslationNotFoundError: If the entity was not registered
        """
        entry = self.lookup(kind, source_id)
        if entry is None:
            raise TranslationNotFoundError(kind, source_id)
        return entry.target_id

    def find(
        self, source_id: str, kinds: Optional[Iterable[EntityKind]] = None
    ) -> Optional[TranslationEntry]:
        """Look a source id up across several kinds, first match wins."""
        for kind in kinds if kinds is not None else EntityKind:
            entry = self.lookup(kind, source_id)
            if entry is not None:
                return entry
        return None

    def entries(self) -> List[TranslationEntry]:
        """All entries in registration order."""
        return list(self._entries.values())

    def __contains__(self, key: Tuple[EntityKind, str]) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
