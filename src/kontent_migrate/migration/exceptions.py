"""Errors raised by the import pipeline."""

from typing import Any, List, Optional

from ..models.base import EntityKind


class MigrationError(Exception):
    """Base exception for import pipeline errors.

    Carries the kind and source id of the entity that failed and, once the
    orchestrator has seen it, the results completed before the failure.
    """

    def __init__(
        self,
        message: str,
        kind: Optional[EntityKind] = None,
        source_id: Optional[str] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.source_id = source_id
        self.field = field
        self.results: List[Any] = []


class ImportValidationError(MigrationError):
    """Entity is missing data required before any remote call is made."""

    pass


class ReferenceResolutionError(MigrationError):
    """A required reference has no counterpart in the target project."""

    def __init__(
        self,
        message: str,
        kind: Optional[EntityKind] = None,
        source_id: Optional[str] = None,
        field: Optional[str] = None,
        missing_kind: Optional[EntityKind] = None,
        missing_id: Optional[str] = None,
    ):
        super().__init__(message, kind=kind, source_id=source_id, field=field)
        self.missing_kind = missing_kind
        self.missing_id = missing_id


class RemoteRejectionError(MigrationError):
    """Target project rejected the entity (after retries, if any)."""

    def __init__(
        self,
        message: str,
        kind: Optional[EntityKind] = None,
        source_id: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, kind=kind, source_id=source_id)
        self.status_code = status_code


class TranslationNotFoundError(KeyError):
    """No translation entry for a (kind, source id) pair."""

    def __init__(self, kind: Optional[EntityKind], source_id: str):
        super().__init__(f'No translation for {_kind_label(kind)} {source_id}')
        self.kind = kind
        self.source_id = source_id


class TranslationConflictError(ValueError):
    """A source id was registered twice with different target ids."""

    def __init__(self, kind: EntityKind, source_id: str, existing: str, new: str):
        super().__init__(
            f'{_kind_label(kind)} {source_id} is already translated to '
            f'{existing}, refusing {new}'
        )
        self.kind = kind
        self.source_id = source_id
        self.existing_target_id = existing
        self.new_target_id = new


def _kind_label(kind: Optional[EntityKind]) -> str:
    return kind.value if kind is not None else 'entity'
