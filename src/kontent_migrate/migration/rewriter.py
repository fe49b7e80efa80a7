"""Rewriting of source references into target references."""

import copy
from typing import Any, Dict, Iterable, Optional, Tuple

from bs4 import BeautifulSoup
from pydantic import BaseModel, Field

from ..models.base import ContractModel, EntityKind, PathSegment, ReferenceMode, ReferenceSlot
from ..utils.logging import get_logger
from .exceptions import ImportValidationError, ReferenceResolutionError
from .translation import TranslationTable

# Attributes carrying ids inside rich text HTML.
_ATTRIBUTE_KINDS = {
    'data-asset-id': EntityKind.ASSET,
    'data-item-id': EntityKind.CONTENT_ITEM,
}

MISSING = object()


class RewriteResult(BaseModel):
    """Rewritten payload and the number of references replaced."""

    payload: Dict[str, Any] = Field(..., description='Rewritten payload')
    substitutions: int = Field(default=0, description='References replaced')


class ReferenceRewriter:
    """Replaces source references with references valid in the target project.

    Works over the reference slots every contract exposes, so one traversal
    serves all kinds. The entity itself is never modified; a detached payload
    copy is rewritten and returned.
    """

    def __init__(
        self, table: TranslationTable, workflow_step_id: Optional[str] = None
    ):
        """Initialize rewriter.

        Args:
            table: Translation table filled by earlier imports
            workflow_step_id: Workflow step forced on imported variants
        """
        self.table = table
        self.workflow_step_id = workflow_step_id
        self.logger = get_logger('ReferenceRewriter')

    def rewrite(
        self,
        entity: ContractModel,
        index: Any = None,
        slots: Optional[Iterable[ReferenceSlot]] = None,
    ) -> RewriteResult:
        """Rewrite every reference of an entity.

        Args:
            entity: Entity contract
            index: Source index used to fill in codenames
            slots: Slots to rewrite (defaults to all slots of the entity)

        Returns:
            Rewritten payload copy with substitution count

        Raises:
            ImportValidationError: Codename-addressed reference without codename
            ReferenceResolutionError: Required reference not in the table
        """
        payload = copy.deepcopy(entity.to_payload())
        if slots is None:
            slots = entity.reference_slots(index)

        substitutions = 0
        for slot in slots:
            substitutions += self._rewrite_slot(entity, payload, slot)

        return RewriteResult(payload=payload, substitutions=substitutions)

    def _rewrite_slot(
        self, entity: ContractModel, payload: Dict[str, Any], slot: ReferenceSlot
    ) -> int:
        if slot.mode == ReferenceMode.WORKFLOW_STEP:
            if not self.workflow_step_id:
                raise ImportValidationError(
                    'No workflow step configured for imported variants',
                    kind=entity.kind,
                    source_id=entity.source_id,
                    field=slot.field_name,
                )
            set_path(payload, slot.path, {'id': self.workflow_step_id})
            return 1

        node = get_path(payload, slot.path)
        if node is MISSING or node is None:
            return 0

        if slot.mode == ReferenceMode.CODENAME:
            if not slot.codename:
                if not slot.required:
                    return 0
                raise ImportValidationError(
                    f'Missing codename for {slot.field_name} of '
                    f'{entity.kind.value} {entity.source_id}',
                    kind=entity.kind,
                    source_id=entity.source_id,
                    field=slot.field_name,
                )
            set_path(payload, slot.path, {'codename': slot.codename})
            return 1

        if slot.mode == ReferenceMode.RICH_TEXT:
            html, count = self._rewrite_rich_text(entity, node, slot)
            set_path(payload, slot.path, html)
            return count

        source_id = node.get('id') if isinstance(node, dict) else None
        if not source_id:
            return 0

        target_id = self._translate(entity, slot.kind, source_id, slot)
        if target_id is None:
            return 0
        set_path(payload, slot.path, {'id': target_id})
        return 1

    def _translate(
        self,
        entity: ContractModel,
        kind: Optional[EntityKind],
        source_id: str,
        slot: ReferenceSlot,
    ) -> Optional[str]:
        if kind is None:
            entry = self.table.find(source_id)
        else:
            entry = self.table.lookup(kind, source_id)

        if entry is not None:
            return entry.target_id

        if not slot.required:
            self.logger.debug(
                f'Leaving unresolved optional reference {slot.field_name} '
                f'({source_id})'
            )
            return None

        label = kind.value if kind is not None else 'entity'
        raise ReferenceResolutionError(
            f'Cannot resolve {label} {source_id} referenced by {slot.field_name} '
            f'of {entity.kind.value} {entity.source_id}',
            kind=entity.kind,
            source_id=entity.source_id,
            field=slot.field_name,
            missing_kind=kind,
            missing_id=source_id,
        )

    def _rewrite_rich_text(
        self, entity: ContractModel, html: str, slot: ReferenceSlot
    ) -> Tuple[str, int]:
        soup = BeautifulSoup(html, 'html.parser')
        count = 0

        for attribute, kind in _ATTRIBUTE_KINDS.items():
            for tag in soup.select(f'[{attribute}]'):
                if not tag[attribute]:
                    continue
                target_id = self._translate(entity, kind, tag[attribute], slot)
                if target_id is not None:
                    tag[attribute] = target_id
                    count += 1

        for tag in soup.select('object[data-type="item"][data-id]'):
            target_id = self._translate(
                entity, EntityKind.CONTENT_ITEM, tag['data-id'], slot
            )
            if target_id is not None:
                tag['data-id'] = target_id
                count += 1

        # Untouched markup is returned as written, not re-serialized.
        if not count:
            return html, 0
        return str(soup), count


def get_path(payload: Any, path: Tuple[PathSegment, ...]) -> Any:
    """Value at a path, or a sentinel when any segment is missing."""
    node = payload
    for segment in path:
        try:
            node = node[segment]
        except (KeyError, IndexError, TypeError):
            return MISSING
    return node


def set_path(payload: Any, path: Tuple[PathSegment, ...], value: Any) -> None:
    """Replace the value at a path; the parent must exist."""
    parent = payload
    for segment in path[:-1]:
        parent = parent[segment]
    parent[path[-1]] = value
