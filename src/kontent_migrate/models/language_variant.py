"""Language variant models."""

from typing import Any, ClassVar, Dict, Iterator, List, Optional

from pydantic import Field

from .base import ContractModel, EntityKind, Reference, ReferenceMode, ReferenceSlot
from .elements import value_slots


class LanguageVariant(ContractModel):
    """Content of one content item in one language."""

    kind: ClassVar[EntityKind] = EntityKind.LANGUAGE_VARIANT

    item: Reference = Field(..., description='Owning content item')
    language: Reference = Field(..., description='Variant language')
    workflow_step: Optional[Reference] = Field(
        default=None, description='Workflow step of the variant'
    )
    elements: List[Dict[str, Any]] = Field(
        default_factory=list, description='Element values'
    )

    @property
    def source_id(self) -> str:
        return self.item.id or ''

    @property
    def display_title(self) -> str:
        item = self.item.codename or self.item.id
        language = self.language.codename or self.language.id
        return f'{item} ({language})'

    def item_codename(self, index: Any = None) -> Optional[str]:
        """Codename of the owning content item, if known."""
        return self._codename(EntityKind.CONTENT_ITEM, self.item, index)

    def language_codename(self, index: Any = None) -> Optional[str]:
        """Codename of the variant language, if known."""
        return self._codename(EntityKind.LANGUAGE, self.language, index)

    @staticmethod
    def _codename(
        kind: EntityKind, ref: Reference, index: Any = None
    ) -> Optional[str]:
        if ref.codename:
            return ref.codename
        if index is not None and ref.id:
            return index.codename_of(kind, ref.id)
        return None

    def reference_slots(self, index: Any = None) -> Iterator[ReferenceSlot]:
        yield ReferenceSlot(
            path=('item',),
            kind=EntityKind.CONTENT_ITEM,
            mode=ReferenceMode.CODENAME,
            codename=self.item_codename(index),
        )
        yield ReferenceSlot(
            path=('language',),
            kind=EntityKind.LANGUAGE,
            mode=ReferenceMode.CODENAME,
            codename=self.language_codename(index),
        )
        yield ReferenceSlot(path=('workflow_step',), mode=ReferenceMode.WORKFLOW_STEP)
        yield from value_slots(self.elements, index)

    @staticmethod
    def to_upsert_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
        """Build the upsert request body from a rewritten payload."""
        body: Dict[str, Any] = {'elements': payload.get('elements', [])}
        if payload.get('workflow_step'):
            body['workflow_step'] = payload['workflow_step']
        return body
