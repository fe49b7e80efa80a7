"""Content item models."""

from typing import Any, ClassVar, Dict, Iterator, Optional

from pydantic import Field

from .base import ContractModel, EntityKind, Reference, ReferenceMode, ReferenceSlot


class ContentItem(ContractModel):
    """Content item shell; the content itself lives in language variants."""

    kind: ClassVar[EntityKind] = EntityKind.CONTENT_ITEM

    id: str = Field(..., description='Content item ID')
    name: str = Field(..., description='Content item name')
    codename: str = Field(..., description='Content item codename')
    type: Reference = Field(..., description='Content type reference')
    external_id: Optional[str] = Field(default=None, description='External ID')

    def type_codename(self, index: Any = None) -> Optional[str]:
        """Codename of the item's content type, if known."""
        if self.type.codename:
            return self.type.codename
        if index is not None and self.type.id:
            return index.codename_of(EntityKind.CONTENT_TYPE, self.type.id)
        return None

    def reference_slots(self, index: Any = None) -> Iterator[ReferenceSlot]:
        yield ReferenceSlot(
            path=('type',),
            kind=EntityKind.CONTENT_TYPE,
            mode=ReferenceMode.CODENAME,
            codename=self.type_codename(index),
        )

    @staticmethod
    def to_create_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
        """Build the create request body from a rewritten payload."""
        body = {
            'name': payload['name'],
            'codename': payload['codename'],
            'type': payload['type'],
        }
        if payload.get('external_id'):
            body['external_id'] = payload['external_id']
        return body
