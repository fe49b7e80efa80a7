"""Content type and content type snippet models."""

from typing import Any, ClassVar, Dict, Iterator, List, Optional

from pydantic import Field

from .base import ContractModel, EntityKind, ReferenceSlot
from .elements import ALLOWED_TYPE_FIELDS, definition_slots, strip_definition_ids


class _ElementContainer(ContractModel):
    """Entity made of element definitions."""

    id: str = Field(..., description='Source ID')
    name: str = Field(..., description='Display name')
    codename: str = Field(..., description='Codename')
    external_id: Optional[str] = Field(default=None, description='External ID')
    elements: List[Dict[str, Any]] = Field(
        default_factory=list, description='Element definitions'
    )

    def reference_slots(self, index: Any = None) -> Iterator[ReferenceSlot]:
        return definition_slots(self.elements, index)

    def referenced_type_ids(self) -> List[str]:
        """Source ids of content types allowed by any element, in order."""
        type_ids: List[str] = []
        for element in self.elements:
            for field in ALLOWED_TYPE_FIELDS:
                for ref in element.get(field) or []:
                    if ref.get('id') and ref['id'] not in type_ids:
                        type_ids.append(ref['id'])
        return type_ids

    def to_create_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Build the create request body from a rewritten payload."""
        return strip_definition_ids(payload)


class ContentTypeSnippet(_ElementContainer):
    """Reusable group of element definitions."""

    kind: ClassVar[EntityKind] = EntityKind.CONTENT_TYPE_SNIPPET


class ContentType(_ElementContainer):
    """Content type definition."""

    kind: ClassVar[EntityKind] = EntityKind.CONTENT_TYPE

    content_groups: Optional[List[Dict[str, Any]]] = Field(
        default=None, description='Content groups'
    )

    def reference_slots(self, index: Any = None) -> Iterator[ReferenceSlot]:
        return definition_slots(self.elements, index, self.content_groups)
