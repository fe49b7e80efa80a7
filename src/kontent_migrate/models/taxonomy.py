"""Taxonomy group models."""

from typing import Any, ClassVar, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import ContractModel, EntityKind

# Server-managed fields that are not accepted when creating a taxonomy group.
_READ_ONLY_FIELDS = ('id', 'last_modified')


class TaxonomyTerm(BaseModel):
    """Single taxonomy term with nested children."""

    id: Optional[str] = Field(default=None, description='Term ID')
    name: str = Field(..., description='Term name')
    codename: Optional[str] = Field(default=None, description='Term codename')
    external_id: Optional[str] = Field(default=None, description='External ID')
    terms: List['TaxonomyTerm'] = Field(default_factory=list, description='Children')

    model_config = ConfigDict(extra='allow', frozen=True)


class Taxonomy(ContractModel):
    """Taxonomy group."""

    kind: ClassVar[EntityKind] = EntityKind.TAXONOMY

    id: str = Field(..., description='Taxonomy group ID')
    name: str = Field(..., description='Taxonomy group name')
    codename: str = Field(..., description='Taxonomy group codename')
    external_id: Optional[str] = Field(default=None, description='External ID')
    terms: List[TaxonomyTerm] = Field(default_factory=list, description='Terms')

    def iter_terms(self) -> Iterator[TaxonomyTerm]:
        """Walk all terms depth first."""
        yield from _walk_terms(self.terms)

    def to_create_payload(self) -> Dict[str, Any]:
        """Build the create request body, dropping server-managed fields."""
        return _strip_read_only(self.to_payload())


def _walk_terms(terms: List[TaxonomyTerm]) -> Iterator[TaxonomyTerm]:
    for term in terms:
        yield term
        yield from _walk_terms(term.terms)


def _strip_read_only(node: Any) -> Any:
    if isinstance(node, dict):
        return {
            key: _strip_read_only(value)
            for key, value in node.items()
            if key not in _READ_ONLY_FIELDS
        }
    if isinstance(node, list):
        return [_strip_read_only(value) for value in node]
    return node
