"""Shared building blocks for entity contracts."""

from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class EntityKind(str, Enum):
    """Entity kinds carried by a project snapshot."""

    LANGUAGE = 'language'
    TAXONOMY = 'taxonomy'
    CONTENT_TYPE_SNIPPET = 'contentTypeSnippet'
    CONTENT_TYPE = 'contentType'
    CONTENT_ITEM = 'contentItem'
    LANGUAGE_VARIANT = 'languageVariant'
    ASSET = 'asset'


class ReferenceMode(str, Enum):
    """How a reference is expressed against the target project."""

    TARGET_ID = 'target_id'
    CODENAME = 'codename'
    WORKFLOW_STEP = 'workflow_step'
    RICH_TEXT = 'rich_text'


PathSegment = Union[str, int]


class ReferenceSlot(BaseModel):
    """Location of a reference inside a payload dictionary."""

    path: Tuple[PathSegment, ...] = Field(..., description='Path from payload root')
    kind: Optional[EntityKind] = Field(
        default=None, description='Kind of the referenced entity (None = any)'
    )
    mode: ReferenceMode = Field(
        default=ReferenceMode.TARGET_ID, description='Addressing mode'
    )
    required: bool = Field(default=True, description='Fail when unresolved')
    codename: Optional[str] = Field(
        default=None, description='Codename to address by (codename mode)'
    )

    model_config = ConfigDict(frozen=True)

    @property
    def field_name(self) -> str:
        """Dotted representation of the slot path."""
        return '.'.join(str(segment) for segment in self.path)


class Reference(BaseModel):
    """Pointer to another entity by id, codename or external id."""

    id: Optional[str] = Field(default=None, description='System identifier')
    codename: Optional[str] = Field(default=None, description='Codename')
    external_id: Optional[str] = Field(default=None, description='External ID')

    model_config = ConfigDict(extra='allow', frozen=True)


class ContractModel(BaseModel):
    """Entity contract exactly as captured from the source project.

    Unknown fields are preserved so the payload can be passed through to the
    target unchanged, and instances are frozen: rewriting always works on a
    dumped copy.
    """

    kind: ClassVar[EntityKind]

    model_config = ConfigDict(extra='allow', frozen=True)

    @property
    def source_id(self) -> str:
        """Identifier registered in the translation table."""
        return self.id  # type: ignore[attr-defined]

    @property
    def display_title(self) -> str:
        """Human readable title used in progress reports."""
        return getattr(self, 'name', None) or self.source_id

    def to_payload(self) -> Dict[str, Any]:
        """Return a detached dictionary copy of the contract."""
        return self.model_dump(mode='json', exclude_none=True)

    def reference_slots(self, index: Any = None) -> Iterator[ReferenceSlot]:
        """Yield every reference-bearing location of the payload.

        Args:
            index: Source index used to fill in codenames

        Returns:
            Iterator over reference slots (empty by default)
        """
        return iter(())
