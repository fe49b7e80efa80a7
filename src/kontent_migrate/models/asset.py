"""Asset and binary file models."""

import base64
from typing import Any, ClassVar, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .base import ContractModel, EntityKind, ReferenceMode, ReferenceSlot


class Asset(ContractModel):
    """Asset metadata captured from the source project."""

    kind: ClassVar[EntityKind] = EntityKind.ASSET

    id: str = Field(..., description='Asset ID')
    file_name: str = Field(..., description='Original file name')
    title: Optional[str] = Field(default=None, description='Asset title')
    type: str = Field(
        default='application/octet-stream', description='MIME type of the file'
    )
    size: Optional[int] = Field(default=None, description='File size in bytes')
    external_id: Optional[str] = Field(default=None, description='External ID')
    descriptions: List[Dict[str, Any]] = Field(
        default_factory=list, description='Per-language descriptions'
    )

    @property
    def display_title(self) -> str:
        return self.file_name

    def reference_slots(self, index: Any = None) -> Iterator[ReferenceSlot]:
        for i, description in enumerate(self.descriptions):
            language = description.get('language') or {}
            codename = language.get('codename')
            if not codename and index is not None and language.get('id'):
                codename = index.codename_of(EntityKind.LANGUAGE, language['id'])
            yield ReferenceSlot(
                path=('descriptions', i, 'language'),
                kind=EntityKind.LANGUAGE,
                mode=ReferenceMode.CODENAME,
                codename=codename,
            )

    @staticmethod
    def to_create_payload(
        payload: Dict[str, Any], file_reference: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Build the create request body from a rewritten payload.

        Args:
            payload: Rewritten asset payload
            file_reference: Reference returned by the binary upload

        Returns:
            Request body for the asset create call
        """
        body: Dict[str, Any] = {
            'file_reference': file_reference,
            'title': payload.get('title'),
            'descriptions': payload.get('descriptions', []),
        }
        if payload.get('external_id'):
            body['external_id'] = payload['external_id']
        return body


class BinaryFile(BaseModel):
    """Raw file content joined to an asset by its source id."""

    asset_id: str = Field(..., description='Source asset ID')
    filename: str = Field(..., description='File name used for upload')
    content_type: str = Field(
        default='application/octet-stream', description='MIME type'
    )
    data: bytes = Field(..., description='File content')

    model_config = ConfigDict(frozen=True)

    @field_validator('data', mode='before')
    @classmethod
    def decode_base64(cls, v):
        """Accept base64 text as produced by JSON snapshots."""
        if isinstance(v, str):
            return base64.b64decode(v)
        return v
