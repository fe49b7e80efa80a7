"""Language entity models."""

from typing import ClassVar, Optional

from pydantic import Field

from .base import ContractModel, EntityKind, Reference

# Reserved identifier the platform uses for "no fallback language".
NO_FALLBACK_LANGUAGE_ID = '00000000-0000-0000-0000-000000000000'


class Language(ContractModel):
    """Project language."""

    kind: ClassVar[EntityKind] = EntityKind.LANGUAGE

    id: str = Field(..., description='Language ID')
    name: str = Field(..., description='Language name')
    codename: str = Field(..., description='Language codename')
    external_id: Optional[str] = Field(default=None, description='External ID')
    is_active: bool = Field(default=True, description='Language is active')
    is_default: bool = Field(default=False, description='Default project language')
    fallback_language: Optional[Reference] = Field(
        default=None, description='Fallback language reference'
    )

    def falls_back_to_itself(self, fallback_codename: Optional[str]) -> bool:
        """Check whether the fallback points back at this language.

        Args:
            fallback_codename: Resolved codename of the fallback language

        Returns:
            True for a self-referencing fallback
        """
        if self.fallback_language is None:
            return False
        if self.fallback_language.id and self.fallback_language.id == self.id:
            return True
        return fallback_codename == self.codename
