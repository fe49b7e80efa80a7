"""Data models for project entities."""

from .base import EntityKind, Reference, ReferenceMode, ReferenceSlot, ContractModel
from .language import Language, NO_FALLBACK_LANGUAGE_ID
from .taxonomy import Taxonomy, TaxonomyTerm
from .content_type import ContentType, ContentTypeSnippet
from .content_item import ContentItem
from .asset import Asset, BinaryFile
from .language_variant import LanguageVariant
from .source import ElementInfo, ImportItem, ImportSource, SourceIndex

__all__ = [
    'EntityKind',
    'Reference',
    'ReferenceMode',
    'ReferenceSlot',
    'ContractModel',
    'Language',
    'NO_FALLBACK_LANGUAGE_ID',
    'Taxonomy',
    'TaxonomyTerm',
    'ContentType',
    'ContentTypeSnippet',
    'ContentItem',
    'Asset',
    'BinaryFile',
    'LanguageVariant',
    'ElementInfo',
    'ImportItem',
    'ImportSource',
    'SourceIndex',
]
