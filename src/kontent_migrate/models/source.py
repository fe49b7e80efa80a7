"""Import source bundle and the lookup index built over it."""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .asset import Asset, BinaryFile
from .base import ContractModel, EntityKind
from .content_item import ContentItem
from .content_type import ContentType, ContentTypeSnippet
from .language import Language
from .language_variant import LanguageVariant
from .taxonomy import Taxonomy


class ImportItem(BaseModel):
    """Unit of work consumed by the import orchestrator."""

    kind: EntityKind = Field(..., description='Entity kind')
    entity: ContractModel = Field(..., description='Entity contract')

    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, entity: ContractModel) -> 'ImportItem':
        """Wrap an entity contract, taking the kind from its class."""
        return cls(kind=entity.kind, entity=entity)

    @property
    def title(self) -> str:
        return self.entity.display_title


class ImportSource(BaseModel):
    """Snapshot of a source project, as produced by an export."""

    languages: List[Language] = Field(default_factory=list)
    taxonomies: List[Taxonomy] = Field(default_factory=list)
    content_type_snippets: List[ContentTypeSnippet] = Field(
        default_factory=list, alias='contentTypeSnippets'
    )
    content_types: List[ContentType] = Field(
        default_factory=list, alias='contentTypes'
    )
    content_items: List[ContentItem] = Field(
        default_factory=list, alias='contentItems'
    )
    language_variants: List[LanguageVariant] = Field(
        default_factory=list, alias='languageVariants'
    )
    assets: List[Asset] = Field(default_factory=list)
    binary_files: List[BinaryFile] = Field(
        default_factory=list, alias='binaryFiles'
    )

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    @classmethod
    def from_export(
        cls,
        export_result: Dict[str, Any],
        binary_files: Optional[Iterable[BinaryFile]] = None,
    ) -> 'ImportSource':
        """Build an import source from an export result.

        Args:
            export_result: Either the full export document (with ``data``)
                or its ``data`` section
            binary_files: Binary payloads to join to assets

        Returns:
            Import source
        """
        data = dict(export_result.get('data', export_result))
        if 'binaryFiles' in export_result and 'binaryFiles' not in data:
            data['binaryFiles'] = export_result['binaryFiles']

        source = cls.model_validate(data)
        if binary_files:
            source = source.model_copy(
                update={'binary_files': [*source.binary_files, *binary_files]}
            )
        return source

    @classmethod
    def from_items(
        cls,
        items: Iterable[ImportItem],
        binary_files: Optional[Iterable[BinaryFile]] = None,
    ) -> 'ImportSource':
        """Group already planned items back into a source bundle."""
        grouped: Dict[EntityKind, List[ContractModel]] = {kind: [] for kind in EntityKind}
        for item in items:
            grouped[item.kind].append(item.entity)

        return cls(
            languages=grouped[EntityKind.LANGUAGE],
            taxonomies=grouped[EntityKind.TAXONOMY],
            content_type_snippets=grouped[EntityKind.CONTENT_TYPE_SNIPPET],
            content_types=grouped[EntityKind.CONTENT_TYPE],
            content_items=grouped[EntityKind.CONTENT_ITEM],
            language_variants=grouped[EntityKind.LANGUAGE_VARIANT],
            assets=grouped[EntityKind.ASSET],
            binary_files=list(binary_files or []),
        )

    @classmethod
    def from_file(cls, snapshot_path: str) -> 'ImportSource':
        """Load an import source from an exported JSON document."""
        snapshot_file = Path(snapshot_path)

        if not snapshot_file.exists():
            raise FileNotFoundError(f'Snapshot file not found: {snapshot_path}')

        with open(snapshot_file, 'r', encoding='utf-8') as f:
            export_result = json.load(f)

        return cls.from_export(export_result)

    def entities(self, kind: EntityKind) -> List[ContractModel]:
        """Entities of one kind in source order."""
        by_kind: Dict[EntityKind, List[Any]] = {
            EntityKind.LANGUAGE: self.languages,
            EntityKind.TAXONOMY: self.taxonomies,
            EntityKind.CONTENT_TYPE_SNIPPET: self.content_type_snippets,
            EntityKind.CONTENT_TYPE: self.content_types,
            EntityKind.CONTENT_ITEM: self.content_items,
            EntityKind.LANGUAGE_VARIANT: self.language_variants,
            EntityKind.ASSET: self.assets,
        }
        return list(by_kind[kind])

    def counts(self) -> Dict[str, int]:
        """Number of entities per kind."""
        return {kind.value: len(self.entities(kind)) for kind in EntityKind}


class ElementInfo(BaseModel):
    """What the snapshot knows about one element definition."""

    codename: Optional[str] = None
    type: Optional[str] = None
    options: Dict[str, str] = Field(
        default_factory=dict, description='Multiple choice option codenames by id'
    )


class SourceIndex:
    """Codename lookups over a source snapshot.

    References captured from the source frequently carry only an id. Ids
    change between projects while codenames do not, so references the target
    can address by codename are filled in from here.
    """

    def __init__(self, source: Optional[ImportSource] = None):
        self._codenames: Dict[Tuple[EntityKind, str], str] = {}
        self._elements: Dict[str, ElementInfo] = {}
        self._elements_by_codename: Dict[str, ElementInfo] = {}
        self._terms: Dict[str, str] = {}

        if source is not None:
            self._index(source)

    def _index(self, source: ImportSource) -> None:
        for kind in EntityKind:
            for entity in source.entities(kind):
                codename = getattr(entity, 'codename', None)
                entity_id = getattr(entity, 'id', None)
                if codename and entity_id:
                    self._codenames[(kind, entity_id)] = codename

        for container in [*source.content_type_snippets, *source.content_types]:
            for element in container.elements:
                info = ElementInfo(
                    codename=element.get('codename'),
                    type=element.get('type'),
                    options={
                        option['id']: option['codename']
                        for option in element.get('options') or []
                        if option.get('id') and option.get('codename')
                    },
                )
                if element.get('id'):
                    self._elements[element['id']] = info
                if info.codename:
                    self._index_codename(info)

        for taxonomy in source.taxonomies:
            for term in taxonomy.iter_terms():
                if term.id and term.codename:
                    self._terms[term.id] = term.codename

    def _index_codename(self, info: ElementInfo) -> None:
        # Codenames are only unique within a type. One shared by elements of
        # different types keeps no type, so its values resolve by id alone.
        existing = self._elements_by_codename.get(info.codename)
        if existing is None:
            self._elements_by_codename[info.codename] = info.model_copy(deep=True)
        elif existing.type != info.type:
            self._elements_by_codename[info.codename] = ElementInfo(
                codename=info.codename
            )
        else:
            existing.options.update(info.options)

    def codename_of(self, kind: EntityKind, source_id: Optional[str]) -> Optional[str]:
        """Codename of a source entity."""
        if not source_id:
            return None
        return self._codenames.get((kind, source_id))

    def element(self, element_id: Optional[str]) -> Optional[ElementInfo]:
        """Element definition metadata by element id."""
        if not element_id:
            return None
        return self._elements.get(element_id)

    def term_codename(self, term_id: Optional[str]) -> Optional[str]:
        """Taxonomy term codename by term id."""
        if not term_id:
            return None
        return self._terms.get(term_id)

    def element_by_codename(self, codename: Optional[str]) -> Optional[ElementInfo]:
        """Element definition metadata by element codename."""
        if not codename:
            return None
        return self._elements_by_codename.get(codename)

    def resolve_element(self, element_ref: Dict[str, Any]) -> Optional[ElementInfo]:
        """Element metadata for a value's element reference, by id or codename."""
        return self.element(element_ref.get('id')) or self.element_by_codename(
            element_ref.get('codename')
        )
