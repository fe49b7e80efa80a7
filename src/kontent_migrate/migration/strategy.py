"""Import strategy interfaces and per-kind implementations."""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from ..api.exceptions import (
    KontentAPIError,
    KontentAuthenticationError,
    KontentPermissionError,
)
from ..models.asset import Asset, BinaryFile
from ..models.base import ContractModel, EntityKind, ReferenceSlot
from ..models.content_item import ContentItem
from ..models.content_type import ContentType, ContentTypeSnippet
from ..models.elements import ALLOWED_TYPE_FIELDS
from ..models.language import NO_FALLBACK_LANGUAGE_ID, Language
from ..models.language_variant import LanguageVariant
from ..models.source import SourceIndex
from ..models.taxonomy import Taxonomy
from .exceptions import ImportValidationError, RemoteRejectionError
from .rewriter import ReferenceRewriter, get_path
from .translation import TranslationTable


class ItemState(str, Enum):
    """Processing state of one import item."""

    PENDING = 'pending'
    REWRITING = 'rewriting'
    SUBMITTING = 'submitting'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    SKIPPED = 'skipped'


class ImportResult(BaseModel):
    """Result of one successfully imported entity."""

    kind: EntityKind = Field(..., description='Entity kind')
    title: str = Field(..., description='Display title')
    original: ContractModel = Field(..., description='Entity as captured')
    imported: Dict[str, Any] = Field(
        default_factory=dict, description='Entity as created in the target'
    )
    original_id: str = Field(..., description='Source identifier')
    import_id: str = Field(..., description='Target identifier')
    target_codename: Optional[str] = Field(
        default=None, description='Codename in the target project'
    )
    completed_at: datetime = Field(
        default_factory=datetime.now, description='Completion time'
    )


class ImportFailure(BaseModel):
    """Entity the target rejected while the run continued."""

    kind: EntityKind = Field(..., description='Entity kind')
    title: str = Field(..., description='Display title')
    source_id: str = Field(..., description='Source identifier')
    error_type: str = Field(..., description='Exception class name')
    error_message: str = Field(..., description='Error message')
    field: Optional[str] = Field(default=None, description='Offending field')
    status_code: Optional[int] = Field(default=None, description='HTTP status')


class DeferredPatch(BaseModel):
    """Allowed-type list to restore once all content types exist."""

    kind: EntityKind = Field(..., description='Kind of the patched entity')
    source_id: str = Field(..., description='Source id of the patched entity')
    element_codename: str = Field(..., description='Codename of the element')
    field: str = Field(..., description='Element field to replace')
    value: List[Dict[str, Any]] = Field(..., description='Full reference list')

    def to_operation(self) -> Dict[str, Any]:
        """JSON patch operation restoring the list."""
        return {
            'op': 'replace',
            'path': f'/elements/codename:{self.element_codename}/{self.field}',
            'value': self.value,
        }


class PreparedPayload(BaseModel):
    """Request body built from an entity before any remote call."""

    payload: Dict[str, Any] = Field(..., description='Request body')
    substitutions: int = Field(default=0, description='References rewritten')
    deferred: List[DeferredPatch] = Field(
        default_factory=list, description='References patched after the run'
    )
    binary_file: Optional[BinaryFile] = Field(
        default=None, description='File content uploaded with an asset'
    )


class ImportContext(BaseModel):
    """Context shared by the strategies of one run."""

    client: Any = Field(..., description='Target Management API client')
    table: TranslationTable = Field(..., description='Identifier translations')
    index: SourceIndex = Field(
        default_factory=SourceIndex, description='Source codename lookups'
    )
    binary_files: Dict[str, BinaryFile] = Field(
        default_factory=dict, description='Binary payloads by source asset id'
    )
    workflow_step_id: str = Field(
        ..., description='Workflow step assigned to imported variants'
    )
    resolve_intra_kind_references: bool = Field(
        default=False, description='Defer references to not yet created types'
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class ImportStrategy(ABC):
    """Abstract base class for per-kind import strategies."""

    kind: EntityKind

    def __init__(self, context: ImportContext):
        """Initialize import strategy.

        Args:
            context: Import context with client, table and settings
        """
        self.context = context
        self.rewriter = ReferenceRewriter(context.table, context.workflow_step_id)
        self.logger = logger.bind(strategy=self.__class__.__name__)

    @abstractmethod
    def prepare(self, entity: ContractModel) -> PreparedPayload:
        """Validate an entity and build its request body.

        Makes no remote calls and leaves the entity untouched.

        Args:
            entity: Entity to import

        Returns:
            Prepared request body

        Raises:
            ImportValidationError: Required data is missing
            ReferenceResolutionError: A required reference is not translated
        """
        pass

    @abstractmethod
    async def submit(
        self, entity: ContractModel, prepared: PreparedPayload
    ) -> ImportResult:
        """Create the entity in the target project.

        Args:
            entity: Entity to import
            prepared: Output of :meth:`prepare`

        Returns:
            Import result

        Raises:
            RemoteRejectionError: The target rejected the request
        """
        pass

    async def import_entity(self, entity: ContractModel) -> ImportResult:
        """Prepare and submit a single entity."""
        return await self.submit(entity, self.prepare(entity))

    async def _call(self, entity: ContractModel, operation) -> Dict[str, Any]:
        """Await a client call, turning rejections into pipeline errors."""
        try:
            return await operation
        except (KontentAuthenticationError, KontentPermissionError):
            raise
        except KontentAPIError as e:
            self.logger.warning(
                f'{entity.kind.value} {entity.display_title} rejected: {e}'
            )
            raise RemoteRejectionError(
                str(e),
                kind=entity.kind,
                source_id=entity.source_id,
                status_code=e.status_code,
            ) from e

    def create_result(
        self,
        entity: ContractModel,
        imported: Optional[Dict[str, Any]],
        import_id: Optional[str] = None,
    ) -> ImportResult:
        """Create an import result from the target's response.

        Args:
            entity: Imported entity
            imported: Response body of the create call
            import_id: Target id when it is not the response ``id``

        Returns:
            Import result
        """
        imported = imported or {}
        return ImportResult(
            kind=entity.kind,
            title=entity.display_title,
            original=entity,
            imported=imported,
            original_id=entity.source_id,
            import_id=import_id or imported.get('id') or '',
            target_codename=imported.get('codename'),
        )


class LanguageImportStrategy(ImportStrategy):
    """Strategy for importing languages."""

    kind = EntityKind.LANGUAGE

    def prepare(self, language: Language) -> PreparedPayload:
        fallback = language.fallback_language
        fallback_codename = None
        if fallback is not None:
            fallback_codename = fallback.codename or self.context.index.codename_of(
                EntityKind.LANGUAGE, fallback.id
            )

        if language.falls_back_to_itself(fallback_codename):
            fallback_ref = {'id': NO_FALLBACK_LANGUAGE_ID}
        elif fallback_codename:
            fallback_ref = {'codename': fallback_codename}
        else:
            raise ImportValidationError(
                f'Language {language.codename} has no fallback language codename',
                kind=self.kind,
                source_id=language.id,
                field='fallback_language',
            )

        payload: Dict[str, Any] = {
            'name': language.name,
            'codename': language.codename,
            'is_active': language.is_active,
            'fallback_language': fallback_ref,
        }
        if language.external_id:
            payload['external_id'] = language.external_id

        return PreparedPayload(payload=payload, substitutions=1)

    async def submit(
        self, language: Language, prepared: PreparedPayload
    ) -> ImportResult:
        self.logger.info(f'Importing language: {language.codename}')
        response = await self._call(
            language, self.context.client.add_language(prepared.payload)
        )
        return self.create_result(language, response)


class TaxonomyImportStrategy(ImportStrategy):
    """Strategy for importing taxonomy groups."""

    kind = EntityKind.TAXONOMY

    def prepare(self, taxonomy: Taxonomy) -> PreparedPayload:
        return PreparedPayload(payload=taxonomy.to_create_payload())

    async def submit(
        self, taxonomy: Taxonomy, prepared: PreparedPayload
    ) -> ImportResult:
        self.logger.info(f'Importing taxonomy: {taxonomy.codename}')
        response = await self._call(
            taxonomy, self.context.client.add_taxonomy(prepared.payload)
        )
        return self.create_result(taxonomy, response)


class AssetImportStrategy(ImportStrategy):
    """Strategy for importing assets together with their binary content."""

    kind = EntityKind.ASSET

    def prepare(self, asset: Asset) -> PreparedPayload:
        binary_file = self.context.binary_files.get(asset.id)
        if binary_file is None:
            raise ImportValidationError(
                f'No binary file for asset {asset.file_name} ({asset.id})',
                kind=self.kind,
                source_id=asset.id,
            )

        rewritten = self.rewriter.rewrite(asset, self.context.index)
        return PreparedPayload(
            payload=rewritten.payload,
            substitutions=rewritten.substitutions,
            binary_file=binary_file,
        )

    async def submit(self, asset: Asset, prepared: PreparedPayload) -> ImportResult:
        binary_file = prepared.binary_file
        if binary_file is None:
            raise ImportValidationError(
                f'Asset {asset.id} was prepared without binary content',
                kind=self.kind,
                source_id=asset.id,
            )

        self.logger.info(f'Importing asset: {asset.file_name}')
        file_reference = await self._call(
            asset,
            self.context.client.upload_binary_file(
                binary_file.filename, binary_file.content_type, binary_file.data
            ),
        )
        response = await self._call(
            asset,
            self.context.client.add_asset(
                Asset.to_create_payload(prepared.payload, file_reference)
            ),
        )
        return self.create_result(asset, response)


class _ElementContainerImportStrategy(ImportStrategy):
    """Shared logic of content type and snippet imports."""

    def prepare(self, entity: ContentTypeSnippet) -> PreparedPayload:
        slots = list(entity.reference_slots(self.context.index))
        deferred_slots: List[ReferenceSlot] = []
        deferred: List[DeferredPatch] = []

        if self.context.resolve_intra_kind_references:
            deferred_slots, deferred = self._defer_forward_references(entity, slots)

        rewritten = self.rewriter.rewrite(
            entity,
            self.context.index,
            slots=[slot for slot in slots if slot not in deferred_slots],
        )
        payload = rewritten.payload

        # Highest indexes first so earlier positions stay valid.
        for slot in sorted(deferred_slots, key=lambda s: s.path, reverse=True):
            element_index, field, position = slot.path[1], slot.path[2], slot.path[3]
            del payload['elements'][element_index][field][position]

        return PreparedPayload(
            payload=entity.to_create_payload(payload),
            substitutions=rewritten.substitutions,
            deferred=deferred,
        )

    def _defer_forward_references(
        self, entity: ContentTypeSnippet, slots: List[ReferenceSlot]
    ) -> Tuple[List[ReferenceSlot], List[DeferredPatch]]:
        original = entity.to_payload()
        groups: Dict[Tuple[int, str], List[ReferenceSlot]] = {}

        for slot in slots:
            if (
                slot.kind == EntityKind.CONTENT_TYPE
                and len(slot.path) == 4
                and slot.path[2] in ALLOWED_TYPE_FIELDS
            ):
                groups.setdefault((slot.path[1], slot.path[2]), []).append(slot)

        deferred_slots: List[ReferenceSlot] = []
        deferred: List[DeferredPatch] = []

        for (element_index, field), group in groups.items():
            pending = [
                slot for slot in group if self._is_forward(original, slot)
            ]
            if not pending:
                continue

            for slot in group:
                if not slot.codename:
                    raise ImportValidationError(
                        f'Missing codename for {slot.field_name} of '
                        f'{entity.kind.value} {entity.source_id}',
                        kind=entity.kind,
                        source_id=entity.source_id,
                        field=slot.field_name,
                    )

            element = entity.elements[element_index]
            deferred_slots.extend(pending)
            deferred.append(
                DeferredPatch(
                    kind=entity.kind,
                    source_id=entity.source_id,
                    element_codename=element.get('codename') or '',
                    field=field,
                    value=[{'codename': slot.codename} for slot in group],
                )
            )
            self.logger.debug(
                f'Deferring {len(pending)} {field} reference(s) of '
                f'{entity.codename}.{element.get("codename")}'
            )

        return deferred_slots, deferred

    def _is_forward(self, original: Dict[str, Any], slot: ReferenceSlot) -> bool:
        ref = get_path(original, slot.path)
        type_id = ref.get('id') if isinstance(ref, dict) else None
        if not type_id:
            return False
        return self.context.table.lookup(EntityKind.CONTENT_TYPE, type_id) is None


class ContentTypeSnippetImportStrategy(_ElementContainerImportStrategy):
    """Strategy for importing content type snippets."""

    kind = EntityKind.CONTENT_TYPE_SNIPPET

    async def submit(
        self, snippet: ContentTypeSnippet, prepared: PreparedPayload
    ) -> ImportResult:
        self.logger.info(f'Importing content type snippet: {snippet.codename}')
        response = await self._call(
            snippet, self.context.client.add_content_type_snippet(prepared.payload)
        )
        return self.create_result(snippet, response)


class ContentTypeImportStrategy(_ElementContainerImportStrategy):
    """Strategy for importing content types."""

    kind = EntityKind.CONTENT_TYPE

    async def submit(
        self, content_type: ContentType, prepared: PreparedPayload
    ) -> ImportResult:
        self.logger.info(f'Importing content type: {content_type.codename}')
        response = await self._call(
            content_type, self.context.client.add_content_type(prepared.payload)
        )
        return self.create_result(content_type, response)


class ContentItemImportStrategy(ImportStrategy):
    """Strategy for importing content items."""

    kind = EntityKind.CONTENT_ITEM

    def prepare(self, item: ContentItem) -> PreparedPayload:
        if not item.type_codename(self.context.index):
            raise ImportValidationError(
                f'Content item {item.codename} has no content type codename',
                kind=self.kind,
                source_id=item.id,
                field='type',
            )

        rewritten = self.rewriter.rewrite(item, self.context.index)
        return PreparedPayload(
            payload=ContentItem.to_create_payload(rewritten.payload),
            substitutions=rewritten.substitutions,
        )

    async def submit(
        self, item: ContentItem, prepared: PreparedPayload
    ) -> ImportResult:
        self.logger.info(f'Importing content item: {item.codename}')
        response = await self._call(
            item, self.context.client.add_content_item(prepared.payload)
        )
        return self.create_result(item, response)


class LanguageVariantImportStrategy(ImportStrategy):
    """Strategy for importing language variants.

    Variants are upserted by item and language codename: the target id of
    the variant does not exist before the call. The workflow step is always
    replaced by the configured step because workflows cannot be created
    through the API.
    """

    kind = EntityKind.LANGUAGE_VARIANT

    def prepare(self, variant: LanguageVariant) -> PreparedPayload:
        index = self.context.index
        if not variant.item_codename(index):
            raise ImportValidationError(
                f'Language variant {variant.display_title} has no item codename',
                kind=self.kind,
                source_id=variant.source_id,
                field='item',
            )
        if not variant.language_codename(index):
            raise ImportValidationError(
                f'Language variant {variant.display_title} has no language codename',
                kind=self.kind,
                source_id=variant.source_id,
                field='language',
            )

        rewritten = self.rewriter.rewrite(variant, index)
        return PreparedPayload(
            payload=LanguageVariant.to_upsert_payload(rewritten.payload),
            substitutions=rewritten.substitutions,
        )

    async def submit(
        self, variant: LanguageVariant, prepared: PreparedPayload
    ) -> ImportResult:
        index = self.context.index
        item_codename = variant.item_codename(index)
        language_codename = variant.language_codename(index)

        self.logger.info(f'Importing language variant: {variant.display_title}')
        response = await self._call(
            variant,
            self.context.client.upsert_language_variant(
                item_codename, language_codename, prepared.payload
            ),
        )

        item_id = ((response or {}).get('item') or {}).get('id')
        if not item_id:
            entry = self.context.table.lookup(EntityKind.CONTENT_ITEM, variant.source_id)
            item_id = entry.target_id if entry else None

        result = self.create_result(variant, response, import_id=item_id)
        return result.model_copy(
            update={'title': f'{item_codename} ({language_codename})'}
        )


STRATEGIES: Dict[EntityKind, Type[ImportStrategy]] = {
    EntityKind.LANGUAGE: LanguageImportStrategy,
    EntityKind.TAXONOMY: TaxonomyImportStrategy,
    EntityKind.ASSET: AssetImportStrategy,
    EntityKind.CONTENT_TYPE_SNIPPET: ContentTypeSnippetImportStrategy,
    EntityKind.CONTENT_TYPE: ContentTypeImportStrategy,
    EntityKind.CONTENT_ITEM: ContentItemImportStrategy,
    EntityKind.LANGUAGE_VARIANT: LanguageVariantImportStrategy,
}
