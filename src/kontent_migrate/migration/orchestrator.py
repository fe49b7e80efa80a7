"""Import orchestrator driving planned items through the strategies."""

from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from pydantic import BaseModel, Field

from ..config.config import FailurePolicy
from ..models.asset import BinaryFile
from ..models.base import EntityKind
from ..models.source import ImportItem, ImportSource, SourceIndex
from ..utils.logging import get_logger
from .exceptions import (
    MigrationError,
    ReferenceResolutionError,
    RemoteRejectionError,
)
from .strategy import (
    STRATEGIES,
    DeferredPatch,
    ImportContext,
    ImportFailure,
    ImportResult,
    ImportStrategy,
    ItemState,
)
from .translation import TranslationTable


class ImportedItem(BaseModel):
    """Progress notification for one imported entity."""

    title: str = Field(..., description='Display title')
    kind: EntityKind = Field(..., description='Entity kind')
    data: Dict[str, Any] = Field(
        default_factory=dict, description='Entity as created in the target'
    )


ItemCallback = Callable[[ImportedItem], None]


class ImportOrchestrator:
    """Imports planned items one at a time.

    Items are processed strictly in the given order: the translation table
    written by earlier items is what later items resolve their references
    against, so nothing is reordered or run concurrently.
    """

    def __init__(
        self,
        client: Any,
        workflow_step_id: str,
        skip_languages: bool = False,
        failure_policy: FailurePolicy = FailurePolicy.ABORT,
        resolve_intra_kind_references: bool = False,
        table: Optional[TranslationTable] = None,
        on_item_imported: Optional[ItemCallback] = None,
    ):
        """Initialize import orchestrator.

        Args:
            client: Target Management API client
            workflow_step_id: Workflow step assigned to imported variants
            skip_languages: Do not create languages
            failure_policy: Abort on the first rejection or record and continue
            resolve_intra_kind_references: Defer and patch forward references
                between content types
            table: Pre-seeded translation table
            on_item_imported: Called after every successful import
        """
        missing = set(EntityKind) - set(STRATEGIES)
        if missing:
            raise ValueError(
                f'No import strategy for: {", ".join(k.value for k in missing)}'
            )

        self.client = client
        self.workflow_step_id = workflow_step_id
        self.skip_languages = skip_languages
        self.failure_policy = failure_policy
        self.resolve_intra_kind_references = resolve_intra_kind_references
        self.table = table if table is not None else TranslationTable()
        self.on_item_imported = on_item_imported
        self.logger = get_logger('ImportOrchestrator')

        self.results: List[ImportResult] = []
        self.failures: List[ImportFailure] = []
        self.deferred: List[DeferredPatch] = []
        self.item_states: List[ItemState] = []
        self._failed: Set[Tuple[EntityKind, str]] = set()

    async def run(
        self,
        items: List[ImportItem],
        binary_files: Optional[Iterable[BinaryFile]] = None,
        index: Optional[SourceIndex] = None,
    ) -> List[ImportResult]:
        """Import items in order.

        Args:
            items: Items in planned order
            binary_files: Binary payloads joined to assets by source id
            index: Source codename lookups (built from the items if omitted)

        Returns:
            Results of all successfully imported entities, in order

        Raises:
            MigrationError: On the first fatal error; ``results`` holds the
                results completed before it
        """
        binary_files = list(binary_files or [])
        if index is None:
            index = SourceIndex(ImportSource.from_items(items))

        context = ImportContext(
            client=self.client,
            table=self.table,
            index=index,
            binary_files={binary.asset_id: binary for binary in binary_files},
            workflow_step_id=self.workflow_step_id,
            resolve_intra_kind_references=self.resolve_intra_kind_references,
        )
        strategies: Dict[EntityKind, ImportStrategy] = {
            kind: strategy_class(context)
            for kind, strategy_class in STRATEGIES.items()
        }

        self.results = []
        self.failures = []
        self.deferred = []
        self.item_states = [ItemState.PENDING] * len(items)
        self._failed = set()

        self.logger.info(f'Starting import of {len(items)} items')

        for position, item in enumerate(items):
            if item.kind == EntityKind.LANGUAGE and self.skip_languages:
                self.logger.debug(f'Skipping language {item.title}')
                self.item_states[position] = ItemState.SKIPPED
                continue

            await self._import_item(position, item, strategies[item.kind])

        if self.deferred:
            await self._apply_deferred_patches()

        self.logger.info(
            f'Import completed: {len(self.results)} imported, '
            f'{len(self.failures)} failed'
        )
        return list(self.results)

    async def _import_item(
        self, position: int, item: ImportItem, strategy: ImportStrategy
    ) -> None:
        entity = item.entity

        try:
            self.item_states[position] = ItemState.REWRITING
            prepared = strategy.prepare(entity)

            self.item_states[position] = ItemState.SUBMITTING
            result = await strategy.submit(entity, prepared)
            self._register(result)

        except Exception as e:
            self.item_states[position] = ItemState.FAILED
            if self._can_continue(e):
                self._record_failure(item, e)
                return
            raise self._fatal(item, e)

        self.item_states[position] = ItemState.SUCCEEDED
        self.deferred.extend(prepared.deferred)
        self.results.append(result)

        if self.on_item_imported:
            try:
                self.on_item_imported(
                    ImportedItem(
                        title=result.title, kind=result.kind, data=result.imported
                    )
                )
            except Exception as e:
                raise self._fatal(item, e)

    def _can_continue(self, error: Exception) -> bool:
        if self.failure_policy != FailurePolicy.CONTINUE:
            return False
        if isinstance(error, RemoteRejectionError):
            return True
        if isinstance(error, ReferenceResolutionError) and error.missing_id:
            return self._depends_on_failed(error.missing_kind, error.missing_id)
        return False

    def _depends_on_failed(
        self, kind: Optional[EntityKind], source_id: str
    ) -> bool:
        if kind is None:
            return any(failed_id == source_id for _, failed_id in self._failed)
        return (kind, source_id) in self._failed

    def _record_failure(self, item: ImportItem, error: Exception) -> None:
        entity = item.entity
        failure = ImportFailure(
            kind=item.kind,
            title=item.title,
            source_id=entity.source_id,
            error_type=type(error).__name__,
            error_message=str(error),
            field=getattr(error, 'field', None),
            status_code=getattr(error, 'status_code', None),
        )
        self.failures.append(failure)
        self._failed.add((item.kind, entity.source_id))
        self.logger.warning(
            f'Failed to import {item.kind.value} {item.title}, continuing: {error}'
        )

    def _fatal(self, item: ImportItem, error: Exception) -> MigrationError:
        self.logger.error(
            f'Import of {item.kind.value} {item.title} failed, '
            f'aborting after {len(self.results)} imported items: {error}'
        )
        if isinstance(error, MigrationError):
            fatal = error
        else:
            fatal = MigrationError(
                f'Import of {item.kind.value} {item.title} failed: {error}',
                kind=item.kind,
                source_id=item.entity.source_id,
            )
            fatal.__cause__ = error
        fatal.results = list(self.results)
        return fatal

    def _register(self, result: ImportResult) -> None:
        if result.import_id:
            self.table.register(
                result.kind,
                result.original_id,
                result.import_id,
                result.target_codename,
            )

    async def _apply_deferred_patches(self) -> None:
        """Restore references dropped while creating content types."""
        operations: Dict[Tuple[EntityKind, str], List[Dict[str, Any]]] = {}
        for patch in self.deferred:
            operations.setdefault((patch.kind, patch.source_id), []).append(
                patch.to_operation()
            )

        self.logger.info(f'Patching {len(operations)} deferred reference owner(s)')

        for (kind, source_id), patch_operations in operations.items():
            target_id = self.table.resolve(kind, source_id)

            if kind == EntityKind.CONTENT_TYPE:
                operation = self.client.modify_content_type(target_id, patch_operations)
            else:
                operation = self.client.modify_content_type_snippet(
                    target_id, patch_operations
                )

            try:
                await operation
            except Exception as e:
                error = RemoteRejectionError(
                    f'Patching deferred references of {kind.value} {source_id} '
                    f'failed: {e}',
                    kind=kind,
                    source_id=source_id,
                    status_code=getattr(e, 'status_code', None),
                )
                if self.failure_policy == FailurePolicy.CONTINUE:
                    self.failures.append(
                        ImportFailure(
                            kind=kind,
                            title=source_id,
                            source_id=source_id,
                            error_type=type(error).__name__,
                            error_message=str(error),
                            status_code=error.status_code,
                        )
                    )
                    self.logger.warning(str(error))
                    continue
                self.logger.error(str(error))
                error.results = list(self.results)
                raise error from e
