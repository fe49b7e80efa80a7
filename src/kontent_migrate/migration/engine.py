"""Import engine - main entry point for import operations."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..api.client import KontentClientFactory
from ..config.config import Config
from ..models.source import ImportItem, ImportSource, SourceIndex
from ..utils.logging import get_logger
from .exceptions import MigrationError
from .orchestrator import ImportOrchestrator, ItemCallback
from .planner import ImportPlanner
from .strategy import ImportFailure, ImportResult, ItemState
from .translation import TranslationTable


class ImportSummary(BaseModel):
    """Summary of an import run."""

    total_items: int = Field(..., description='Items planned')
    imported: int = Field(..., description='Entities imported')
    failed: int = Field(..., description='Entities rejected')
    skipped: int = Field(..., description='Items skipped')

    # Timing
    started_at: datetime = Field(..., description='Import start time')
    completed_at: Optional[datetime] = Field(
        default=None, description='Import completion time'
    )

    # Results by entity kind
    results_by_kind: Dict[str, Dict[str, int]] = Field(
        default_factory=dict, description='Counts grouped by entity kind'
    )

    # Detailed results
    results: List[ImportResult] = Field(
        default_factory=list, description='Import results in order'
    )
    failures: List[ImportFailure] = Field(
        default_factory=list, description='Recorded failures'
    )

    @property
    def duration_seconds(self) -> Optional[float]:
        """Run duration, once completed."""
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()


class ImportEngine:
    """Main import engine that coordinates the entire import process."""

    def __init__(self, config: Config, client: Any = None):
        """Initialize import engine.

        Args:
            config: Tool configuration
            client: Target client (created from configuration if omitted)
        """
        self.config = config
        self.logger = get_logger('ImportEngine')

        self.client = client or KontentClientFactory.create_client(config.target)
        self.planner = ImportPlanner(
            resolve_intra_kind_references=config.import_.resolve_intra_kind_references
        )

    def plan(self, source: ImportSource) -> List[ImportItem]:
        """Compute the import order of a snapshot.

        Args:
            source: Import source

        Returns:
            Items in creation order
        """
        return self.planner.plan(source)

    async def import_from_source(
        self,
        source: ImportSource,
        on_item_imported: Optional[ItemCallback] = None,
        table: Optional[TranslationTable] = None,
    ) -> ImportSummary:
        """Import a snapshot into the target project.

        Args:
            source: Import source
            on_item_imported: Progress callback
            table: Translations of entities already present in the target

        Returns:
            Import summary

        Raises:
            ConnectionError: If the target project cannot be reached
            MigrationError: On a fatal import error
        """
        import_config = self.config.import_
        items = self.plan(source)
        orchestrator = ImportOrchestrator(
            self.client,
            workflow_step_id=import_config.workflow_step_id_for_imported_items,
            skip_languages=import_config.skip_languages,
            failure_policy=import_config.failure_policy,
            resolve_intra_kind_references=import_config.resolve_intra_kind_references,
            table=table,
            on_item_imported=on_item_imported,
        )

        self.logger.info(f'Starting import of {len(items)} items')
        started_at = datetime.now()

        try:
            await self._test_connectivity()

            results = await orchestrator.run(
                items, source.binary_files, index=SourceIndex(source)
            )

            summary = ImportSummary(
                total_items=len(items),
                imported=len(results),
                failed=len(orchestrator.failures),
                skipped=orchestrator.item_states.count(ItemState.SKIPPED),
                started_at=started_at,
                completed_at=datetime.now(),
                results_by_kind=self._summarize_by_kind(
                    items, results, orchestrator.failures
                ),
                results=results,
                failures=list(orchestrator.failures),
            )

            self.logger.info(
                f'Import completed: {summary.imported} imported, '
                f'{summary.failed} failed, {summary.skipped} skipped'
            )
            return summary

        except MigrationError as e:
            self.logger.error(
                f'Import failed after {len(e.results)} imported items: {e}'
            )
            raise
        finally:
            self.client.close()

    @staticmethod
    def _summarize_by_kind(
        items: List[ImportItem],
        results: List[ImportResult],
        failures: List[ImportFailure],
    ) -> Dict[str, Dict[str, int]]:
        summary: Dict[str, Dict[str, int]] = {}
        for item in items:
            counts = summary.setdefault(
                item.kind.value, {'total': 0, 'imported': 0, 'failed': 0}
            )
            counts['total'] += 1
        for result in results:
            summary[result.kind.value]['imported'] += 1
        for failure in failures:
            summary[failure.kind.value]['failed'] += 1
        return summary

    async def _test_connectivity(self) -> None:
        """Test connectivity to the target project.

        Raises:
            ConnectionError: If connectivity test fails
        """
        self.logger.info('Testing connectivity to the target project')

        if not self.client.test_connection():
            raise ConnectionError('Cannot connect to the target project')

        self.logger.info('Connectivity test passed')
