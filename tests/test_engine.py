"""Tests for the import engine."""

import json

import pytest

from kontent_migrate.config.config import FailurePolicy
from kontent_migrate.migration.engine import ImportEngine
from kontent_migrate.migration.exceptions import MigrationError
from kontent_migrate.migration.translation import TranslationTable
from kontent_migrate.models import EntityKind, ImportSource

from conftest import WORKFLOW_STEP_ID, FakeKontentClient, snapshot_data


class TestImportEngine:
    """Test end-to-end imports against an in-memory target."""

    def setup_method(self):
        """Set up test fixtures."""
        self.table = TranslationTable()
        self.table.register(EntityKind.ASSET, 'asset-logo', 'asset-target')

    @pytest.mark.asyncio
    async def test_import_snapshot(self, config, source, fake_client):
        """Test a full snapshot is imported in dependency order."""
        engine = ImportEngine(config, client=fake_client)

        summary = await engine.import_from_source(source, table=self.table)

        assert [result.kind for result in summary.results] == [
            EntityKind.TAXONOMY,
            EntityKind.CONTENT_TYPE,
            EntityKind.CONTENT_ITEM,
            EntityKind.LANGUAGE_VARIANT,
        ]
        assert summary.total_items == 5
        assert summary.imported == 4
        assert summary.skipped == 1
        assert summary.failed == 0
        assert summary.results_by_kind['language'] == {
            'total': 1,
            'imported': 0,
            'failed': 0,
        }
        assert summary.duration_seconds is not None
        assert fake_client.closed is True

        variant = fake_client.payloads('upsert_language_variant')[0]
        text = json.dumps(variant)
        assert 'asset-target' in text
        assert 'asset-logo' not in text
        assert variant['workflow_step'] == {'id': WORKFLOW_STEP_ID}

        item_id = summary.results[2].import_id
        assert summary.results[3].import_id == item_id
        assert summary.results[3].title == 'hello_world (en)'

    @pytest.mark.asyncio
    async def test_import_snapshot_with_assets(self, config, fake_client):
        """Test variants point at the assets created by the same run."""
        source = ImportSource.from_export(snapshot_data(include_asset=True))
        engine = ImportEngine(config, client=fake_client)

        summary = await engine.import_from_source(source)

        assert summary.failed == 0
        assert fake_client.methods == [
            'add_taxonomy',
            'upload_binary_file',
            'add_asset',
            'add_content_type',
            'add_content_item',
            'upsert_language_variant',
        ]
        asset_result = next(
            result for result in summary.results if result.kind == EntityKind.ASSET
        )
        asset_id = asset_result.import_id
        assert asset_id in fake_client.created

        variant = fake_client.payloads('upsert_language_variant')[0]
        assert variant['elements'][2]['value'] == [{'id': asset_id}]
        assert f'data-asset-id="{asset_id}"' in variant['elements'][3]['value']
        assert 'asset-logo' not in json.dumps(variant)

    @pytest.mark.asyncio
    async def test_progress_callback(self, config, source, fake_client):
        """Test the callback sees every imported entity."""
        engine = ImportEngine(config, client=fake_client)
        seen = []

        await engine.import_from_source(
            source, on_item_imported=seen.append, table=self.table
        )

        assert [item.title for item in seen] == [
            'Topics',
            'Article',
            'Hello world',
            'hello_world (en)',
        ]

    @pytest.mark.asyncio
    async def test_connectivity_failure(self, config, source):
        """Test nothing is imported when the target is unreachable."""
        client = FakeKontentClient(connected=False)
        engine = ImportEngine(config, client=client)

        with pytest.raises(ConnectionError):
            await engine.import_from_source(source)

        assert client.calls == []
        assert client.closed is True

    @pytest.mark.asyncio
    async def test_fatal_error_keeps_completed_results(self, config, source):
        """Test a rejection aborts the run and reports completed work."""
        client = FakeKontentClient(reject={'article'})
        engine = ImportEngine(config, client=client)

        with pytest.raises(MigrationError) as exc_info:
            await engine.import_from_source(source, table=self.table)

        assert [result.kind for result in exc_info.value.results] == [
            EntityKind.TAXONOMY
        ]
        assert client.closed is True

    @pytest.mark.asyncio
    async def test_continue_policy_summary(self, config, source):
        """Test recorded failures are counted per kind."""
        config.import_.failure_policy = FailurePolicy.CONTINUE
        client = FakeKontentClient(reject={'hello_world'})
        engine = ImportEngine(config, client=client)

        summary = await engine.import_from_source(source, table=self.table)

        assert summary.imported == 2
        assert summary.failed == 2
        assert summary.results_by_kind['contentItem']['failed'] == 1
        assert summary.results_by_kind['languageVariant']['failed'] == 1
        assert summary.failures[0].source_id == 'item-hello'

    def test_plan(self, config, source, fake_client):
        """Test the engine exposes the planned order."""
        engine = ImportEngine(config, client=fake_client)

        items = engine.plan(source)

        assert items[0].kind == EntityKind.LANGUAGE
        assert items[-1].kind == EntityKind.LANGUAGE_VARIANT
