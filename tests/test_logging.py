"""Tests for logging setup."""

from loguru import logger

from kontent_migrate.migration.rewriter import ReferenceRewriter
from kontent_migrate.migration.translation import TranslationTable
from kontent_migrate.utils.logging import get_logger, setup_logging


class TestLogging:
    """Test component-bound loggers."""

    def setup_method(self):
        """Set up test fixtures."""
        setup_logging(level='DEBUG')
        self.messages = []
        self.handler_id = logger.add(self.messages.append, level='DEBUG')

    def teardown_method(self):
        """Remove the capturing sink."""
        logger.remove(self.handler_id)

    def _components(self):
        return [message.record['extra']['component'] for message in self.messages]

    def test_get_logger_binds_component(self):
        """Test records carry the component they were logged under."""
        get_logger('ImportPlanner').info('planned')

        assert self._components() == ['ImportPlanner']

    def test_unbound_records_use_default_component(self):
        """Test records without a component fall back to the tool name."""
        logger.info('plain')

        assert self._components() == ['kontent-migrate']

    def test_strategy_is_shown_as_component(self):
        """Test strategy loggers are labelled with the strategy name."""
        logger.bind(strategy='TaxonomyImportStrategy').info('created')

        assert self._components() == ['TaxonomyImportStrategy']

    def test_components_log_through_get_logger(self):
        """Test pipeline components bind their own names."""
        rewriter = ReferenceRewriter(TranslationTable())

        rewriter.logger.debug('rewriting')

        assert self._components() == ['ReferenceRewriter']
