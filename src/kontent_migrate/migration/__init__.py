"""Import pipeline: planning, reference rewriting and strategies."""

from .exceptions import (
    MigrationError,
    ImportValidationError,
    ReferenceResolutionError,
    RemoteRejectionError,
    TranslationConflictError,
    TranslationNotFoundError,
)
from .translation import TranslationEntry, TranslationTable
from .planner import KIND_PRECEDENCE, ImportPlanner
from .rewriter import ReferenceRewriter, RewriteResult
from .strategy import (
    STRATEGIES,
    DeferredPatch,
    ImportContext,
    ImportFailure,
    ImportResult,
    ImportStrategy,
    ItemState,
    PreparedPayload,
)
from .orchestrator import ImportedItem, ImportOrchestrator
from .engine import ImportEngine, ImportSummary

__all__ = [
    'MigrationError',
    'ImportValidationError',
    'ReferenceResolutionError',
    'RemoteRejectionError',
    'TranslationConflictError',
    'TranslationNotFoundError',
    'TranslationEntry',
    'TranslationTable',
    'KIND_PRECEDENCE',
    'ImportPlanner',
    'ReferenceRewriter',
    'RewriteResult',
    'STRATEGIES',
    'DeferredPatch',
    'ImportContext',
    'ImportFailure',
    'ImportResult',
    'ImportStrategy',
    'ItemState',
    'PreparedPayload',
    'ImportedItem',
    'ImportOrchestrator',
    'ImportEngine',
    'ImportSummary',
]
