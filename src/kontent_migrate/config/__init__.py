"""Configuration management."""

from .config import (
    Config,
    FailurePolicy,
    ImportConfig,
    KontentInstanceConfig,
    LoggingConfig,
)

__all__ = [
    'Config',
    'FailurePolicy',
    'ImportConfig',
    'KontentInstanceConfig',
    'LoggingConfig',
]
