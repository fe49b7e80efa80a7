"""Kontent Migration Tool

Imports a snapshot of a headless CMS project (languages, taxonomies, assets,
content types, content items and their language variants) into another
project, translating every reference to the identifiers of the target.
"""

__version__ = '0.1.0'
__author__ = 'Kontent Migration Team'
__email__ = 'team@example.com'

from .cli import main

__all__ = ['main']
