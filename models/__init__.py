# -*- coding: utf-8 -*-
"""
XCForge Models Package

Data models: the catalog document tree, the flat per-key projection and the
live session that ties them together.
"""

from models.document import (
    LocalizationDocument,
    StringEntry,
    LocalizationRecord,
    VariationRecord,
    StringUnit,
)
from models.catalog_entry import CatalogEntry
from models.catalog_session import CatalogSession, CatalogSource, ProjectFileState

__all__ = [
    'LocalizationDocument',
    'StringEntry',
    'LocalizationRecord',
    'VariationRecord',
    'StringUnit',
    'CatalogEntry',
    'CatalogSession',
    'CatalogSource',
    'ProjectFileState',
]
