# -*- coding: utf-8 -*-
"""
XCForge Parser Package

Reads catalog text into the document model and projection.
"""

from parser.patterns import CatalogPatterns
from parser.catalog_parser import (
    ParsedCatalog,
    parse_catalog,
    parse_document,
    collect_languages,
    build_entries,
)

__all__ = [
    'CatalogPatterns',
    'ParsedCatalog',
    'parse_catalog',
    'parse_document',
    'collect_languages',
    'build_entries',
]
