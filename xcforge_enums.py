"""
XCForge Enum Definitions

Type-safe enums for review states, extraction states and sync effects.
Values match the strings used inside catalog files.
"""

from enum import Enum


class TranslationState(str, Enum):
    """Per-locale review state of a string unit"""
    NEW = 'new'
    TRANSLATED = 'translated'
    NEEDS_REVIEW = 'needs_review'
    STALE = 'stale'


class ExtractionState(str, Enum):
    """Provenance of a catalog key"""
    MANUAL = 'manual'
    EXTRACTED_WITH_VALUE = 'extracted_with_value'
    MIGRATED = 'migrated'
    STALE = 'stale'


class SyncEffect(str, Enum):
    """Kinds of deferred work queued per session"""
    SERIALIZE_KEY = 'serialize_key'
    SERIALIZE_FULL = 'serialize_full'
    PERSIST = 'persist'
    RECOMPUTE_DIRTY = 'recompute_dirty'


class CatalogSourceKind(str, Enum):
    """Where a catalog was loaded from"""
    LOCAL = 'local'
    GITHUB = 'github'
