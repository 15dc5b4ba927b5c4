# -*- coding: utf-8 -*-
"""
XCForge Catalog Entry Projection

Flat, read-mostly row per catalog key, as consumed by tables and exporters.
Never authoritative: it is always rebuilt from the StringEntry it mirrors.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from xcforge_enums import ExtractionState
from models.document import StringEntry
from core.value_resolver import resolve_locale_value, resolve_locale_state


@dataclass
class CatalogEntry:
    """
    Attributes:
        key: Catalog key.
        comment: Key-level comment.
        values: locale -> effective displayed value.
        states: locale -> review state (only locales that have one).
        extraction_state: Provenance of the key.
        should_translate: False when the key is marked as not translatable.
    """
    key: str
    comment: Optional[str] = None
    values: Dict[str, str] = field(default_factory=dict)
    states: Dict[str, str] = field(default_factory=dict)
    extraction_state: Optional[str] = None
    should_translate: bool = True

    @property
    def is_stale(self) -> bool:
        """True when the key is no longer found in source code."""
        return self.extraction_state == ExtractionState.STALE.value


def catalog_sort_key(key: str) -> Tuple[str, str]:
    """Case-insensitive ordering of catalog keys, ties broken by the raw key."""
    return (key.casefold(), key)


def build_catalog_entry(
    key: str,
    entry: StringEntry,
    languages: Iterable[str],
    source_language: Optional[str] = None,
) -> CatalogEntry:
    """Project one StringEntry for the given languages."""
    values = {}
    states = {}
    for language in languages:
        values[language] = resolve_locale_value(entry, language, source_language, key)
        state = resolve_locale_state(entry, language)
        if state:
            states[language] = state

    return CatalogEntry(
        key=key,
        comment=entry.comment,
        values=values,
        states=states,
        extraction_state=entry.extraction_state,
        should_translate=entry.should_translate,
    )
