# -*- coding: utf-8 -*-
"""
Dirty/Diff Engine

Decides, per key, whether the live document differs from the baseline
document. Comparison is on what a translator sees: comments and resolved
values, not on raw structure.
"""

from typing import Iterable, Optional, Set

from models.document import LocalizationDocument
from core.value_resolver import resolve_locale_value, resolve_locale_comment


def _add_entry_locales(locales: Set[str], entry) -> None:
    if entry is None or not entry.localizations:
        return
    for locale in entry.localizations:
        if locale.strip():
            locales.add(locale)


def _add_document_locales(locales: Set[str], document: LocalizationDocument) -> None:
    if document.source_language:
        locales.add(document.source_language)
    for locale in document.available_locales or []:
        if isinstance(locale, str) and locale.strip():
            locales.add(locale)


def collect_locales_for_key(
    key: str,
    document: LocalizationDocument,
    baseline: LocalizationDocument,
) -> Set[str]:
    """Every locale either side could show a value for."""
    locales: Set[str] = set()
    _add_entry_locales(locales, document.strings.get(key))
    _add_entry_locales(locales, baseline.strings.get(key))
    _add_document_locales(locales, document)
    _add_document_locales(locales, baseline)
    return locales


def is_entry_dirty(key: str, document: LocalizationDocument, baseline: LocalizationDocument) -> bool:
    current = document.strings.get(key)
    original = baseline.strings.get(key)

    if current is None and original is None:
        return False
    if current is None or original is None:
        return True

    if (current.comment or '') != (original.comment or ''):
        return True

    for locale in collect_locales_for_key(key, document, baseline):
        if resolve_locale_comment(current, locale) != resolve_locale_comment(original, locale):
            return True
        current_value = resolve_locale_value(current, locale, document.source_language, key)
        original_value = resolve_locale_value(original, locale, baseline.source_language, key)
        if current_value != original_value:
            return True

    return False


def calculate_dirty_keys(
    document: LocalizationDocument,
    baseline: LocalizationDocument,
    keys: Optional[Iterable[str]] = None,
) -> Set[str]:
    """Dirty keys among `keys` (default: union of both documents' keys)."""
    if keys is None:
        keys = set(baseline.strings) | set(document.strings)
    return {key for key in keys if is_entry_dirty(key, document, baseline)}
