# -*- coding: utf-8 -*-
"""
Value Resolver

Computes the effective value (and review state) shown for an entry in a
given locale. Pure functions; entries may be partial or malformed, missing
pieces simply fall through to the next rule.
"""

from typing import Optional

EMPTY_STRING = ''


def _first_variation_unit(variation, want_state: bool = False) -> Optional[str]:
    """Depth-first search of a variation tree for the first defined value (or state)."""
    unit = getattr(variation, 'string_unit', None)
    if unit is not None:
        found = unit.state if want_state else unit.value
        if isinstance(found, str):
            return found
    cases = getattr(variation, 'cases', None)
    if isinstance(cases, dict):
        for case in cases.values():
            found = _first_variation_unit(case, want_state)
            if found is not None:
                return found
    return None


def _localization(entry, locale: str):
    localizations = getattr(entry, 'localizations', None)
    if not isinstance(localizations, dict):
        return None
    return localizations.get(locale)


def get_value_for_locale(entry, locale: str) -> Optional[str]:
    """Return the locale's own value (string unit first, then variations), or None."""
    record = _localization(entry, locale)
    if record is None:
        return None

    unit = getattr(record, 'string_unit', None)
    if unit is not None and isinstance(unit.value, str):
        return unit.value

    variations = getattr(record, 'variations', None)
    if isinstance(variations, dict):
        for variation in variations.values():
            found = _first_variation_unit(variation)
            if found is not None:
                return found
    return None


def resolve_locale_value(
    entry,
    locale: str,
    source_language: Optional[str] = None,
    fallback_key: Optional[str] = None,
) -> str:
    """
    Effective value of `entry` in `locale`.

    Order: the locale's string unit, its first variation value, then (only for
    the source language) the legacy entry-level value and the key itself.
    Falls back to an empty string.
    """
    if entry is None:
        return EMPTY_STRING

    localized = get_value_for_locale(entry, locale)
    if localized is not None:
        return localized

    if source_language and locale == source_language:
        legacy = getattr(entry, 'string_unit', None)
        if legacy is not None and isinstance(legacy.value, str):
            return legacy.value
        if fallback_key is not None:
            return fallback_key

    return EMPTY_STRING


def resolve_locale_state(entry, locale: str) -> Optional[str]:
    """Review state of `entry` in `locale`, looked up like the value (unit, then variations)."""
    record = _localization(entry, locale)
    if record is None:
        return None

    unit = getattr(record, 'string_unit', None)
    if unit is not None and isinstance(unit.state, str) and unit.state:
        return unit.state

    variations = getattr(record, 'variations', None)
    if isinstance(variations, dict):
        for variation in variations.values():
            found = _first_variation_unit(variation, want_state=True)
            if found:
                return found
    return None


def resolve_locale_comment(entry, locale: str) -> str:
    record = _localization(entry, locale)
    comment = getattr(record, 'comment', None) if record is not None else None
    return comment if isinstance(comment, str) else EMPTY_STRING
