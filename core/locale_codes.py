# -*- coding: utf-8 -*-
"""
Locale tag helpers.

Catalog locale keys are BCP-47 style tags ("en", "pt-BR", "zh-Hans").
Tags are normalized for display and comparison only; they are never
validated against a registry.
"""

from typing import Iterable, Optional


def normalize_locale_tag(tag: str) -> str:
    """
    Normalize casing and separators of a locale tag.

    "EN_us" -> "en-US", "zh-hans" -> "zh-Hans", "  fr " -> "fr".
    """
    if not tag:
        return ''
    parts = [part for part in tag.strip().replace('_', '-').split('-') if part]
    if not parts:
        return ''

    normalized = [parts[0].lower()]
    for part in parts[1:]:
        if len(part) == 2:
            normalized.append(part.upper())
        elif len(part) == 4:
            normalized.append(part[0].upper() + part[1:].lower())
        else:
            normalized.append(part)
    return '-'.join(normalized)


def same_locale(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive equality of two tags (None never matches)."""
    if a is None or b is None:
        return False
    return a.casefold() == b.casefold()


def find_locale(locale: str, candidates: Iterable[str]) -> Optional[str]:
    """Return the candidate equal to `locale` ignoring case, if any."""
    for candidate in candidates:
        if same_locale(locale, candidate):
            return candidate
    return None
