# -*- coding: utf-8 -*-
"""
Catalog Parser

Turns raw catalog text into a LocalizationDocument plus the sorted language
list and the CatalogEntry projection used by consumers.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from xcforge_exceptions import ParseError
from xcforge_logger import get_logger
from models.document import LocalizationDocument
from models.catalog_entry import CatalogEntry, build_catalog_entry, catalog_sort_key

logger = get_logger("parser.catalog")


@dataclass
class ParsedCatalog:
    document: LocalizationDocument
    languages: List[str] = field(default_factory=list)
    entries: List[CatalogEntry] = field(default_factory=list)


def _decode(text: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(
            f"Unable to parse catalog: invalid JSON ({e.msg} at line {e.lineno}, column {e.colno}).",
            reason=ParseError.INVALID_JSON,
            position=e.pos,
        ) from e

    if not isinstance(data, dict) or not isinstance(data.get('strings'), dict):
        raise ParseError(
            "Invalid catalog: missing \"strings\" section.",
            reason=ParseError.MISSING_STRINGS,
        )
    return data


def parse_document(text: str) -> LocalizationDocument:
    """Parse catalog text into a document only (no projection)."""
    return LocalizationDocument.from_dict(_decode(text))


def collect_languages(document: LocalizationDocument) -> List[str]:
    """Sorted union of declared locales, the source language and every localized locale."""
    languages = set()

    for locale in document.available_locales or []:
        if isinstance(locale, str) and locale.strip():
            languages.add(locale)

    if document.source_language:
        languages.add(document.source_language)

    for entry in document.strings.values():
        if not entry.localizations:
            continue
        for locale in entry.localizations:
            if locale.strip():
                languages.add(locale)

    return sorted(languages)


def build_entries(document: LocalizationDocument, languages: List[str]) -> List[CatalogEntry]:
    entries = [
        build_catalog_entry(key, entry, languages, document.source_language)
        for key, entry in document.strings.items()
    ]
    entries.sort(key=lambda item: catalog_sort_key(item.key))
    return entries


def parse_catalog(text: str) -> ParsedCatalog:
    """
    Parse catalog text.

    Args:
        text: Raw UTF-8 catalog content

    Returns:
        ParsedCatalog with document, sorted languages and sorted entries

    Raises:
        ParseError: If the text is not JSON or has no "strings" object
    """
    document = parse_document(text)
    languages = collect_languages(document)
    entries = build_entries(document, languages)
    logger.debug(f"Parsed catalog: {len(entries)} keys, languages={languages}")
    return ParsedCatalog(document=document, languages=languages, entries=entries)
