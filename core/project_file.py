# -*- coding: utf-8 -*-
"""
Companion Project File Editor

Keeps the `knownRegions = ( ... );` list of an Xcode project file in step
with the catalog's locales. Nothing else in the project file is parsed or
touched.
"""

from typing import List, NamedTuple, Optional, Protocol, Tuple

from xcforge_exceptions import ProjectFileError
from xcforge_logger import get_logger
from parser.patterns import CatalogPatterns
from core.locale_codes import normalize_locale_tag

logger = get_logger("core.project_file")

BASE_REGION = 'Base'
DEFAULT_ITEM_INDENT = '\t\t'


class RegionUpdate(NamedTuple):
    content: str
    updated: bool


class ProjectFileEditor(Protocol):
    def add_known_region(self, content: str, locale: str) -> RegionUpdate:
        ...

    def remove_known_region(self, content: str, locale: str) -> RegionUpdate:
        ...


def _region_name(token: str) -> str:
    if len(token) >= 2 and token.startswith('"') and token.endswith('"'):
        return token[1:-1]
    return token


def _format_region(locale: str) -> str:
    if CatalogPatterns.BARE_REGION.match(locale):
        return locale
    return f'"{locale}"'


class KnownRegionsEditor:
    """Default ProjectFileEditor: edits the region list in place."""

    def _find(self, content: str):
        match = CatalogPatterns.KNOWN_REGIONS.search(content)
        if match is None:
            return None, []
        tokens = [token.group(0) for token in CatalogPatterns.REGION_TOKEN.finditer(match.group(1))]
        return match, tokens

    def _indents(self, block: str) -> Tuple[str, str]:
        item_indent = DEFAULT_ITEM_INDENT
        for line in block.split('\n')[1:]:
            stripped = line.strip()
            if not stripped:
                continue
            if stripped.startswith(')'):
                break
            indent = CatalogPatterns.LEADING_WHITESPACE.match(line)
            if indent:
                item_indent = indent.group(1)
            break

        closing = CatalogPatterns.CLOSING_INDENT.search(block)
        closing_indent = closing.group(1) if closing else item_indent[:-1]
        return item_indent, closing_indent

    def _replace(self, content: str, match, tokens: List[str]) -> str:
        item_indent, closing_indent = self._indents(match.group(0))
        items = ''.join(f"{item_indent}{token},\n" for token in tokens)
        replacement = f"knownRegions = (\n{items}{closing_indent});"
        return content[:match.start()] + replacement + content[match.end():]

    def _normalized(self, locale: str) -> str:
        normalized = normalize_locale_tag(locale)
        if not normalized:
            raise ProjectFileError("Locale must not be empty", locale=locale)
        return normalized

    def add_known_region(self, content: str, locale: str) -> RegionUpdate:
        """Add `locale` before Base (or at the end). No-op when already listed."""
        normalized = self._normalized(locale)
        match, tokens = self._find(content)
        if match is None:
            logger.warning("Project file has no knownRegions list")
            return RegionUpdate(content, False)

        names = [_region_name(token).lower() for token in tokens]
        if normalized.lower() in names:
            return RegionUpdate(content, False)

        token = _format_region(normalized)
        base_index = names.index(BASE_REGION.lower()) if BASE_REGION.lower() in names else -1
        if base_index == -1:
            tokens.append(token)
        else:
            tokens.insert(base_index, token)

        logger.debug(f"Added known region {normalized}")
        return RegionUpdate(self._replace(content, match, tokens), True)

    def remove_known_region(self, content: str, locale: str) -> RegionUpdate:
        """Remove every spelling of `locale`. Base is never removed."""
        normalized = self._normalized(locale)
        if normalized.lower() == BASE_REGION.lower():
            return RegionUpdate(content, False)

        match, tokens = self._find(content)
        if match is None:
            logger.warning("Project file has no knownRegions list")
            return RegionUpdate(content, False)

        kept = [token for token in tokens if _region_name(token).lower() != normalized.lower()]
        if len(kept) == len(tokens):
            return RegionUpdate(content, False)

        logger.debug(f"Removed known region {normalized}")
        return RegionUpdate(self._replace(content, match, kept), True)


def list_known_regions(content: str) -> Optional[List[str]]:
    """Region names in the list, or None when the file has no list."""
    match, tokens = KnownRegionsEditor()._find(content)
    if match is None:
        return None
    return [_region_name(token) for token in tokens]
