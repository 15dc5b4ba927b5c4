# -*- coding: utf-8 -*-
"""
Catalog Regex Patterns

Centralized regex patterns for inspecting catalog and project-file text
without fully parsing it.
"""

import re


class CatalogPatterns:
    """
    Collection of regex patterns used by the serializer and the
    companion project-file editor.

    Organized by category:
    - Formatting detection (indentation, key/colon spacing)
    - JSON scalar tokens
    - Project file region list
    """

    # =========================================================================
    # FORMATTING DETECTION
    # =========================================================================

    # First indented line: captures its leading whitespace
    INDENT = re.compile(r'\n([ \t]+)\S')

    # Any JSON string token, optionally followed by the colon that makes it a key.
    # Every string is consumed from its opening quote, so scanning never
    # starts in the middle of a value.
    STRING_TOKEN = re.compile(r'("(?:\\.|[^"\\])*")([ \t\r\n]*:)?')

    # Empty object spread over several lines, e.g. Xcode's "{\n\n    }".
    # Strings cannot hold raw line breaks, so this never matches inside one.
    EXPANDED_EMPTY_OBJECT = re.compile(r'\{([ \t]*(?:\r?\n[ \t]*)+)\}')

    # A string token, or a compact empty object outside of strings
    EMPTY_OBJECT_TOKEN = re.compile(r'"(?:\\.|[^"\\])*"|\{\}')

    # =========================================================================
    # JSON SCALARS
    # =========================================================================

    SCALAR = re.compile(r'-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?|true|false|null')

    # =========================================================================
    # PROJECT FILE (knownRegions list)
    # =========================================================================

    KNOWN_REGIONS = re.compile(r'knownRegions\s*=\s*\(([\s\S]*?)\)\s*;')
    REGION_TOKEN = re.compile(r'"((?:\\.|[^"\\])*)"|([A-Za-z0-9_.-]+)')
    BARE_REGION = re.compile(r'^[A-Za-z0-9_]+$')
    LEADING_WHITESPACE = re.compile(r'^([ \t]+)')
    CLOSING_INDENT = re.compile(r'\n([ \t]*)\)\s*;\s*$')
