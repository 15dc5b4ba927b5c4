# -*- coding: utf-8 -*-
"""
Formatting-Preserving Serializer

Keeps catalog text in step with the document model in two ways:

- Targeted patch (`apply_json_change`): rewrites only the member found at a
  key path. Every byte outside that member stays as it was.
- Full rebuild (`rebuild`): serializes the whole document again, reusing the
  indentation, line endings, key/colon spacing and trailing newline of a
  reference text.

Formatting is detected from the text itself, never assumed.
"""

import json
from dataclasses import dataclass
from json.decoder import scanstring
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

import xcforge_config as config
from xcforge_exceptions import PatchPathError
from xcforge_logger import get_logger
from parser.patterns import CatalogPatterns
from models.document import LocalizationDocument

logger = get_logger("core.json_format")

COLON_SPACE = 'space'
COLON_NONE = 'none'


class _Delete:
    def __repr__(self):
        return "DELETE"


# Patch value that removes the member at the path
DELETE = _Delete()


@dataclass(frozen=True)
class FormattingOptions:
    insert_spaces: bool = True
    tab_size: int = config.DEFAULT_INDENT_SIZE
    eol: str = config.DEFAULT_EOL
    colon_spacing: Optional[str] = None  # COLON_SPACE, COLON_NONE or None (leave as serialized)
    empty_object_breaks: int = 0  # line breaks inside an empty object; 0 writes "{}"

    @property
    def indent_unit(self) -> str:
        return ' ' * self.tab_size if self.insert_spaces else '\t'


# =============================================================================
# DETECTION
# =============================================================================

def detect_indent(text: str) -> Tuple[bool, int]:
    """Return (insert_spaces, tab_size) from the first indented line."""
    match = CatalogPatterns.INDENT.search(text)
    if not match:
        return True, config.DEFAULT_INDENT_SIZE
    indent = match.group(1)
    if '\t' in indent:
        return False, 1
    return True, len(indent)


def detect_eol(text: str) -> str:
    return '\r\n' if '\r\n' in text else '\n'


def detect_colon_spacing(text: str) -> Optional[str]:
    """Majority style of whitespace between object keys and their colon."""
    with_space = 0
    without_space = 0
    for match in CatalogPatterns.STRING_TOKEN.finditer(text):
        colon = match.group(2)
        if colon is None:
            continue
        if len(colon) > 1:
            with_space += 1
        else:
            without_space += 1

    if with_space + without_space == 0:
        return None
    return COLON_SPACE if with_space >= without_space else COLON_NONE


def detect_empty_object_breaks(text: str) -> int:
    """
    Majority layout of empty objects.

    Returns 0 for "{}", else the number of line breaks inside the first
    expanded one (Xcode leaves a blank line inside, which counts 2).
    """
    expanded = list(CatalogPatterns.EXPANDED_EMPTY_OBJECT.finditer(text))
    if not expanded:
        return 0
    compact = sum(1 for match in CatalogPatterns.EMPTY_OBJECT_TOKEN.finditer(text) if match.group(0) == '{}')
    if compact >= len(expanded):
        return 0
    return expanded[0].group(1).count('\n')


def detect_formatting_options(text: str) -> FormattingOptions:
    insert_spaces, tab_size = detect_indent(text)
    return FormattingOptions(
        insert_spaces=insert_spaces,
        tab_size=tab_size,
        eol=detect_eol(text),
        colon_spacing=detect_colon_spacing(text),
        empty_object_breaks=detect_empty_object_breaks(text),
    )


def format_key_colon_spacing(text: str, style: str) -> str:
    """Apply `style` to every key/colon pair that sits on one line."""
    def _replace(match):
        colon = match.group(2)
        if colon is None:
            return match.group(0)
        key = match.group(1)
        whitespace = colon[:-1]
        if '\n' in whitespace or '\r' in whitespace:
            return match.group(0)
        if style == COLON_SPACE:
            return f"{key}{whitespace or ' '}:"
        return f"{key}:"

    return CatalogPatterns.STRING_TOKEN.sub(_replace, text)



def expand_empty_objects(text: str, breaks: int) -> str:
    """Spread every "{}" outside strings over `breaks` line breaks (LF text)."""
    if breaks <= 0:
        return text

    def _replace(match):
        if match.group(0) != '{}':
            return match.group(0)
        return '{' + '\n' * breaks + _leading_ws(text, match.start()) + '}'

    return CatalogPatterns.EMPTY_OBJECT_TOKEN.sub(_replace, text)


# =============================================================================
# FULL REBUILD
# =============================================================================

def serialize_document(document: LocalizationDocument, formatting: Optional[FormattingOptions] = None) -> str:
    """Serialize the whole document (no trailing newline)."""
    formatting = formatting or FormattingOptions()
    text = json.dumps(document.to_dict(), indent=formatting.indent_unit, ensure_ascii=False)
    text = expand_empty_objects(text, formatting.empty_object_breaks)
    if formatting.colon_spacing:
        text = format_key_colon_spacing(text, formatting.colon_spacing)
    if formatting.eol != '\n':
        text = text.replace('\n', formatting.eol)
    return text


def rebuild(
    document: LocalizationDocument,
    reference_text: str,
    formatting: Optional[FormattingOptions] = None,
) -> str:
    """Serialize `document` in the style of `reference_text`, trailing newline included."""
    if formatting is None:
        formatting = detect_formatting_options(reference_text)
    text = serialize_document(document, formatting)
    if reference_text.endswith('\n'):
        text += formatting.eol
    return text


# =============================================================================
# TARGETED PATCH
# =============================================================================

class _Member(NamedTuple):
    key: str
    start: int          # opening quote of the key
    value_start: int
    value_end: int      # exclusive


def _char(text: str, pos: int) -> str:
    return text[pos] if pos < len(text) else ''


def _skip_ws(text: str, pos: int) -> int:
    n = len(text)
    while pos < n and text[pos] in ' \t\r\n':
        pos += 1
    return pos


def _scan_string(text: str, pos: int, path) -> Tuple[str, int]:
    try:
        return scanstring(text, pos + 1)
    except ValueError as e:
        raise PatchPathError(f"Malformed string at offset {pos}", path) from e


def _skip_array(text: str, pos: int, path) -> int:
    pos = _skip_ws(text, pos + 1)
    if _char(text, pos) == ']':
        return pos + 1
    while True:
        pos = _skip_ws(text, _skip_value(text, pos, path))
        ch = _char(text, pos)
        if ch == ',':
            pos = _skip_ws(text, pos + 1)
        elif ch == ']':
            return pos + 1
        else:
            raise PatchPathError(f"Expected ',' or ']' at offset {pos}", path)


def _skip_value(text: str, pos: int, path) -> int:
    ch = _char(text, pos)
    if ch == '"':
        return _scan_string(text, pos, path)[1]
    if ch == '{':
        return _read_members(text, pos, path)[1]
    if ch == '[':
        return _skip_array(text, pos, path)
    match = CatalogPatterns.SCALAR.match(text, pos)
    if match is None:
        raise PatchPathError(f"Unexpected character at offset {pos}", path)
    return match.end()


def _read_members(text: str, pos: int, path) -> Tuple[List[_Member], int]:
    """Members of the object opening at `pos`, and the offset just past its '}'."""
    members: List[_Member] = []
    pos = _skip_ws(text, pos + 1)
    if _char(text, pos) == '}':
        return members, pos + 1

    while True:
        if _char(text, pos) != '"':
            raise PatchPathError(f"Expected a key at offset {pos}", path)
        start = pos
        key, pos = _scan_string(text, pos, path)
        pos = _skip_ws(text, pos)
        if _char(text, pos) != ':':
            raise PatchPathError(f"Expected ':' at offset {pos}", path)
        value_start = _skip_ws(text, pos + 1)
        value_end = _skip_value(text, value_start, path)
        members.append(_Member(key, start, value_start, value_end))

        pos = _skip_ws(text, value_end)
        ch = _char(text, pos)
        if ch == ',':
            pos = _skip_ws(text, pos + 1)
        elif ch == '}':
            return members, pos + 1
        else:
            raise PatchPathError(f"Expected ',' or '}}' at offset {pos}", path)


def _find_member(members: List[_Member], key: str) -> Optional[_Member]:
    # Duplicate keys: the last one wins, as when decoding
    for member in reversed(members):
        if member.key == key:
            return member
    return None


def _line_indent(text: str, pos: int) -> Optional[str]:
    """Whitespace in front of `pos` on its line, or None if other text precedes it."""
    line_start = text.rfind('\n', 0, pos) + 1
    prefix = text[line_start:pos]
    return prefix if not prefix.strip() else None


def _leading_ws(text: str, pos: int) -> str:
    line_start = text.rfind('\n', 0, pos) + 1
    end = line_start
    while end < pos and text[end] in ' \t':
        end += 1
    return text[line_start:end]


def _render_value(value: Any, indent: str, formatting: FormattingOptions) -> str:
    raw = json.dumps(value, indent=formatting.indent_unit, ensure_ascii=False)
    raw = expand_empty_objects(raw, formatting.empty_object_breaks)
    if formatting.colon_spacing:
        raw = format_key_colon_spacing(raw, formatting.colon_spacing)
    lines = raw.split('\n')
    # Blank lines (inside expanded empty objects) stay blank
    return formatting.eol.join([lines[0]] + [indent + line if line else line for line in lines[1:]])


def _render_member(key: str, value: Any, indent: str, formatting: FormattingOptions) -> str:
    # Colon spacing is applied to this snippet only; the rest of the text keeps its own
    head = json.dumps(key, ensure_ascii=False) + ': '
    if formatting.colon_spacing:
        head = format_key_colon_spacing(head, formatting.colon_spacing)
    return head + _render_value(value, indent, formatting)


def _insert_member(text, obj_start, obj_end, members, key, value, depth, formatting) -> str:
    if not members:
        parent_indent = _leading_ws(text, obj_start)
        indent = parent_indent + formatting.indent_unit
        body = formatting.eol + indent + _render_member(key, value, indent, formatting) + formatting.eol + parent_indent
        return text[:obj_start + 1] + body + text[obj_end - 1:]

    indent = _line_indent(text, members[0].start)
    if indent is None:
        indent = formatting.indent_unit * depth
    rendered = _render_member(key, value, indent, formatting)

    keys = [member.key for member in members]
    if all(a <= b for a, b in zip(keys, keys[1:])):
        for member in members:
            if member.key > key:
                insertion = rendered + ',' + formatting.eol + indent
                return text[:member.start] + insertion + text[member.start:]

    last = members[-1]
    insertion = ',' + formatting.eol + indent + rendered
    return text[:last.value_end] + insertion + text[last.value_end:]


def _remove_member(text, obj_start, obj_end, members, member, formatting) -> str:
    if len(members) == 1:
        inner = ''
        if formatting.empty_object_breaks:
            inner = formatting.eol * formatting.empty_object_breaks + _leading_ws(text, obj_start)
        return text[:obj_start + 1] + inner + text[obj_end - 1:]
    index = members.index(member)
    if index < len(members) - 1:
        return text[:member.start] + text[members[index + 1].start:]
    previous = members[index - 1]
    return text[:previous.value_end] + text[member.value_end:]


def apply_json_change(
    text: str,
    path: Sequence[str],
    value: Any,
    formatting: Optional[FormattingOptions] = None,
) -> str:
    """
    Set (or with DELETE, remove) the member at `path`.

    Missing intermediate objects are created. A new member goes to its sorted
    position when its siblings are sorted, else after the last sibling.

    Args:
        text: Current catalog text
        path: Object keys from the root, e.g. ["strings", key, "comment"]
        value: JSON-serializable value, or DELETE
        formatting: Formatting of `text` (detected when omitted)

    Returns:
        The patched text

    Raises:
        PatchPathError: If the text is not a JSON object or the path crosses a non-object
    """
    path = list(path)
    if not path or not all(isinstance(segment, str) for segment in path):
        raise PatchPathError("Patch path must be a non-empty list of keys", path)
    if formatting is None:
        formatting = detect_formatting_options(text)

    pos = _skip_ws(text, 1 if text.startswith('﻿') else 0)
    if _char(text, pos) != '{':
        raise PatchPathError("Catalog text is not a JSON object", path)

    obj_start = pos
    depth = 1
    for index, segment in enumerate(path):
        members, obj_end = _read_members(text, obj_start, path)
        member = _find_member(members, segment)
        is_last = index == len(path) - 1

        if member is not None and not is_last:
            if _char(text, member.value_start) != '{':
                raise PatchPathError(f"Path segment '{segment}' is not an object", path)
            obj_start = member.value_start
            depth += 1
            continue

        if value is DELETE:
            if member is None:
                return text
            return _remove_member(text, obj_start, obj_end, members, member, formatting)

        if member is not None:
            indent = _line_indent(text, member.start)
            if indent is None:
                indent = formatting.indent_unit * depth
            rendered = _render_value(value, indent, formatting)
            return text[:member.value_start] + rendered + text[member.value_end:]

        nested = value
        for inner in reversed(path[index + 1:]):
            nested = {inner: nested}
        return _insert_member(text, obj_start, obj_end, members, segment, nested, depth, formatting)

    return text


def apply_json_changes(
    text: str,
    changes: Sequence[Tuple[Sequence[str], Any]],
    formatting: Optional[FormattingOptions] = None,
) -> str:
    """Apply several (path, value) changes one after the other."""
    if formatting is None:
        formatting = detect_formatting_options(text)
    for path, value in changes:
        text = apply_json_change(text, path, value, formatting)
    return text
