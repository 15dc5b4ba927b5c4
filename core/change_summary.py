# -*- coding: utf-8 -*-
"""
Change Summary

Per key/locale before/after rows for the edited keys of a catalog, and the
commit title/description a publisher attaches to the updated file.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional
from urllib.parse import quote

import xcforge_config as config
from xcforge_enums import CatalogSourceKind
from models.document import LocalizationDocument
from core.dirty_tracker import collect_locales_for_key
from core.value_resolver import resolve_locale_value

GITHUB_BLOB_URL = "https://github.com/{owner}/{repo}/blob/{branch}/{path}"


@dataclass
class ChangeRow:
    key: str
    locale: str
    before: str
    after: str


@dataclass
class ChangeSummary:
    title: str
    body: str
    locales: List[str] = field(default_factory=list)
    keys: List[str] = field(default_factory=list)


def collect_changes(
    document: LocalizationDocument,
    baseline: LocalizationDocument,
    keys: Iterable[str],
) -> List[ChangeRow]:
    """Rows for every locale whose resolved value differs, keys and locales sorted."""
    rows = []
    for key in sorted(keys):
        current = document.strings.get(key)
        original = baseline.strings.get(key)
        for locale in sorted(collect_locales_for_key(key, document, baseline)):
            after = resolve_locale_value(current, locale, document.source_language, key)
            before = resolve_locale_value(original, locale, baseline.source_language, key)
            if after != before:
                rows.append(ChangeRow(key=key, locale=locale, before=before, after=after))
    return rows


def _encode(part: str) -> str:
    return quote(part, safe='/')


def github_file_link(source) -> Optional[str]:
    """Blob URL of the catalog on GitHub, or None for other sources."""
    if source is None or source.kind != CatalogSourceKind.GITHUB.value:
        return None
    if not (source.owner and source.repo and source.branch and source.path):
        return None
    return GITHUB_BLOB_URL.format(
        owner=_encode(source.owner),
        repo=_encode(source.repo),
        branch=_encode(source.branch),
        path=_encode(source.path),
    )


def build_change_summary(
    file_name: str,
    document: LocalizationDocument,
    baseline: LocalizationDocument,
    dirty_keys: Iterable[str],
    source=None,
    preferred_locale: Optional[str] = None,
) -> ChangeSummary:
    """
    Build the title and markdown body describing the pending edits.

    Args:
        file_name: Catalog file name shown in the body
        document: Edited document
        baseline: Document as loaded
        dirty_keys: Keys with pending edits
        source: CatalogSource, used for the file link
        preferred_locale: Overrides the locale descriptor in the title
    """
    keys = sorted(dirty_keys)
    locales = sorted({row.locale for row in collect_changes(document, baseline, keys)})
    descriptor = ', '.join(locales) if locales else 'catalog'

    preferred = (preferred_locale or '').strip()
    title = config.CHANGE_SUMMARY_TITLE.format(descriptor=preferred or descriptor)

    link = github_file_link(source)
    file_ref = f"[{file_name}]({link})" if link else file_name

    lines = [f"Updated file: {file_ref}"]
    if locales:
        label = 'locale' if len(locales) == 1 else 'locales'
        lines.append(f"Updated {label}: {descriptor}")

    sample = keys[:config.CHANGE_SUMMARY_SAMPLE_KEYS]
    if sample:
        lines.append('')
        lines.append('Modified keys:')
        lines.extend(f"- {key}" for key in sample)
        if len(keys) > len(sample):
            lines.append(f"- ...and {len(keys) - len(sample)} more")

    return ChangeSummary(title=title, body='\n'.join(lines), locales=locales, keys=keys)
