# -*- coding: utf-8 -*-
"""
XCForge Document Model

Typed view of a string catalog document:

    LocalizationDocument
      └─ strings: key -> StringEntry
           └─ localizations: locale -> LocalizationRecord
                ├─ stringUnit: StringUnit(state, value)
                └─ variations: selector -> VariationRecord (nested cases)

Every class keeps members it does not model in `extra`, so a document read
from text and written back loses nothing. `to_dict()` emits members in sorted
key order, which is how catalog files are laid out; only the `strings` map
keeps its document order.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from xcforge_logger import get_logger

logger = get_logger("models.document")


def _sorted_members(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: data[key] for key in sorted(data)}


def _optional_str(data: Dict[str, Any], name: str, extra: Dict[str, Any]) -> Optional[str]:
    """Read a string member; anything else of that name is carried in `extra`."""
    if name not in data:
        return None
    value = data[name]
    if isinstance(value, str):
        return value
    extra[name] = value
    return None


@dataclass
class StringUnit:
    """A single value with its review state."""
    state: Optional[str] = None
    value: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StringUnit':
        extra = {k: v for k, v in data.items() if k not in ('state', 'value')}
        state = _optional_str(data, 'state', extra)
        value = _optional_str(data, 'value', extra)
        return cls(state=state, value=value, extra=extra)

    def to_dict(self) -> Dict[str, Any]:
        out = copy.deepcopy(self.extra)
        if self.state is not None:
            out['state'] = self.state
        if self.value is not None:
            out['value'] = self.value
        return _sorted_members(out)


@dataclass
class VariationRecord:
    """
    One variant of a localization (a plural category, a device class...).

    A variant either carries its own `stringUnit` or groups further cases,
    e.g. `{"plural": {"one": {...}, "other": {...}}}`.
    """
    string_unit: Optional[StringUnit] = None
    cases: Dict[str, 'VariationRecord'] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VariationRecord':
        record = cls()
        for name, value in data.items():
            if name == 'stringUnit' and isinstance(value, dict):
                record.string_unit = StringUnit.from_dict(value)
            elif name != 'stringUnit' and isinstance(value, dict):
                record.cases[name] = cls.from_dict(value)
            else:
                record.extra[name] = value
        return record

    def to_dict(self) -> Dict[str, Any]:
        out = copy.deepcopy(self.extra)
        for name, case in self.cases.items():
            out[name] = case.to_dict()
        if self.string_unit is not None:
            out['stringUnit'] = self.string_unit.to_dict()
        return _sorted_members(out)


@dataclass
class LocalizationRecord:
    """Per-locale data of one catalog key."""
    comment: Optional[str] = None
    string_unit: Optional[StringUnit] = None
    variations: Optional[Dict[str, VariationRecord]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LocalizationRecord':
        extra = {k: v for k, v in data.items() if k not in ('comment', 'stringUnit', 'variations')}
        record = cls(comment=_optional_str(data, 'comment', extra), extra=extra)

        unit = data.get('stringUnit')
        if isinstance(unit, dict):
            record.string_unit = StringUnit.from_dict(unit)
        elif 'stringUnit' in data:
            extra['stringUnit'] = unit

        variations = data.get('variations')
        if isinstance(variations, dict):
            record.variations = {
                name: VariationRecord.from_dict(value)
                for name, value in variations.items()
                if isinstance(value, dict)
            }
            if len(record.variations) != len(variations):
                logger.debug("Dropped non-object variations while parsing a localization")
        elif 'variations' in data:
            extra['variations'] = variations
        return record

    def to_dict(self) -> Dict[str, Any]:
        out = copy.deepcopy(self.extra)
        if self.comment is not None:
            out['comment'] = self.comment
        if self.string_unit is not None:
            out['stringUnit'] = self.string_unit.to_dict()
        if self.variations is not None:
            out['variations'] = _sorted_members(
                {name: variation.to_dict() for name, variation in self.variations.items()}
            )
        return _sorted_members(out)


@dataclass
class StringEntry:
    """
    One catalog key.

    Attributes:
        comment: Key-level, language independent comment.
        extraction_state: Provenance of the key (manual, extracted_with_value, ...).
        should_translate: Serialized only when False.
        localizations: locale -> LocalizationRecord, None when the member is absent.
        string_unit: Legacy single value stored directly on the entry.
        extra: Members not modelled here (substitutions, ...).
    """
    comment: Optional[str] = None
    extraction_state: Optional[str] = None
    should_translate: bool = True
    localizations: Optional[Dict[str, LocalizationRecord]] = None
    string_unit: Optional[StringUnit] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ('comment', 'extractionState', 'shouldTranslate', 'localizations', 'stringUnit')

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StringEntry':
        extra = {k: v for k, v in data.items() if k not in cls._KNOWN}
        entry = cls(
            comment=_optional_str(data, 'comment', extra),
            extraction_state=_optional_str(data, 'extractionState', extra),
            extra=extra,
        )

        should_translate = data.get('shouldTranslate', True)
        if isinstance(should_translate, bool):
            entry.should_translate = should_translate
        else:
            extra['shouldTranslate'] = should_translate

        localizations = data.get('localizations')
        if isinstance(localizations, dict):
            entry.localizations = {
                locale: LocalizationRecord.from_dict(record)
                for locale, record in localizations.items()
                if isinstance(record, dict)
            }
        elif 'localizations' in data:
            extra['localizations'] = localizations

        unit = data.get('stringUnit')
        if isinstance(unit, dict):
            entry.string_unit = StringUnit.from_dict(unit)
        elif 'stringUnit' in data:
            extra['stringUnit'] = unit
        return entry

    def to_dict(self) -> Dict[str, Any]:
        out = copy.deepcopy(self.extra)
        if self.comment is not None:
            out['comment'] = self.comment
        if self.extraction_state is not None:
            out['extractionState'] = self.extraction_state
        if self.localizations is not None:
            out['localizations'] = _sorted_members(
                {locale: record.to_dict() for locale, record in self.localizations.items()}
            )
        if not self.should_translate:
            out['shouldTranslate'] = False
        if self.string_unit is not None:
            out['stringUnit'] = self.string_unit.to_dict()
        return _sorted_members(out)

    def clone(self) -> 'StringEntry':
        return copy.deepcopy(self)

    def get_localization(self, locale: str) -> Optional[LocalizationRecord]:
        if not self.localizations:
            return None
        return self.localizations.get(locale)

    def ensure_localization(self, locale: str) -> LocalizationRecord:
        """Return the record for `locale`, creating the map and record as needed."""
        if self.localizations is None:
            self.localizations = {}
        record = self.localizations.get(locale)
        if record is None:
            record = LocalizationRecord()
            self.localizations[locale] = record
        return record


@dataclass
class LocalizationDocument:
    """A whole catalog."""
    source_language: Optional[str] = None
    available_locales: Optional[List[str]] = None
    strings: Dict[str, StringEntry] = field(default_factory=dict)
    version: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LocalizationDocument':
        """Build a document from decoded JSON. `data['strings']` must be an object."""
        known = ('sourceLanguage', 'availableLocales', 'strings', 'version')
        extra = {k: v for k, v in data.items() if k not in known}
        document = cls(
            source_language=_optional_str(data, 'sourceLanguage', extra),
            version=_optional_str(data, 'version', extra),
            extra=extra,
        )

        locales = data.get('availableLocales')
        if isinstance(locales, list):
            document.available_locales = [
                locale for locale in locales if isinstance(locale, str) and locale.strip()
            ]
        elif 'availableLocales' in data:
            extra['availableLocales'] = locales

        for key, value in data['strings'].items():
            if isinstance(value, dict):
                document.strings[key] = StringEntry.from_dict(value)
            else:
                logger.warning(f"Catalog key '{key}' is not an object; treating it as empty")
                document.strings[key] = StringEntry()
        return document

    def to_dict(self) -> Dict[str, Any]:
        out = copy.deepcopy(self.extra)
        if self.available_locales is not None:
            out['availableLocales'] = list(self.available_locales)
        if self.source_language is not None:
            out['sourceLanguage'] = self.source_language
        out['strings'] = {key: entry.to_dict() for key, entry in self.strings.items()}
        if self.version is not None:
            out['version'] = self.version
        return _sorted_members(out)

    def clone(self) -> 'LocalizationDocument':
        return copy.deepcopy(self)
