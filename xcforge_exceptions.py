# -*- coding: utf-8 -*-
"""
XCForge Exceptions Module
Custom exception classes for structured error handling across the application.
"""


class XCForgeError(Exception):
    """
    Base exception class for all XCForge-related errors.

    Attributes:
        message: Human-readable error message
        details: Optional additional details (dict, string, etc.)
    """

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# Parser Exceptions
# =============================================================================

class ParserError(XCForgeError):
    """Base exception for parser-related errors."""
    pass


class ParseError(ParserError):
    """
    Raised when catalog text cannot be turned into a document.

    `reason` is one of 'invalid_json' or 'missing_strings'.
    """

    INVALID_JSON = "invalid_json"
    MISSING_STRINGS = "missing_strings"

    def __init__(self, message: str, reason: str = INVALID_JSON, position: int = None):
        super().__init__(message, details={'reason': reason, 'position': position})
        self.reason = reason
        self.position = position


# =============================================================================
# Serialization Exceptions
# =============================================================================

class SerializationError(XCForgeError):
    """Base exception for text synchronization errors."""
    pass


class PatchPathError(SerializationError):
    """Raised when a targeted patch cannot locate or build its key path."""

    def __init__(self, message: str, path=None):
        super().__init__(message, details={'path': list(path) if path is not None else None})
        self.path = list(path) if path is not None else None


# =============================================================================
# Storage Exceptions
# =============================================================================

class StorageError(XCForgeError):
    """Base exception for persistent storage errors."""
    pass


class StorageReadError(StorageError):
    """Raised when reading from the key-value storage fails."""

    def __init__(self, message: str, key: str = None):
        super().__init__(message, details={'key': key})
        self.key = key


class StorageWriteError(StorageError):
    """Raised when writing to the key-value storage fails."""

    def __init__(self, message: str, key: str = None):
        super().__init__(message, details={'key': key})
        self.key = key


# =============================================================================
# Companion Project File Exceptions
# =============================================================================

class ProjectFileError(XCForgeError):
    """Raised when the companion project file cannot be updated."""

    def __init__(self, message: str, locale: str = None):
        super().__init__(message, details={'locale': locale})
        self.locale = locale
