"""Exceptions raised by docsrs-links.

Resolution misses are not errors: ``resolve`` returns a ``NotFound`` outcome
for them. Everything here signals input that could not be understood at all.
"""

from __future__ import annotations

from enum import Enum


class DocsrsLinksError(Exception):
    """Base class for all errors raised by this package."""


class DecodeError(DocsrsLinksError):
    """A search index payload could not be decoded.

    Attributes:
        offset: Byte offset into the payload for lexical errors, if known
        generation: Name of the index generation that was being decoded
    """

    def __init__(
        self,
        message: str,
        *,
        offset: int | None = None,
        generation: str | None = None,
    ):
        self.message = message
        self.offset = offset
        self.generation = generation
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = []
        if self.generation:
            parts.append(f"[{self.generation}]")
        parts.append(self.message)
        if self.offset is not None:
            parts.append(f"(at byte {self.offset})")
        return " ".join(parts)


class UnsupportedIndexVersionError(DecodeError):
    """No supported index generation could decode the payload."""

    def __init__(self, attempts: dict[str, DecodeError]):
        self.attempts = attempts
        tried = "; ".join(f"{name}: {err.message}" for name, err in attempts.items())
        super().__init__(f"the index version is not supported ({tried or 'nothing tried'})")


class CrateDataMissingError(DocsrsLinksError):
    """The index didn't contain information for the requested crate."""


class PathErrorReason(str, Enum):
    """Why a simple path failed to parse."""

    EMPTY = "empty"
    EMPTY_SEGMENT = "empty_segment"
    INVALID_IDENTIFIER = "invalid_identifier"
    KEYWORD = "keyword"


class PathError(DocsrsLinksError, ValueError):
    """A simple path is syntactically invalid."""

    def __init__(self, reason: PathErrorReason, value: str, segment: str | None = None):
        self.reason = reason
        self.value = value
        self.segment = segment
        if segment is None:
            message = f"invalid path {value!r}: {reason.value}"
        else:
            message = f"invalid path {value!r}: {reason.value} in segment {segment!r}"
        super().__init__(message)


class IndexNotFoundError(DocsrsLinksError):
    """Couldn't find the search index location in a documentation page."""


class InvalidVersionFormatError(DocsrsLinksError):
    """A version string was not in the expected format."""


class FetchError(DocsrsLinksError):
    """A documentation page or search index couldn't be downloaded."""
