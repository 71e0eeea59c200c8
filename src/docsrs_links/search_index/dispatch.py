"""Generation detection and decoder dispatch.

Rustdoc never versioned its search index explicitly. Each generation ends
with a recognizable footer, which is used to pick the decoder to try first;
the remaining decoders are tried afterwards, newest first, so an unknown
footer does not prevent decoding a known layout.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

import structlog

from docsrs_links.errors import (
    CrateDataMissingError,
    DecodeError,
    UnsupportedIndexVersionError,
)
from docsrs_links.models import Crate, Index

from . import v1, v2, v3

logger = structlog.get_logger(__name__)


class IndexVersion(str, Enum):
    """Supported search index generations."""

    V1 = "v1"
    V2 = "v2"
    V3 = "v3"


_DECODERS: dict[IndexVersion, Callable[[str, str | None], list[Crate]]] = {
    IndexVersion.V3: v3.decode,
    IndexVersion.V2: v2.decode,
    IndexVersion.V1: v1.decode,
}

_FOOTERS = (
    ("initSearch(searchIndex);addSearchOptions(searchIndex);", IndexVersion.V1),
    ("addSearchOptions(searchIndex);initSearch(searchIndex);", IndexVersion.V2),
    ("window.initSearch(searchIndex)", IndexVersion.V3),
    ("exports.searchIndex = searchIndex", IndexVersion.V3),
)


def detect_version(text: str) -> IndexVersion | None:
    """Guess the generation of a payload from its trailing statements."""
    tail = text[-512:]
    for footer, version in _FOOTERS:
        if footer in tail:
            return version
    return None


def decode_crates(
    payload: bytes | str,
    version_hint: IndexVersion | str | None = None,
    version: str | None = None,
) -> list[Crate]:
    """Decode every crate of a search index payload.

    Args:
        payload: Raw contents of a ``search-index*.js`` file
        version_hint: Only try this generation
        version: Crate version recorded on the decoded crates

    Returns:
        Crates in payload order

    Raises:
        DecodeError: If the payload is not valid UTF-8, the hint names no
            known generation, or the hinted generation fails to decode it
        UnsupportedIndexVersionError: If no generation decodes the payload
    """
    if isinstance(payload, bytes):
        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(
                f"payload is not valid UTF-8: {e.reason}", offset=e.start
            ) from e
    else:
        text = payload

    if version_hint is not None:
        try:
            hinted = IndexVersion(version_hint)
        except ValueError as e:
            raise DecodeError(f"unknown index version {version_hint!r}") from e
        return _DECODERS[hinted](text, version)

    detected = detect_version(text)
    order = list(_DECODERS)
    if detected is not None:
        order.remove(detected)
        order.insert(0, detected)

    attempts: dict[str, DecodeError] = {}
    for candidate in order:
        try:
            crates = _DECODERS[candidate](text, version)
        except DecodeError as e:
            logger.debug(
                f"{candidate.value} decoder rejected payload",
                detected=detected.value if detected else None,
                error=str(e),
            )
            attempts[candidate.value] = e
            continue
        logger.debug(f"decoded {len(crates)} crates as {candidate.value}")
        return crates
    raise UnsupportedIndexVersionError(attempts)


def decode(
    payload: bytes | str,
    version_hint: IndexVersion | str | None = None,
    crate_name: str | None = None,
) -> Index:
    """Decode a payload and return the index of one of its crates.

    Without ``crate_name`` the payload must hold exactly one crate.

    Raises:
        CrateDataMissingError: If the crate is not in the payload, or no
            name was given for a payload with several crates
    """
    crates = decode_crates(payload, version_hint)
    if crate_name is None:
        if len(crates) != 1:
            raise CrateDataMissingError(
                f"payload holds {len(crates)} crates, pass the crate name to pick one"
            )
        return crates[0].index
    for crate in crates:
        if crate.name == crate_name:
            return crate.index
    raise CrateDataMissingError(f"crate {crate_name!r} not found in the search index")
