"""
Parser for simple paths like `std::vec::Vec`, `anyhow::Result` or `thiserror`.

Segments follow the Rust identifier rules: Unicode XID identifiers (which is
what ``str.isidentifier`` checks), where `_` alone is not an identifier and
strict or reserved keywords are only allowed in raw form (`r#type`).
"""

from docsrs_links.errors import PathError, PathErrorReason
from docsrs_links.models import PathSegment, SimplePath

SEPARATOR = "::"
RAW_PREFIX = "r#"

STRICT_KEYWORDS = frozenset(
    {
        "as", "break", "const", "continue", "crate", "else", "enum", "extern",
        "false", "fn", "for", "if", "impl", "in", "let", "loop", "match", "mod",
        "move", "mut", "pub", "ref", "return", "self", "Self", "static", "struct",
        "super", "trait", "true", "type", "unsafe", "use", "where", "while",
        "async", "await", "dyn",
    }
)
RESERVED_KEYWORDS = frozenset(
    {
        "abstract", "become", "box", "do", "final", "macro", "override", "priv",
        "typeof", "unsized", "virtual", "yield",
    }
)
# Path keywords that can't be written as raw identifiers either
NON_RAW_KEYWORDS = frozenset({"crate", "self", "super", "Self"})


def is_identifier_or_keyword(value: str) -> bool:
    """Check for an XID identifier, keywords included. `_` alone doesn't count."""
    return value.isidentifier() and value != "_"


def is_keyword(value: str) -> bool:
    return value in STRICT_KEYWORDS or value in RESERVED_KEYWORDS


def parse_segment(segment: str, path: str) -> PathSegment:
    """Validate a single segment of ``path``.

    Raises:
        PathError: If the segment is empty, not an identifier or a keyword
    """
    if not segment:
        raise PathError(PathErrorReason.EMPTY_SEGMENT, path, segment)

    if segment.startswith(RAW_PREFIX):
        name = segment[len(RAW_PREFIX) :]
        if not is_identifier_or_keyword(name):
            raise PathError(PathErrorReason.INVALID_IDENTIFIER, path, segment)
        if name in NON_RAW_KEYWORDS:
            raise PathError(PathErrorReason.KEYWORD, path, segment)
        return PathSegment(name=name, raw=True)

    if not is_identifier_or_keyword(segment):
        raise PathError(PathErrorReason.INVALID_IDENTIFIER, path, segment)
    if is_keyword(segment):
        raise PathError(PathErrorReason.KEYWORD, path, segment)
    return PathSegment(name=segment)


def parse_path(text: str) -> SimplePath:
    """Parse a `::` separated path into a ``SimplePath``.

    A single leading `::` (a global path) is accepted and dropped.

    Args:
        text: Path like `anyhow::Error::new`

    Returns:
        The validated path

    Raises:
        PathError: With the reason and offending segment when the path is
            invalid
    """
    if not text:
        raise PathError(PathErrorReason.EMPTY, text)

    body = text[len(SEPARATOR) :] if text.startswith(SEPARATOR) else text
    segments = tuple(parse_segment(segment, text) for segment in body.split(SEPARATOR))
    return SimplePath(segments=segments)
