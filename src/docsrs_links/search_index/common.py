"""Normalization shared by all index generations.

Each generation decoder only knows its own field layout. It turns the raw
payload into ``RawItem`` rows with a folded module path and a parent given as
a position in the paths table, and hands them to ``build_crate``. That is the
single place where parent references become ``SelfIndex``/``ForeignIndex``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from itertools import accumulate
from typing import Any

import structlog
from pydantic import ValidationError

from docsrs_links.errors import DecodeError
from docsrs_links.models import (
    Crate,
    ForeignIndex,
    Index,
    Item,
    ItemKind,
    PathEntry,
    SelfIndex,
)

logger = structlog.get_logger(__name__)

_JSON_PARSE_START = re.compile(r"JSON\.parse\(\s*'")
# Body of a single-quoted JavaScript string, escapes included
_JS_STRING_BODY = re.compile(r"[^'\\]*(?:\\.[^'\\]*)*", re.DOTALL)
_JS_ESCAPE = re.compile(r"\\(.)", re.DOTALL)
_JS_ESCAPES = {
    "\n": "",  # line continuation
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


@dataclass(frozen=True)
class RawItem:
    """One item row after generation-specific decoding."""

    kind: ItemKind
    name: str
    module_path: str
    description: str | None
    parent: int | None  # position in the paths table


def load_json_parse_payload(text: str, generation: str) -> Any:
    """Extract and decode the JSON document inside ``JSON.parse('...')``.

    Rustdoc escapes the JSON text as a single-quoted JavaScript string split
    over lines with ``\\`` continuations; the JavaScript escaping is undone
    before handing the text to ``json.loads``.
    """
    start = _JSON_PARSE_START.search(text)
    if start is None:
        raise DecodeError("missing JSON.parse(...) payload", generation=generation)
    body = _JS_STRING_BODY.match(text, start.end())
    end = body.end()
    if end >= len(text) or text[end] != "'":
        raise DecodeError(
            "unterminated JSON.parse string",
            offset=len(text[: start.end()].encode("utf-8")),
            generation=generation,
        )
    json_text = _JS_ESCAPE.sub(
        lambda m: _JS_ESCAPES.get(m.group(1), m.group(1)), body.group()
    )
    try:
        return json.loads(json_text)
    except json.JSONDecodeError as e:
        raise DecodeError(
            f"invalid JSON in search index: {e.msg} (line {e.lineno}, column {e.colno})",
            generation=generation,
        ) from e
    except RecursionError as e:
        raise DecodeError("JSON document nested too deep", generation=generation) from e


def crate_entries(document: Any, generation: str) -> list[tuple[str, Any]]:
    """List the ``(crate name, crate data)`` pairs of a decoded index document.

    Older payloads hold an object keyed by crate name, newer ones a list of
    ``[name, data]`` pairs fed into a JavaScript ``Map``.
    """
    if isinstance(document, dict):
        return list(document.items())
    if isinstance(document, list) and all(
        isinstance(pair, list) and len(pair) == 2 and isinstance(pair[0], str)
        for pair in document
    ):
        return [(name, data) for name, data in document]
    raise DecodeError(
        "index document is neither a crate mapping nor a list of crate pairs",
        generation=generation,
    )


def expect_field(
    data: Any,
    key: str,
    kind: type | tuple[type, ...],
    generation: str,
    crate: str,
) -> Any:
    """Fetch a required field of a crate entry, checking its JSON type."""
    if not isinstance(data, dict):
        raise DecodeError(f"crate {crate!r} data is not an object", generation=generation)
    if key not in data:
        raise DecodeError(f"crate {crate!r} has no {key!r} field", generation=generation)
    value = data[key]
    if not isinstance(value, kind) or isinstance(value, bool):
        raise DecodeError(
            f"crate {crate!r} field {key!r} has unexpected type {type(value).__name__}",
            generation=generation,
        )
    return value


def kind_from_code(code: Any, *, generation: str, context: str) -> ItemKind:
    """Convert a numeric item type, failing on unknown codes."""
    try:
        return ItemKind.from_code(code)
    except ValueError as e:
        raise DecodeError(f"{context}: {e}", generation=generation) from e


def kinds_from_letters(letters: str, *, generation: str, crate: str) -> list[ItemKind]:
    """Decode the compact item type column, where ``A`` is code 0."""
    kinds = []
    for position, letter in enumerate(letters):
        if not ("A" <= letter <= "Z"):
            raise DecodeError(
                f"crate {crate!r} item {position}: invalid item type character {letter!r}",
                generation=generation,
            )
        kinds.append(
            kind_from_code(
                ord(letter) - ord("A"),
                generation=generation,
                context=f"crate {crate!r} item {position}",
            )
        )
    return kinds


def fold_module_paths(
    raw_paths: Iterable[str | None], *, generation: str, crate: str
) -> list[str]:
    """Resolve "same as the previous item" module paths.

    An empty or missing path repeats the last one seen. The running value is
    the accumulator of the fold, so it never leaks out of a single decode.
    """
    folded = list(
        accumulate(raw_paths, lambda last, current: current or last, initial="")
    )[1:]
    if folded and not folded[0]:
        raise DecodeError(
            f"crate {crate!r}: first item has no module path to inherit from",
            generation=generation,
        )
    return folded


def decode_paths_table(
    raw: Any, *, generation: str, crate: str
) -> tuple[PathEntry, ...]:
    """Decode the ``p`` section of ``[kind, name, ...]`` entries, keeping order."""
    entries = []
    for position, entry in enumerate(raw):
        if not isinstance(entry, list) or len(entry) < 2 or not isinstance(entry[1], str):
            raise DecodeError(
                f"crate {crate!r} path {position}: expected [kind, name], got {entry!r}",
                generation=generation,
            )
        kind = kind_from_code(
            entry[0], generation=generation, context=f"crate {crate!r} path {position}"
        )
        entries.append(PathEntry(kind=kind, name=entry[1]))
    return tuple(entries)


def build_crate(
    name: str,
    doc: str,
    rows: Sequence[RawItem],
    paths: tuple[PathEntry, ...],
    *,
    generation: str,
    version: str | None = None,
) -> Crate:
    """Normalize decoded rows into an immutable ``Crate``.

    A parent entry becomes ``SelfIndex`` when this crate documents a
    parentless item of the same kind and name in the child's module,
    otherwise ``ForeignIndex`` into the paths table.
    """
    documented: dict[tuple[ItemKind, str, str], int] = {}
    for position, row in enumerate(rows):
        if row.parent is None:
            documented.setdefault((row.kind, row.module_path, row.name), position)

    items = []
    try:
        for position, row in enumerate(rows):
            items.append(
                _normalize_row(name, position, row, paths, documented, generation)
            )
        crate = Crate(
            name=name,
            version=version,
            doc=doc,
            index=Index(crate_name=name, items=tuple(items), paths=paths),
        )
    except ValidationError as e:
        raise DecodeError(f"crate {name!r}: {e}", generation=generation) from e

    logger.debug(
        f"decoded crate {name}",
        generation=generation,
        items=len(items),
        paths=len(paths),
    )
    return crate


def _normalize_row(
    crate: str,
    position: int,
    row: RawItem,
    paths: tuple[PathEntry, ...],
    documented: dict[tuple[ItemKind, str, str], int],
    generation: str,
) -> Item:
    parent = None
    if row.parent is not None:
        if not 0 <= row.parent < len(paths):
            raise DecodeError(
                f"crate {crate!r} item {position} ({row.name}): parent index "
                f"{row.parent} out of range for {len(paths)} paths",
                generation=generation,
            )
        entry = paths[row.parent]
        owner = documented.get((entry.kind, row.module_path, entry.name))
        if owner is not None:
            parent = SelfIndex(index=owner)
        else:
            parent = ForeignIndex(index=row.parent)
    return Item(
        kind=row.kind,
        name=row.name,
        module_path=row.module_path,
        description=row.description or None,
        parent=parent,
    )
