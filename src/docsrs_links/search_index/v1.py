"""Decoder for the oldest search index generation.

The payload is a JavaScript program (see ``js_literal``) assigning one
object per crate to ``searchIndex``:

- ``i``: rows of ``[type, name, path, desc, parent, search_type]``
- ``p``: ``[type, name]`` entries for parents

An empty ``path`` repeats the previous item's module path. ``parent`` is a
zero-based position in ``p``, or null for items without a parent.
"""

from __future__ import annotations

from typing import Any

from docsrs_links.errors import DecodeError
from docsrs_links.models import Crate

from .common import (
    RawItem,
    build_crate,
    decode_paths_table,
    expect_field,
    fold_module_paths,
    kind_from_code,
)
from .js_literal import parse_js_literals

GENERATION = "v1"


def decode_rows(rows: list[Any], *, generation: str, crate: str) -> list[RawItem]:
    """Decode positional item rows, shared with the V2 generation."""
    kinds, names, raw_paths, descriptions, parents = [], [], [], [], []
    for position, row in enumerate(rows):
        context = f"crate {crate!r} item {position}"
        if not isinstance(row, list) or len(row) < 2:
            raise DecodeError(
                f"{context}: expected an item row, got {row!r}", generation=generation
            )
        # Trailing fields may be left out when they are empty
        kind, name, path, desc, parent = (row + [None] * 5)[:5]
        problem = _row_problem(name, path, desc, parent)
        if problem:
            raise DecodeError(f"{context}: {problem}", generation=generation)
        kinds.append(kind_from_code(kind, generation=generation, context=context))
        names.append(name)
        raw_paths.append(path)
        descriptions.append(desc)
        parents.append(parent)

    module_paths = fold_module_paths(raw_paths, generation=generation, crate=crate)
    return [
        RawItem(
            kind=kind,
            name=name,
            module_path=module_path,
            description=desc,
            parent=parent,
        )
        for kind, name, module_path, desc, parent in zip(
            kinds, names, module_paths, descriptions, parents, strict=True
        )
    ]


def decode_crate_rows(
    name: str, data: Any, *, generation: str, version: str | None
) -> Crate:
    """Build a crate from a row-layout entry (``doc``, ``i`` and ``p``)."""
    rows = expect_field(data, "i", list, generation, name)
    raw_paths = expect_field(data, "p", list, generation, name)
    doc = data.get("doc") or ""
    if not isinstance(doc, str):
        raise DecodeError(
            f"crate {name!r} field 'doc' is not a string", generation=generation
        )
    items = decode_rows(rows, generation=generation, crate=name)
    paths = decode_paths_table(raw_paths, generation=generation, crate=name)
    return build_crate(name, doc, items, paths, generation=generation, version=version)


def decode(text: str, version: str | None = None) -> list[Crate]:
    """Decode a V1 payload into one crate per ``searchIndex`` entry."""
    variables = parse_js_literals(text)
    search_index = variables.get("searchIndex")
    if not isinstance(search_index, dict):
        raise DecodeError("payload declares no searchIndex object", generation=GENERATION)
    if not search_index:
        raise DecodeError("searchIndex holds no crates", generation=GENERATION)
    return [
        decode_crate_rows(name, data, generation=GENERATION, version=version)
        for name, data in search_index.items()
    ]


def _row_problem(name: Any, path: Any, desc: Any, parent: Any) -> str | None:
    if not isinstance(name, str) or not name:
        return f"invalid item name {name!r}"
    if path is not None and not isinstance(path, str):
        return f"invalid module path {path!r}"
    if desc is not None and not isinstance(desc, str):
        return f"invalid description {desc!r}"
    if parent is not None and (isinstance(parent, bool) or not isinstance(parent, int)):
        return f"invalid parent index {parent!r}"
    return None
