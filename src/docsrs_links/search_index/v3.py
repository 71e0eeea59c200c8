"""Decoder for the columnar search index generation.

Crate entries store one array per field instead of one row per item:

- ``t``: item types, either a string of letters (``A`` is code 0) or a list
  of numeric codes
- ``n``: item names
- ``q``: module paths, either one per item with ``""`` meaning "same as the
  previous item", or sparse ``[position, path]`` pairs
- ``d``: descriptions, absent in payloads that load them separately
- ``i``: one-based parent positions in ``p``, where 0 means no parent
- ``p``: ``[type, name, ...]`` entries for parents

Other fields (``f``, ``c``, ``a`` and friends) feed rustdoc's type search and
are ignored.
"""

from __future__ import annotations

from typing import Any

from docsrs_links.errors import DecodeError
from docsrs_links.models import Crate, ItemKind

from .common import (
    RawItem,
    build_crate,
    crate_entries,
    decode_paths_table,
    expect_field,
    fold_module_paths,
    kind_from_code,
    kinds_from_letters,
    load_json_parse_payload,
)

GENERATION = "v3"


def decode(text: str, version: str | None = None) -> list[Crate]:
    """Decode a V3 payload into its crates."""
    document = load_json_parse_payload(text, GENERATION)
    entries = crate_entries(document, GENERATION)
    if not entries:
        raise DecodeError("search index holds no crates", generation=GENERATION)
    return [decode_crate(name, data, version=version) for name, data in entries]


def decode_crate(name: str, data: Any, *, version: str | None = None) -> Crate:
    """Decode the columns of a single crate entry."""
    kinds = _decode_kinds(expect_field(data, "t", (str, list), GENERATION, name), name)
    names = expect_field(data, "n", list, GENERATION, name)
    count = len(names)
    _check_length("t", kinds, count, name)
    for position, item_name in enumerate(names):
        if not isinstance(item_name, str) or not item_name:
            raise DecodeError(
                f"crate {name!r} item {position}: invalid item name {item_name!r}",
                generation=GENERATION,
            )

    raw_paths = _decode_module_paths(
        expect_field(data, "q", list, GENERATION, name), count, name
    )
    descriptions = _decode_descriptions(data.get("d"), count, name)
    parents = _decode_parents(expect_field(data, "i", list, GENERATION, name), name)
    _check_length("i", parents, count, name)
    paths = decode_paths_table(
        expect_field(data, "p", list, GENERATION, name),
        generation=GENERATION,
        crate=name,
    )

    doc = data.get("doc") or ""
    if not isinstance(doc, str):
        raise DecodeError(
            f"crate {name!r} field 'doc' is not a string", generation=GENERATION
        )

    module_paths = fold_module_paths(raw_paths, generation=GENERATION, crate=name)
    rows = [
        RawItem(
            kind=kind,
            name=item_name,
            module_path=module_path,
            description=desc,
            parent=parent,
        )
        for kind, item_name, module_path, desc, parent in zip(
            kinds, names, module_paths, descriptions, parents, strict=True
        )
    ]
    return build_crate(name, doc, rows, paths, generation=GENERATION, version=version)


def _check_length(field: str, column: list[Any], count: int, crate: str) -> None:
    if len(column) != count:
        raise DecodeError(
            f"crate {crate!r} field {field!r} has {len(column)} entries "
            f"for {count} items",
            generation=GENERATION,
        )


def _decode_kinds(raw: str | list[Any], crate: str) -> list[ItemKind]:
    if isinstance(raw, str):
        return kinds_from_letters(raw, generation=GENERATION, crate=crate)
    return [
        kind_from_code(
            code, generation=GENERATION, context=f"crate {crate!r} item {position}"
        )
        for position, code in enumerate(raw)
    ]


def _decode_module_paths(raw: list[Any], count: int, crate: str) -> list[str | None]:
    """Expand the ``q`` column to one optional path per item."""
    if all(isinstance(path, str) for path in raw):
        _check_length("q", raw, count, crate)
        return list(raw)

    expanded: list[str | None] = [None] * count
    for entry in raw:
        if (
            not isinstance(entry, list)
            or len(entry) != 2
            or isinstance(entry[0], bool)
            or not isinstance(entry[0], int)
            or not isinstance(entry[1], str)
        ):
            raise DecodeError(
                f"crate {crate!r}: invalid module path entry {entry!r}",
                generation=GENERATION,
            )
        position, path = entry
        if not 0 <= position < count:
            raise DecodeError(
                f"crate {crate!r}: module path entry for item {position} "
                f"out of range for {count} items",
                generation=GENERATION,
            )
        expanded[position] = path
    return expanded


def _decode_descriptions(raw: Any, count: int, crate: str) -> list[str | None]:
    if raw is None:
        return [None] * count
    if not isinstance(raw, list) or not all(
        desc is None or isinstance(desc, str) for desc in raw
    ):
        raise DecodeError(
            f"crate {crate!r} field 'd' is not a list of strings", generation=GENERATION
        )
    _check_length("d", raw, count, crate)
    return list(raw)


def _decode_parents(raw: list[Any], crate: str) -> list[int | None]:
    parents: list[int | None] = []
    for position, value in enumerate(raw):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise DecodeError(
                f"crate {crate!r} item {position}: invalid parent index {value!r}",
                generation=GENERATION,
            )
        parents.append(value - 1 if value else None)
    return parents
