"""Decoder for the second search index generation.

The JavaScript literal program is replaced by a JSON document wrapped in
``JSON.parse('...')``. Crate entries keep the row layout of the first
generation: ``i`` holds ``[type, name, path, desc, parent, ...]`` rows with a
zero-based, nullable ``parent`` into ``p``.
"""

from __future__ import annotations

from docsrs_links.errors import DecodeError
from docsrs_links.models import Crate

from .common import crate_entries, load_json_parse_payload
from .v1 import decode_crate_rows

GENERATION = "v2"


def decode(text: str, version: str | None = None) -> list[Crate]:
    """Decode a V2 payload into its crates."""
    document = load_json_parse_payload(text, GENERATION)
    entries = crate_entries(document, GENERATION)
    if not entries:
        raise DecodeError("search index holds no crates", generation=GENERATION)

    crates = []
    for name, data in entries:
        rows = data.get("i") if isinstance(data, dict) else None
        # Columnar payloads keep plain integers in "i"
        if not isinstance(rows, list) or not all(isinstance(row, list) for row in rows):
            raise DecodeError(
                f"crate {name!r} does not use the row layout", generation=GENERATION
            )
        crates.append(
            decode_crate_rows(name, data, generation=GENERATION, version=version)
        )
    return crates
