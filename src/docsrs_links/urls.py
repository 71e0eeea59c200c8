"""
Documentation URLs for resolved paths.

Relative page locations follow the rules of rustdoc's own search front-end,
so the links point at the same anchors a search on the docs page would.
"""

from __future__ import annotations

from docsrs_links import config
from docsrs_links.models import (
    LATEST,
    CrateIdentity,
    CrateRoot,
    Found,
    Index,
    Item,
    ItemKind,
    NotFound,
    Owner,
    ResolveOutcome,
)
from docsrs_links.resolver import owner_of, qualified_segments
from docsrs_links.simple_path import NON_RAW_KEYWORDS, RAW_PREFIX, SEPARATOR, is_keyword


def module_dirs(module_path: str) -> str:
    """Directory of a module's pages, like ``std/collections`` for ``std::collections``."""
    return module_path.replace("::", "/")


def crate_root_url(crate_name: str) -> str:
    return f"{crate_name.replace('-', '_')}/index.html"


def relative_url(item: Item, owner: Owner | None = None) -> str:
    """Page of an item relative to the documentation root.

    Args:
        item: The item to link
        owner: Owner of an associated item, see ``resolver.owner_of``

    Returns:
        Path like ``anyhow/struct.Error.html#method.new``
    """
    dirs = module_dirs(item.module_path)
    if item.kind is ItemKind.MODULE:
        return f"{dirs}/{item.name}/index.html"
    if item.kind is ItemKind.EXTERN_CRATE:
        return f"{item.name}/index.html"
    if item.kind is ItemKind.IMPORT:
        return f"{dirs}/index.html#reexport.{item.name}"
    if owner is not None:
        page = f"{module_dirs(owner.module_path)}/{owner.kind.url_tag}.{owner.name}.html"
        return f"{page}#{item.kind.url_tag}.{item.name}"
    return f"{dirs}/{item.kind.url_tag}.{item.name}.html"


def base_url(identity: CrateIdentity) -> str:
    """Root of the documentation tree of a crate (without trailing slash)."""
    if identity.is_std:
        version = config.STDLIB_CHANNEL if identity.version == LATEST else identity.version
        return f"{config.STDLIB_URL}/{version}"
    return f"{config.DOCSRS_URL}/{identity.name}/{identity.version}"


def outcome_relative_url(outcome: ResolveOutcome) -> str | None:
    if isinstance(outcome, CrateRoot):
        return crate_root_url(outcome.crate_name)
    if isinstance(outcome, Found):
        return relative_url(outcome.resolved.item, outcome.resolved.owner)
    return None


def build_url(identity: CrateIdentity, outcome: ResolveOutcome) -> str | None:
    """Absolute documentation URL for a resolve outcome.

    Returns:
        The URL, or None for ``NotFound``
    """
    if isinstance(outcome, NotFound):
        return None
    return f"{base_url(identity)}/{outcome_relative_url(outcome)}"


def path_key(segments: tuple[str, ...]) -> str:
    """Render qualified segments the way ``parse_path`` reads them back.

    Keywords are written as raw identifiers, so `std::fn` becomes `std::r#fn`.
    """
    return SEPARATOR.join(
        f"{RAW_PREFIX}{name}"
        if is_keyword(name) and name not in NON_RAW_KEYWORDS
        else name
        for name in segments
    )


def generate_mapping(index: Index) -> dict[str, str]:
    """Map the qualified path of every item to its relative URL.

    Keys are paths ``resolve`` accepts, see ``path_key``. Duplicate paths keep
    the earliest item, like ``resolve`` does. Items named `crate`, `self`,
    `super` or `Self` have no path form at all and keep their plain name.
    """
    mapping: dict[str, str] = {}
    for item in index.items:
        path = path_key(qualified_segments(index, item))
        if path not in mapping:
            mapping[path] = relative_url(item, owner_of(index, item))
    return mapping
