"""
Resolve simple paths against a decoded crate index.
"""

from __future__ import annotations

from docsrs_links.models import (
    CrateRoot,
    ForeignIndex,
    Found,
    Index,
    Item,
    NotFound,
    Owner,
    ResolvedItem,
    ResolveOutcome,
    SelfIndex,
    SimplePath,
)
from docsrs_links.simple_path import parse_path


def owner_of(index: Index, item: Item) -> Owner | None:
    """Describe the entity an associated item belongs to, if any."""
    parent = item.parent
    if parent is None:
        return None
    if isinstance(parent, SelfIndex):
        target = index.items[parent.index]
        return Owner(
            kind=target.kind,
            name=target.name,
            module_path=target.module_path,
            position=parent.index,
        )
    entry = index.paths[parent.index]
    # Foreign parents only carry a name, they live next to the item
    return Owner(kind=entry.kind, name=entry.name, module_path=item.module_path)


def qualified_segments(index: Index, item: Item) -> tuple[str, ...]:
    """Full path of an item, like ``("anyhow", "Error", "new")``."""
    parent = item.parent
    if isinstance(parent, SelfIndex):
        return qualified_segments(index, index.items[parent.index]) + (item.name,)
    if isinstance(parent, ForeignIndex):
        return item.module_segments + (index.paths[parent.index].name, item.name)
    return item.module_segments + (item.name,)


def resolve(index: Index, path: SimplePath | str) -> ResolveOutcome:
    """Find what a path refers to in a crate index.

    The path matches an item when its module path, parent and item name
    account for every segment. If several items match, the earliest one in
    decode order wins.

    Args:
        index: Decoded index of the crate the path points into
        path: Parsed path, or a string that is parsed first

    Returns:
        ``CrateRoot`` for a path naming only the crate, ``Found`` with the
        matching item, or ``NotFound``

    Raises:
        PathError: If ``path`` is a string that is not a valid simple path
    """
    if isinstance(path, str):
        path = parse_path(path)

    if path.crate_name != index.crate_name:
        return NotFound(path=str(path))
    if path.is_crate_only:
        return CrateRoot(crate_name=index.crate_name)

    wanted = path.names
    for position, item in enumerate(index.items):
        # Cheap rejection before walking the parent chain
        if item.name != wanted[-1]:
            continue
        segments = qualified_segments(index, item)
        if segments == wanted:
            return Found(
                resolved=ResolvedItem(
                    position=position,
                    item=item,
                    qualified_path="::".join(segments),
                    owner=owner_of(index, item),
                )
            )
    return NotFound(path=str(path))
