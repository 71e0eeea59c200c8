"""
Models package for docsrs-links.

All existing imports like `from docsrs_links.models import Item` work from
this package root.
"""

from .base import ErrorResponse, frozen_config, strict_config
from .crate import LATEST, CrateIdentity, Hosting, parse_version
from .index import (
    Crate,
    ForeignIndex,
    Index,
    Item,
    ItemKind,
    ParentRef,
    PathEntry,
    SelfIndex,
)
from .outcome import (
    CrateRoot,
    Found,
    LinkResponse,
    NotFound,
    Owner,
    ResolvedItem,
    ResolveOutcome,
)
from .path import PathSegment, SimplePath

__all__ = [
    # Base models
    "ErrorResponse",
    "strict_config",
    "frozen_config",
    # Crate identity
    "LATEST",
    "CrateIdentity",
    "Hosting",
    "parse_version",
    # Index data
    "Crate",
    "Index",
    "Item",
    "ItemKind",
    "PathEntry",
    "ParentRef",
    "SelfIndex",
    "ForeignIndex",
    # Resolution outcomes
    "CrateRoot",
    "Found",
    "NotFound",
    "Owner",
    "ResolvedItem",
    "ResolveOutcome",
    "LinkResponse",
    # Paths
    "PathSegment",
    "SimplePath",
]
