"""Resolve Rust item paths to their documentation pages on docs.rs.

Search index payloads published by rustdoc are decoded into an ``Index``,
simple paths like ``anyhow::Context::with_context`` are resolved against it,
and the result is turned into a documentation URL.
"""

from .errors import (
    CrateDataMissingError,
    DecodeError,
    DocsrsLinksError,
    FetchError,
    IndexNotFoundError,
    InvalidVersionFormatError,
    PathError,
    PathErrorReason,
    UnsupportedIndexVersionError,
)
from .models import (
    Crate,
    CrateIdentity,
    CrateRoot,
    ForeignIndex,
    Found,
    Hosting,
    Index,
    Item,
    ItemKind,
    NotFound,
    Owner,
    PathEntry,
    PathSegment,
    ResolvedItem,
    SelfIndex,
    SimplePath,
)
from .resolver import resolve
from .search_index import IndexVersion, decode, decode_crates, detect_version
from .simple_path import parse_path
from .urls import build_url, generate_mapping

__version__ = "0.1.0"

__all__ = [
    # Operations
    "decode",
    "decode_crates",
    "detect_version",
    "parse_path",
    "resolve",
    "build_url",
    "generate_mapping",
    "IndexVersion",
    # Models
    "Crate",
    "CrateIdentity",
    "CrateRoot",
    "ForeignIndex",
    "Found",
    "Hosting",
    "Index",
    "Item",
    "ItemKind",
    "NotFound",
    "Owner",
    "PathEntry",
    "PathSegment",
    "ResolvedItem",
    "SelfIndex",
    "SimplePath",
    # Errors
    "DocsrsLinksError",
    "DecodeError",
    "UnsupportedIndexVersionError",
    "CrateDataMissingError",
    "PathError",
    "PathErrorReason",
    "IndexNotFoundError",
    "InvalidVersionFormatError",
    "FetchError",
]
