"""Service layer for docsrs-links."""

from .link_service import CrateLinks, LinkService, load_links, pick_crate

__all__ = [
    "CrateLinks",
    "LinkService",
    "load_links",
    "pick_crate",
]
