"""Service layer turning search index payloads into documentation links."""

import logging

import aiohttp

from ..errors import CrateDataMissingError
from ..fetch import STDLIB_INDEX_ROOT, fetch_docsrs_index, fetch_std_index
from ..models import (
    LATEST,
    Crate,
    CrateIdentity,
    Hosting,
    Index,
    ResolveOutcome,
    SimplePath,
)
from ..resolver import resolve
from ..search_index import decode_crates
from ..simple_path import parse_path
from ..urls import base_url, build_url, generate_mapping

logger = logging.getLogger(__name__)


class CrateLinks:
    """A decoded crate together with the identity its URLs are built for."""

    def __init__(self, crate: Crate, identity: CrateIdentity):
        self.crate = crate
        self.identity = identity
        self._mapping: dict[str, str] | None = None

    def __repr__(self) -> str:
        return (
            f"CrateLinks(name={self.name!r}, version={self.identity.version!r}, "
            f"items={len(self.index)})"
        )

    @property
    def name(self) -> str:
        return self.crate.name

    @property
    def index(self) -> Index:
        return self.crate.index

    def resolve(self, path: SimplePath | str) -> ResolveOutcome:
        return resolve(self.index, path)

    def find_link(self, path: SimplePath | str) -> str | None:
        """Absolute documentation URL for a path, or None if it doesn't exist.

        Raises:
            PathError: If ``path`` is a string that is not a valid simple path
        """
        return build_url(self.identity, self.resolve(path))

    def mapping(self) -> dict[str, str]:
        """Absolute URL of every item, keyed by its qualified path."""
        if self._mapping is None:
            base = base_url(self.identity)
            self._mapping = {
                path: f"{base}/{rel}" for path, rel in generate_mapping(self.index).items()
            }
        return self._mapping


def load_links(payload: bytes | str, identity: CrateIdentity) -> list[CrateLinks]:
    """Decode a payload without any network access.

    Every crate in the payload shares the version and hosting of ``identity``.
    Crates other than the one ``identity`` names get an identity of their own.
    """
    crate_version = None if identity.version == LATEST else identity.version
    crates = decode_crates(payload, version=crate_version)
    links = []
    for crate in crates:
        if crate.name in (identity.name, identity.name.replace("-", "_")):
            crate_identity = identity
        else:
            crate_identity = identity.model_copy(update={"name": crate.name})
        links.append(CrateLinks(crate, crate_identity))
    logger.debug(f"Loaded {len(links)} crates for {identity.name}")
    return links


def pick_crate(links: list[CrateLinks], crate_name: str) -> CrateLinks:
    """Select the crate a path points into.

    Raises:
        CrateDataMissingError: If no loaded crate has that name
    """
    wanted = crate_name.replace("-", "_")
    for crate_links in links:
        if crate_links.name == wanted:
            return crate_links
    raise CrateDataMissingError(
        f"crate {crate_name!r} not found among {[c.name for c in links]}"
    )


class LinkService:
    """Service for looking up documentation links of crates and the stdlib."""

    def __init__(self, session: aiohttp.ClientSession | None = None):
        self.session = session

    async def search(self, name: str, version: str | None = None) -> list[CrateLinks]:
        """Download and decode the docs.rs index of a crate.

        Args:
            name: Name of the crate
            version: Optional version (defaults to latest)

        Returns:
            Links for every crate in the index
        """
        identity = CrateIdentity(name=name, version=version)
        if self.session is None:
            async with aiohttp.ClientSession() as session:
                resolved, payload = await fetch_docsrs_index(
                    session, name, identity.version
                )
        else:
            resolved, payload = await fetch_docsrs_index(
                self.session, name, identity.version
            )
        logger.info(f"Fetched index for {name} {resolved}")
        return load_links(payload, identity.model_copy(update={"version": resolved}))

    async def get_std(self) -> list[CrateLinks]:
        """Download and decode the nightly stdlib index (std, core, alloc, ...)."""
        if self.session is None:
            async with aiohttp.ClientSession() as session:
                version, payload = await fetch_std_index(session)
        else:
            version, payload = await fetch_std_index(self.session)
        logger.info(f"Fetched stdlib index {version}")

        identity = CrateIdentity(
            name="std", version=STDLIB_INDEX_ROOT, hosting=Hosting.STDLIB
        )
        links = []
        for crate in decode_crates(payload, version=version):
            links.append(
                CrateLinks(crate, identity.model_copy(update={"name": crate.name}))
            )
        return links

    async def find_link(
        self, path: SimplePath | str, version: str | None = None
    ) -> tuple[ResolveOutcome, str | None]:
        """Resolve a path by fetching the index of the crate it points into.

        Standard library paths always use the nightly stdlib index and ignore
        ``version``.

        Returns:
            The resolve outcome and the URL, None when nothing matched

        Raises:
            PathError: If ``path`` is a string that is not a valid simple path
            CrateDataMissingError: If the index lacks the path's crate
        """
        if isinstance(path, str):
            path = parse_path(path)
        if path.is_std:
            links = await self.get_std()
        else:
            links = await self.search(path.crate_name, version)
        crate_links = pick_crate(links, path.crate_name)
        outcome = crate_links.resolve(path)
        return outcome, build_url(crate_links.identity, outcome)
