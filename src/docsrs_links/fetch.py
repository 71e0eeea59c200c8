"""Retrieval of search index payloads from docs.rs and the stdlib docs.

This module handles:
- Locating the search index file referenced by a rustdoc page
- Downloading crate indexes from docs.rs, resolving `latest` on the way
- Downloading the nightly standard library index and reading its version
"""

import asyncio
from urllib.parse import urlsplit

import aiohttp
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from docsrs_links.config import (
    DOCSRS_URL,
    DOWNLOAD_CHUNK_SIZE,
    HTTP_RETRY_ATTEMPTS,
    HTTP_TIMEOUT,
    MAX_DOWNLOAD_SIZE,
    STDLIB_URL,
    USER_AGENT,
)
from docsrs_links.errors import (
    FetchError,
    IndexNotFoundError,
    InvalidVersionFormatError,
)
from docsrs_links.models import LATEST, parse_version

logger = structlog.get_logger(__name__)

# Only the nightly docs are guaranteed to reference a versioned index file
STDLIB_INDEX_PAGE = "nightly/std/index.html"
STDLIB_INDEX_ROOT = "nightly"


def find_index_url(body: str) -> str | None:
    """Find the search index file referenced by a rustdoc HTML page.

    The newest pages only carry a resource suffix on the `rustdoc-vars` element,
    older ones the path in `data-search-index-js`, and the oldest a plain
    `<script src="../search-index-...js">` tag. All candidates are relative to
    the documentation root.

    Args:
        body: HTML of a crate's main documentation page

    Returns:
        Path of the index file like `search-index-20230728.js`, or None
    """
    marker = 'data-resource-suffix="'
    pos = body.rfind(marker)
    if pos != -1:
        suffix, sep, _ = body[pos + len(marker) :].partition('"')
        if sep:
            return f"search-index{suffix}.js"

    marker = 'data-search-index-js="../'
    pos = body.rfind(marker)
    if pos != -1:
        url, sep, _ = body[pos + len(marker) :].partition('"')
        if sep:
            return url

    marker = 'src="../'
    pos = body.rfind('src="../search-index-')
    if pos != -1:
        url, sep, _ = body[pos + len(marker) :].partition('"')
        if sep:
            return url
    return None


@retry(
    stop=stop_after_attempt(HTTP_RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type((aiohttp.ClientError, asyncio.TimeoutError)),
    reraise=True,
)
async def download(session: aiohttp.ClientSession, url: str) -> tuple[str, bytes]:
    """GET a URL, following redirects.

    Returns:
        The final URL after redirects and the response body

    Raises:
        FetchError: On a non-200 status or a body above MAX_DOWNLOAD_SIZE
    """
    logger.debug(f"getting content at {url}")
    async with session.get(
        url,
        timeout=aiohttp.ClientTimeout(total=HTTP_TIMEOUT),
        headers={"User-Agent": USER_AGENT},
        allow_redirects=True,
    ) as resp:
        if resp.status != 200:
            raise FetchError(f"GET {url} failed: HTTP {resp.status}")

        content_length = resp.headers.get("Content-Length")
        if content_length and int(content_length) > MAX_DOWNLOAD_SIZE:
            raise FetchError(f"Response from {url} too large: {content_length} bytes")

        chunks = []
        total_size = 0
        async for chunk in resp.content.iter_chunked(DOWNLOAD_CHUNK_SIZE):
            chunks.append(chunk)
            total_size += len(chunk)
            if total_size > MAX_DOWNLOAD_SIZE:
                raise FetchError(f"Download from {url} exceeded size limit")

        logger.debug(f"downloaded {total_size} bytes", url=url)
        return str(resp.url), b"".join(chunks)


def version_from_url(url: str, fallback: str) -> str:
    """Read the crate version from a docs.rs URL like `/anyhow/1.0.72/anyhow/`."""
    parts = urlsplit(url).path.strip("/").split("/")
    if len(parts) < 2:
        logger.warning(f"no version segment in {url}, keeping {fallback}")
        return fallback
    try:
        return parse_version(parts[1])
    except InvalidVersionFormatError:
        logger.warning(f"unexpected version segment in {url}, keeping {fallback}")
        return fallback


async def fetch_docsrs_index(
    session: aiohttp.ClientSession, name: str, version: str = LATEST
) -> tuple[str, bytes]:
    """Download the search index of a crate from docs.rs.

    Unless a specific version is requested, the version is taken from the URL
    docs.rs redirects the crate page to, currently `<crate>/<version>/<crate>/`.

    Args:
        session: HTTP session for making requests
        name: Crate name
        version: Crate version, or `latest`

    Returns:
        Tuple of the resolved version and the raw index payload

    Raises:
        IndexNotFoundError: If the page doesn't reference a search index
        FetchError: If a download fails
    """
    version = parse_version(version)
    page_url = f"{DOCSRS_URL}/{name}/{version}/{name}/"
    final_url, body = await download(session, page_url)
    if version == LATEST:
        version = version_from_url(final_url, version)

    index_path = find_index_url(body.decode("utf-8", errors="replace"))
    if index_path is None:
        raise IndexNotFoundError(f"couldn't find the index path in {page_url}")
    logger.debug(f"found index path: {index_path}", crate=name, version=version)

    _, payload = await download(session, f"{DOCSRS_URL}/{name}/{version}/{index_path}")
    return version, payload


async def fetch_std_index(session: aiohttp.ClientSession) -> tuple[str, bytes]:
    """Download the nightly standard library search index.

    The version is not part of the URL but of the index file name, which has
    the format `search-index<version>.js`.

    Returns:
        Tuple of the stdlib version and the raw index payload

    Raises:
        IndexNotFoundError: If the page doesn't reference a search index
        InvalidVersionFormatError: If the file name carries no version
        FetchError: If a download fails
    """
    page_url = f"{STDLIB_URL}/{STDLIB_INDEX_PAGE}"
    _, body = await download(session, page_url)

    index_path = find_index_url(body.decode("utf-8", errors="replace"))
    if index_path is None:
        raise IndexNotFoundError(f"couldn't find the index path in {page_url}")
    logger.debug(f"found index path: {index_path}")

    file_name = index_path.rsplit("/", 1)[-1]
    if not (file_name.startswith("search-index") and file_name.endswith(".js")):
        raise InvalidVersionFormatError(
            f"expected `search-index<X.X.X>.js`, got {index_path!r}"
        )
    raw_version = file_name[len("search-index") : -len(".js")]
    if not raw_version:
        raise InvalidVersionFormatError(
            f"expected `search-index<X.X.X>.js`, got {index_path!r}"
        )
    version = parse_version(raw_version)

    _, payload = await download(session, f"{STDLIB_URL}/{STDLIB_INDEX_ROOT}/{index_path}")
    return version, payload
