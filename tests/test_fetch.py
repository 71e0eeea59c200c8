"""Tests for downloading search indexes, with all HTTP traffic mocked."""

import aiohttp
import pytest
from tenacity import wait_none

from docsrs_links import fetch
from docsrs_links.config import DOCSRS_URL, STDLIB_URL, USER_AGENT
from docsrs_links.errors import (
    FetchError,
    IndexNotFoundError,
    InvalidVersionFormatError,
)
from docsrs_links.fetch import (
    fetch_docsrs_index,
    fetch_std_index,
    find_index_url,
    version_from_url,
)

RUSTDOC_VARS_PAGE = """<!DOCTYPE html><html><head>
<link rel="stylesheet" href="../static.files/rustdoc-ba5701c5741a7b69.css">
</head><body><div id="rustdoc-vars" data-root-path="../" data-current-crate="anyhow"
data-search-index-js="../search-index-20230728-1.73.0-nightly-5ea666864.js"
data-settings-js="../settings.js"></div></body></html>"""

RESOURCE_SUFFIX_PAGE = """<html><head>
<meta name="rustdoc-vars" data-root-path="../" data-static-root-path="/-/rustdoc.static/"
data-current-crate="std" data-resource-suffix="1.75.0" data-channel="nightly">
</head><body></body></html>"""

LEGACY_PAGE = """<html><body>
<script src="../main-20200416-1.44.0-nightly.js"></script>
<script src="../search-index-20200416-1.44.0-nightly.js" defer></script>
</body></html>"""


class TestFindIndexUrl:
    def test_resource_suffix(self):
        assert find_index_url(RESOURCE_SUFFIX_PAGE) == "search-index1.75.0.js"

    def test_search_index_attribute(self):
        assert find_index_url(RUSTDOC_VARS_PAGE) == (
            "search-index-20230728-1.73.0-nightly-5ea666864.js"
        )

    def test_legacy_script_tag(self):
        assert find_index_url(LEGACY_PAGE) == "search-index-20200416-1.44.0-nightly.js"

    def test_resource_suffix_wins(self):
        page = RUSTDOC_VARS_PAGE.replace("<div ", '<div data-resource-suffix="-x" ')
        assert find_index_url(page) == "search-index-x.js"

    def test_no_index(self):
        assert find_index_url("<html><body>Not found</body></html>") is None

    def test_unterminated_attribute(self):
        assert find_index_url('<div data-search-index-js="../search-index') is None


class TestVersionFromUrl:
    def test_version_segment(self):
        assert version_from_url("https://docs.rs/anyhow/1.0.72/anyhow/", "latest") == (
            "1.0.72"
        )

    def test_missing_segment(self):
        assert version_from_url("https://docs.rs/anyhow", "latest") == "latest"

    def test_unexpected_segment(self):
        assert version_from_url("https://docs.rs/anyhow/x.y/anyhow/", "latest") == (
            "latest"
        )


class TestFetchDocsrs:
    @pytest.mark.asyncio
    async def test_latest_is_resolved_from_redirect(self, make_session, fake_response):
        session = make_session(
            {
                f"{DOCSRS_URL}/anyhow/latest/anyhow/": fake_response(
                    RUSTDOC_VARS_PAGE, url="https://docs.rs/anyhow/1.0.72/anyhow/"
                ),
                f"{DOCSRS_URL}/anyhow/1.0.72/"
                "search-index-20230728-1.73.0-nightly-5ea666864.js": fake_response(
                    b"var searchIndex = JSON.parse('{}');"
                ),
            }
        )

        version, payload = await fetch_docsrs_index(session, "anyhow")

        assert version == "1.0.72"
        assert payload == b"var searchIndex = JSON.parse('{}');"
        assert session.get.call_count == 2
        headers = session.get.call_args.kwargs["headers"]
        assert headers["User-Agent"] == USER_AGENT

    @pytest.mark.asyncio
    async def test_specific_version(self, make_session, fake_response):
        session = make_session(
            {
                f"{DOCSRS_URL}/anyhow/1.0.0/anyhow/": fake_response(LEGACY_PAGE),
                f"{DOCSRS_URL}/anyhow/1.0.0/"
                "search-index-20200416-1.44.0-nightly.js": fake_response(b"payload"),
            }
        )

        version, payload = await fetch_docsrs_index(session, "anyhow", "1.0.0")

        assert (version, payload) == ("1.0.0", b"payload")

    @pytest.mark.asyncio
    async def test_page_without_index(self, make_session, fake_response):
        session = make_session(
            {f"{DOCSRS_URL}/anyhow/1.0.0/anyhow/": fake_response("<html></html>")}
        )
        with pytest.raises(IndexNotFoundError):
            await fetch_docsrs_index(session, "anyhow", "1.0.0")

    @pytest.mark.asyncio
    async def test_http_error(self, make_session):
        session = make_session({})
        with pytest.raises(FetchError, match="HTTP 404"):
            await fetch_docsrs_index(session, "does-not-exist", "1.0.0")
        # Status errors are not retried
        assert session.get.call_count == 1

    @pytest.mark.asyncio
    async def test_content_length_limit(self, make_session, fake_response, monkeypatch):
        monkeypatch.setattr(fetch, "MAX_DOWNLOAD_SIZE", 10)
        session = make_session(
            {
                f"{DOCSRS_URL}/anyhow/1.0.0/anyhow/": fake_response(
                    LEGACY_PAGE, headers={"Content-Length": "2048"}
                )
            }
        )
        with pytest.raises(FetchError, match="too large"):
            await fetch_docsrs_index(session, "anyhow", "1.0.0")

    @pytest.mark.asyncio
    async def test_streamed_size_limit(self, make_session, fake_response, monkeypatch):
        monkeypatch.setattr(fetch, "MAX_DOWNLOAD_SIZE", 10)
        monkeypatch.setattr(fetch, "DOWNLOAD_CHUNK_SIZE", 4)
        session = make_session(
            {f"{DOCSRS_URL}/anyhow/1.0.0/anyhow/": fake_response(LEGACY_PAGE)}
        )
        with pytest.raises(FetchError, match="exceeded size limit"):
            await fetch_docsrs_index(session, "anyhow", "1.0.0")

    @pytest.mark.asyncio
    async def test_connection_errors_are_retried(self, make_session, fake_response):
        url = f"{DOCSRS_URL}/anyhow/1.0.0/anyhow/"
        session = make_session({url: fake_response(b"page")})
        serve = session.get.side_effect
        calls = []

        def flaky_get(request_url, **kwargs):
            calls.append(request_url)
            if len(calls) == 1:
                raise aiohttp.ClientConnectionError("connection reset")
            return serve(request_url, **kwargs)

        session.get.side_effect = flaky_get
        download = fetch.download.retry_with(wait=wait_none())

        final_url, body = await download(session, url)

        assert (final_url, body) == (url, b"page")
        assert len(calls) == 2


class TestFetchStd:
    @pytest.mark.asyncio
    async def test_version_from_file_name(self, make_session, fake_response):
        session = make_session(
            {
                f"{STDLIB_URL}/nightly/std/index.html": fake_response(
                    RESOURCE_SUFFIX_PAGE
                ),
                f"{STDLIB_URL}/nightly/search-index1.75.0.js": fake_response(b"std"),
            }
        )

        version, payload = await fetch_std_index(session)

        assert (version, payload) == ("1.75.0", b"std")

    @pytest.mark.asyncio
    async def test_invalid_version(self, make_session, fake_response):
        page = RESOURCE_SUFFIX_PAGE.replace('"1.75.0"', '"-20230101"')
        session = make_session(
            {f"{STDLIB_URL}/nightly/std/index.html": fake_response(page)}
        )
        with pytest.raises(InvalidVersionFormatError):
            await fetch_std_index(session)

    @pytest.mark.asyncio
    async def test_missing_version(self, make_session, fake_response):
        page = RESOURCE_SUFFIX_PAGE.replace('"1.75.0"', '""')
        session = make_session(
            {f"{STDLIB_URL}/nightly/std/index.html": fake_response(page)}
        )
        with pytest.raises(InvalidVersionFormatError):
            await fetch_std_index(session)
