"""Pytest configuration and fixtures shared by the test modules."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from docsrs_links.search_index import decode

FIXTURES_DIR = Path(__file__).parent / "fixtures"

# Search index payloads of anyhow, one per supported generation
PAYLOAD_FILES = {
    "v1": "anyhow-1.0.0.js",
    "v2": "anyhow-1.0.40.js",
    "v3": "anyhow-1.0.72.js",
}


def load_payload(generation: str) -> bytes:
    return (FIXTURES_DIR / PAYLOAD_FILES[generation]).read_bytes()


@pytest.fixture(params=sorted(PAYLOAD_FILES))
def generation(request):
    """Run a test once per index generation."""
    return request.param


@pytest.fixture
def payload(generation):
    return load_payload(generation)


@pytest.fixture
def anyhow_index(payload):
    """Decoded anyhow index of the current generation."""
    return decode(payload)


@pytest.fixture(scope="session")
def v1_index():
    return decode(load_payload("v1"))


@pytest.fixture(scope="session")
def v2_index():
    return decode(load_payload("v2"))


@pytest.fixture(scope="session")
def v3_index():
    return decode(load_payload("v3"))


class FakeResponse:
    """Stand-in for an aiohttp response used as `async with session.get(...)`."""

    def __init__(
        self,
        body: bytes | str = b"",
        status: int = 200,
        url: str | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.body = body.encode() if isinstance(body, str) else body
        self.status = status
        self.url = url
        self.headers = headers or {}
        self.content = MagicMock()
        self.content.iter_chunked = self._iter_chunked

    async def _iter_chunked(self, size):
        for start in range(0, len(self.body), size):
            yield self.body[start : start + size]

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.fixture
def make_session():
    """Build a mocked aiohttp session serving canned responses by URL."""

    def _make(routes: dict[str, FakeResponse]):
        session = MagicMock()

        def get(url, **kwargs):
            if url not in routes:
                return FakeResponse(status=404, url=url)
            response = routes[url]
            if response.url is None:
                response.url = url
            return response

        session.get = MagicMock(side_effect=get)
        return session

    return _make


def wrap_json_parse(document, footer: str = "") -> str:
    """Embed a JSON document the way rustdoc writes JSON.parse payloads."""
    body = json.dumps(document).replace("\\", "\\\\").replace("'", "\\'")
    if isinstance(document, dict):
        # Crates start on their own line, after a line continuation
        body = "{\\\n" + body[1:-1] + "\\\n}"
    return f"var searchIndex = JSON.parse('{body}');\n{footer}"


V3_FOOTER = (
    "if (typeof window !== 'undefined' && window.initSearch) "
    "{window.initSearch(searchIndex)};\n"
    "if (typeof exports !== 'undefined') {exports.searchIndex = searchIndex};\n"
)

# A crate with a struct, one of its methods and a method of a foreign trait
DEMO_CRATE = {
    "doc": "Widgets for demos.",
    "t": "DLL",
    "n": ["Widget", "new", "fmt"],
    "q": ["demo::widgets", "", ""],
    "d": ["A widget.", "Creates a widget.", ""],
    "i": [0, 1, 2],
    "p": [[3, "Widget"], [8, "Display"]],
}


@pytest.fixture
def make_v3_payload():
    """Build a V3 payload from a mapping of crate name to columns."""

    def _make(crates: dict, footer: str = V3_FOOTER) -> str:
        return wrap_json_parse(crates, footer)

    return _make


@pytest.fixture
def demo_index(make_v3_payload):
    return decode(make_v3_payload({"demo": DEMO_CRATE}))


@pytest.fixture
def demo_crate():
    """Columns of the demo crate, with some of them replaced."""

    def _make(**overrides) -> dict:
        return {**DEMO_CRATE, **overrides}

    return _make


@pytest.fixture
def read_payload():
    """Read the raw anyhow payload of a generation."""
    return load_payload


@pytest.fixture
def fake_response():
    """The response class served by ``make_session``."""
    return FakeResponse


@pytest.fixture
def payload_path():
    """Path of the anyhow fixture file of a generation."""

    def _path(generation: str) -> Path:
        return FIXTURES_DIR / PAYLOAD_FILES[generation]

    return _path
