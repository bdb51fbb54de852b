"""Tests for schemaboard.crawler.fetcher.

All HTTP traffic is mocked with respx; the DB is in-memory.
"""

from __future__ import annotations

import base64
import hashlib
import sqlite3
from typing import Generator

import httpx
import pytest
import respx

from schemaboard.crawler import fetcher as fetcher_module
from schemaboard.crawler.fetcher import PageFetcher, build_fetch_url, compute_fingerprint
from schemaboard.db.bootstrap import init_db
from schemaboard.db.connection import get_connection
from schemaboard.db.models import FetchConfig
from schemaboard.db.pages import create_page, get_page
from schemaboard.errors import ConfigurationError, NotFoundError, UpstreamFetchError

BASE = "https://preview.example.com"
HTML = "<html><body><h1>IPA</h1></body></html>"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture()
def page_id(conn: sqlite3.Connection) -> str:
    return create_page(conn, path="/ipa", domain="Beer", page_type="beers", category="drink").id


def _fetcher(conn: sqlite3.Connection, **config: str) -> PageFetcher:
    return PageFetcher(conn, FetchConfig(base_url=config.pop("base_url", BASE), **config))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    def test_fingerprint_is_sha256_hex(self) -> None:
        assert compute_fingerprint(HTML) == hashlib.sha256(HTML.encode("utf-8")).hexdigest()

    def test_fingerprint_uses_utf8(self) -> None:
        assert compute_fingerprint("café") == hashlib.sha256("café".encode("utf-8")).hexdigest()

    def test_build_fetch_url_strips_trailing_slash(self) -> None:
        assert build_fetch_url("https://x.com/", "/ipa") == "https://x.com/ipa"
        assert build_fetch_url("https://x.com", "/ipa") == "https://x.com/ipa"


# ---------------------------------------------------------------------------
# Change detection
# ---------------------------------------------------------------------------

class TestFetch:
    @respx.mock
    def test_success_records_crawl(self, conn: sqlite3.Connection, page_id: str) -> None:
        respx.get(f"{BASE}/ipa").mock(return_value=httpx.Response(200, text=HTML))

        result = _fetcher(conn).fetch(page_id)

        assert result.content == HTML
        assert result.content_hash == compute_fingerprint(HTML)
        assert result.content_changed is True
        assert result.fetch_url == f"{BASE}/ipa"
        assert result.content_length == len(HTML)

        page = get_page(conn, page_id)
        assert page is not None
        assert page.last_html_hash == result.content_hash
        assert page.last_crawled_at == result.fetched_at

    @respx.mock
    def test_unchanged_content_still_advances_timestamp(
        self, conn: sqlite3.Connection, page_id: str, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        respx.get(f"{BASE}/ipa").mock(return_value=httpx.Response(200, text=HTML))
        fetcher = _fetcher(conn)

        monkeypatch.setattr(fetcher_module, "utcnow_iso", lambda: "2026-01-01T00:00:00+00:00")
        first = fetcher.fetch(page_id)
        monkeypatch.setattr(fetcher_module, "utcnow_iso", lambda: "2026-01-02T00:00:00+00:00")
        second = fetcher.fetch(page_id)

        assert first.content_changed is True
        assert second.content_changed is False
        assert second.content_hash == first.content_hash

        page = get_page(conn, page_id)
        assert page is not None
        assert page.last_crawled_at == "2026-01-02T00:00:00+00:00"

    @respx.mock
    def test_changed_content_detected(self, conn: sqlite3.Connection, page_id: str) -> None:
        route = respx.get(f"{BASE}/ipa")
        route.side_effect = [
            httpx.Response(200, text=HTML),
            httpx.Response(200, text=HTML.replace("IPA", "Session IPA")),
        ]
        fetcher = _fetcher(conn)

        first = fetcher.fetch(page_id)
        second = fetcher.fetch(page_id)

        assert second.content_changed is True
        assert second.content_hash != first.content_hash

    @respx.mock
    def test_base_url_trailing_slash(self, conn: sqlite3.Connection, page_id: str) -> None:
        route = respx.get(f"{BASE}/ipa").mock(return_value=httpx.Response(200, text=HTML))
        _fetcher(conn, base_url=BASE + "/").fetch(page_id)
        assert route.called

    @respx.mock
    def test_follows_redirects(self, conn: sqlite3.Connection, page_id: str) -> None:
        respx.get(f"{BASE}/ipa").mock(
            return_value=httpx.Response(301, headers={"Location": f"{BASE}/beers/ipa"})
        )
        respx.get(f"{BASE}/beers/ipa").mock(return_value=httpx.Response(200, text=HTML))
        assert _fetcher(conn).fetch(page_id).content == HTML


# ---------------------------------------------------------------------------
# Headers & auth
# ---------------------------------------------------------------------------

class TestRequestHeaders:
    @respx.mock
    def test_basic_auth_sent_with_full_credentials(
        self, conn: sqlite3.Connection, page_id: str
    ) -> None:
        route = respx.get(f"{BASE}/ipa").mock(return_value=httpx.Response(200, text=HTML))
        _fetcher(conn, auth_user="preview", auth_password="s3cret").fetch(page_id)

        expected = "Basic " + base64.b64encode(b"preview:s3cret").decode("ascii")
        assert route.calls.last.request.headers["authorization"] == expected

    @respx.mock
    def test_no_auth_with_user_only(self, conn: sqlite3.Connection, page_id: str) -> None:
        route = respx.get(f"{BASE}/ipa").mock(return_value=httpx.Response(200, text=HTML))
        _fetcher(conn, auth_user="preview").fetch(page_id)
        assert "authorization" not in route.calls.last.request.headers

    @respx.mock
    def test_user_agent(self, conn: sqlite3.Connection, page_id: str) -> None:
        route = respx.get(f"{BASE}/ipa").mock(return_value=httpx.Response(200, text=HTML))
        _fetcher(conn).fetch(page_id)
        assert route.calls.last.request.headers["user-agent"] == "SchemaBoard-HTMLFetcher/1.0"


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class TestFetchErrors:
    @respx.mock
    def test_non_2xx_raises_with_status(self, conn: sqlite3.Connection, page_id: str) -> None:
        respx.get(f"{BASE}/ipa").mock(return_value=httpx.Response(404))

        with pytest.raises(UpstreamFetchError) as exc_info:
            _fetcher(conn).fetch(page_id)

        assert exc_info.value.status == 404
        assert "404" in exc_info.value.message
        page = get_page(conn, page_id)
        assert page is not None
        assert page.last_html_hash is None
        assert page.last_crawled_at is None

    @respx.mock
    def test_transport_error(self, conn: sqlite3.Connection, page_id: str) -> None:
        respx.get(f"{BASE}/ipa").mock(side_effect=httpx.ConnectError("connection refused"))
        with pytest.raises(UpstreamFetchError, match="connection refused"):
            _fetcher(conn).fetch(page_id)

    def test_missing_config(self, conn: sqlite3.Connection, page_id: str) -> None:
        with pytest.raises(ConfigurationError, match="Settings not found"):
            PageFetcher(conn, None).fetch(page_id)

    def test_blank_base_url(self, conn: sqlite3.Connection, page_id: str) -> None:
        with pytest.raises(ConfigurationError):
            PageFetcher(conn, FetchConfig(base_url="  ")).fetch(page_id)

    @respx.mock
    def test_unknown_page(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(NotFoundError, match="Page not found"):
            _fetcher(conn).fetch("no-such-page")
        assert not respx.calls

    def test_unknown_page_reported_before_missing_config(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(NotFoundError, match="Page not found"):
            PageFetcher(conn, None).fetch("no-such-page")

    def test_malformed_base_url(self, conn: sqlite3.Connection, page_id: str) -> None:
        fetcher = _fetcher(conn, base_url="http://preview.example.com:notaport")
        with pytest.raises(ConfigurationError, match="Invalid fetch base URL"):
            fetcher.fetch(page_id)
        page = get_page(conn, page_id)
        assert page is not None
        assert page.last_crawled_at is None
