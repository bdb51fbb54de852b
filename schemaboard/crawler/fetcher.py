"""HTML fetcher and change detector for catalog pages.

``PageFetcher.fetch(page_id)`` pulls a page's live HTML from the configured
preview/base URL, fingerprints it with SHA-256 and records the crawl on the
page row.  The fingerprint comparison is the only change signal the rest of
the system uses.
"""

from __future__ import annotations

import hashlib
import sqlite3
from typing import Optional

import httpx

from schemaboard.config import settings
from schemaboard.db.models import FetchConfig, FetchResult, utcnow_iso
from schemaboard.db.pages import get_page, record_crawl
from schemaboard.errors import ConfigurationError, NotFoundError, UpstreamFetchError
from schemaboard.logger import logger


def compute_fingerprint(content: str) -> str:
    """Lower-case hex SHA-256 of *content* encoded as UTF-8."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def build_fetch_url(base_url: str, path: str) -> str:
    """Join the configured base URL and a normalized page path."""
    return base_url.rstrip("/") + path


class PageFetcher:
    """Fetch, fingerprint and record the live HTML of catalog pages.

    Args:
        conn: Open DB connection holding the ``pages`` table.
        config: Fetch configuration from the settings record.  ``None`` is
            accepted so a missing record only fails the calls that need it.
        client: Optional pre-built :class:`httpx.Client`.  When omitted a
            short-lived client is opened per fetch.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        config: Optional[FetchConfig],
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.conn = conn
        self.config = config
        self._client = client

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _require_config(self) -> FetchConfig:
        if self.config is None or not (self.config.base_url or "").strip():
            raise ConfigurationError("Settings not found: fetch base URL is not configured")
        return self.config

    def _get(self, url: str, config: FetchConfig) -> httpx.Response:
        headers = {"User-Agent": settings.user_agent}
        auth = (
            httpx.BasicAuth(config.auth_user, config.auth_password)  # type: ignore[arg-type]
            if config.has_credentials
            else None
        )
        if auth is not None:
            logger.debug("Using HTTP Basic Auth for {}", url)

        if self._client is not None:
            return self._client.get(url, headers=headers, auth=auth, follow_redirects=True)

        with httpx.Client(
            headers=headers,
            timeout=settings.request_timeout,
            follow_redirects=True,
        ) as client:
            return client.get(url, auth=auth)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def fetch(self, page_id: str) -> FetchResult:
        """Fetch the live HTML for *page_id* and record the crawl.

        The page's ``last_html_hash`` and ``last_crawled_at`` are written on
        every successful fetch, changed or not.

        Raises:
            NotFoundError: The page does not exist or has no path.
            ConfigurationError: No base URL configured, or it is not a valid URL.
            UpstreamFetchError: Transport failure or non-2xx response.
            PersistenceError: The page could not be read or updated.
        """
        page = get_page(self.conn, page_id)
        if page is None or not page.path:
            raise NotFoundError(f"Page not found: {page_id!r}")

        config = self._require_config()
        url = build_fetch_url(config.base_url, page.path)  # type: ignore[arg-type]
        logger.info("Fetching HTML from {}", url)

        try:
            response = self._get(url, config)
        except httpx.InvalidURL as exc:
            raise ConfigurationError(f"Invalid fetch base URL {config.base_url!r}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(f"Failed to fetch HTML: {exc}") from exc

        if not response.is_success:
            raise UpstreamFetchError(
                f"Failed to fetch HTML: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
            )

        content = response.text
        content_hash = compute_fingerprint(content)
        changed = page.last_html_hash != content_hash
        fetched_at = utcnow_iso()

        record_crawl(self.conn, page.id, content_hash, fetched_at)
        logger.info(
            "Fetched {} ({} chars, hash {}, changed={})",
            page.path,
            len(content),
            content_hash[:12],
            changed,
        )

        return FetchResult(
            content=content,
            content_hash=content_hash,
            content_changed=changed,
            fetch_url=url,
            content_length=len(content),
            fetched_at=fetched_at,
        )
