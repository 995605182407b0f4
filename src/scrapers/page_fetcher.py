# src/scrapers/page_fetcher.py

"""Ephemeral page handles: fetch a product page, hand it out, release it."""

import itertools
import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol

import cloudscraper  # type: ignore[import-untyped]
from bs4 import BeautifulSoup
from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.errors import PageLoadError


@dataclass
class PageHandle:
    """A live rendering of one product page."""

    handle_id: int
    url: str
    document: BeautifulSoup | None


class PageLifecycle(Protocol):
    """Opens and closes page handles for re-extraction."""

    def open(self, url: str) -> PageHandle:
        """Load ``url`` and return a handle to it."""
        ...

    def close(self, handle: PageHandle) -> None:
        """Release a handle returned by :meth:`open`."""
        ...


class HttpPageLifecycle:
    """Fetch pages over HTTP with a browser-impersonating TLS stack.

    curl_cffi is tried first; when it is exhausted, cloudscraper is
    used to get through JS challenges.
    """

    # Cloudflare challenge page markers (checked before keyword scan)
    _CF_CHALLENGE_MARKERS: list[str] = [
        "challenges.cloudflare.com",
        "cdn-cgi/challenge-platform",
        "just a moment",
        "cf-turnstile",
        "cf_chl_opt",
    ]

    def __init__(self, settings: Settings | None = None) -> None:
        self.logger = logging.getLogger("pricewatch.pages")
        self.settings = settings or Settings()
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._ids = itertools.count(1)
        self._open: dict[int, PageHandle] = {}

    @property
    def open_handles(self) -> int:
        """Number of handles opened and not yet closed."""
        return len(self._open)

    def _validate_response(
        self, resp: curl_requests.Response,
    ) -> bool:
        """Check for Cloudflare challenge pages and CAPTCHA indicators."""
        text = resp.text
        lower = text.lower()

        for marker in self._CF_CHALLENGE_MARKERS:
            if marker in lower:
                self.logger.warning(
                    "Cloudflare challenge detected (marker: '%s')",
                    marker,
                )
                return False

        # Skip the keyword scan for real product pages to avoid
        # false positives from footer text.
        has_body_content = "<body" in lower and len(text) > 5000
        if not has_body_content:
            for keyword in self.settings.CAPTCHA_KEYWORDS:
                if keyword in lower:
                    self.logger.warning(
                        "CAPTCHA keyword '%s' detected", keyword,
                    )
                    return False
        return True

    def _fetch_get(
        self,
        url: str,
        headers: dict[str, str],
    ) -> curl_requests.Response | None:
        """GET with retries and linear backoff."""
        for attempt in range(self.settings.MAX_RETRIES):
            try:
                resp = self.session.get(
                    url,
                    headers=headers,
                    timeout=self.settings.REQUEST_TIMEOUT,
                )
                if resp.status_code == 200:
                    if self._validate_response(resp):
                        return resp
                else:
                    self.logger.warning(
                        "HTTP %d on attempt %d for %s",
                        resp.status_code,
                        attempt + 1,
                        url,
                    )
            except Exception as exc:
                self.logger.warning(
                    "Request error on attempt %d for %s: %s",
                    attempt + 1,
                    url,
                    exc,
                    exc_info=True,
                )
            time.sleep(self.settings.RETRY_DELAY * (attempt + 1))
        return None

    def _fetch_fallback(
        self, url: str, headers: dict[str, str],
    ) -> str | None:
        """Retry once through cloudscraper (JS challenge solver)."""
        self.logger.info(
            "curl_cffi exhausted for %s, falling back to cloudscraper",
            url,
        )
        try:
            _cs: Any = cloudscraper
            scraper: Any = _cs.create_scraper()
            resp: Any = scraper.get(
                url,
                headers=headers,
                timeout=self.settings.REQUEST_TIMEOUT,
            )
            if resp.status_code == 200:
                return str(resp.text)
            self.logger.warning(
                "cloudscraper got HTTP %d for %s", resp.status_code, url,
            )
        except Exception as exc:
            self.logger.error(
                "cloudscraper fallback also failed for %s: %s",
                url,
                exc,
                exc_info=True,
            )
        return None

    def open(self, url: str) -> PageHandle:
        """Fetch ``url`` and return a handle to the parsed document.

        Raises:
            PageLoadError: the URL is empty or every fetch path failed.
        """
        if not url:
            raise PageLoadError("Product has no URL")
        headers: dict[str, str] = {**self.settings.DEFAULT_HEADERS}

        resp = self._fetch_get(url, headers)
        if resp is not None:
            html: str | None = resp.text
        else:
            html = self._fetch_fallback(url, headers)
        if html is None:
            raise PageLoadError(f"Could not load {url}")

        handle = PageHandle(
            handle_id=next(self._ids),
            url=url,
            document=BeautifulSoup(html, "lxml"),
        )
        self._open[handle.handle_id] = handle
        self.logger.debug("Opened page handle %d for %s", handle.handle_id, url)
        return handle

    def close(self, handle: PageHandle) -> None:
        """Release the parsed document held by ``handle``."""
        self._open.pop(handle.handle_id, None)
        if handle.document is not None:
            handle.document.decompose()
            handle.document = None
        self.logger.debug("Closed page handle %d", handle.handle_id)
