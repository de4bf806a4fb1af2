# shopsync/fetcher.py
"""Catalog fetcher for the Shopify Admin products endpoint.

Pages are followed through the `Link: <...>; rel="next"` header until the
catalog is exhausted or `max_pages` is reached. Any page failing fails the
whole fetch; a partial catalog is never returned.
"""
from typing import Any, Dict, List, Optional, Tuple

import requests

from .config import MAX_PAGE_SIZE
from .errors import RemoteUnavailable
from .utils import logger, retry

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class _TransientFetchError(RemoteUnavailable):
    pass


class CatalogFetcher:
    def __init__(
        self,
        session: requests.Session,
        store_domain: Optional[str],
        access_token: Optional[str],
        api_version: str = "2025-04",
        page_size: int = MAX_PAGE_SIZE,
        max_pages: int = 100,
        timeout: float = 30.0,
        retries: int = 3,
        retry_delay: float = 1.0,
        retry_max_delay: float = 30.0,
    ):
        self.session = session
        self.store_domain = store_domain
        self.access_token = access_token
        self.api_version = api_version
        self.page_size = max(1, min(page_size, MAX_PAGE_SIZE))
        self.max_pages = max_pages
        self.timeout = timeout
        self.retries = max(1, retries)
        self.retry_delay = retry_delay
        self.retry_max_delay = retry_max_delay

    @classmethod
    def from_settings(cls, settings, session: Optional[requests.Session] = None) -> "CatalogFetcher":
        return cls(
            session or requests.Session(),
            settings.store_domain,
            settings.access_token,
            api_version=settings.api_version,
            page_size=settings.page_size,
            max_pages=settings.max_pages,
            timeout=settings.fetch_timeout,
            retries=settings.fetch_retries,
            retry_delay=settings.fetch_retry_delay,
            retry_max_delay=settings.fetch_retry_max_delay,
        )

    @property
    def products_url(self) -> str:
        return f"https://{self.store_domain}/admin/api/{self.api_version}/products.json"

    @property
    def headers(self) -> Dict[str, str]:
        return {"X-Shopify-Access-Token": self.access_token or "", "Accept": "application/json"}

    def fetch_catalog(self) -> List[Dict[str, Any]]:
        if not self.store_domain or not self.access_token:
            raise RemoteUnavailable("SHOPIFY_STORE_DOMAIN / SHOPIFY_ACCESS_TOKEN not set")

        get_page = retry(_TransientFetchError, tries=self.retries, delay=self.retry_delay,
                         max_delay=self.retry_max_delay)(self._get_page)
        url: Optional[str] = self.products_url
        params: Optional[Dict[str, Any]] = {"limit": self.page_size}
        products: List[Dict[str, Any]] = []
        pages = 0
        while url and pages < self.max_pages:
            page, url = get_page(url, params)
            # the next link already carries limit and page_info
            params = None
            products.extend(page)
            pages += 1
        if url:
            logger.warning("Stopped after %d pages; remaining catalog pages not fetched", pages)
        logger.info("Fetched %d products in %d page(s) from %s", len(products), pages, self.store_domain)
        return products

    def _get_page(self, url: str, params: Optional[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        try:
            resp = self.session.get(url, params=params, headers=self.headers, timeout=self.timeout)
        except requests.Timeout as e:
            raise _TransientFetchError(f"timeout fetching {url}") from e
        except requests.RequestException as e:
            raise _TransientFetchError(f"request to {url} failed: {e}") from e

        status = resp.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise _TransientFetchError(f"catalog returned HTTP {status}", status_code=status)
        if not 200 <= status < 300:
            raise RemoteUnavailable(f"catalog returned HTTP {status}", status_code=status)

        try:
            body = resp.json()
        except ValueError as e:
            raise RemoteUnavailable("catalog response is not JSON", status_code=status) from e
        products = body.get("products") if isinstance(body, dict) else None
        if not isinstance(products, list):
            raise RemoteUnavailable("catalog response has no 'products' array", status_code=status)

        next_url = (resp.links or {}).get("next", {}).get("url")
        return products, next_url
