# tests/test_fetcher.py
from unittest.mock import MagicMock

import pytest
import requests

from shopsync.config import Settings
from shopsync.errors import RemoteUnavailable
from shopsync.fetcher import CatalogFetcher


def _response(status=200, products=None, next_url=None, body=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body if body is not None else {"products": products or []}
    resp.links = {"next": {"url": next_url, "rel": "next"}} if next_url else {}
    return resp


def _fetcher(session, **kwargs):
    kwargs.setdefault("retry_delay", 0)
    return CatalogFetcher(session, "acme-test.myshopify.com", "shpat_test", **kwargs)


class TestFetchCatalog:
    def test_single_page(self):
        session = MagicMock()
        session.get.return_value = _response(products=[{"id": 1}, {"id": 2}])

        products = _fetcher(session).fetch_catalog()

        assert products == [{"id": 1}, {"id": 2}]
        args, kwargs = session.get.call_args
        assert args[0] == "https://acme-test.myshopify.com/admin/api/2025-04/products.json"
        assert kwargs["params"] == {"limit": 250}
        assert kwargs["headers"]["X-Shopify-Access-Token"] == "shpat_test"
        assert kwargs["timeout"] == 30.0

    def test_follows_next_links_until_exhausted(self):
        session = MagicMock()
        next_url = "https://acme-test.myshopify.com/admin/api/2025-04/products.json?limit=250&page_info=abc"
        session.get.side_effect = [
            _response(products=[{"id": 1}], next_url=next_url),
            _response(products=[{"id": 2}]),
        ]

        products = _fetcher(session).fetch_catalog()

        assert [p["id"] for p in products] == [1, 2]
        second = session.get.call_args_list[1]
        assert second.args[0] == next_url
        assert second.kwargs["params"] is None

    def test_stops_at_max_pages(self):
        session = MagicMock()
        session.get.side_effect = [
            _response(products=[{"id": 1}], next_url="https://x/p2"),
            _response(products=[{"id": 2}], next_url="https://x/p3"),
        ]

        products = _fetcher(session, max_pages=2).fetch_catalog()

        assert len(products) == 2
        assert session.get.call_count == 2

    def test_page_size_capped(self):
        session = MagicMock()
        session.get.return_value = _response()

        _fetcher(session, page_size=1000).fetch_catalog()

        assert session.get.call_args.kwargs["params"] == {"limit": 250}


class TestFailures:
    def test_auth_error_is_not_retried(self):
        session = MagicMock()
        session.get.return_value = _response(status=401)

        with pytest.raises(RemoteUnavailable) as exc:
            _fetcher(session).fetch_catalog()

        assert exc.value.status_code == 401
        assert session.get.call_count == 1

    def test_server_error_retried_then_succeeds(self):
        session = MagicMock()
        session.get.side_effect = [_response(status=503), _response(products=[{"id": 1}])]

        assert _fetcher(session, retries=3).fetch_catalog() == [{"id": 1}]
        assert session.get.call_count == 2

    def test_connection_error_after_retries(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(RemoteUnavailable):
            _fetcher(session, retries=2).fetch_catalog()

        assert session.get.call_count == 2

    def test_timeout(self):
        session = MagicMock()
        session.get.side_effect = requests.Timeout("slow")

        with pytest.raises(RemoteUnavailable, match="timeout"):
            _fetcher(session, retries=1).fetch_catalog()

    def test_failure_on_later_page_fails_whole_fetch(self):
        session = MagicMock()
        session.get.side_effect = [
            _response(products=[{"id": 1}], next_url="https://x/p2"),
            _response(status=403),
        ]

        with pytest.raises(RemoteUnavailable):
            _fetcher(session).fetch_catalog()

    def test_non_json_body(self):
        session = MagicMock()
        resp = _response()
        resp.json.side_effect = ValueError("not json")
        session.get.return_value = resp

        with pytest.raises(RemoteUnavailable, match="not JSON"):
            _fetcher(session).fetch_catalog()

    def test_body_without_products(self):
        session = MagicMock()
        session.get.return_value = _response(body={"errors": "Not Found"})

        with pytest.raises(RemoteUnavailable):
            _fetcher(session).fetch_catalog()

    def test_missing_credentials(self):
        session = MagicMock()

        with pytest.raises(RemoteUnavailable):
            CatalogFetcher(session, None, None).fetch_catalog()

        session.get.assert_not_called()


def test_from_settings():
    settings = Settings(store_domain="shop.example.com", access_token="tok", api_version="2024-10",
                        page_size=50, fetch_timeout=5.0)
    session = MagicMock()
    fetcher = CatalogFetcher.from_settings(settings, session=session)
    assert fetcher.session is session
    assert fetcher.products_url == "https://shop.example.com/admin/api/2024-10/products.json"
    assert fetcher.page_size == 50
    assert fetcher.timeout == 5.0
