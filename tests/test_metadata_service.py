"""Tests for link metadata lookup. Page fetches go through httpx.MockTransport."""

import httpx
import pytest

from linkvault.exceptions import ValidationError
from linkvault.services.metadata_service import fetch_metadata, parse_metadata


def _serving(html, status_code=200):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(status_code, text=html, headers={"content-type": "text/html"})

    return httpx.MockTransport(handler), requests


def _failing(request):
    raise httpx.ConnectTimeout("timed out", request=request)


class TestParseMetadata:

    def test_og_title_preferred(self):
        html = (
            '<html><head><title>Plain title</title>'
            '<meta property="og:title" content=" Social title "></head></html>'
        )
        assert parse_metadata(html, "https://example.com/a").title == "Social title"

    def test_title_tag_when_no_og_title(self):
        html = "<html><head><title>\n  Docs  \n</title></head></html>"
        assert parse_metadata(html, "https://example.com/a").title == "Docs"

    def test_hostname_when_no_title(self):
        meta = parse_metadata("<html><body>hi</body></html>", "https://www.example.com/a")
        assert meta.title == "example.com"
        assert meta.favicon == "https://www.example.com/favicon.ico"

    def test_icon_link_resolved_against_origin(self):
        html = '<link rel="shortcut icon" href="static/icon.png">'
        meta = parse_metadata(html, "https://example.com/deep/page")
        assert meta.favicon == "https://example.com/static/icon.png"

    def test_protocol_relative_and_absolute_icons(self):
        assert parse_metadata(
            '<link rel="icon" href="//cdn.example.net/i.ico">', "http://example.com"
        ).favicon == "https://cdn.example.net/i.ico"
        assert parse_metadata(
            '<link href="https://img.example.org/f.svg" rel="icon">', "https://example.com"
        ).favicon == "https://img.example.org/f.svg"

    def test_long_title_truncated(self):
        meta = parse_metadata(f"<title>{'x' * 700}</title>", "https://example.com")
        assert len(meta.title) == 500


class TestFetchMetadata:

    def test_fetches_page_with_user_agent(self):
        transport, requests = _serving("<title>Example Domain</title>")
        meta = fetch_metadata("https://example.com", transport=transport)

        assert meta.title == "Example Domain"
        assert requests[0].headers["user-agent"].startswith("Mozilla/5.0")

    def test_network_failure_falls_back_to_hostname(self):
        meta = fetch_metadata("https://www.down.example/page", transport=httpx.MockTransport(_failing))
        assert meta.title == "down.example"
        assert meta.favicon == "https://www.down.example/favicon.ico"

    def test_non_http_url_rejected(self):
        with pytest.raises(ValidationError):
            fetch_metadata("javascript:alert(1)")
