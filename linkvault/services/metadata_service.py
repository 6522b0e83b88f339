"""Link metadata lookup: fetch a page and pull out its title and favicon.

Title falls back from ``og:title`` to ``<title>`` to the hostname. Favicon is
the page's ``<link rel="icon">`` resolved against the site origin, else
``/favicon.ico``. Network failures degrade to the hostname/favicon.ico pair.
"""

import logging
from typing import Optional
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from ..core.config import settings
from ..exceptions import ValidationError
from ..schemas.link import TITLE_MAX, LinkMetadata, validate_http_url

USER_AGENT = "Mozilla/5.0 (compatible; LinkVaultBot/1.0)"

logger = logging.getLogger(__name__)


def get_http_transport() -> Optional[httpx.BaseTransport]:
    """Transport for outgoing page fetches. None means a real network transport."""
    return None


def _origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def _hostname(url: str) -> str:
    host = urlparse(url).hostname or url
    return host[4:] if host.startswith("www.") else host


def fallback_metadata(url: str) -> LinkMetadata:
    return LinkMetadata(title=_hostname(url), favicon=f"{_origin(url)}/favicon.ico")


def parse_metadata(html: str, url: str) -> LinkMetadata:
    soup = BeautifulSoup(html, "html.parser")

    title = None
    og_title = soup.find("meta", attrs={"property": "og:title"})
    if og_title is not None and og_title.get("content"):
        title = og_title["content"].strip()
    if not title and soup.title is not None and soup.title.string:
        title = soup.title.string.strip()

    favicon = f"{_origin(url)}/favicon.ico"
    for link in soup.find_all("link", href=True):
        rels = [rel.lower() for rel in link.get("rel", [])]
        if "icon" in rels:
            href = link["href"].strip()
            if href.startswith("//"):
                favicon = "https:" + href
            else:
                favicon = urljoin(_origin(url) + "/", href)
            break

    return LinkMetadata(title=(title or _hostname(url))[:TITLE_MAX], favicon=favicon)


def fetch_metadata(url: str, transport: Optional[httpx.BaseTransport] = None) -> LinkMetadata:
    """Title and favicon for ``url``.

    Raises:
        ValidationError: ``url`` is not an absolute http(s) URL.
    """
    try:
        url = validate_http_url(url)
    except ValueError as e:
        raise ValidationError(str(e), field="url")

    try:
        with httpx.Client(
            transport=transport,
            timeout=settings.metadata_timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            response = client.get(url)
    except httpx.HTTPError as e:
        logger.warning("Metadata fetch failed for %s: %s", url, e)
        return fallback_metadata(url)

    return parse_metadata(response.text, url)
