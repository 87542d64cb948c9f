from __future__ import annotations

import warnings
from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning


DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

TITLE_SELECTORS = (
    ("meta", {"property": "og:title"}),
    ("meta", {"name": "twitter:title"}),
)

DESCRIPTION_SELECTORS = (
    ("meta", {"property": "og:description"}),
    ("meta", {"name": "twitter:description"}),
    ("meta", {"name": "description"}),
)


@dataclass
class PageMetadata:
    title: str
    description: str
    error: str | None = None
    status_code: int | None = None

    def as_dict(self):
        return {"title": self.title, "description": self.description}


def _normalize_error(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return message
    return exc.__class__.__name__


def fetch_html(
    url: str,
    timeout: float,
    max_bytes: int,
    transport: httpx.BaseTransport | None = None,
) -> tuple[str, int]:
    with httpx.Client(
        follow_redirects=True,
        timeout=timeout,
        headers=DEFAULT_HEADERS,
        transport=transport,
    ) as client:
        with client.stream("GET", url) as response:
            status_code = response.status_code
            chunks = []
            total = 0
            for chunk in response.iter_bytes():
                total += len(chunk)
                if total > max_bytes:
                    break
                chunks.append(chunk)
            data = b"".join(chunks)
            encoding = response.encoding or "utf-8"
            return data.decode(encoding, errors="ignore"), status_code


def _build_soup(html: str) -> BeautifulSoup:
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)
        return BeautifulSoup(html, "lxml")


def _first_meta(soup: BeautifulSoup, selectors) -> str:
    for tag_name, attrs in selectors:
        tag = soup.find(tag_name, attrs=attrs)
        if tag and tag.get("content"):
            return tag["content"].strip()
    return ""


def parse_metadata(html: str) -> PageMetadata:
    soup = _build_soup(html)
    title = _first_meta(soup, TITLE_SELECTORS)
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip()
    description = _first_meta(soup, DESCRIPTION_SELECTORS)
    return PageMetadata(title=title, description=description)


def extract_metadata(
    url: str,
    timeout: float = 10.0,
    max_bytes: int = 2_500_000,
    transport: httpx.BaseTransport | None = None,
) -> PageMetadata:
    try:
        html, status_code = fetch_html(
            url, timeout=timeout, max_bytes=max_bytes, transport=transport
        )
    except Exception as exc:
        return PageMetadata(title="", description="", error=_normalize_error(exc))

    if not 200 <= status_code < 300:
        return PageMetadata(
            title="",
            description="",
            error=f"HTTP error! status: {status_code}",
            status_code=status_code,
        )

    metadata = parse_metadata(html)
    metadata.status_code = status_code
    return metadata
