# === FILE: site_insight/parser/html_parser.py ===
"""HTML parsing helpers for SiteInsight.

Two small jobs, both best-effort:

* title — text of the document ``<title>`` or ``""`` if absent.
* sitemap links — anchors whose ``href`` mentions ``sitemap``, used as the
  last discovery fallback when neither sitemap.xml nor robots.txt help.
"""
from __future__ import annotations

from collections.abc import Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

__all__: Sequence[str] = ("parse_title", "find_sitemap_links")


def parse_title(html: str) -> str:
    """Return the stripped ``<title>`` text of *html* (``""`` when missing)."""
    soup = BeautifulSoup(html, "html.parser")
    title_tag = soup.find("title")
    return title_tag.get_text(strip=True) if title_tag else ""


def find_sitemap_links(html: str, base_url: str = "") -> list[str]:
    """Collect ``<a href>`` values containing ``sitemap``, in document order.

    Relative hrefs are resolved against *base_url*.
    """
    soup = BeautifulSoup(html, "html.parser")
    links: list[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if "sitemap" not in raw:
            continue
        links.append(urljoin(base_url + "/", raw) if base_url else raw)
    return links
