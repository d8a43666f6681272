# File: site_insight/parser/sitemap_parser.py
"""site_insight.parser.sitemap_parser: разбор sitemap.xml и sitemap_index.xml."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from lxml import etree

SitemapEntry = Tuple[str, Optional[str]]


@dataclass(slots=True)
class SitemapDocument:
    """Page entries (``<url>``) and nested sitemap entries (``<sitemap>``) of one document."""

    pages: List[SitemapEntry] = field(default_factory=list)
    sitemaps: List[SitemapEntry] = field(default_factory=list)


def _entries(root: etree._Element, tag: str) -> List[SitemapEntry]:
    found: List[SitemapEntry] = []
    for node in root.iter(f"{{*}}{tag}"):
        loc = node.find("{*}loc")
        if loc is None or not (loc.text or "").strip():
            continue
        lastmod = node.find("{*}lastmod")
        modified = (lastmod.text or "").strip() if lastmod is not None else ""
        found.append((loc.text.strip(), modified or None))
    return found


def parse_sitemap(xml_content: str | bytes) -> SitemapDocument:
    """Разбирает XML sitemap и возвращает ``<url>`` и ``<sitemap>`` записи в порядке документа.

    Args:
        xml_content: содержимое sitemap.xml или sitemap_index.xml; байты передаются как есть,
            чтобы кодировку определяла XML-декларация.

    Raises:
        ValueError: если документ не удаётся разобрать как XML.

    Пример:
    ```python
    doc = parse_sitemap(open("sitemap.xml", "rb").read())
    for url, lastmod in doc.pages:
        print(url, lastmod)
    ```
    """
    raw = xml_content.encode("utf-8") if isinstance(xml_content, str) else xml_content
    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False)
    try:
        root = etree.fromstring(raw.strip(), parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ValueError(f"invalid sitemap XML: {exc}") from exc
    if root is None:
        raise ValueError("invalid sitemap XML: empty document")
    return SitemapDocument(pages=_entries(root, "url"), sitemaps=_entries(root, "sitemap"))
