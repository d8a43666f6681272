# File: site_insight/discovery.py
"""site_insight.discovery: поиск sitemap-документов сайта.

Order of sources, each tried only while nothing has been found:

1. ``/sitemap_index.xml`` (definitive when it lists at least one sitemap)
2. ``/sitemap.xml`` together with the ``Sitemap:`` lines of ``/robots.txt``
3. anchors on the home page whose href mentions ``sitemap``
"""
from __future__ import annotations

from typing import List

from site_insight.crawler.fetcher import SourceFetcher
from site_insight.crawler.models import SitemapCandidate
from site_insight.errors import NoSitemapFound, SourceUnavailable
from site_insight.logger import logger
from site_insight.parser.html_parser import find_sitemap_links
from site_insight.parser.robots_parser import parse_sitemap_directives
from site_insight.parser.sitemap_parser import parse_sitemap
from site_insight.utils import remove_duplicates


class SitemapDiscovery:
    """Finds the sitemap candidates of one site."""

    def __init__(self, fetcher: SourceFetcher, dedupe: bool = True) -> None:
        self.fetcher = fetcher
        self.dedupe = dedupe

    async def discover(self, base_url: str) -> List[SitemapCandidate]:
        """Return the sitemap candidates for *base_url* or raise NoSitemapFound."""
        base = base_url.rstrip("/")
        logger.info("Discovering sitemaps for %s", base)

        candidates = await self._from_index(base)
        if candidates:
            logger.info("Found %d sitemaps in sitemap index", len(candidates))
            return self._finish(candidates)

        candidates.extend(await self._from_default(base))
        candidates.extend(await self._from_robots(base))
        if not candidates:
            candidates = await self._from_homepage(base)
        if not candidates:
            logger.warning("No sitemap found for %s", base)
            raise NoSitemapFound(base)
        return self._finish(candidates)

    def _finish(self, candidates: List[SitemapCandidate]) -> List[SitemapCandidate]:
        if not self.dedupe:
            return candidates
        return remove_duplicates(candidates, key=lambda c: c.url)

    async def _from_index(self, base: str) -> List[SitemapCandidate]:
        url = f"{base}/sitemap_index.xml"
        try:
            page = await self.fetcher.fetch(url)
            document = parse_sitemap(page.content)
        except (SourceUnavailable, ValueError) as exc:
            logger.debug("No sitemap index at %s: %s", url, exc)
            return []
        return [SitemapCandidate(loc, lastmod) for loc, lastmod in document.sitemaps]

    async def _from_default(self, base: str) -> List[SitemapCandidate]:
        url = f"{base}/sitemap.xml"
        try:
            await self.fetcher.fetch(url)
        except SourceUnavailable as exc:
            logger.debug("Default sitemap.xml not found: %s", exc)
            return []
        return [SitemapCandidate(url)]

    async def _from_robots(self, base: str) -> List[SitemapCandidate]:
        url = f"{base}/robots.txt"
        try:
            page = await self.fetcher.fetch(url)
        except SourceUnavailable as exc:
            logger.debug("robots.txt not found: %s", exc)
            return []
        return [SitemapCandidate(loc) for loc in parse_sitemap_directives(page.text)]

    async def _from_homepage(self, base: str) -> List[SitemapCandidate]:
        try:
            page = await self.fetcher.fetch(base)
        except SourceUnavailable as exc:
            logger.warning("Error scraping the main page: %s", exc)
            return []
        return [SitemapCandidate(href) for href in find_sitemap_links(page.text, base)]
