# File: site_insight/expansion.py
"""site_insight.expansion: раскрытие sitemap-документов в категоризированный список страниц."""

from __future__ import annotations

import asyncio
from typing import List, Sequence

from site_insight.categories import CATCH_ALL, category
from site_insight.crawler.fetcher import SourceFetcher
from site_insight.crawler.models import CategorizedResult, PageEntry, SitemapCandidate
from site_insight.errors import SourceUnavailable
from site_insight.logger import logger
from site_insight.parser.sitemap_parser import parse_sitemap
from site_insight.titles import TitleResolver
from site_insight.utils import batched


class SitemapExpander:
    """Fetches sitemap candidates batch by batch and files every listed page by category.

    At most ``batch_size`` sitemap documents are outstanding at once; titles of
    the pages of a batch are resolved before the next batch starts.
    """

    def __init__(self, fetcher: SourceFetcher, titles: TitleResolver, batch_size: int = 5) -> None:
        self.fetcher = fetcher
        self.titles = titles
        self.batch_size = batch_size

    async def expand(self, candidates: Sequence[SitemapCandidate], base_url: str) -> CategorizedResult:
        base = base_url.rstrip("/")
        result = CategorizedResult()
        batches = batched(list(candidates), self.batch_size)
        for number, batch in enumerate(batches, start=1):
            logger.debug("Expanding batch %d/%d (%d sitemaps)", number, len(batches), len(batch))
            outcomes = await asyncio.gather(*(self._expand_one(c, base) for c in batch))
            for entries in outcomes:
                for entry in entries:
                    result.add(entry)
        logger.info(
            "Categorized %d entries into %d categories", len(result.entries()), len(result)
        )
        return result

    async def _expand_one(self, candidate: SitemapCandidate, base: str) -> List[PageEntry]:
        try:
            page = await self.fetcher.fetch(candidate.url)
            document = parse_sitemap(page.content)
        except (SourceUnavailable, ValueError) as exc:
            logger.warning("Error fetching or parsing sitemap at %s: %s", candidate.url, exc)
            return []

        titles = await asyncio.gather(*(self.titles.resolve(loc) for loc, _ in document.pages))
        entries = [
            PageEntry(url=loc, title=title, last_modified=lastmod, category=category(loc, base))
            for (loc, lastmod), title in zip(document.pages, titles)
        ]
        # nested sitemaps are listed as-is, never expanded
        entries.extend(
            PageEntry(url=loc, title=None, last_modified=None, category=CATCH_ALL)
            for loc, _ in document.sitemaps
        )
        return entries
