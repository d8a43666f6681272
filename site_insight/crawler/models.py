# site_insight/crawler/models.py
"""
Data models shared by discovery, expansion and the metrics engine.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional
from urllib.parse import quote

ANALYSIS_URL = "https://developers.google.com/speed/pagespeed/insights/?url={}"


@dataclass(slots=True)
class PageData:
    """Holds the URL, HTTP status and raw body of a fetched resource."""

    url: str
    content: bytes
    status: int = 200
    charset: Optional[str] = None

    @property
    def text(self) -> str:
        try:
            return self.content.decode(self.charset or "utf-8", errors="replace")
        except LookupError:
            return self.content.decode("utf-8", errors="replace")


@dataclass(slots=True, frozen=True)
class SitemapCandidate:
    """A sitemap document URL waiting to be expanded."""

    url: str
    last_modified: Optional[str] = None


@dataclass(slots=True)
class PageEntry:
    """One page (or nested sitemap) listed in a sitemap document."""

    url: str
    title: Optional[str]
    last_modified: Optional[str]
    category: str
    metrics: Optional[MetricsResult] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "url": self.url,
            "title": self.title,
            "lastModified": self.last_modified,
        }
        if self.metrics is not None:
            data["pageSpeedData"] = self.metrics.to_dict()
        return data


@dataclass(slots=True, frozen=True)
class ScoreSet:
    """Lighthouse scores of one device profile; each in [0, 1] or None."""

    performance: Optional[float] = None
    accessibility: Optional[float] = None
    best_practices: Optional[float] = None
    seo: Optional[float] = None

    @classmethod
    def empty(cls) -> ScoreSet:
        return cls()

    @classmethod
    def from_lighthouse(cls, payload: Mapping[str, Any]) -> ScoreSet:
        """Read ``lighthouseResult.categories.<name>.score`` from a PageSpeed response."""
        result = payload.get("lighthouseResult") if isinstance(payload, Mapping) else None
        categories = result.get("categories") if isinstance(result, Mapping) else None
        if not isinstance(categories, Mapping):
            return cls.empty()

        def score(name: str) -> Optional[float]:
            entry = categories.get(name)
            value = entry.get("score") if isinstance(entry, Mapping) else None
            return float(value) if isinstance(value, (int, float)) else None

        return cls(
            performance=score("performance"),
            accessibility=score("accessibility"),
            best_practices=score("best-practices"),
            seo=score("seo"),
        )

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            "performance": self.performance,
            "accessibility": self.accessibility,
            "bestPractices": self.best_practices,
            "seo": self.seo,
        }


@dataclass(slots=True, frozen=True)
class MetricsResult:
    """Desktop and mobile scores for one URL."""

    site_url: str
    desktop: ScoreSet
    mobile: ScoreSet
    analysis_url: str = ""

    @classmethod
    def build(cls, site_url: str, desktop: ScoreSet, mobile: ScoreSet) -> MetricsResult:
        return cls(
            site_url=site_url,
            desktop=desktop,
            mobile=mobile,
            analysis_url=ANALYSIS_URL.format(quote(site_url, safe="")),
        )

    def has_usable_score(self) -> bool:
        return self.desktop.performance is not None or self.mobile.performance is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "siteUrl": self.site_url,
            "desktop": self.desktop.to_dict(),
            "mobile": self.mobile.to_dict(),
            "analysisUrl": self.analysis_url,
        }


@dataclass(slots=True)
class CategorizedResult:
    """Ordered mapping of category name to the page entries filed under it."""

    _buckets: Dict[str, List[PageEntry]] = field(default_factory=dict)

    def add(self, entry: PageEntry) -> None:
        self._buckets.setdefault(entry.category, []).append(entry)

    def categories(self) -> List[str]:
        return list(self._buckets)

    def __getitem__(self, category: str) -> List[PageEntry]:
        return self._buckets[category]

    def __contains__(self, category: object) -> bool:
        return category in self._buckets

    def __iter__(self) -> Iterator[str]:
        return iter(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def get(self, category: str) -> List[PageEntry]:
        return self._buckets.get(category, [])

    def entries(self) -> List[PageEntry]:
        return [entry for bucket in self._buckets.values() for entry in bucket]

    def urls(self) -> List[str]:
        """Every listed URL once, in first-seen order."""
        return list(dict.fromkeys(entry.url for entry in self.entries()))

    def by_url(self) -> Dict[str, List[PageEntry]]:
        """Entries grouped by URL; a URL listed under several categories maps to all of them."""
        index: Dict[str, List[PageEntry]] = {}
        for entry in self.entries():
            index.setdefault(entry.url, []).append(entry)
        return index

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {name: [e.to_dict() for e in bucket] for name, bucket in self._buckets.items()}
