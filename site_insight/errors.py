# site_insight/errors.py
"""
Error taxonomy for the SiteInsight pipeline.

Every error carries the HTTP status the server answers with when it reaches
the request boundary. Only ``NoSitemapFound`` and ``RequestValidationError``
are expected to get that far; the rest are recovered where they are raised.
"""
from __future__ import annotations

from typing import Optional


class SiteInsightError(Exception):
    """Base class for all pipeline errors."""

    status: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class SourceUnavailable(SiteInsightError):
    """A single fetch failed: network error, timeout, non-2xx or unparseable body."""

    status = 502

    def __init__(self, url: str, reason: str = "", status: Optional[int] = None) -> None:
        super().__init__(f"{url}: {reason or 'unavailable'}")
        self.url = url
        self.http_status = status


class RateLimited(SourceUnavailable):
    """HTTP 429 from the crawled site or the metrics provider."""

    status = 429

    def __init__(self, url: str, status: int = 429) -> None:
        super().__init__(url, "rate limited", status)


class NoSitemapFound(SiteInsightError):
    """No discovery strategy produced a sitemap candidate."""

    status = 404

    def __init__(self, base_url: str) -> None:
        super().__init__("No sitemap URLs found")
        self.base_url = base_url


class ProviderError(SiteInsightError):
    """Failure of one metrics provider call."""

    status = 502

    def __init__(self, url: str, strategy: str, reason: str = "", status: Optional[int] = None) -> None:
        super().__init__(f"{strategy} {url}: {reason or 'provider error'}")
        self.url = url
        self.strategy = strategy
        self.http_status = status


class ProviderTransientError(ProviderError):
    """HTTP 429 or 5xx from the provider; worth another attempt."""


class ProviderPermanentError(ProviderError):
    """Any other provider failure; terminal for that device profile."""


class RequestValidationError(SiteInsightError, ValueError):
    """The inbound request is missing a usable site URL."""

    status = 400


__all__ = [
    "SiteInsightError",
    "SourceUnavailable",
    "RateLimited",
    "NoSitemapFound",
    "ProviderError",
    "ProviderTransientError",
    "ProviderPermanentError",
    "RequestValidationError",
]
