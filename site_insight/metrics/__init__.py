"""site_insight.metrics: PageSpeed client and the background metrics job engine."""

from .engine import JobStats, MetricsJobEngine
from .provider import PageSpeedClient

__all__ = ["JobStats", "MetricsJobEngine", "PageSpeedClient"]
