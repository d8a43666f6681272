"""site_insight.report: JSON and HTML rendering of a categorized sitemap, used by the CLI."""

from __future__ import annotations

from site_insight.report.html_report import render_html
from site_insight.report.json_report import render_json

__all__ = ["render_json", "render_html"]
