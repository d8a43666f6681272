# File: site_insight/categories.py
"""site_insight.categories: категория страницы по её URL относительно базового адреса."""

from __future__ import annotations

import re
from typing import Dict, Final, FrozenSet
from urllib.parse import urlparse

CATCH_ALL: Final[str] = "others"
POSTS: Final[str] = "posts"

# singular path segments folded onto the fixed category names
_ALIASES: Final[Dict[str, str]] = {
    "event": "events",
    "resource": "resources",
    "case-studies": "caseStudies",
    "partner": "partners",
}

KNOWN_CATEGORIES: Final[FrozenSet[str]] = frozenset(_ALIASES.values()) | {POSTS, CATCH_ALL}

_DATE_PATH_RE = re.compile(r"^/?\d{4}/\d{2}/\d{2}(/|$)")


def relative_path(url: str, base_url: str) -> str:
    """Path of *url* below *base_url*, without query or fragment."""
    base = base_url.rstrip("/")
    rest = url[len(base):] if base and url.startswith(base) else None
    if rest is None or rest[:1] not in ("", "/", "?", "#"):
        rest = urlparse(url).path
    return re.split(r"[?#]", rest, maxsplit=1)[0]


def category(url: str, base_url: str) -> str:
    """Возвращает имя категории для *url*.

    Первый непустой сегмент пути после базового адреса; известные сегменты
    приводятся к фиксированным именам, пути вида ``/YYYY/MM/DD/`` дают
    ``posts``, пустой путь даёт ``others``.
    """
    path = relative_path(url, base_url)
    if _DATE_PATH_RE.match(path):
        return POSTS
    segments = [s for s in path.split("/") if s]
    if not segments:
        return CATCH_ALL
    first = segments[0]
    return _ALIASES.get(first.lower(), first)


__all__ = ["CATCH_ALL", "POSTS", "KNOWN_CATEGORIES", "category", "relative_path"]
