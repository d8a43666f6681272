# File: site_insight/parser/robots_parser.py
"""site_insight.parser.robots_parser: извлечение директив Sitemap из robots.txt."""

from __future__ import annotations

import re
from typing import List

_SITEMAP_RE = re.compile(r"^\s*sitemap\s*:\s*(\S.*?)\s*$", re.IGNORECASE | re.MULTILINE)


def parse_sitemap_directives(text: str) -> List[str]:
    """Возвращает URL из всех строк ``Sitemap: <url>`` (регистр не важен) в порядке файла.

    Комментарии после ``#`` отбрасываются.
    """
    urls: List[str] = []
    for match in _SITEMAP_RE.finditer(text):
        value = match.group(1).split("#", 1)[0].strip()
        if value:
            urls.append(value)
    return urls
