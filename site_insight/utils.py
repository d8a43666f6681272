# File: site_insight/utils.py
"""site_insight.utils: вспомогательные функции для URL и списков."""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, List, Optional, Sequence, TypeVar
from urllib.parse import urlparse

from site_insight.logger import logger

__all__: Sequence[str] = (
    "is_http_url",
    "normalize_base_url",
    "remove_duplicates",
    "batched",
)

T = TypeVar("T")


def is_http_url(url: str) -> bool:
    """Проверяет, что URL абсолютный и использует http(s)."""
    parsed = urlparse(url)
    valid = parsed.scheme in ("http", "https") and bool(parsed.netloc)
    logger.debug("URL valid: %s -> %s", url, valid)
    return valid


def normalize_base_url(url: str) -> str:
    """Убирает пробелы и завершающий слеш у базового адреса сайта."""
    return url.strip().rstrip("/")


def remove_duplicates(items: Iterable[T], key: Optional[Callable[[T], Hashable]] = None) -> List[T]:
    """Удаляет дубликаты, сохраняя порядок первого появления."""
    seen: set = set()
    unique: List[T] = []
    total = 0
    for item in items:
        total += 1
        marker = key(item) if key else item
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(item)
    removed = total - len(unique)
    if removed:
        logger.debug("Removed %d duplicate entries", removed)
    return unique


def batched(items: Sequence[T], size: int) -> List[Sequence[T]]:
    """Режет последовательность на пакеты по *size* элементов."""
    if size < 1:
        raise ValueError("batch size must be >= 1")
    return [items[i:i + size] for i in range(0, len(items), size)]
