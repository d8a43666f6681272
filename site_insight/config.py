# === FILE: site_insight/config.py ===
"""
Модуль для загрузки и валидации конфигурации SiteInsight.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
)

PAGESPEED_ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
API_KEY_ENV = "PAGESPEED_API_KEY"


class InsightConfig(BaseModel):
    """Настройки конвейера: обнаружение sitemap, заголовки и сбор метрик."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    timeout: float = Field(10.0, gt=0, description="Таймаут на один запрос (секунд).")
    user_agent: str = Field("SiteInsightBot/1.0", min_length=1, description="Заголовок User-Agent.")
    batch_size: int = Field(5, ge=1, description="Число sitemap-документов в одном пакете.")
    dedupe_candidates: bool = Field(True, description="Убирать повторы среди найденных sitemap.")
    title_attempts: int = Field(3, ge=1, description="Попыток загрузки заголовка при HTTP 429.")
    provider_attempts: int = Field(5, ge=1, description="Попыток вызова PageSpeed на профиль.")
    outer_attempts: int = Field(5, ge=1, description="Повторов URL без оценки performance.")
    provider_delay: float = Field(2.0, ge=0, description="Пауза перед каждым вызовом PageSpeed.")
    provider_timeout: float = Field(60.0, gt=0, description="Таймаут одного вызова PageSpeed (секунд).")
    backoff_factor: float = Field(1.0, ge=0, description="Множитель экспоненциальной паузы 2**n.")
    max_in_flight: int = Field(4, ge=1, description="Одновременно обрабатываемых URL метрик.")
    pagespeed_endpoint: HttpUrl = Field(PAGESPEED_ENDPOINT, description="Адрес PageSpeed API.")
    api_key: Optional[str] = Field(
        default_factory=lambda: os.environ.get(API_KEY_ENV),
        validate_default=True,
        description="Ключ PageSpeed API.",
    )
    host: str = Field("0.0.0.0", description="Адрес HTTP-сервера.")
    port: int = Field(5000, ge=0, le=65535, description="Порт HTTP-сервера.")

    @field_validator("api_key", mode="before")
    def _blank_key_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def endpoint(self) -> str:
        return str(self.pagespeed_endpoint)


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> InsightConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект InsightConfig.
    Без пути используется configs/default.yaml, а при его отсутствии значения по умолчанию.
    Явно указанный, но отсутствующий файл даёт FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return InsightConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    try:
        return InsightConfig(**data)
    except ValidationError:
        raise


__all__ = ["InsightConfig", "load_config", "PAGESPEED_ENDPOINT", "API_KEY_ENV"]
