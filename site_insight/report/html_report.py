"""site_insight.report.html_report: HTML-отчёт по категориям с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from site_insight.crawler.models import CategorizedResult

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "report.html.j2"


def _percent(score: Optional[float]) -> str:
    return "–" if score is None else f"{round(score * 100)}"


def render_html(
    result: CategorizedResult,
    template_dir: Union[Path, str, None],
    output_path: Union[Path, str],
    *,
    base_url: str = "",
) -> Path:
    """Рендерит HTML-отчёт из шаблона и сохраняет его по указанному пути.

    Args:
        result: объект CategorizedResult (метрики выводятся, если уже получены).
        template_dir: директория с ``report.html.j2``; None — шаблон пакета.
        output_path: путь к итоговому HTML-файлу.
        base_url: адрес сайта для заголовка отчёта.

    Returns:
        Path до сохранённого HTML-файла.
    """
    template_dir = Path(template_dir) if template_dir else TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    env.filters["percent"] = _percent
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "base_url": base_url,
        "categories": [(name, result[name]) for name in result.categories()],
        "total": len(result.entries()),
    }

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
