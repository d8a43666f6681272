# site_insight/report/json_report.py

"""
Генерация JSON-отчёта SiteInsight.

Сериализация CategorizedResult в файл.
"""
import json
from pathlib import Path

from site_insight.crawler.models import CategorizedResult


def render_json(result: CategorizedResult, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Сохраняет категоризированный sitemap в формате JSON по указанному пути.

    :param result: объект CategorizedResult
    :param output_path: путь к JSON-файлу
    :param pretty: отступ 2 пробела
    :return: Path сохранённого файла

    Пример:
    ```python
    from site_insight.report.json_report import render_json
    report_path = render_json(result, 'reports/sitemap.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    data = {"sitemaps": result.to_dict()}

    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2 if pretty else None)

    return output
