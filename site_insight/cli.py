# === FILE: site_insight/cli.py ===
#!/usr/bin/env python3
"""
Точка входа SiteInsight через командную строку.

Команды:
  discover URL  Найти sitemap, разложить страницы по категориям, при --metrics собрать PageSpeed
  serve         Запустить HTTP/WebSocket сервер
  config        Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Пример:
  site-insight discover https://example.com --json sitemap.json --pretty
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict

import click

from site_insight import __version__
from site_insight.config import load_config
from site_insight.crawler.models import CategorizedResult
from site_insight.engine import Engine
from site_insight.errors import SiteInsightError
from site_insight.logger import init_logging
from site_insight.report.html_report import render_html
from site_insight.report.json_report import render_json
from site_insight.server import run_server
from site_insight.session import JobSession

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


class EchoEmitter:
    """Печатает каждое событие метрик строкой JSON."""

    async def publish(self, session_id: str, event: Dict[str, Any]) -> int:
        click.echo(json.dumps(event, ensure_ascii=False))
        return 1


async def run_discover(cfg, url: str, with_metrics: bool = False) -> CategorizedResult:
    """Категоризация sitemap и, по запросу, ожидание всех результатов PageSpeed."""
    async with Engine(cfg) as engine:
        if not with_metrics:
            return await engine.categorize(url)
        job = JobSession("cli")
        result, _ = await engine.process(url, EchoEmitter(), job)
        await job.wait()
    return result


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteInsight, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд SiteInsight CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('discover', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблоном report.html.j2 (по умолчанию шаблон пакета)'
)
@click.option(
    '--pretty', is_flag=True,
    help='Преформатировать JSON-вывод (отступ 2)'
)
@click.option(
    '--metrics', 'with_metrics', is_flag=True,
    help='Собрать PageSpeed-метрики и печатать каждое событие строкой JSON'
)
@click.option(
    '--scan-timeout', 'scan_timeout',
    type=float,
    default=None,
    help='Таймаут всей операции (секунд)'
)
@click.pass_context
def discover(ctx, url, json_output, html_output, template_dir, pretty, with_metrics, scan_timeout):
    """Найти sitemap сайта URL и вывести/сохранить категоризированный список страниц."""
    cfg = ctx.obj['config']
    try:
        if scan_timeout:
            result = asyncio.run(
                asyncio.wait_for(run_discover(cfg, url, with_metrics), timeout=scan_timeout)
            )
        else:
            result = asyncio.run(run_discover(cfg, url, with_metrics))
    except asyncio.TimeoutError:
        print_error(f'Операция не завершена за {scan_timeout} секунд')
    except SiteInsightError as e:
        print_error(f'Ошибка: {e.message}')
    except Exception as e:
        print_error(f'Ошибка при обработке sitemap: {e}')

    if not json_output and not html_output:
        indent = 2 if pretty else None
        click.echo(json.dumps({'sitemaps': result.to_dict()}, ensure_ascii=False, indent=indent))
        return

    if json_output:
        try:
            saved_json = render_json(result, json_output, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(result, template_dir, html_output, base_url=url)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('serve', context_settings=CONTEXT_SETTINGS)
@click.option('--host', default=None, help='Адрес для прослушивания (по умолчанию из конфига)')
@click.option('--port', '-p', type=int, default=None, help='Порт (по умолчанию из конфига)')
@click.pass_context
def serve(ctx, host, port):
    """Запустить HTTP API и WebSocket для потоковой выдачи метрик."""
    cfg = ctx.obj['config']
    run_server(cfg, host=host, port=port)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    data = cfg.model_dump(mode='json')
    if data.get('api_key'):
        data['api_key'] = '***'
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
