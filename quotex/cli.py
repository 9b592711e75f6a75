"""
quotex CLI commands

Command-line access to document extraction and catalog matching.
"""

import asyncio
import json
import mimetypes
from pathlib import Path

import click

from quotex.config.quotex_config import QuotexConfig, setup_logging
from quotex.exceptions import ConfigurationError
from quotex.matching.catalog import InMemoryCatalog
from quotex.matching.matcher import TieredMatcher
from quotex.matching.semantic import ClaudeSemanticMatcher
from quotex.models.extraction import DocumentPayload
from quotex.pipeline import ImportPipeline
from quotex.processors.router import ExtractionRouter
from quotex.utils.currency_conversion import ExchangeRates


def _load_config(config_path):
    try:
        return QuotexConfig.load(config_path)
    except ConfigurationError as e:
        raise click.ClickException(str(e))


def _read_payload(file_path, content_type):
    path = Path(file_path)
    content_type = content_type or mimetypes.guess_type(path.name)[0] or ''
    return DocumentPayload(data=path.read_bytes(), content_type=content_type, filename=path.name)


@click.group()
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='Path to configuration file')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
              help='Logging level')
@click.pass_context
def cli(ctx, config_path, log_level):
    """quotex command-line interface"""
    config = _load_config(config_path)
    setup_logging(config, level=log_level)
    ctx.obj = config


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--content-type', help='Declared content type (guessed from the file name when omitted)')
@click.option('--catalog', 'catalog_path', type=click.Path(exists=True, dir_okay=False),
              help='JSON file with existing catalog entries')
@click.option('--semantic/--no-semantic', default=False, help='Verify borderline matches with Claude')
@click.option('--convert/--no-convert', default=False, help='Fill prices in all three currencies')
@click.option('--timeout', type=float, help='Deadline in seconds for each model call')
@click.pass_obj
def extract(config, file_path, content_type, catalog_path, semantic, convert, timeout):
    """Extract records from FILE_PATH and match them against a catalog"""
    payload = _read_payload(file_path, content_type)
    catalog = InMemoryCatalog.from_json(catalog_path) if catalog_path else InMemoryCatalog()

    semantic_matcher = None
    if semantic:
        try:
            semantic_matcher = ClaudeSemanticMatcher.from_config(config)
        except ConfigurationError as e:
            raise click.ClickException(str(e))

    pipeline = ImportPipeline(
        router=ExtractionRouter(config),
        matcher=TieredMatcher(catalog, semantic_matcher, config),
        rates=ExchangeRates.from_config(config) if convert else None,
    )
    batch = asyncio.run(pipeline.run(payload, timeout=timeout))
    click.echo(json.dumps(batch.to_dict(), ensure_ascii=False, indent=2))
    if not batch.success:
        raise SystemExit(1)


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--content-type', help='Declared content type')
@click.option('--language', type=click.Choice(['en', 'he']), default='en', help='Display language')
@click.pass_obj
def route(config, file_path, content_type, language):
    """Show which extractor FILE_PATH would use"""
    payload = _read_payload(file_path, content_type)
    router = ExtractionRouter(config)
    kind = router.resolve(payload.content_type, payload.filename, payload.data)
    click.echo(f"Extractor: {router.extractor_name(kind, language)} ({kind.value})")
    click.echo(f"Estimated time: {router.estimate_processing_time_ms(kind, payload.size_bytes)} ms")


@cli.command()
def formats():
    """List supported file formats"""
    click.echo('Extensions: ' + ', '.join(ExtractionRouter.supported_extensions()))
    click.echo('Content types:')
    for content_type in ExtractionRouter.supported_content_types():
        click.echo(f'  {content_type}')


if __name__ == '__main__':
    cli()
