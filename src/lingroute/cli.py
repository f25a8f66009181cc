"""CLI interface for Lingroute.

Command-line tool for serving multilingual routing endpoints, generating the
collection registry and inspecting resolved URLs and sitemaps.
"""

import asyncio
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import NoReturn

import click

from lingroute.config import Config
from lingroute.core.errors import ConfigError, ContentStoreError
from lingroute.core.registry import FRONTPAGE_TO_COLLECTION, CollectionRegistry, generate_registry
from lingroute.core.resolver import URLResolver
from lingroute.core.sitemap import SitemapGenerator, fetch_snapshot
from lingroute.core.types import Document, kind_from_type_name
from lingroute.store.client import ContentStoreClient, create_http_client
from lingroute.store.queries import FRONTPAGES_QUERY

config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover lingroute.toml)",
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Lingroute - multilingual routing and hreflang reconciliation."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.group()
def registry() -> None:
    """Collection registry commands."""


cli.add_command(registry)


@cli.command()
@config_option
@click.option("--host", default=None, help="Host to bind to (overrides config)")
@click.option("--port", "-p", type=int, default=None, help="Port to bind to (overrides config)")
@click.option("--base-url", default=None, help="Public site origin (overrides config)")
@click.option(
    "--registry",
    "registry_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Generated collection registry file (overrides config)",
)
def serve(
    config_path: Path | None,
    host: str | None,
    port: int | None,
    base_url: str | None,
    registry_path: Path | None,
) -> None:
    """Start the routing server."""
    from lingroute.server import run_server

    config = _load_config(config_path).with_overrides(
        host=host, port=port, base_url=base_url, registry_path=registry_path
    )
    collection_registry = _load_registry(config)

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Site: {config.site.base_url}")
    click.echo(f"Locales: {', '.join(config.site.locales)} (default {config.site.default_locale})")
    click.echo(f"Content store: {config.content_store.api_url or 'not configured'}")

    try:
        run_server(config, collection_registry)
    except ConfigError as e:
        _fail(str(e))


@registry.command("generate")
@config_option
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Output file (default: registry.path from config)",
)
def registry_generate(config_path: Path | None, output: Path | None) -> None:
    """Generate the collection registry from the content store."""
    config = _load_config(config_path)
    output_path = output or config.registry.path

    try:
        frontpages = asyncio.run(_fetch_frontpages(config))
        generated = generate_registry(
            frontpages if isinstance(frontpages, list) else [],
            config.site.locales,
            config.site.default_locale,
        )
    except (ConfigError, ContentStoreError) as e:
        _fail(str(e))

    generated.save(output_path)
    click.echo(f"Collection registry written to {output_path}")


@registry.command("show")
@config_option
def registry_show(config_path: Path | None) -> None:
    """Show configured collections per locale."""
    config = _load_config(config_path)
    for line in _load_registry(config).describe():
        click.echo(line)


@cli.command()
@config_option
@click.argument("slug")
@click.option("--type", "type_name", default="page", help="Document type (page or collection.*)")
@click.option("--language", "-l", default=None, help="Document language (default: default locale)")
@click.option("--base/--no-base", default=False, help="Include the site origin")
def resolve(
    config_path: Path | None,
    slug: str,
    type_name: str,
    language: str | None,
    base: bool,
) -> None:
    """Print the URL of a document."""
    config = _load_config(config_path)
    collection_registry = _load_registry(config)

    kind = kind_from_type_name(type_name)
    if kind is None:
        _fail(f"Unknown document type: {type_name}")

    resolver = URLResolver(collection_registry, base_url=config.site.base_url)
    document = Document(
        kind=kind, language=language or collection_registry.default_locale, slug=slug
    )
    click.echo(resolver.resolve(document, include_base=base))


@cli.command()
@config_option
@click.argument("locale")
def sitemap(config_path: Path | None, locale: str) -> None:
    """Print the sitemap of a locale."""
    config = _load_config(config_path)
    collection_registry = _load_registry(config)
    if not collection_registry.is_supported(locale):
        _fail(f"Unsupported locale: {locale}")

    resolver = URLResolver(collection_registry, base_url=config.site.base_url)
    try:
        body = asyncio.run(_build_sitemap(config, SitemapGenerator(resolver), locale))
    except (ConfigError, ContentStoreError) as e:
        _fail(str(e))
    click.echo(body.decode("utf-8"))


async def _fetch_frontpages(config: Config) -> object:
    async with _store_client(config) as store:
        return await store.fetch(
            FRONTPAGES_QUERY, {"frontpageTypes": list(FRONTPAGE_TO_COLLECTION)}
        )


async def _build_sitemap(config: Config, generator: SitemapGenerator, locale: str) -> bytes:
    async with _store_client(config) as store:
        snapshot = await fetch_snapshot(store)
    entries = await generator.build_entries(snapshot, locale)
    return generator.render_urlset(entries)


@asynccontextmanager
async def _store_client(config: Config) -> AsyncIterator[ContentStoreClient]:
    """Open a content store client for the duration of one command."""
    store = config.content_store
    if not store.api_url:
        raise ConfigError("content_store.api_url is required")

    async with create_http_client(store.token, store.timeout) as http_client:
        yield ContentStoreClient(
            http_client,
            store.api_url,
            store.dataset,
            api_version=store.api_version,
            max_attempts=store.max_attempts,
            backoff_factor=store.backoff_factor,
        )


def _load_config(config_path: Path | None) -> Config:
    try:
        return Config.load(config_path)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))


def _load_registry(config: Config) -> CollectionRegistry:
    try:
        return CollectionRegistry.load(config.registry.path)
    except ConfigError as e:
        _fail(str(e))


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)
