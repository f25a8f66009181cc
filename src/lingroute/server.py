"""aiohttp server for Lingroute.

Application factory and route registration for standalone server mode.
"""

import logging

from aiohttp import web

from lingroute.api.metadata import create_metadata_routes
from lingroute.api.sitemap import create_sitemap_routes
from lingroute.api.translations import create_translations_routes
from lingroute.app_keys import (
    detector_key,
    fetcher_key,
    http_client_key,
    metadata_key,
    resolver_key,
    sitemap_config_key,
    sitemap_key,
    translations_config_key,
)
from lingroute.config import Config
from lingroute.core.detector import TranslationDetector
from lingroute.core.errors import ConfigError
from lingroute.core.metadata import MetadataGenerator
from lingroute.core.registry import CollectionRegistry
from lingroute.core.resolver import URLResolver
from lingroute.core.sitemap import SitemapGenerator
from lingroute.core.translations import StoreTranslationGatherer
from lingroute.store.client import ContentFetcher, ContentStoreClient, create_http_client

logger = logging.getLogger(__name__)


def create_app(
    config: Config,
    registry: CollectionRegistry,
    *,
    fetcher: ContentFetcher | None = None,
) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration
        registry: Collection registry loaded at startup
        fetcher: Content store capability (default: HTTP client from config)

    Returns:
        Configured aiohttp application

    Raises:
        ConfigError: If the registry disagrees with the configured locales or
            no content store is configured
    """
    if list(registry.locales) != list(config.site.locales) or (
        registry.default_locale != config.site.default_locale
    ):
        raise ConfigError(
            f"Registry locales {list(registry.locales)} (default {registry.default_locale!r}) "
            f"do not match site locales {config.site.locales} "
            f"(default {config.site.default_locale!r}); regenerate the registry"
        )

    app = web.Application()

    if fetcher is None:
        fetcher = _create_store_client(config, app)

    resolver = URLResolver(registry, base_url=config.site.base_url)
    gatherer = StoreTranslationGatherer(fetcher)

    app[resolver_key] = resolver
    app[fetcher_key] = fetcher
    app[detector_key] = TranslationDetector(resolver, gatherer)
    app[metadata_key] = MetadataGenerator(resolver, gatherer)
    app[sitemap_key] = SitemapGenerator(resolver)
    app[sitemap_config_key] = config.sitemap
    app[translations_config_key] = config.translations

    app.router.add_routes(create_sitemap_routes())
    app.router.add_routes(create_translations_routes())
    app.router.add_routes(create_metadata_routes())

    return app


def _create_store_client(config: Config, app: web.Application) -> ContentStoreClient:
    store = config.content_store
    if not store.api_url:
        raise ConfigError("content_store.api_url is required to serve")

    http_client = create_http_client(store.token, store.timeout)
    app[http_client_key] = http_client
    app.on_cleanup.append(_close_http_client)

    return ContentStoreClient(
        http_client,
        store.api_url,
        store.dataset,
        api_version=store.api_version,
        max_attempts=store.max_attempts,
        backoff_factor=store.backoff_factor,
    )


async def _close_http_client(app: web.Application) -> None:
    """Close the content store HTTP client on application cleanup."""
    await app[http_client_key].aclose()


def run_server(config: Config, registry: CollectionRegistry) -> None:
    """Run the server.

    Args:
        config: Application configuration
        registry: Collection registry loaded at startup
    """
    app = create_app(config, registry)
    logger.info(f"Serving {len(registry.locales)} locales from {config.site.base_url}")
    web.run_app(app, host=config.server.host, port=config.server.port)
