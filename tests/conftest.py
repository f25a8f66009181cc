"""Shared test fixtures."""

from pathlib import Path

import pytest
from lingroute.config import (
    Config,
    ContentStoreConfig,
    RegistryConfig,
    ServerConfig,
    SiteConfig,
    SitemapConfig,
    TranslationsConfig,
)
from lingroute.core.registry import CollectionRegistry
from lingroute.core.resolver import URLResolver
from lingroute.core.types import CollectionType

from tests.fakes import BASE_URL


@pytest.fixture
def registry() -> CollectionRegistry:
    """Registry with English default, Norwegian overrides and untranslated Arabic."""
    return CollectionRegistry(
        locales=["en", "nb", "ar"],
        default_locale="en",
        slugs_by_locale={
            "nb": {
                CollectionType.ARTICLE: "artikler",
                CollectionType.DOCUMENTATION: "dokumentasjon",
            },
        },
    )


@pytest.fixture
def resolver(registry: CollectionRegistry) -> URLResolver:
    return URLResolver(registry, base_url=BASE_URL)


@pytest.fixture
def test_config(tmp_path: Path, registry: CollectionRegistry) -> Config:
    """Create a test configuration matching the registry fixture.

    Writes the registry to tmp_path so commands that load it can find it.
    """
    registry_path = tmp_path / "collections.generated.json"
    registry.save(registry_path)

    return Config(
        server=ServerConfig(),
        site=SiteConfig(base_url=BASE_URL, locales=["en", "nb", "ar"], default_locale="en"),
        content_store=ContentStoreConfig(api_url="https://store.example.com"),
        registry=RegistryConfig(path=registry_path),
        sitemap=SitemapConfig(),
        translations=TranslationsConfig(lookup_timeout=1.0),
    )
