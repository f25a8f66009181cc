"""Tests for CLI commands."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner
from lingroute.cli import cli
from lingroute.core.registry import CollectionRegistry
from lingroute.core.translations import TranslationSnapshot
from lingroute.core.types import CollectionType

CONFIG = """
[site]
base_url = "https://x.io"
locales = ["en", "nb", "ar"]
default_locale = "en"

[content_store]
api_url = "https://store.example.com"
"""


@pytest.fixture
def config_file(tmp_path: Path, registry: CollectionRegistry) -> Path:
    """Write a config file next to a generated registry."""
    registry.save(tmp_path / "collections.generated.json")
    path = tmp_path / "lingroute.toml"
    path.write_text(CONFIG)
    return path


class TestRegistryShowCommand:
    """Tests for the registry show command."""

    def test__lists_collections_per_locale(self, config_file: Path) -> None:
        """Print collection slugs for every locale."""
        runner = CliRunner()
        result = runner.invoke(cli, ["registry", "show", "-c", str(config_file)])

        assert result.exit_code == 0
        assert "Locale: en (default)" in result.output
        assert "Locale: nb" in result.output
        assert "/artikler" in result.output

    def test__missing_registry__fails_with_hint(self, tmp_path: Path) -> None:
        """Point at the generate command when no registry exists."""
        config_file = tmp_path / "lingroute.toml"
        config_file.write_text(CONFIG)

        runner = CliRunner()
        result = runner.invoke(cli, ["registry", "show", "-c", str(config_file)])

        assert result.exit_code == 1
        assert "registry generate" in result.output


class TestRegistryGenerateCommand:
    """Tests for the registry generate command."""

    def test__writes_registry_from_frontpages(self, tmp_path: Path) -> None:
        """Generate the registry file from frontpage records."""
        config_file = tmp_path / "lingroute.toml"
        config_file.write_text(CONFIG)
        frontpages = [{"slug": "artikler", "locale": "nb", "frontpageType": "articles-frontpage"}]

        runner = CliRunner()
        with patch("lingroute.cli._fetch_frontpages", AsyncMock(return_value=frontpages)):
            result = runner.invoke(cli, ["registry", "generate", "-c", str(config_file)])

        assert result.exit_code == 0
        output_path = tmp_path / "collections.generated.json"
        assert f"Collection registry written to {output_path}" in result.output
        generated = CollectionRegistry.load(output_path)
        assert generated.slug_for(CollectionType.ARTICLE, "nb") == "artikler"
        assert json.loads(output_path.read_text())["defaultLocale"] == "en"

    def test__no_content_store__fails(self, tmp_path: Path) -> None:
        """Fail when no content store is configured."""
        config_file = tmp_path / "lingroute.toml"
        config_file.write_text('[site]\nlocales = ["en"]')

        runner = CliRunner()
        result = runner.invoke(cli, ["registry", "generate", "-c", str(config_file)])

        assert result.exit_code == 1
        assert "content_store.api_url is required" in result.output


class TestResolveCommand:
    """Tests for the resolve command."""

    def test__collection_item__prints_url(self, config_file: Path) -> None:
        """Print the resolved URL of a collection item."""
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["resolve", "hei", "--type", "collection.article", "-l", "nb", "-c", str(config_file)],
        )

        assert result.exit_code == 0
        assert result.output.strip() == "/nb/artikler/hei"

    def test__base__prints_absolute_url(self, config_file: Path) -> None:
        """Include the site origin when requested."""
        runner = CliRunner()
        result = runner.invoke(cli, ["resolve", "index", "--base", "-c", str(config_file)])

        assert result.exit_code == 0
        assert result.output.strip() == "https://x.io/"

    def test__unknown_type__fails(self, config_file: Path) -> None:
        """Fail on unknown document types."""
        runner = CliRunner()
        result = runner.invoke(
            cli, ["resolve", "x", "--type", "collection.podcast", "-c", str(config_file)]
        )

        assert result.exit_code == 1
        assert "Unknown document type" in result.output


class TestSitemapCommand:
    """Tests for the sitemap command."""

    def test__unsupported_locale__fails(self, config_file: Path) -> None:
        """Fail for locales the site does not serve."""
        runner = CliRunner()
        result = runner.invoke(cli, ["sitemap", "de", "-c", str(config_file)])

        assert result.exit_code == 1
        assert "Unsupported locale: de" in result.output

    def test__prints_urlset(self, config_file: Path) -> None:
        """Print the rendered sitemap."""
        runner = CliRunner()
        with patch(
            "lingroute.cli.fetch_snapshot",
            AsyncMock(return_value=TranslationSnapshot(documents=[])),
        ):
            result = runner.invoke(cli, ["sitemap", "en", "-c", str(config_file)])

        assert result.exit_code == 0
        assert "urlset" in result.output


class TestServeCommand:
    """Tests for the serve command."""

    def test__fails_without_config(self, tmp_path: Path) -> None:
        """Fail when config file doesn't exist."""
        runner = CliRunner()
        result = runner.invoke(cli, ["serve", "--config", str(tmp_path / "nonexistent.toml")])

        assert result.exit_code != 0
