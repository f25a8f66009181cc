"""Configuration management for Lingroute.

Supports TOML configuration format with auto-discovery.
"""

import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

CONFIG_FILENAME = "lingroute.toml"
TOKEN_ENV_VAR = "LINGROUTE_CONTENT_TOKEN"


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class SiteConfig:
    """Site configuration."""

    base_url: str = "http://localhost:3000"
    locales: list[str] = field(default_factory=lambda: ["en"])
    default_locale: str = "en"


@dataclass
class ContentStoreConfig:
    """Content store configuration."""

    api_url: str | None = None
    dataset: str = "production"
    api_version: str = "2024-01-01"
    token: str | None = None
    timeout: float = 10.0
    max_attempts: int = 3
    backoff_factor: float = 0.5


@dataclass
class RegistryConfig:
    """Collection registry configuration."""

    path: Path = field(default_factory=lambda: Path("collections.generated.json"))


@dataclass
class SitemapConfig:
    """Sitemap response configuration."""

    max_age: int = 3600
    stale_while_revalidate: int = 86400


@dataclass
class TranslationsConfig:
    """Translation lookup configuration."""

    lookup_timeout: float = 5.0


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    site: SiteConfig
    content_store: ContentStoreConfig
    registry: RegistryConfig
    sitemap: SitemapConfig
    translations: TranslationsConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for lingroute.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls._default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents.

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> "Config":
        """Create config with all defaults."""
        return cls(
            server=ServerConfig(),
            site=SiteConfig(),
            content_store=ContentStoreConfig(token=os.environ.get(TOKEN_ENV_VAR) or None),
            registry=RegistryConfig(),
            sitemap=SitemapConfig(),
            translations=TranslationsConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        config_dir = path.parent

        return cls(
            server=cls._parse_server(data.get("server")),
            site=cls._parse_site(data.get("site")),
            content_store=cls._parse_content_store(data.get("content_store")),
            registry=cls._parse_registry(data.get("registry"), config_dir),
            sitemap=cls._parse_sitemap(data.get("sitemap")),
            translations=cls._parse_translations(data.get("translations")),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 8080)
        if not isinstance(port, int):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_site(cls, data: object) -> SiteConfig:
        """Parse site configuration section.

        Args:
            data: Raw site section data

        Returns:
            SiteConfig instance
        """
        if data is None:
            return SiteConfig()

        if not isinstance(data, dict):
            raise ValueError("site section must be a dictionary")

        base_url = data.get("base_url", "http://localhost:3000")
        if not isinstance(base_url, str):
            raise ValueError("site.base_url must be a string")

        locales_raw = data.get("locales", ["en"])
        if not isinstance(locales_raw, list) or not locales_raw:
            raise ValueError("site.locales must be a non-empty list")
        locales: list[str] = []
        for item in locales_raw:
            if not isinstance(item, str):
                raise ValueError("site.locales items must be strings")
            locales.append(item)

        default_locale = data.get("default_locale", locales[0])
        if not isinstance(default_locale, str):
            raise ValueError("site.default_locale must be a string")
        if default_locale not in locales:
            raise ValueError("site.default_locale must be one of site.locales")

        return SiteConfig(
            base_url=base_url.rstrip("/"),
            locales=locales,
            default_locale=default_locale,
        )

    @classmethod
    def _parse_content_store(cls, data: object) -> ContentStoreConfig:
        """Parse content_store configuration section.

        The token falls back to the LINGROUTE_CONTENT_TOKEN environment
        variable so it can stay out of the file.

        Args:
            data: Raw content_store section data

        Returns:
            ContentStoreConfig instance
        """
        env_token = os.environ.get(TOKEN_ENV_VAR) or None
        if data is None:
            return ContentStoreConfig(token=env_token)

        if not isinstance(data, dict):
            raise ValueError("content_store section must be a dictionary")

        api_url = data.get("api_url")
        if api_url is not None and not isinstance(api_url, str):
            raise ValueError("content_store.api_url must be a string")

        dataset = data.get("dataset", "production")
        if not isinstance(dataset, str):
            raise ValueError("content_store.dataset must be a string")

        api_version = data.get("api_version", "2024-01-01")
        if not isinstance(api_version, str):
            raise ValueError("content_store.api_version must be a string")

        token = data.get("token", env_token)
        if token is not None and not isinstance(token, str):
            raise ValueError("content_store.token must be a string")

        timeout = data.get("timeout", 10.0)
        if not isinstance(timeout, int | float) or isinstance(timeout, bool):
            raise ValueError("content_store.timeout must be a number")

        max_attempts = data.get("max_attempts", 3)
        if not isinstance(max_attempts, int) or max_attempts < 1:
            raise ValueError("content_store.max_attempts must be a positive integer")

        backoff_factor = data.get("backoff_factor", 0.5)
        if not isinstance(backoff_factor, int | float) or isinstance(backoff_factor, bool):
            raise ValueError("content_store.backoff_factor must be a number")

        return ContentStoreConfig(
            api_url=api_url,
            dataset=dataset,
            api_version=api_version,
            token=token,
            timeout=float(timeout),
            max_attempts=max_attempts,
            backoff_factor=float(backoff_factor),
        )

    @classmethod
    def _parse_registry(cls, data: object, config_dir: Path) -> RegistryConfig:
        """Parse registry configuration section.

        Args:
            data: Raw registry section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            RegistryConfig instance
        """
        if data is None:
            return RegistryConfig(path=config_dir / "collections.generated.json")

        if not isinstance(data, dict):
            raise ValueError("registry section must be a dictionary")

        path = data.get("path", "collections.generated.json")
        if not isinstance(path, str):
            raise ValueError("registry.path must be a string")

        return RegistryConfig(path=config_dir / path)

    @classmethod
    def _parse_sitemap(cls, data: object) -> SitemapConfig:
        if data is None:
            return SitemapConfig()

        if not isinstance(data, dict):
            raise ValueError("sitemap section must be a dictionary")

        max_age = data.get("max_age", 3600)
        if not isinstance(max_age, int):
            raise ValueError("sitemap.max_age must be an integer")

        stale_while_revalidate = data.get("stale_while_revalidate", 86400)
        if not isinstance(stale_while_revalidate, int):
            raise ValueError("sitemap.stale_while_revalidate must be an integer")

        return SitemapConfig(max_age=max_age, stale_while_revalidate=stale_while_revalidate)

    @classmethod
    def _parse_translations(cls, data: object) -> TranslationsConfig:
        if data is None:
            return TranslationsConfig()

        if not isinstance(data, dict):
            raise ValueError("translations section must be a dictionary")

        lookup_timeout = data.get("lookup_timeout", 5.0)
        if not isinstance(lookup_timeout, int | float) or isinstance(lookup_timeout, bool):
            raise ValueError("translations.lookup_timeout must be a number")

        return TranslationsConfig(lookup_timeout=float(lookup_timeout))

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        base_url: str | None = None,
        registry_path: Path | None = None,
    ) -> "Config":
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            base_url: Override site.base_url
            registry_path: Override registry.path

        Returns:
            New Config instance with overrides applied
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        site = self.site
        if base_url is not None:
            site = replace(self.site, base_url=base_url.rstrip("/"))

        registry = self.registry
        if registry_path is not None:
            registry = replace(self.registry, path=registry_path)

        return replace(self, server=server, site=site, registry=registry)
