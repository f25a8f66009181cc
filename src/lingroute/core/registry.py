"""Collection registry.

Immutable table mapping (collection type, locale) to the slug of the
collection's listing root, with default-slug fallback and a per-locale
reverse lookup. Generated at build time from the content store and loaded
once at startup.
"""

import json
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any

from lingroute.core.errors import ConfigError
from lingroute.core.types import (
    COLLECTION_NAMES,
    DEFAULT_COLLECTION_SLUGS,
    CollectionType,
)

logger = logging.getLogger(__name__)

# Frontpage module types that turn a page into a collection listing root
FRONTPAGE_TO_COLLECTION: dict[str, CollectionType] = {
    "articles-frontpage": CollectionType.ARTICLE,
    "docs-frontpage": CollectionType.DOCUMENTATION,
    "changelog-frontpage": CollectionType.CHANGELOG,
    "newsletter-frontpage": CollectionType.NEWSLETTER,
    "events-frontpage": CollectionType.EVENTS,
}


@dataclass(frozen=True)
class CollectionMetadata:
    """Collection listing root in one locale."""

    type: CollectionType
    slug: str
    name: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"type": self.type.value, "slug": self.slug, "name": self.name}


class CollectionRegistry:
    """Immutable collection slug table.

    Every locale carries an entry for every collection type, with untranslated
    types falling back to the default slug. Slugs are unique within a locale,
    which makes the reverse lookup unambiguous.
    """

    __slots__ = ("_by_locale", "_default_locale", "_defaults", "_locales", "_slug_to_type")

    def __init__(
        self,
        locales: Iterable[str],
        default_locale: str,
        slugs_by_locale: Mapping[str, Mapping[CollectionType, str]] | None = None,
        defaults: Mapping[CollectionType, str] | None = None,
    ) -> None:
        """Initialize and validate the registry.

        Args:
            locales: Supported locale codes, in display order
            default_locale: Locale served without a URL prefix
            slugs_by_locale: Configured slug overrides per locale and type
            defaults: Fallback slug per type (default: DEFAULT_COLLECTION_SLUGS)

        Raises:
            ConfigError: If the default locale is not supported, a type has no
                default slug, or two types share a slug within a locale
        """
        self._locales = tuple(locales)
        self._default_locale = default_locale
        if default_locale not in self._locales:
            raise ConfigError(
                f"Default locale {default_locale!r} is not among locales {list(self._locales)}"
            )

        merged_defaults = dict(DEFAULT_COLLECTION_SLUGS if defaults is None else defaults)
        missing = [t.value for t in CollectionType if not merged_defaults.get(t)]
        if missing:
            raise ConfigError(f"Collection types without a default slug: {missing}")
        self._defaults = MappingProxyType(merged_defaults)

        overrides = slugs_by_locale or {}
        unknown = [loc for loc in overrides if loc not in self._locales]
        if unknown:
            raise ConfigError(f"Slugs configured for unsupported locales: {unknown}")

        by_locale: dict[str, Mapping[CollectionType, CollectionMetadata]] = {}
        slug_to_type: dict[str, Mapping[str, CollectionType]] = {}
        for locale in self._locales:
            configured = overrides.get(locale, {})
            collections: dict[CollectionType, CollectionMetadata] = {}
            reverse: dict[str, CollectionType] = {}
            for collection_type in CollectionType:
                slug = configured.get(collection_type) or merged_defaults[collection_type]
                if slug in reverse:
                    raise ConfigError(
                        f"Duplicate collection slug {slug!r} in locale {locale!r}: "
                        f"{reverse[slug].value} and {collection_type.value}"
                    )
                reverse[slug] = collection_type
                collections[collection_type] = CollectionMetadata(
                    type=collection_type,
                    slug=slug,
                    name=COLLECTION_NAMES[collection_type],
                )
            by_locale[locale] = MappingProxyType(collections)
            slug_to_type[locale] = MappingProxyType(reverse)

        self._by_locale = MappingProxyType(by_locale)
        self._slug_to_type = MappingProxyType(slug_to_type)

    @property
    def locales(self) -> tuple[str, ...]:
        return self._locales

    @property
    def default_locale(self) -> str:
        return self._default_locale

    @property
    def defaults(self) -> Mapping[CollectionType, str]:
        return self._defaults

    def is_supported(self, locale: str) -> bool:
        return locale in self._by_locale

    def slug_for(self, collection_type: CollectionType, locale: str | None = None) -> str:
        """Get the listing-root slug of a collection in a locale.

        Args:
            collection_type: Collection type
            locale: Locale code (default: the default locale)

        Returns:
            The locale's slug, or the default slug for unknown locales

        Raises:
            ConfigError: If the collection type is unknown
        """
        collections = self._by_locale.get(locale or self._default_locale)
        if collections is not None and collection_type in collections:
            return collections[collection_type].slug
        try:
            return self._defaults[collection_type]
        except KeyError:
            raise ConfigError(f"Unknown collection type: {collection_type!r}") from None

    def type_from_slug(self, segment: str, locale: str | None = None) -> CollectionType | None:
        """Reverse lookup restricted to one locale's own mapping.

        Args:
            segment: URL path segment
            locale: Locale code (default: the default locale)

        Returns:
            Collection type if the segment is that locale's listing root, None otherwise
        """
        reverse = self._slug_to_type.get(locale or self._default_locale)
        if reverse is None:
            return None
        return reverse.get(segment)

    def collections(self, locale: str | None = None) -> Mapping[CollectionType, CollectionMetadata]:
        """Get metadata for every collection in a locale, empty for unknown locales."""
        return self._by_locale.get(locale or self._default_locale, MappingProxyType({}))

    def collection_path(
        self,
        collection_type: CollectionType,
        locale: str | None = None,
        item_slug: str | None = None,
    ) -> str:
        """Build a collection URL path (e.g., "/articles" or "/nb/artikler/my-post")."""
        locale = locale or self._default_locale
        locale_path = "" if locale == self._default_locale else f"/{locale}"
        item_path = f"/{item_slug}" if item_slug else ""
        return f"{locale_path}/{self.slug_for(collection_type, locale)}{item_path}"

    def is_collection_path(
        self,
        pathname: str,
        collection_type: CollectionType,
        locale: str | None = None,
    ) -> bool:
        """Check whether a pathname lies within a collection in a locale.

        The locale prefix is only stripped when followed by a slash or the end
        of the path, so "/ar" is not taken out of "/articles".
        """
        collections = self._by_locale.get(locale or self._default_locale)
        if collections is None:
            return False
        collection_slug = collections[collection_type].slug

        pattern = "|".join(re.escape(loc) for loc in self._locales)
        without_locale = re.sub(rf"^/({pattern})(?=/|$)", "", pathname)
        return without_locale == f"/{collection_slug}" or without_locale.startswith(
            f"/{collection_slug}/"
        )

    def describe(self) -> list[str]:
        """List configured collections per locale for debugging."""
        lines: list[str] = []
        for locale in self._locales:
            marker = " (default)" if locale == self._default_locale else ""
            lines.append(f"Locale: {locale}{marker}")
            for metadata in self._by_locale[locale].values():
                lines.append(f"  {metadata.type.value}: /{metadata.slug} ({metadata.name})")
        return lines

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "locales": list(self._locales),
            "defaultLocale": self._default_locale,
            "defaults": {t.value: slug for t, slug in self._defaults.items()},
            "slugsByLocale": {
                locale: {t.value: m.to_dict() for t, m in collections.items()}
                for locale, collections in self._by_locale.items()
            },
        }

    @classmethod
    def from_dict(cls, data: object) -> "CollectionRegistry":
        """Build a registry from its serialized form.

        Args:
            data: Output of to_dict(), typically read from the generated file

        Returns:
            CollectionRegistry instance

        Raises:
            ConfigError: If the data is malformed or inconsistent
        """
        if not isinstance(data, dict):
            raise ConfigError("Registry data must be a dictionary")

        locales = data.get("locales")
        if not isinstance(locales, list) or not all(isinstance(loc, str) for loc in locales):
            raise ConfigError("Registry locales must be a list of strings")

        default_locale = data.get("defaultLocale")
        if not isinstance(default_locale, str):
            raise ConfigError("Registry defaultLocale must be a string")

        defaults_raw = data.get("defaults", {})
        if not isinstance(defaults_raw, dict):
            raise ConfigError("Registry defaults must be a dictionary")
        defaults = {
            **DEFAULT_COLLECTION_SLUGS,
            **{_parse_type(t): _parse_slug(s) for t, s in defaults_raw.items()},
        }

        slugs_raw = data.get("slugsByLocale", {})
        if not isinstance(slugs_raw, dict):
            raise ConfigError("Registry slugsByLocale must be a dictionary")
        slugs_by_locale: dict[str, dict[CollectionType, str]] = {}
        for locale, collections in slugs_raw.items():
            if not isinstance(collections, dict):
                raise ConfigError(f"Registry collections for {locale!r} must be a dictionary")
            slugs_by_locale[locale] = {}
            for type_name, entry in collections.items():
                slug = entry.get("slug") if isinstance(entry, dict) else entry
                slugs_by_locale[locale][_parse_type(type_name)] = _parse_slug(slug)

        return cls(locales, default_locale, slugs_by_locale, defaults)

    @classmethod
    def load(cls, path: Path) -> "CollectionRegistry":
        """Load a generated registry file.

        Raises:
            ConfigError: If the file is missing or invalid
        """
        try:
            with path.open(encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ConfigError(
                f"Collection registry not found: {path} (run `lingroute registry generate`)"
            ) from None
        except json.JSONDecodeError as e:
            raise ConfigError(f"Collection registry {path} is not valid JSON: {e}") from e
        return cls.from_dict(data)

    def save(self, path: Path) -> None:
        """Write the registry to a generated file."""
        payload = {"generatedAt": datetime.now(UTC).isoformat(), **self.to_dict()}
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def _parse_type(type_name: object) -> CollectionType:
    try:
        return CollectionType(type_name)
    except ValueError:
        raise ConfigError(f"Unknown collection type: {type_name!r}") from None


def _parse_slug(slug: object) -> str:
    if not isinstance(slug, str) or not slug:
        raise ConfigError(f"Collection slug must be a non-empty string, got {slug!r}")
    return slug


def generate_registry(
    frontpages: Iterable[Mapping[str, Any]],
    locales: Iterable[str],
    default_locale: str,
) -> CollectionRegistry:
    """Build a registry from collection frontpage records.

    Each record carries ``slug``, ``locale`` and ``frontpageType``. Records are
    expected most recently updated first; the first record per (locale, type)
    wins and later ones are skipped.

    Args:
        frontpages: Pages carrying a collection frontpage module
        locales: Supported locale codes
        default_locale: Locale served without a URL prefix

    Returns:
        CollectionRegistry with missing entries falling back to default slugs
    """
    locales = list(locales)
    slugs_by_locale: dict[str, dict[CollectionType, str]] = {locale: {} for locale in locales}

    for page in frontpages:
        slug = page.get("slug")
        locale = page.get("locale")
        frontpage_type = page.get("frontpageType")
        if not slug or not locale or not frontpage_type:
            continue
        collection_type = FRONTPAGE_TO_COLLECTION.get(frontpage_type)
        if collection_type is None or locale not in slugs_by_locale:
            continue

        if collection_type in slugs_by_locale[locale]:
            logger.warning(
                f"{locale}/{collection_type.value}: /{slug} skipped, "
                f"using more recent /{slugs_by_locale[locale][collection_type]}"
            )
            continue
        slugs_by_locale[locale][collection_type] = slug
        logger.info(f"{locale}/{collection_type.value}: /{slug}")

    return CollectionRegistry(locales, default_locale, slugs_by_locale)
