"""URL resolution for documents.

Builds relative or absolute URLs for any document identity. Resolution is
pure and never raises: incomplete documents degrade to "/".
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Protocol
from urllib.parse import urlencode

from lingroute.core.errors import ConfigError
from lingroute.core.registry import CollectionRegistry
from lingroute.core.types import HOMEPAGE_SLUG, CollectionItem, CollectionType, Document, Page

logger = logging.getLogger(__name__)

QueryScalar = str | int | float | bool
QueryValue = QueryScalar | Sequence[QueryScalar] | None
QueryParams = Mapping[str, QueryValue] | str


class SlugSource(Protocol):
    """Source of collection listing-root slugs."""

    def collection_slug(
        self,
        collection_type: CollectionType,
        locale: str,
        document: Document,
    ) -> str: ...


class PrecomputedSlugSource:
    """Flat (type, locale) slug table precomputed from a registry snapshot.

    Used where a live registry is unavailable. Ignores slugs embedded in
    documents.
    """

    def __init__(
        self,
        table: Mapping[tuple[CollectionType, str], str],
        fallback: Mapping[CollectionType, str],
    ) -> None:
        self._table = dict(table)
        self._fallback = dict(fallback)

    @classmethod
    def from_registry(cls, registry: CollectionRegistry) -> "PrecomputedSlugSource":
        table = {
            (collection_type, locale): metadata.slug
            for locale in registry.locales
            for collection_type, metadata in registry.collections(locale).items()
        }
        return cls(table, registry.defaults)

    def collection_slug(
        self,
        collection_type: CollectionType,
        locale: str,
        document: Document,
    ) -> str:
        slug = self._table.get((collection_type, locale))
        if slug is not None:
            return slug
        try:
            return self._fallback[collection_type]
        except KeyError:
            raise ConfigError(f"Unknown collection type: {collection_type!r}") from None


class RegistrySlugSource:
    """Live registry lookups, optionally overridden by the document's own slug."""

    def __init__(self, registry: CollectionRegistry, *, honor_document_slug: bool = True) -> None:
        self._registry = registry
        self._honor_document_slug = honor_document_slug

    def collection_slug(
        self,
        collection_type: CollectionType,
        locale: str,
        document: Document,
    ) -> str:
        if self._honor_document_slug and document.collection_slug:
            return document.collection_slug
        return self._registry.slug_for(collection_type, locale)


class URLResolver:
    """Resolves document identities to URLs.

    Produces ``{base?}{localePrefix}{collectionSegment}/{slug}{query}``, where
    default-locale documents carry no locale prefix and the homepage renders
    as the bare root.
    """

    def __init__(
        self,
        registry: CollectionRegistry,
        *,
        base_url: str = "",
        slug_source: SlugSource | None = None,
    ) -> None:
        """Initialize resolver.

        Args:
            registry: Collection registry snapshot
            base_url: Absolute site origin (e.g., "https://example.com")
            slug_source: Collection slug source (default: live registry)
        """
        self._registry = registry
        self._base_url = base_url.rstrip("/")
        self._slug_source = slug_source or RegistrySlugSource(registry)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def registry(self) -> CollectionRegistry:
        return self._registry

    def resolve(
        self,
        document: Document | None,
        *,
        include_base: bool = True,
        query_params: QueryParams | None = None,
        allowed_param_keys: Sequence[str] | None = None,
    ) -> str:
        """Resolve a document to its URL.

        Args:
            document: Document identity
            include_base: Prefix the absolute site origin
            query_params: Mapping serialized in key order, or a raw query string
            allowed_param_keys: Keep only these mapping keys

        Returns:
            URL string, "/" when the document cannot be resolved
        """
        if document is None or not document.slug:
            return "/"

        language = document.language or self._registry.default_locale
        try:
            segment = self._path_segment(document, language)
        except ConfigError as e:
            logger.warning(f"Cannot resolve collection segment for {document}: {e}")
            return "/"

        path = None if document.slug == HOMEPAGE_SLUG else f"{segment}/{document.slug}"
        locale_prefix = "" if language == self._registry.default_locale else f"/{language}"

        if isinstance(query_params, str):
            query = query_params
        elif query_params is not None:
            query = build_query_string(query_params, allowed_param_keys)
        else:
            query = ""

        base = self._base_url if include_base else ""
        result = "".join(part for part in (base, locale_prefix, path, query) if part)

        if base and result == base:
            return f"{base}/"
        return result or "/"

    def _path_segment(self, document: Document, language: str) -> str:
        match document.kind:
            case Page():
                return ""
            case CollectionItem(collection_type=collection_type):
                slug = self._slug_source.collection_slug(collection_type, language, document)
                return f"/{slug}"


def build_query_string(
    params: Mapping[str, QueryValue],
    allowed_keys: Sequence[str] | None = None,
) -> str:
    """Serialize query parameters preserving key order.

    List and tuple values repeat the key, None values are skipped and every
    other value is rendered with str().

    Returns:
        "?key=value..." or an empty string when nothing remains
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if allowed_keys is not None and key not in allowed_keys:
            continue
        if value is None:
            continue
        if isinstance(value, list | tuple):
            pairs.extend((key, str(item)) for item in value)
        else:
            pairs.append((key, str(value)))

    query = urlencode(pairs)
    return f"?{query}" if query else ""


def is_relative_url(url: str) -> bool:
    """Check if an editor-entered URL is site-relative."""
    if not url:
        return False
    clean = url.strip()
    return clean.startswith("/") or (
        "://" not in clean and not clean.startswith("mailto:") and not clean.startswith("tel:")
    )


def resolve_any_url(url: str, base_url: str = "", *, include_base: bool = False) -> str:
    """Resolve an editor-entered link.

    Relative links get the site origin when requested; external links pass
    through unchanged.
    """
    if not url:
        return "/"
    clean = url.strip()
    if is_relative_url(clean) and include_base:
        return f"{base_url.rstrip('/')}{clean}"
    return clean
