"""Canonical and hreflang metadata.

``alternates_for`` is the only place a translation set becomes an alternate
link map. Page metadata and sitemap entries both go through it.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from lingroute.core.errors import ContentStoreError
from lingroute.core.resolver import QueryParams, URLResolver
from lingroute.core.translations import TranslationGatherer, dedupe_by_locale
from lingroute.core.types import Document

logger = logging.getLogger(__name__)

X_DEFAULT = "x-default"

# Query parameters that distinguish canonical URLs (pagination, filtering)
CANONICAL_PARAM_KEYS = ("page", "category")


@dataclass(frozen=True)
class PageMetadata:
    """Canonical URL and hreflang alternates of a document."""

    canonical: str
    alternates: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {"canonical": self.canonical, "alternates": dict(self.alternates)}


def alternates_for(
    resolver: URLResolver,
    document: Document,
    members: Iterable[Document],
) -> dict[str, str]:
    """Build the hreflang map of a document.

    The document itself is always part of its set. Locales appear in
    registry order; ``x-default`` points at the default-locale URL when the
    content exists in the default locale.

    Args:
        resolver: URL resolver
        document: Document the alternates are built for
        members: Raw translation set

    Returns:
        Mapping of locale (and x-default) to absolute URL
    """
    by_locale = {member.language: member for member in dedupe_by_locale([document, *members])}
    registry = resolver.registry

    alternates: dict[str, str] = {}
    for locale in registry.locales:
        member = by_locale.get(locale)
        if member is not None:
            alternates[locale] = resolver.resolve(member, include_base=True)

    if registry.default_locale in alternates:
        alternates[X_DEFAULT] = alternates[registry.default_locale]
    return alternates


class MetadataGenerator:
    """Builds per-document canonical and alternate-language links."""

    def __init__(self, resolver: URLResolver, gatherer: TranslationGatherer) -> None:
        self._resolver = resolver
        self._gatherer = gatherer

    async def alternates(self, document: Document) -> dict[str, str]:
        """Gather the translation set and build the hreflang map.

        Raises:
            ContentStoreError: If the translation set cannot be fetched
        """
        members = await self._gatherer.gather(document)
        return alternates_for(self._resolver, document, members)

    async def build_metadata(
        self,
        document: Document,
        *,
        query_params: QueryParams | None = None,
    ) -> PageMetadata:
        """Build canonical and alternate links for a document.

        A failed translation lookup leaves the alternates empty rather than
        failing the page.

        Args:
            document: Document identity
            query_params: Request query; only canonical keys are kept

        Returns:
            PageMetadata
        """
        canonical = self._resolver.resolve(
            document,
            include_base=True,
            query_params=query_params,
            allowed_param_keys=CANONICAL_PARAM_KEYS,
        )

        try:
            alternates = await self.alternates(document)
        except ContentStoreError as e:
            logger.error(f"Error gathering alternates for {document}: {e}")
            alternates = {}

        return PageMetadata(canonical=canonical, alternates=alternates)
