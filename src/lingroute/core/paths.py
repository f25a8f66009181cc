"""Incoming path parsing.

Inverse of URL resolution: recovers locale, kind and slug from a request path.
"""

from urllib.parse import urlsplit

from lingroute.core.registry import CollectionRegistry
from lingroute.core.types import HOMEPAGE_SLUG, CollectionItem, Document, Page


def parse_pathname(pathname: str, registry: CollectionRegistry) -> Document:
    """Parse a request path into a document identity.

    Patterns: /, /nb, /about, /nb/om, /articles/post, /nb/artikler/post.
    A first segment counts as a collection root only when it is the listing
    slug of that specific locale and at least one segment follows it.

    Args:
        pathname: Request path, optionally with query or fragment
        registry: Collection registry snapshot

    Returns:
        Parsed document identity
    """
    path = urlsplit(pathname).path
    segments = [segment for segment in path.split("/") if segment]

    locale = registry.default_locale
    if segments and registry.is_supported(segments[0]):
        locale = segments[0]
        segments = segments[1:]

    if not segments:
        return Document(kind=Page(), language=locale, slug=HOMEPAGE_SLUG)

    if len(segments) > 1:
        collection_type = registry.type_from_slug(segments[0], locale)
        if collection_type is not None:
            return Document(
                kind=CollectionItem(collection_type),
                language=locale,
                slug="/".join(segments[1:]),
            )

    return Document(kind=Page(), language=locale, slug="/".join(segments))
