"""Core type definitions.

Documents are identified by a closed kind (page or collection item), a
language and a slug. Components branch over the kind with exhaustive
``match`` statements, so adding a collection type is a checked change.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, NewType

# URL path for routing (e.g., "/about", "/nb/artikler/hello")
URLPath = NewType("URLPath", str)

LocaleCode = NewType("LocaleCode", str)

HOMEPAGE_SLUG = "index"
PAGE_TYPE = "page"


class CollectionType(StrEnum):
    """Repeatable content collections, named after their content store types."""

    ARTICLE = "collection.article"
    DOCUMENTATION = "collection.documentation"
    CHANGELOG = "collection.changelog"
    NEWSLETTER = "collection.newsletter"
    EVENTS = "collection.events"


# Fallback listing-root slugs when a locale has no frontpage of its own
DEFAULT_COLLECTION_SLUGS: dict[CollectionType, str] = {
    CollectionType.ARTICLE: "articles",
    CollectionType.DOCUMENTATION: "docs",
    CollectionType.CHANGELOG: "changelog",
    CollectionType.NEWSLETTER: "newsletter",
    CollectionType.EVENTS: "events",
}

COLLECTION_NAMES: dict[CollectionType, str] = {
    CollectionType.ARTICLE: "Articles",
    CollectionType.DOCUMENTATION: "Documentation",
    CollectionType.CHANGELOG: "Changelog",
    CollectionType.NEWSLETTER: "Newsletter",
    CollectionType.EVENTS: "Events",
}


@dataclass(frozen=True)
class Page:
    """Standalone page linked to its translations by a translation group."""


@dataclass(frozen=True)
class CollectionItem:
    """Item of a repeatable collection, linked to translations by slug."""

    collection_type: CollectionType


DocumentKind = Page | CollectionItem


@dataclass(frozen=True)
class Document:
    """Document identity.

    Attributes:
        kind: Page or collection item
        language: Locale code, None when the record carries none
        slug: URL slug within the locale, "index" for the homepage
        collection_slug: Listing-root slug embedded in the document itself,
            overriding the registry when the slug source honors it
    """

    kind: DocumentKind
    language: str | None
    slug: str | None
    collection_slug: str | None = None

    @property
    def is_homepage(self) -> bool:
        return isinstance(self.kind, Page) and self.slug == HOMEPAGE_SLUG

    @property
    def type_name(self) -> str:
        """Content store type name for this document."""
        match self.kind:
            case Page():
                return PAGE_TYPE
            case CollectionItem(collection_type=collection_type):
                return collection_type.value


def kind_from_type_name(type_name: object) -> DocumentKind | None:
    """Map a content store type name to a document kind.

    Args:
        type_name: Raw ``_type`` value (e.g., "page", "collection.article")

    Returns:
        Document kind, or None for unknown types
    """
    if type_name == PAGE_TYPE:
        return Page()
    if not isinstance(type_name, str):
        return None
    try:
        return CollectionItem(CollectionType(type_name))
    except ValueError:
        return None


def document_from_record(record: Any) -> Document | None:
    """Build a document identity from a content store projection.

    The projection carries ``_type``, ``language`` and ``slug`` keys, with an
    optional ``collectionSlug``. Records missing language, slug or a known
    type are rejected.

    Args:
        record: Raw record from a content store query

    Returns:
        Document, or None if the record is incomplete
    """
    if not isinstance(record, dict):
        return None

    kind = kind_from_type_name(record.get("_type"))
    language = record.get("language")
    slug = record.get("slug")
    if kind is None or not isinstance(language, str) or not isinstance(slug, str):
        return None
    if not language or not slug:
        return None

    collection_slug = record.get("collectionSlug")
    if not isinstance(collection_slug, str) or not collection_slug:
        collection_slug = None

    return Document(kind=kind, language=language, slug=slug, collection_slug=collection_slug)
