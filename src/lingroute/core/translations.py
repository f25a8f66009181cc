"""Translation set assembly.

A translation set groups the documents representing the same content in
different languages. Pages are linked through an explicit translation group,
collection items through slug equality, and homepages by their reserved slug.
The same three strategies run against the live content store or against a
prefetched snapshot, so live metadata and sitemaps agree.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from lingroute.core.errors import UnrecoverableFetchError
from lingroute.core.types import CollectionItem, Document, Page, document_from_record
from lingroute.store.client import ContentFetcher
from lingroute.store.queries import (
    COLLECTION_TRANSLATIONS_QUERY,
    HOMEPAGE_TRANSLATIONS_QUERY,
    PAGE_TRANSLATIONS_QUERY,
)

logger = logging.getLogger(__name__)


class TranslationGatherer(Protocol):
    """Assembles the raw translation set of a document."""

    async def gather(self, document: Document) -> list[Document]: ...


def dedupe_by_locale(members: Iterable[Document | None]) -> list[Document]:
    """Keep the first member per locale, dropping members without language or slug."""
    seen: set[str] = set()
    unique: list[Document] = []
    for member in members:
        if member is None or not member.language or not member.slug:
            continue
        if member.language in seen:
            continue
        seen.add(member.language)
        unique.append(member)
    return unique


class StoreTranslationGatherer:
    """Gathers translation sets with exactly one content store query each."""

    def __init__(self, fetcher: ContentFetcher) -> None:
        self._fetcher = fetcher

    async def gather(self, document: Document) -> list[Document]:
        """Query the translation set of a document.

        Raises:
            ContentStoreError: If the query fails
        """
        match document.kind:
            case Page() if document.is_homepage:
                return await self._homepage(document)
            case Page():
                return await self._page(document)
            case CollectionItem(collection_type=collection_type):
                result = await self._fetcher.fetch(
                    COLLECTION_TRANSLATIONS_QUERY,
                    {"collectionType": collection_type.value, "slug": document.slug},
                )
                return _documents(result)

    async def _homepage(self, document: Document) -> list[Document]:
        result = await self._fetcher.fetch(
            HOMEPAGE_TRANSLATIONS_QUERY, {"locale": document.language}
        )
        return [document, *_documents(result)]

    async def _page(self, document: Document) -> list[Document]:
        result = await self._fetcher.fetch(
            PAGE_TRANSLATIONS_QUERY, {"slug": document.slug, "locale": document.language}
        )
        if result is None:
            return []
        if not isinstance(result, dict):
            raise UnrecoverableFetchError("Page translation query returned an unexpected shape")

        current = document_from_record(result) or document
        return [current, *_documents(result.get("translations"))]


def _documents(result: Any) -> list[Document]:
    if result is None:
        return []
    if not isinstance(result, list):
        raise UnrecoverableFetchError("Translation query returned an unexpected shape")
    documents = [document_from_record(record) for record in result]
    return [doc for doc in documents if doc is not None]


@dataclass(frozen=True)
class SnapshotDocument:
    """Document as listed in a bulk snapshot."""

    id: str
    document: Document
    last_modified: str | None = None


@dataclass
class TranslationSnapshot:
    """Prefetched documents and translation groups.

    Attributes:
        documents: Every indexable document, all locales
        groups: Translation group members keyed by member document id
    """

    documents: Sequence[SnapshotDocument]
    groups: Mapping[str, Sequence[Document]] = field(default_factory=dict)

    def for_locale(self, locale: str) -> list[SnapshotDocument]:
        return [entry for entry in self.documents if entry.document.language == locale]


class SnapshotTranslationGatherer:
    """Evaluates the translation strategies against a prefetched snapshot."""

    def __init__(self, snapshot: TranslationSnapshot) -> None:
        self._snapshot = snapshot

    async def gather(self, document: Document) -> list[Document]:
        documents = self._snapshot.documents
        match document.kind:
            case Page() if document.is_homepage:
                others = [
                    entry.document
                    for entry in documents
                    if entry.document.is_homepage and entry.document.language != document.language
                ]
                return [document, *others]
            case Page():
                current = next(
                    (
                        entry
                        for entry in documents
                        if isinstance(entry.document.kind, Page)
                        and entry.document.slug == document.slug
                        and entry.document.language == document.language
                    ),
                    None,
                )
                if current is None:
                    return []
                return [current.document, *self._snapshot.groups.get(current.id, ())]
            case CollectionItem():
                return [
                    entry.document
                    for entry in documents
                    if entry.document.kind == document.kind and entry.document.slug == document.slug
                ]
