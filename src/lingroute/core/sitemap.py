"""Per-locale XML sitemaps with hreflang alternates.

A sitemap request fetches one snapshot (bulk documents plus bulk translation
groups) and evaluates the same translation strategies as live pages against
it, so sitemap alternates always equal page alternates.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from xml.etree import ElementTree as ET

from lingroute.core.errors import UnrecoverableFetchError
from lingroute.core.metadata import MetadataGenerator
from lingroute.core.resolver import URLResolver
from lingroute.core.translations import (
    SnapshotDocument,
    SnapshotTranslationGatherer,
    TranslationSnapshot,
)
from lingroute.core.types import (
    CollectionItem,
    CollectionType,
    Document,
    Page,
    document_from_record,
)
from lingroute.store.client import ContentFetcher
from lingroute.store.queries import SITEMAP_DOCUMENTS_QUERY, SITEMAP_TRANSLATIONS_QUERY

logger = logging.getLogger(__name__)

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
XHTML_NS = "http://www.w3.org/1999/xhtml"

ET.register_namespace("", SITEMAP_NS)
ET.register_namespace("xhtml", XHTML_NS)

HOMEPAGE_PRIORITY = 1.0
PAGE_PRIORITY = 0.5
COLLECTION_PRIORITY: dict[CollectionType, float] = {
    CollectionType.ARTICLE: 0.6,
    CollectionType.EVENTS: 0.5,
    CollectionType.NEWSLETTER: 0.5,
    CollectionType.DOCUMENTATION: 0.4,
    CollectionType.CHANGELOG: 0.4,
}


@dataclass(frozen=True)
class SitemapEntry:
    """One <url> element."""

    location: str
    last_modified: str | None
    priority: float
    alternate_links: dict[str, str] = field(default_factory=dict)


def priority_for(document: Document) -> float:
    """Crawl priority of a document."""
    match document.kind:
        case Page():
            return HOMEPAGE_PRIORITY if document.is_homepage else PAGE_PRIORITY
        case CollectionItem(collection_type=collection_type):
            return COLLECTION_PRIORITY.get(collection_type, PAGE_PRIORITY)


async def fetch_snapshot(fetcher: ContentFetcher) -> TranslationSnapshot:
    """Fetch all indexable documents and translation groups.

    Both bulk queries are issued concurrently.

    Raises:
        ContentStoreError: If either query fails
    """
    documents_result, groups_result = await asyncio.gather(
        fetcher.fetch(
            SITEMAP_DOCUMENTS_QUERY,
            {"collectionTypes": [t.value for t in CollectionType]},
        ),
        fetcher.fetch(SITEMAP_TRANSLATIONS_QUERY),
    )
    return build_snapshot(documents_result, groups_result)


def build_snapshot(documents_result: Any, groups_result: Any) -> TranslationSnapshot:
    """Build a snapshot from bulk query results.

    Records missing an id, slug, language or known type are dropped. Every
    member of a translation group is keyed to the full group.

    Raises:
        UnrecoverableFetchError: If a result or a group's translations are not a list
    """
    if documents_result is None:
        documents_result = []
    if groups_result is None:
        groups_result = []
    if not isinstance(documents_result, list) or not isinstance(groups_result, list):
        raise UnrecoverableFetchError("Sitemap query returned an unexpected shape")

    documents: list[SnapshotDocument] = []
    for record in documents_result:
        document = document_from_record(record)
        doc_id = record.get("_id") if isinstance(record, dict) else None
        if document is None or not isinstance(doc_id, str):
            continue
        last_modified = record.get("lastModified")
        documents.append(
            SnapshotDocument(
                id=doc_id,
                document=document,
                last_modified=last_modified if isinstance(last_modified, str) else None,
            )
        )

    groups: dict[str, list[Document]] = {}
    for group in groups_result:
        if not isinstance(group, dict):
            continue
        translations = group.get("translations") or []
        if not isinstance(translations, list):
            raise UnrecoverableFetchError("Sitemap translation group has an unexpected shape")
        members: list[tuple[str, Document]] = []
        for translation in translations:
            value = translation.get("value") if isinstance(translation, dict) else None
            document = document_from_record(value)
            if document is None or not isinstance(value.get("_id"), str):
                continue
            members.append((value["_id"], document))
        for member_id, _ in members:
            groups[member_id] = [document for _, document in members]

    logger.debug(f"Sitemap snapshot: {len(documents)} documents, {len(groups)} linked")
    return TranslationSnapshot(documents=documents, groups=groups)


class SitemapGenerator:
    """Builds and renders per-locale sitemaps."""

    def __init__(self, resolver: URLResolver) -> None:
        self._resolver = resolver

    async def build_entries(
        self,
        snapshot: TranslationSnapshot,
        locale: str,
    ) -> list[SitemapEntry]:
        """Build sitemap entries for every document of a locale.

        Alternate links are gathered concurrently and produced by the same
        logic as live page metadata.

        Args:
            snapshot: Prefetched documents and translation groups
            locale: Locale whose documents are listed

        Returns:
            Entries in snapshot order
        """
        metadata = MetadataGenerator(self._resolver, SnapshotTranslationGatherer(snapshot))
        listed = snapshot.for_locale(locale)
        alternates = await asyncio.gather(
            *(metadata.alternates(entry.document) for entry in listed)
        )
        return [
            SitemapEntry(
                location=self._resolver.resolve(entry.document, include_base=True),
                last_modified=_format_lastmod(entry.last_modified),
                priority=priority_for(entry.document),
                alternate_links=links,
            )
            for entry, links in zip(listed, alternates, strict=True)
        ]

    def render_urlset(self, entries: Iterable[SitemapEntry]) -> bytes:
        """Render entries as a <urlset> document."""
        urlset = ET.Element(f"{{{SITEMAP_NS}}}urlset")
        for entry in entries:
            url = ET.SubElement(urlset, f"{{{SITEMAP_NS}}}url")
            ET.SubElement(url, f"{{{SITEMAP_NS}}}loc").text = entry.location
            if entry.last_modified:
                ET.SubElement(url, f"{{{SITEMAP_NS}}}lastmod").text = entry.last_modified
            ET.SubElement(url, f"{{{SITEMAP_NS}}}priority").text = f"{entry.priority:.1f}"
            for hreflang, href in entry.alternate_links.items():
                ET.SubElement(
                    url,
                    f"{{{XHTML_NS}}}link",
                    {"rel": "alternate", "hreflang": hreflang, "href": href},
                )
        return _serialize(urlset)

    def render_index(self, locales: Sequence[str], now: datetime | None = None) -> bytes:
        """Render the <sitemapindex> linking each locale's sitemap."""
        lastmod = (now or datetime.now(UTC)).isoformat()
        index = ET.Element(f"{{{SITEMAP_NS}}}sitemapindex")
        for locale in locales:
            sitemap = ET.SubElement(index, f"{{{SITEMAP_NS}}}sitemap")
            ET.SubElement(sitemap, f"{{{SITEMAP_NS}}}loc").text = (
                f"{self._resolver.base_url}/sitemap-{locale}.xml"
            )
            ET.SubElement(sitemap, f"{{{SITEMAP_NS}}}lastmod").text = lastmod
        return _serialize(index)


def _format_lastmod(value: str | None) -> str | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.warning(f"Ignoring unparseable lastModified {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC).isoformat()


def _serialize(root: ET.Element) -> bytes:
    ET.indent(root)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)
