"""Translation detection for locale switching.

Given the path a visitor is on and the locale they want, decides whether an
equivalent document exists in that locale and where. Lookup failures never
propagate: the visitor sees "no other-language version available" instead
of a broken navigation.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Literal, TypedDict

from lingroute.core.errors import ContentStoreError
from lingroute.core.paths import parse_pathname
from lingroute.core.resolver import URLResolver
from lingroute.core.translations import TranslationGatherer, dedupe_by_locale

logger = logging.getLogger(__name__)

Strategy = Literal["exact-match", "not-found"]


class AvailableLocaleDict(TypedDict):
    """Dictionary representation of an available locale."""

    locale: str
    url: str


class DetectionResultDict(TypedDict, total=False):
    """Dictionary representation of a detection result."""

    found: bool
    redirectUrl: str
    availableLocales: list[AvailableLocaleDict]
    strategy: Strategy


@dataclass(frozen=True)
class AvailableLocale:
    """Locale in which the current content exists."""

    locale: str
    url: str

    def to_dict(self) -> AvailableLocaleDict:
        """Convert to dictionary for JSON serialization."""
        return {"locale": self.locale, "url": self.url}


@dataclass(frozen=True)
class TranslationDetectionResult:
    """Outcome of a translation lookup."""

    found: bool
    strategy: Strategy
    available_locales: list[AvailableLocale] = field(default_factory=list)
    redirect_url: str | None = None

    def to_dict(self) -> DetectionResultDict:
        """Convert to dictionary for JSON serialization."""
        result: DetectionResultDict = {
            "found": self.found,
            "availableLocales": [loc.to_dict() for loc in self.available_locales],
            "strategy": self.strategy,
        }
        if self.redirect_url is not None:
            result["redirectUrl"] = self.redirect_url
        return result


NOT_FOUND = TranslationDetectionResult(found=False, strategy="not-found")


class TranslationDetector:
    """Finds the equivalent of a request path in another locale."""

    def __init__(self, resolver: URLResolver, gatherer: TranslationGatherer) -> None:
        """Initialize detector.

        Args:
            resolver: URL resolver sharing the registry used for parsing
            gatherer: Translation set source (one query per lookup)
        """
        self._resolver = resolver
        self._gatherer = gatherer

    async def find_available_translation(
        self,
        pathname: str,
        current_locale: str,
        target_locale: str,
        *,
        timeout: float | None = None,
    ) -> TranslationDetectionResult:
        """Find the target-locale version of the document at a path.

        The locale parsed from the path wins over current_locale when they
        disagree.

        Args:
            pathname: Request path (e.g., "/nb/om")
            current_locale: Locale the visitor is browsing in
            target_locale: Locale the visitor wants
            timeout: Seconds before the lookup is abandoned

        Returns:
            exact-match with the redirect URL, or not-found listing the other
            locales the content exists in
        """
        document = parse_pathname(pathname, self._resolver.registry)
        actual_locale = document.language or current_locale
        if actual_locale != current_locale:
            logger.debug(
                f"Path locale {actual_locale!r} differs from current locale {current_locale!r}"
            )

        try:
            async with asyncio.timeout(timeout):
                members = await self._gatherer.gather(document)
        except ContentStoreError as e:
            logger.error(f"Error querying translations for {pathname!r}: {e}")
            return NOT_FOUND
        except TimeoutError:
            logger.error(f"Timed out querying translations for {pathname!r} after {timeout}s")
            return NOT_FOUND

        available = [
            AvailableLocale(
                locale=member.language,
                url=self._resolver.resolve(member, include_base=False),
            )
            for member in dedupe_by_locale(members)
            if member.language is not None
        ]

        target = next((loc for loc in available if loc.locale == target_locale), None)
        if target is not None:
            return TranslationDetectionResult(
                found=True,
                strategy="exact-match",
                available_locales=available,
                redirect_url=target.url,
            )

        return TranslationDetectionResult(
            found=False,
            strategy="not-found",
            available_locales=[loc for loc in available if loc.locale != actual_locale],
        )
