"""Application keys for type-safe app configuration access."""

import httpx
from aiohttp import web

from lingroute.config import SitemapConfig, TranslationsConfig
from lingroute.core.detector import TranslationDetector
from lingroute.core.metadata import MetadataGenerator
from lingroute.core.resolver import URLResolver
from lingroute.core.sitemap import SitemapGenerator
from lingroute.store.client import ContentFetcher

resolver_key = web.AppKey("resolver", URLResolver)
detector_key = web.AppKey("detector", TranslationDetector)
metadata_key = web.AppKey("metadata", MetadataGenerator)
sitemap_key = web.AppKey("sitemap", SitemapGenerator)
fetcher_key = web.AppKey("fetcher", ContentFetcher)
http_client_key = web.AppKey("http_client", httpx.AsyncClient)
sitemap_config_key = web.AppKey("sitemap_config", SitemapConfig)
translations_config_key = web.AppKey("translations_config", TranslationsConfig)
