"""Sitemap endpoints.

Serves the sitemap index and one sitemap per locale. A content store failure
only affects the locale being requested.
"""

import logging

from aiohttp import web

from lingroute.app_keys import fetcher_key, resolver_key, sitemap_config_key, sitemap_key
from lingroute.core.errors import ContentStoreError
from lingroute.core.sitemap import fetch_snapshot

logger = logging.getLogger(__name__)


def create_sitemap_routes() -> list[web.RouteDef]:
    return [
        web.get("/sitemap.xml", get_sitemap_index),
        web.get("/sitemap-{locale}.xml", get_locale_sitemap),
        web.get("/sitemap/{locale}.xml", get_locale_sitemap),
    ]


async def get_sitemap_index(request: web.Request) -> web.Response:
    registry = request.app[resolver_key].registry
    body = request.app[sitemap_key].render_index(registry.locales)
    return _xml_response(request, body)


async def get_locale_sitemap(request: web.Request) -> web.Response:
    locale = request.match_info["locale"]
    registry = request.app[resolver_key].registry
    if not registry.is_supported(locale):
        raise web.HTTPFound("/sitemap.xml")

    try:
        snapshot = await fetch_snapshot(request.app[fetcher_key])
    except ContentStoreError as e:
        logger.error(f"Error fetching sitemap data for locale {locale!r}: {e}")
        return web.Response(
            status=503,
            text="Failed to fetch sitemap data from the content store.",
            content_type="text/plain",
        )

    generator = request.app[sitemap_key]
    entries = await generator.build_entries(snapshot, locale)
    return _xml_response(request, generator.render_urlset(entries))


def _xml_response(request: web.Request, body: bytes) -> web.Response:
    config = request.app[sitemap_config_key]
    return web.Response(
        body=body,
        content_type="application/xml",
        charset="utf-8",
        headers={
            "Cache-Control": (
                f"public, max-age={config.max_age}, "
                f"stale-while-revalidate={config.stale_while_revalidate}"
            ),
        },
    )
