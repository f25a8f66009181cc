"""Page metadata and URL resolution endpoints."""

from aiohttp import web

from lingroute.app_keys import metadata_key, resolver_key
from lingroute.core.paths import parse_pathname
from lingroute.core.types import Document, kind_from_type_name


def create_metadata_routes() -> list[web.RouteDef]:
    return [
        web.get("/api/metadata", get_metadata),
        web.get("/api/resolve", get_resolved_url),
    ]


async def get_metadata(request: web.Request) -> web.Response:
    resolver = request.app[resolver_key]
    pathname = request.query.get("pathname", "/")
    document = parse_pathname(pathname, resolver.registry)

    query_params = {
        key: request.query.getall(key)
        for key in request.query.keys()
        if key != "pathname"
    }
    metadata = await request.app[metadata_key].build_metadata(
        document, query_params=query_params
    )
    return web.json_response(metadata.to_dict())


async def get_resolved_url(request: web.Request) -> web.Response:
    resolver = request.app[resolver_key]
    type_name = request.query.get("type", "page")
    kind = kind_from_type_name(type_name)
    if kind is None:
        return web.json_response(
            {"error": "Unknown document type", "type": type_name},
            status=400,
        )

    document = Document(
        kind=kind,
        language=request.query.get("language", resolver.registry.default_locale),
        slug=request.query.get("slug"),
    )
    include_base = request.query.get("base", "false").lower() in ("1", "true", "yes")
    return web.json_response({"url": resolver.resolve(document, include_base=include_base)})
