"""Translation lookup endpoint.

Backs the locale switcher: tells the client whether the current content
exists in the requested locale and where.
"""

from aiohttp import web

from lingroute.app_keys import detector_key, resolver_key, translations_config_key


def create_translations_routes() -> list[web.RouteDef]:
    return [web.get("/api/translations", get_translation)]


async def get_translation(request: web.Request) -> web.Response:
    registry = request.app[resolver_key].registry
    pathname = request.query.get("pathname", "/")
    current = request.query.get("current", registry.default_locale)
    target = request.query.get("target")

    if not target:
        return web.json_response(
            {"error": "Missing target locale", "param": "target"},
            status=400,
        )
    if not registry.is_supported(target):
        return web.json_response(
            {"error": "Unsupported locale", "locale": target},
            status=400,
        )

    detector = request.app[detector_key]
    result = await detector.find_available_translation(
        pathname,
        current,
        target,
        timeout=request.app[translations_config_key].lookup_timeout,
    )
    return web.json_response(result.to_dict())
