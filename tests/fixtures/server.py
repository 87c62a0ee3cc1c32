import asyncio

from aiohttp import web


def create_test_app() -> web.Application:
    """Create a test aiohttp application with various endpoints"""
    app = web.Application()
    app["hits"] = {}

    def count(request: web.Request) -> int:
        hits = request.app["hits"]
        hits[request.path] = hits.get(request.path, 0) + 1
        return hits[request.path]

    async def handle_get(request):
        count(request)
        return web.json_response({"method": "GET", "path": str(request.path)})

    async def handle_echo(request):
        count(request)
        body = await request.read()
        return web.Response(
            body=body,
            content_type=request.content_type,
            headers={"X-Echo-Method": request.method},
        )

    async def handle_echo_headers(request):
        return web.json_response(dict(request.headers))

    async def handle_status(request):
        count(request)
        status = int(request.match_info["status"])
        return web.Response(status=status, text="BODY")

    async def handle_flaky(request):
        """Answers 503 twice, then 200."""
        if count(request) <= 2:
            return web.Response(status=503, text="try again")
        return web.Response(text="recovered")

    async def handle_slow(request):
        count(request)
        await asyncio.sleep(2)
        return web.json_response({"slow": True})

    async def handle_file(request):
        return web.Response(body=b"0123456789" * 100)

    app.router.add_get("/api/get", handle_get)
    app.router.add_route("*", "/api/echo", handle_echo)
    app.router.add_get("/api/headers", handle_echo_headers)
    app.router.add_get("/api/status/{status}", handle_status)
    app.router.add_get("/api/flaky", handle_flaky)
    app.router.add_get("/api/slow", handle_slow)
    app.router.add_get("/api/file", handle_file)

    return app
