"""HTTP server speaking MCP over server-sent events."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from aiohttp import web

from .tool import MirrordService

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
LOG_ENV_VAR = "MIRRORD_MCP_LOG"

_POLL_INTERVAL = 1.0
_CLOSE = object()


def _event(name: str, data: str) -> bytes:
    return f"event: {name}\ndata: {data}\n\n".encode("utf-8")


@dataclass
class _Session:
    service: Any
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    tasks: set = field(default_factory=set)

    def spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)

    def cancel(self) -> None:
        for task in list(self.tasks):
            task.cancel()


def create_app(
    service_factory: Callable[[], Any] = MirrordService,
    sse_path: str = "/sse",
    post_path: str = "/message",
) -> web.Application:
    """Build the web application serving one MCP session per SSE connection."""
    sessions: dict[str, _Session] = {}

    async def sse_handler(request: web.Request) -> web.StreamResponse:
        session_id = uuid.uuid4().hex
        session = _Session(service_factory())
        sessions[session_id] = session
        logger.info("SSE session %s opened", session_id)
        response = web.StreamResponse(headers={"Cache-Control": "no-cache"})
        response.content_type = "text/event-stream"
        await response.prepare(request)
        try:
            await response.write(_event("endpoint", f"{post_path}?sessionId={session_id}"))
            while True:
                try:
                    item = await asyncio.wait_for(session.queue.get(), _POLL_INTERVAL)
                except asyncio.TimeoutError:
                    transport = request.transport
                    if transport is None or transport.is_closing():
                        break
                    continue
                if item is _CLOSE:
                    break
                await response.write(_event("message", json.dumps(item)))
        except ConnectionError:
            logger.debug("SSE client %s disconnected", session_id)
        finally:
            sessions.pop(session_id, None)
            session.cancel()
            logger.info("SSE session %s closed", session_id)
        return response

    async def post_handler(request: web.Request) -> web.Response:
        session_id = request.query.get("sessionId")
        if not session_id:
            return web.Response(status=400, text="missing sessionId")
        session = sessions.get(session_id)
        if session is None:
            return web.Response(status=404, text="session not found")
        try:
            body = await request.json()
        except ValueError:
            return web.Response(status=400, text="invalid JSON body")
        if not isinstance(body, (dict, list)):
            return web.Response(status=400, text="invalid JSON-RPC message")

        messages = body if isinstance(body, list) else [body]

        async def process() -> None:
            for message in messages:
                reply = await session.service.handle_message(message)
                if reply is not None:
                    await session.queue.put(reply)

        session.spawn(process())
        return web.Response(status=202)

    async def close_sessions(app: web.Application) -> None:
        for session in list(sessions.values()):
            session.queue.put_nowait(_CLOSE)
        logger.info("sse server cancelled")

    app = web.Application()
    app.router.add_get(sse_path, sse_handler)
    app.router.add_post(post_path, post_handler)
    app.on_shutdown.append(close_sessions)
    return app


def _configure_logging() -> None:
    name = os.environ.get(LOG_ENV_VAR, "DEBUG").upper()
    level = getattr(logging, name, None)
    if not isinstance(level, int):
        level = logging.DEBUG
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Start the MCP SSE server and serve until interrupted."""
    parser = argparse.ArgumentParser(
        prog="mirrordmcp", description="MCP server running commands under mirrord."
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help="address to bind")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to bind")
    args = parser.parse_args(argv)

    _configure_logging()
    web.run_app(create_app(), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())