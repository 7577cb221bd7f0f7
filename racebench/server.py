"""
HTTP transport: health probes and a Server-Sent Events race endpoint.
"""

import asyncio
import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

from aiohttp import web

from racebench.algorithms.race import run_race
from racebench.common.progress import DONE, ERROR
from racebench.common.records import BenchmarkRequest
from racebench.common.storage_factory import create_storage_system
from racebench.configuration import (
    BUCKET_BY_PROVIDER,
    DEFAULT_CONCURRENCY,
    DEFAULT_OBJECT_COUNT,
    DEFAULT_OBJECT_SIZE_BYTES,
    DEFAULT_PROVIDER_A,
    DEFAULT_PROVIDER_B,
    HEARTBEAT_INTERVAL_SECONDS,
    KEY_PREFIX,
    SUPPORTED_PROVIDERS,
)
from racebench.errors import InvalidRequest

logger = logging.getLogger(__name__)

PROVIDER_FACTORY = web.AppKey("provider_factory", Callable)
READY_PROVIDERS = web.AppKey("ready_providers", tuple)
EXPORTER = web.AppKey("exporter", object)
HEARTBEAT_INTERVAL = web.AppKey("heartbeat_interval", float)
RACE_TASKS = web.AppKey("race_tasks", set)


def _parse_int(query, name: str, default: Optional[int]) -> Optional[int]:
    raw = query.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidRequest(f"{name} must be an integer, got {raw!r}")


def parse_race_query(query) -> Tuple[BenchmarkRequest, str, str]:
    """Build a race request and the two provider names from query parameters.

    Raises:
        InvalidRequest: a parameter is malformed or a provider is unknown
    """
    race_request = BenchmarkRequest(
        object_size_bytes=_parse_int(query, "sizeBytes", DEFAULT_OBJECT_SIZE_BYTES),
        object_count=_parse_int(query, "count", DEFAULT_OBJECT_COUNT),
        concurrency=_parse_int(query, "concurrency", DEFAULT_CONCURRENCY),
        key_prefix=query.get("prefix") or KEY_PREFIX,
        part_size_mb=_parse_int(query, "partMB", None),
    )

    provider_a = query.get("providerA", DEFAULT_PROVIDER_A).lower()
    provider_b = query.get("providerB", DEFAULT_PROVIDER_B).lower()
    for name in (provider_a, provider_b):
        if name not in SUPPORTED_PROVIDERS:
            raise InvalidRequest(
                f"Unknown provider {name!r}, expected one of {', '.join(SUPPORTED_PROVIDERS)}"
            )
    if provider_a == provider_b:
        raise InvalidRequest(f"Cannot race provider '{provider_a}' against itself")

    return race_request, provider_a, provider_b


def format_event(event: str, payload: Dict[str, Any]) -> bytes:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n".encode()


class EventQueue:
    """Race observer that hands events to the streaming handler."""

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.finished = False

    def __call__(self, event: str, payload: Dict[str, Any]) -> None:
        if event in (DONE, ERROR):
            self.finished = True
        self.queue.put_nowait((event, payload))


async def _run_race_task(app: web.Application, race_request, provider_a, provider_b, events):
    """Run a race to completion, independently of the client connection."""
    factory = app[PROVIDER_FACTORY]
    try:
        async with factory(provider_a) as storage_a, factory(provider_b) as storage_b:
            await run_race(
                race_request,
                storage_a,
                storage_b,
                observer=events,
                exporter=app.get(EXPORTER),
            )
    except Exception as e:
        logger.error(f"Race {provider_a} vs {provider_b} failed: {e}")
        if not events.finished:
            events(ERROR, {"message": str(e) or "race failed"})


async def healthz(request: web.Request) -> web.Response:
    return web.Response(text="ok")


async def ready(request: web.Request) -> web.Response:
    """Readiness: every provider with a configured bucket answers a cheap list call."""
    factory = request.app[PROVIDER_FACTORY]
    try:
        for name in request.app[READY_PROVIDERS]:
            async with factory(name) as system:
                if not await system.verify_connection():
                    return web.Response(status=503, text="not ready")
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        return web.Response(status=503, text="not ready")
    return web.Response(text="ready")


async def race_stream(request: web.Request) -> web.StreamResponse:
    """Stream one race as Server-Sent Events.

    Emits start, progress, phase, then done with the four pass results, or a
    single error event. The race runs in its own task, so a client that
    disconnects stops the stream but never interrupts transfers.
    """
    response = web.StreamResponse(
        headers={
            "Content-Type": "text/event-stream",
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }
    )
    await response.prepare(request)

    try:
        race_request, provider_a, provider_b = parse_race_query(request.query)
    except InvalidRequest as e:
        await response.write(format_event(ERROR, {"message": str(e)}))
        return response

    events = EventQueue()
    task = asyncio.create_task(
        _run_race_task(request.app, race_request, provider_a, provider_b, events)
    )
    race_tasks = request.app[RACE_TASKS]
    race_tasks.add(task)
    task.add_done_callback(race_tasks.discard)

    heartbeat = request.app[HEARTBEAT_INTERVAL]
    try:
        while True:
            try:
                event, payload = await asyncio.wait_for(events.queue.get(), timeout=heartbeat)
            except asyncio.TimeoutError:
                # Keep connection open through proxies
                await response.write(f":keepalive {int(time.time() * 1000)}\n\n".encode())
                continue

            await response.write(format_event(event, payload))
            if event in (DONE, ERROR):
                break
    except ConnectionResetError:
        logger.info(f"Client disconnected, race {provider_a} vs {provider_b} continues")

    return response


async def _drain_race_tasks(app: web.Application) -> None:
    if app[RACE_TASKS]:
        logger.info(f"Waiting for {len(app[RACE_TASKS])} running race(s) to finish")
        await asyncio.gather(*app[RACE_TASKS], return_exceptions=True)


def create_app(
    provider_factory: Callable = create_storage_system,
    ready_providers: Optional[Tuple[str, ...]] = None,
    exporter=None,
    heartbeat_interval: float = HEARTBEAT_INTERVAL_SECONDS,
) -> web.Application:
    """Build the aiohttp application.

    Args:
        provider_factory: Maps a provider name to an async-context-managed storage system
        ready_providers: Providers probed by /ready (default: those with a bucket configured)
        exporter: Optional PrometheusExporter shared by every race
        heartbeat_interval: Seconds of silence before a keepalive comment is sent
    """
    if ready_providers is None:
        ready_providers = tuple(name for name, bucket in BUCKET_BY_PROVIDER.items() if bucket)

    app = web.Application()
    app[PROVIDER_FACTORY] = provider_factory
    app[READY_PROVIDERS] = tuple(ready_providers)
    app[EXPORTER] = exporter
    app[HEARTBEAT_INTERVAL] = float(heartbeat_interval)
    app[RACE_TASKS] = set()
    app.on_shutdown.append(_drain_race_tasks)

    app.router.add_get("/healthz", healthz)
    app.router.add_get("/ready", ready)
    app.router.add_get("/api/race/stream", race_stream)
    return app
