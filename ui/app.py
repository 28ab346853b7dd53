"""FastAPI application factory."""

import asyncio
import json
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles

from communication.bus import EVENT_TOPIC, FRAME_TOPIC, EventBus
from config import load_config
from internal.health import HealthChecker, create_engine_check, create_event_log_check, create_invariant_check
from internal.logging import AsyncEventLog, StructuredLogger
from simulation.engine import SimulationEngine
from ui import auth
from ui.routes import api, control, health
from utils import crash

STATIC_DIR = Path(__file__).parent / "static"
VERSION = "1.0.0"


def create_app(config=None):
    """Create and configure the FastAPI application."""
    config = config or load_config()

    logger_instance = StructuredLogger.configure(min_level=config.logging.level)
    auth.configure(config.server.api_username, config.server.api_password)

    bus = EventBus(queue_size=100)
    engine = SimulationEngine(bus=bus, config=config.simulation)
    event_log = AsyncEventLog(file_path=config.logging.file)
    health_checker = HealthChecker()
    crash.configure(config.logging.crash_file, crash.engine_context(engine))
    frame_log_every = max(1, config.logging.frame_log_every)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger_instance.info("application starting", version=VERSION)
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(crash.create_async_handler(logger_instance))

        await event_log.start()
        log_sub = await bus.subscribe("event-log", max_queue_size=200)

        async def log_worker():
            while True:
                topic, item = await log_sub.queue.get()
                if topic == FRAME_TOPIC:
                    if item.tick % frame_log_every == 0:
                        event_log.record("frame", item.to_dict())
                else:
                    event_log.record("event", item)

        app.state.log_worker = asyncio.create_task(log_worker())

        health_checker.register("simulation_engine", create_engine_check(engine), critical=True)
        health_checker.register("simulation_invariants", create_invariant_check(engine), critical=True)
        health_checker.register("event_log", create_event_log_check(event_log), critical=False)

        await engine.start()
        logger_instance.info("application started", particles=len(engine.particles))

        yield

        logger_instance.info("application shutting down")
        await engine.stop()
        app.state.log_worker.cancel()
        try:
            await app.state.log_worker
        except asyncio.CancelledError:
            pass
        await event_log.stop()
        logger_instance.info("application shutdown complete")

    app = FastAPI(
        title="Ideal Gas Simulator",
        version=VERSION,
        description="real-time ideal gas law simulation (PV = nRT)",
        lifespan=lifespan,
    )

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    control.init(engine, bus)
    api.init(engine, bus, event_log)
    health.init(engine, health_checker)

    app.include_router(control.router)
    app.include_router(api.router)
    app.include_router(health.router)

    app.state.engine = engine
    app.state.bus = bus

    # Renderer page and the frame stream it draws from

    @app.get("/", response_class=HTMLResponse)
    async def index():
        """Serve the renderer page."""
        return (STATIC_DIR / "index.html").read_text(encoding="utf-8")

    @app.get("/events")
    async def events(request: Request):
        """SSE endpoint - one frame event per tick plus control events."""
        subscriber_name = f"ui-{uuid.uuid4().hex[:8]}"
        sub = await bus.subscribe(subscriber_name, max_queue_size=10)
        return StreamingResponse(stream_events(request, engine, bus, sub), media_type="text/event-stream")

    return app


def format_sse(event, data):
    """Format data as Server-Sent Event."""
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


async def stream_events(request, engine, bus, sub, keepalive=1.0):
    """Yield the current frame, then every published frame and control event.

    The subscriber is removed from the bus once the client disconnects.
    """
    try:
        snapshot = await engine.get_snapshot()
        yield format_sse(FRAME_TOPIC, snapshot.to_dict())

        while not await request.is_disconnected():
            try:
                topic, item = await asyncio.wait_for(sub.queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue

            if topic == FRAME_TOPIC:
                yield format_sse(FRAME_TOPIC, item.to_dict())
            else:
                yield format_sse(EVENT_TOPIC, item)
    finally:
        await bus.unsubscribe(sub.name)
