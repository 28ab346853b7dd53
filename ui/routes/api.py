"""API routes for frames, stats and subscribers."""

from fastapi import APIRouter, Depends

from ui.auth import verify_basic_auth
from utils.clock import format_timestamp

router = APIRouter(prefix="/api/v1", tags=["api"])

# These will be set by app.py
_engine = None
_bus = None
_event_log = None


def init(engine, bus, event_log):
    """Initialize with engine, bus, and event log references."""
    global _engine, _bus, _event_log
    _engine = engine
    _bus = bus
    _event_log = event_log


@router.get("/frame")
async def frame():
    """Current frame: container, particles, pressure, gauge and readouts."""
    snapshot = await _engine.get_snapshot()
    return snapshot.to_dict()


@router.get("/stats")
async def stats(username=Depends(verify_basic_auth)):
    """Return bus and simulation statistics (requires basic auth)."""
    snapshot = await _engine.get_snapshot()
    return {
        "timestamp": format_timestamp(),
        "simulation": {
            "tick": snapshot.tick,
            "sim_time_s": snapshot.sim_time_s,
            "particle_count": len(snapshot.particles),
            "target_count": snapshot.target_count,
            "pressure": snapshot.pressure,
            "state": _engine.state,
        },
        "bus": _bus.get_stats(),
        "event_log": _event_log.get_stats(),
    }


@router.get("/subscribers")
async def subscribers(username=Depends(verify_basic_auth)):
    """Return info about all current subscribers (requires basic auth)."""
    return await _bus.get_subscriber_info()
