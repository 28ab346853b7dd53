"""Simulation control routes: slider input, reset, pause and resume."""

import time
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ui.auth import verify_basic_auth

router = APIRouter(prefix="/api/v1/control", tags=["control"])

# These will be set by app.py
_engine = None
_bus = None


class InputChange(BaseModel):
    variable: Literal["temperature", "moles", "volume"]
    value: float


def init(engine, bus):
    """Initialize with engine and bus references."""
    global _engine, _bus
    _engine = engine
    _bus = bus


@router.post("/input")
async def change_input(change: InputChange):
    """Apply one slider change and return the resulting frame."""
    applied = _engine.set_input(change.variable, change.value)
    await _bus.publish({"kind": "input", "variable": change.variable, "value": applied, "timestamp": time.time()})
    snapshot = await _engine.get_snapshot()
    return snapshot.to_dict()


@router.post("/reset")
async def reset():
    """Restore default temperature, moles and volume."""
    _engine.reset()
    await _bus.publish({"kind": "reset", "timestamp": time.time()})
    snapshot = await _engine.get_snapshot()
    return snapshot.to_dict()


@router.post("/pause")
async def pause(username=Depends(verify_basic_auth)):
    """Pause simulation (requires basic auth)."""
    await _engine.pause()
    await _bus.publish({"kind": "paused", "timestamp": time.time()})
    return {"ok": True}


@router.post("/resume")
async def resume(username=Depends(verify_basic_auth)):
    """Resume simulation (requires basic auth)."""
    await _engine.resume()
    await _bus.publish({"kind": "resumed", "timestamp": time.time()})
    return {"ok": True}
