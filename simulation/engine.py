import asyncio
import time

from config import load_config
from internal.logging import get_logger
from simulation.context import SimulationContext
from simulation.stepper import step
from utils.clock import FrameClock


class EngineState:
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class SimulationEngine:
    """Runs the gas simulation once per display frame and publishes each frame.

    Input changes and resets are synchronous: they complete between two frames
    so no tick ever sees a half-applied update.
    """

    def __init__(self, bus, config=None, rng=None):
        self.bus = bus
        self.config = config or load_config().simulation
        self._lock = asyncio.Lock()
        self._log = get_logger()
        self.context = SimulationContext(self.config, rng=rng)
        self.clock = FrameClock(self.config.frame_interval, self.config.max_frame_dt)
        self.tick = 0
        self.sim_time = 0.0
        self._state = EngineState.STOPPED
        self._task = None
        self._stop = asyncio.Event()
        self._last_publish_tick = -1

    @property
    def paused(self):
        return self._state == EngineState.PAUSED

    @property
    def state(self):
        return self._state

    @property
    def particles(self):
        return self.context.particles

    def reset(self):
        """Restore default T, n, V and the matching population."""
        count = self.context.reset()
        self._log.info("inputs reset", particles=count, **self.context.thermo.to_dict())
        return count

    def set_input(self, variable, value):
        applied = self.context.set_input(variable, value)
        self._log.debug("input changed", variable=variable, requested=value, applied=applied,
                        particles=len(self.context.particles))
        return applied

    def advance(self, dt):
        """Run one tick of ``dt`` seconds and return its frame snapshot."""
        result = step(self.context, dt)
        self.tick += 1
        self.sim_time += dt
        if result.relocated:
            self._log.debug("particles relocated", count=result.relocated, tick=self.tick)
        return self.context.snapshot(self.tick, self.sim_time, result)

    async def start(self):
        if self._task:
            return
        self._stop.clear()
        self._state = EngineState.RUNNING
        self.clock.restart()
        self._task = asyncio.create_task(self._loop())

    async def stop(self):
        self._stop.set()
        if self._task:
            await self._task
            self._task = None
        self._state = EngineState.STOPPED
        await self.bus.publish({"kind": "engine_stopped", "tick": self.tick})

    async def pause(self):
        async with self._lock:
            self._state = EngineState.PAUSED
            self._log.info("engine paused", tick=self.tick)

    async def resume(self):
        async with self._lock:
            self._state = EngineState.RUNNING
            self._log.info("engine resumed", tick=self.tick)

    async def get_snapshot(self):
        async with self._lock:
            return self.context.snapshot(self.tick, self.sim_time)

    async def _loop(self):
        frame_interval = self.config.frame_interval
        next_frame_time = time.perf_counter()
        self._log.info("engine start", frame_rate=self.config.frame_rate, particles=len(self.particles))

        while not self._stop.is_set():
            wait_time = next_frame_time - time.perf_counter()
            if wait_time > 0:
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=wait_time)
                    break
                except asyncio.TimeoutError:
                    pass
            next_frame_time = max(next_frame_time + frame_interval, time.perf_counter())

            try:
                async with self._lock:
                    dt = self.clock.tick()
                    if self._state == EngineState.RUNNING:
                        snapshot = self.advance(dt)
                    else:
                        snapshot = self.context.snapshot(self.tick, self.sim_time)
            except Exception as exc:
                self._log.error("tick failed", error=exc, tick=self.tick)
                continue

            # paused engines keep the last frame on screen
            if self.tick != self._last_publish_tick:
                await self.bus.publish_frame(snapshot)
                self._last_publish_tick = self.tick

        self._log.info("engine stop", tick=self.tick)
