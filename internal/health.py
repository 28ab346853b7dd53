import asyncio
import time
from enum import Enum

from utils.clock import format_timestamp


class Status(Enum):
    OK = "healthy"
    DEGRADED = "degraded"
    FAIL = "unhealthy"


class CheckResult:
    __slots__ = ("name", "status", "msg")

    def __init__(self, name, status, msg=""):
        self.name = name
        self.status = status
        self.msg = msg

    def to_dict(self):
        return {"name": self.name, "status": self.status.value, "msg": self.msg}


class HealthReport:
    __slots__ = ("status", "checks", "uptime", "timestamp")

    def __init__(self, status, checks, uptime=0):
        self.status = status
        self.checks = checks
        self.uptime = uptime
        self.timestamp = format_timestamp()

    def to_dict(self):
        return {"status": self.status.value,
                "timestamp": self.timestamp,
                "uptime": round(self.uptime, 1),
                "checks": [check.to_dict() for check in self.checks]}


class HealthChecker:
    """Runs registered checks; a failing critical check fails the report.

    Reports are cached for ``ttl`` seconds so polling clients never run the
    checks more often than that.
    """

    def __init__(self, ttl=1.0, timeout=2.0):
        self._checks = {}
        self._cache = None
        self._cache_time = 0
        self._ttl = ttl
        self._timeout = timeout
        self._start_time = time.time()

    def register(self, name, check_fn, critical=True):
        self._checks[name] = (check_fn, critical)
        self._cache = None

    async def check(self):
        now = time.time()
        if self._cache and now - self._cache_time < self._ttl:
            return self._cache

        status = Status.OK
        results = []
        for name, (check_fn, critical) in self._checks.items():
            try:
                result = await asyncio.wait_for(check_fn(), timeout=self._timeout)
            except asyncio.TimeoutError:
                result = CheckResult(name, Status.FAIL, "timeout")
            except Exception as exc:
                result = CheckResult(name, Status.FAIL, str(exc))
            results.append(result)
            if result.status == Status.FAIL and critical:
                status = Status.FAIL
            elif result.status != Status.OK and status == Status.OK:
                status = Status.DEGRADED

        self._cache = HealthReport(status, results, now - self._start_time)
        self._cache_time = now
        return self._cache


def create_engine_check(engine, stall_after=5.0):
    """Degraded when stopped, failed when a running engine stops ticking."""
    seen = {"tick": None, "at": time.time()}

    async def check():
        tick, now = engine.tick, time.time()
        if engine.state == "stopped":
            return CheckResult("engine", Status.DEGRADED, "stopped")
        if engine.paused or tick != seen["tick"]:
            seen["tick"], seen["at"] = tick, now
            return CheckResult("engine", Status.OK, f"{engine.state}@{tick}")
        if now - seen["at"] > stall_after:
            return CheckResult("engine", Status.FAIL, f"stalled@{tick}")
        return CheckResult("engine", Status.OK, f"running@{tick}")
    return check


def create_invariant_check(engine):
    """Population within bounds and every particle inside the frame's container."""
    async def check():
        snapshot = await engine.get_snapshot()
        config = engine.config
        count = len(snapshot.particles)
        if not config.min_particles <= count <= config.max_particles:
            return CheckResult("invariants", Status.FAIL, f"count={count}")
        if snapshot.pressure <= 0:
            return CheckResult("invariants", Status.FAIL, "pressure<=0")
        strays = sum(1 for p in snapshot.particles if not snapshot.container.contains(p.x, p.y))
        if strays:
            return CheckResult("invariants", Status.DEGRADED, f"strays={strays}")
        return CheckResult("invariants", Status.OK, f"n={count}")
    return check


def create_event_log_check(event_log):
    async def check():
        if not event_log.running:
            return CheckResult("event_log", Status.DEGRADED, "stopped")
        stats = event_log.get_stats()
        if stats["dropped"]:
            return CheckResult("event_log", Status.DEGRADED, f"dropped={stats['dropped']}")
        return CheckResult("event_log", Status.OK, f"written={stats['written']}")
    return check
