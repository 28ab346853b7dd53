from utils.clock import format_timestamp


class ParticleState:
    __slots__ = ("id", "x", "y", "vx", "vy")
    def __init__(self, id, x, y, vx, vy):
        self.id, self.x, self.y, self.vx, self.vy = id, x, y, vx, vy


class FrameSnapshot:
    """Everything the renderer needs to draw one frame."""

    __slots__ = ("timestamp", "tick", "time", "container", "gauge", "particles", "radius",
                 "pressure", "gauge_fraction", "speed_scale", "target_count", "inputs", "ranges", "readout")

    def __init__(self, tick, time, container, gauge, particles, radius, pressure, gauge_fraction,
                 speed_scale, target_count, inputs, ranges, readout, timestamp=None):
        self.timestamp = timestamp or format_timestamp()
        self.tick = tick
        self.time = time
        self.container = container
        self.gauge = gauge
        self.particles = particles
        self.radius = radius
        self.pressure = pressure
        self.gauge_fraction = gauge_fraction
        self.speed_scale = speed_scale
        self.target_count = target_count
        self.inputs = inputs
        self.ranges = ranges
        self.readout = readout

    @property
    def sim_time_s(self):
        return self.time

    def to_dict(self):
        return {
            "timestamp": self.timestamp,
            "tick": self.tick,
            "sim_time_s": self.time,
            "container": self.container.to_dict(),
            "gauge": {**self.gauge.to_dict(), "fraction": self.gauge_fraction},
            "radius": self.radius,
            "particles": [{"id": p.id, "x": p.x, "y": p.y} for p in self.particles],
            "pressure": self.pressure,
            "speed_scale": self.speed_scale,
            "target_count": self.target_count,
            "inputs": {name: {"value": value, **self.ranges[name].to_dict()} for name, value in self.inputs.items()},
            "readout": self.readout.to_dict(),
        }
