import json
import os
from pathlib import Path

from internal.errors import ConfigError

_DEFAULT_CONFIG = Path(__file__).parent / "config.json"


class SliderRange:
    """Bounds, reset default and step of one slider-controlled input."""

    __slots__ = ("minimum", "maximum", "default", "step")

    def __init__(self, minimum, maximum, default, step=None):
        self.minimum = float(minimum)
        self.maximum = float(maximum)
        self.default = float(default)
        self.step = step

    @classmethod
    def from_dict(cls, d, name="slider"):
        try:
            return cls(d["min"], d["max"], d["default"], d.get("step"))
        except KeyError as exc:
            raise ConfigError(f"{name} range is missing {exc.args[0]!r}", key=name) from exc

    def validate(self, name):
        if not self.minimum < self.maximum:
            raise ConfigError(f"{name} range is empty", key=name,
                              context={"min": self.minimum, "max": self.maximum})
        if not self.minimum <= self.default <= self.maximum:
            raise ConfigError(f"{name} default outside its range", key=name,
                              context={"default": self.default})

    def clamp(self, value):
        return max(self.minimum, min(self.maximum, float(value)))

    def fraction(self, value):
        """Position of ``value`` in the range, unclamped (0 at min, 1 at max)."""
        return (value - self.minimum) / (self.maximum - self.minimum)

    def to_dict(self):
        return {"min": self.minimum, "max": self.maximum, "default": self.default, "step": self.step}


class SimulationConfig:
    __slots__ = ("frame_rate", "max_frame_dt", "seed", "canvas_width", "canvas_height",
                 "area_padding", "gauge_reserve", "particle_radius", "base_density",
                 "min_particles", "max_particles", "min_speed", "max_speed",
                 "temperature", "moles", "volume", "pressure_display_min", "pressure_display_max")

    def __init__(self, frame_rate=60, max_frame_dt=0.1, seed=None, canvas_width=540, canvas_height=620,
                 area_padding=20, gauge_reserve=100, particle_radius=3, base_density=40,
                 min_particles=5, max_particles=250, min_speed=30.0, max_speed=120.0,
                 temperature=None, moles=None, volume=None,
                 pressure_display_min=1e2, pressure_display_max=1e7):
        self.frame_rate = frame_rate
        self.max_frame_dt = max_frame_dt
        self.seed = seed
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self.area_padding = area_padding
        self.gauge_reserve = gauge_reserve
        self.particle_radius = particle_radius
        self.base_density = base_density
        self.min_particles = min_particles
        self.max_particles = max_particles
        self.min_speed = min_speed
        self.max_speed = max_speed
        self.temperature = _as_range(temperature, "temperature", SliderRange(100.0, 1000.0, 300.0, 1))
        self.moles = _as_range(moles, "moles", SliderRange(0.1, 5.0, 1.0, 0.001))
        self.volume = _as_range(volume, "volume", SliderRange(0.01, 1.0, 0.1, 0.0001))
        self.pressure_display_min = pressure_display_min
        self.pressure_display_max = pressure_display_max
        self.validate()

    @property
    def frame_interval(self):
        return 1.0 / self.frame_rate

    def validate(self):
        if self.frame_rate <= 0:
            raise ConfigError("frame_rate must be positive", key="frame_rate")
        if self.max_frame_dt <= 0:
            raise ConfigError("max_frame_dt must be positive", key="max_frame_dt")
        if not 0 < self.min_particles <= self.max_particles:
            raise ConfigError("particle bounds must satisfy 0 < min <= max", key="min_particles",
                              context={"min": self.min_particles, "max": self.max_particles})
        if not 0 <= self.min_speed < self.max_speed:
            raise ConfigError("speed bounds must satisfy 0 <= min < max", key="min_speed")
        if not 0 < self.pressure_display_min < self.pressure_display_max:
            raise ConfigError("pressure display bounds must satisfy 0 < min < max", key="pressure_display_min")
        max_h = self.canvas_height - 2 * self.area_padding - self.gauge_reserve
        if self.canvas_width - 2 * self.area_padding <= 0 or max_h <= 0:
            raise ConfigError("canvas too small for padding and gauge", key="canvas_width")
        for name in ("temperature", "moles", "volume"):
            getattr(self, name).validate(name)


def _as_range(value, name, default):
    if value is None:
        return default
    if isinstance(value, SliderRange):
        return value
    return SliderRange.from_dict(value, name)


class ServerConfig:
    __slots__ = ("host", "port", "api_username", "api_password")

    def __init__(self, host="127.0.0.1", port=8080, api_username="admin", api_password="admin123"):
        self.host = host
        self.port = port
        self.api_username = os.environ.get("API_USERNAME", api_username)
        self.api_password = os.environ.get("API_PASSWORD", api_password)


class LoggingConfig:
    __slots__ = ("level", "file", "crash_file", "frame_log_every")

    def __init__(self, level="INFO", file="logs/simulator.log", crash_file="logs/crash.log", frame_log_every=60):
        self.level = level
        self.file = file
        self.crash_file = crash_file
        self.frame_log_every = frame_log_every


class Config:
    __slots__ = ("simulation", "server", "logging")

    def __init__(self, simulation=None, server=None, logging=None):
        self.simulation = simulation or SimulationConfig()
        self.server = server or ServerConfig()
        self.logging = logging or LoggingConfig()

    @classmethod
    def from_dict(cls, d):
        try:
            return cls(
                SimulationConfig(**d.get("simulation", {})),
                ServerConfig(**d.get("server", {})),
                LoggingConfig(**d.get("logging", {})),
            )
        except TypeError as exc:
            raise ConfigError(f"unknown config key: {exc}") from exc


def load_config(path=None):
    config_path = Path(path) if path else _DEFAULT_CONFIG

    if not config_path.exists():
        return Config()

    with open(config_path, encoding="utf-8") as file:
        try:
            data = json.load(file)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"malformed config file {config_path}", context={"line": exc.lineno}) from exc
    return Config.from_dict(data)
