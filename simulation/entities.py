import math

from simulation.state import ParticleState

DEFAULT_RADIUS = 3


class Particle:
    """A gas particle that bounces off the walls of its container."""

    __slots__ = ("id", "x", "y", "vx", "vy", "radius", "min_speed", "max_speed", "container")

    def __init__(self, id, x, y, vx, vy, radius=DEFAULT_RADIUS, min_speed=30.0, max_speed=120.0, container=None):
        self.id = id
        self.x = x
        self.y = y
        self.vx = vx
        self.vy = vy
        self.radius = radius
        self.min_speed = min_speed
        self.max_speed = max_speed
        self.container = container

    @classmethod
    def spawn(cls, id, container, rng, radius=DEFAULT_RADIUS, min_speed=30.0, max_speed=120.0):
        """Create a particle placed at random inside ``container``."""
        particle = cls(id, 0.0, 0.0, 0.0, 0.0, radius, min_speed, max_speed)
        particle.reset(container, rng)
        return particle

    def reset(self, container, rng):
        """Re-seed position inside ``container`` (inset by radius) and velocity."""
        self.container = container
        r = self.radius
        self.x = rng.random() * (container.width - 2 * r) + container.left + r
        self.y = rng.random() * (container.height - 2 * r) + container.top + r
        angle = rng.random() * 2 * math.pi
        speed = rng.random() * (self.max_speed - self.min_speed) + self.min_speed
        self.vx = math.cos(angle) * speed
        self.vy = math.sin(angle) * speed

    def is_outside(self, container):
        return not container.contains(self.x, self.y)

    def step(self, dt, container, scale=1.0):
        """Move and bounce off walls: clamp to the wall and reverse that velocity."""
        self.container = container
        self.x += self.vx * dt * scale
        self.y += self.vy * dt * scale

        r = self.radius
        if self.x - r < container.left:
            self.x = container.left + r
            self.vx = -self.vx
        elif self.x + r > container.right:
            self.x = container.right - r
            self.vx = -self.vx

        if self.y - r < container.top:
            self.y = container.top + r
            self.vy = -self.vy
        elif self.y + r > container.bottom:
            self.y = container.bottom - r
            self.vy = -self.vy

    @property
    def speed(self):
        return math.hypot(self.vx, self.vy)

    def to_state(self):
        """Create immutable state snapshot for safe publishing."""
        return ParticleState(self.id, self.x, self.y, self.vx, self.vy)
