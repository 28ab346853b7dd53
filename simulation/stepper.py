"""One simulation tick: relocate strays, advance everyone else."""


class TickResult:
    __slots__ = ("container", "speed_scale", "relocated")

    def __init__(self, container, speed_scale, relocated):
        self.container = container
        self.speed_scale = speed_scale
        self.relocated = relocated


def speed_scale(temperature, temperature_range):
    """Velocity multiplier, linear in temperature: 0.4 at Tmin up to 2.0 at Tmax."""
    frac = max(0.0, min(1.0, temperature_range.fraction(temperature)))
    return 0.4 + 1.6 * frac


def relocate_strays(particles, container, rng):
    """Re-seed every particle whose center lies outside ``container``; returns how many moved."""
    relocated = 0
    for particle in particles:
        if particle.is_outside(container):
            particle.reset(container, rng)
            relocated += 1
    return relocated


def step(context, dt):
    """Advance ``context`` by ``dt`` seconds against the current container.

    A particle found outside the container is re-seeded inside it instead of
    being advanced.
    """
    container = context.container()
    scale = speed_scale(context.thermo.temperature, context.temperature_range)
    relocated = 0
    for particle in context.particles:
        if particle.is_outside(container):
            particle.reset(container, context.rng)
            relocated += 1
        else:
            particle.step(dt, container, scale)
    return TickResult(container, scale, relocated)
