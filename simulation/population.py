"""Particle population driven by the amount of gas."""

import math

from simulation.entities import Particle


class ParticlePopulation:
    """Maps moles to a particle count and grows or shrinks the live collection.

    Survivors are never moved here; relocating particles that ended up outside
    a smaller container is the stepper's job.
    """

    def __init__(self, rng, base_density=40, min_count=5, max_count=250,
                 radius=3, min_speed=30.0, max_speed=120.0):
        self.rng = rng
        self.base_density = base_density
        self.min_count = min_count
        self.max_count = max_count
        self.radius = radius
        self.min_speed = min_speed
        self.max_speed = max_speed
        self._next_id = 0

    def target_count(self, moles, moles_range):
        target = math.floor(self.base_density * (0.2 + 4.8 * moles_range.fraction(moles)))
        return max(self.min_count, min(self.max_count, target))

    def adjust(self, particles, moles, moles_range, container):
        """Resize ``particles`` in place; returns the new count."""
        target = self.target_count(moles, moles_range)
        while len(particles) < target:
            particles.append(self._spawn(container))
        while len(particles) > target:
            particles.pop()
        return target

    def _spawn(self, container):
        particle_id = f"p{self._next_id:03d}"
        self._next_id += 1
        return Particle.spawn(particle_id, container, self.rng, self.radius, self.min_speed, self.max_speed)
