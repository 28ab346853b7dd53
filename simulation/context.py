"""Explicit simulation state: inputs, particles and the components acting on them."""

import random

from internal.errors import InputError
from simulation.gauge import PressureGauge
from simulation.geometry import VisualArea
from simulation.population import ParticlePopulation
from simulation.readout import Readout
from simulation.state import FrameSnapshot
from simulation.stepper import relocate_strays, speed_scale
from simulation.thermo import ThermodynamicState

INPUTS = ("temperature", "moles", "volume")


class SimulationContext:
    """Owns everything a tick reads or writes.

    Nothing here awaits, so an input change or a reset is fully applied before
    the engine can run its next frame.
    """

    def __init__(self, config, rng=None):
        self.config = config
        self.rng = rng or random.Random(config.seed)
        self.temperature_range = config.temperature
        self.moles_range = config.moles
        self.volume_range = config.volume
        self.area = VisualArea(config.canvas_width, config.canvas_height,
                               config.area_padding, config.gauge_reserve)
        self.population = ParticlePopulation(self.rng, config.base_density, config.min_particles,
                                             config.max_particles, config.particle_radius,
                                             config.min_speed, config.max_speed)
        self.gauge = PressureGauge(config.pressure_display_min, config.pressure_display_max)
        self.thermo = ThermodynamicState(self.temperature_range.default, self.moles_range.default,
                                         self.volume_range.default)
        self.particles = []
        self.reset()

    def ranges(self):
        return {"temperature": self.temperature_range, "moles": self.moles_range, "volume": self.volume_range}

    def container(self):
        return self.area.container_for(self.thermo.volume, self.volume_range)

    def pressure(self):
        return self.thermo.pressure()

    def target_count(self):
        return self.population.target_count(self.thermo.moles, self.moles_range)

    def set_input(self, variable, value):
        """Apply one slider change; the value is clamped to the slider's range.

        The population is resized and particles left outside a shrunken
        container are re-seeded, so every frame taken afterwards is consistent
        even while the engine is paused.
        """
        if variable not in INPUTS:
            raise InputError(f"unknown input {variable!r}", variable=variable)
        values = self.thermo.to_dict()
        values[variable] = self.ranges()[variable].clamp(value)
        self.thermo.update(values["temperature"], values["moles"], values["volume"])
        self._apply_geometry()
        return values[variable]

    def reset(self):
        """Restore default inputs and resize the population for them."""
        self.thermo.update(self.temperature_range.default, self.moles_range.default, self.volume_range.default)
        return self._apply_geometry()

    def _apply_geometry(self):
        container = self.container()
        count = self.population.adjust(self.particles, self.thermo.moles, self.moles_range, container)
        relocate_strays(self.particles, container, self.rng)
        return count

    def snapshot(self, tick, sim_time, result=None):
        if result is not None:
            container, scale = result.container, result.speed_scale
        else:
            container = self.container()
            scale = speed_scale(self.thermo.temperature, self.temperature_range)
        pressure = self.pressure()
        thermo = self.thermo
        return FrameSnapshot(
            tick=tick,
            time=sim_time,
            container=container,
            gauge=self.area.gauge_rect(),
            particles=[particle.to_state() for particle in self.particles],
            radius=self.config.particle_radius,
            pressure=pressure,
            gauge_fraction=self.gauge.fill_fraction(pressure),
            speed_scale=scale,
            target_count=self.target_count(),
            inputs=thermo.to_dict(),
            ranges=self.ranges(),
            readout=Readout.build(thermo.temperature, thermo.moles, thermo.volume, pressure),
        )
