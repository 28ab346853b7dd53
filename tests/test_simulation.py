"""Unit tests for the physics core."""

import math
import random

import pytest
from config import SimulationConfig, SliderRange
from internal.errors import InputError
from simulation.context import SimulationContext
from simulation.entities import Particle
from simulation.gauge import PressureGauge
from simulation.geometry import ContainerRect, VisualArea
from simulation.population import ParticlePopulation
from simulation.readout import Readout, format_si, to_precision
from simulation.state import FrameSnapshot, ParticleState
from simulation.stepper import relocate_strays, speed_scale, step
from simulation.thermo import R, ThermodynamicState, ideal_gas_pressure

EPS = 1e-9

VOLUME = SliderRange(0.01, 1.0, 0.1)
MOLES = SliderRange(0.1, 5.0, 1.0)
TEMPERATURE = SliderRange(100.0, 1000.0, 300.0)


def assert_inside(particle, container):
    r = particle.radius
    assert container.left + r - EPS <= particle.x <= container.right - r + EPS
    assert container.top + r - EPS <= particle.y <= container.bottom - r + EPS


class TestThermodynamicState:
    """Tests for the ideal gas law."""

    def test_reference_pressure(self):
        """T=300 K, n=1 mol, V=0.1 m³ gives about 24943.39 Pa."""
        state = ThermodynamicState(300, 1.0, 0.1)
        assert state.pressure() == pytest.approx(24943.387854, rel=1e-9)

    def test_pressure_formula(self):
        """P = nRT/V for in-range values."""
        state = ThermodynamicState(450.0, 2.5, 0.35)
        assert state.pressure() == pytest.approx(2.5 * R * 450.0 / 0.35)

    def test_update_stores_raw_values(self):
        """Stored values are not floored."""
        state = ThermodynamicState(300, 1.0, 0.1)
        state.update(0.0, 0.0, 0.0)
        assert state.to_dict() == {"temperature": 0.0, "moles": 0.0, "volume": 0.0}

    def test_floors_keep_pressure_finite_and_positive(self):
        """Zero inputs are floored before the formula."""
        assert ideal_gas_pressure(0.0, 0.0, 0.0) == pytest.approx(1e-6 * R * 0.1 / 1e-8)
        assert ideal_gas_pressure(-1.0, -5.0, -2.0) > 0

    def test_pressure_uses_floored_volume(self):
        """Tiny volumes use the 1e-8 floor."""
        assert ideal_gas_pressure(1.0, 300.0, 1e-12) == pytest.approx(R * 300.0 / 1e-8)


class TestContainerGeometry:
    """Tests for VisualArea and ContainerRect."""

    area = VisualArea(canvas_width=540, canvas_height=620, padding=20, gauge_reserve=100)

    def test_rect_edges(self):
        """right/bottom derive from left/top plus size."""
        rect = ContainerRect(10, 20, 30, 40)
        assert (rect.right, rect.bottom) == (40, 60)

    def test_max_size(self):
        """Area leaves padding on all sides and room for the gauge labels."""
        assert (self.area.max_width, self.area.max_height) == (500, 480)

    def test_default_volume_rect(self):
        """V=0.1 in [0.01, 1] maps to a 245x148 centered container."""
        rect = self.area.container_for(0.1, VOLUME)
        assert (rect.width, rect.height) == (245, 148)
        assert rect.left == pytest.approx(147.5)
        assert rect.top == pytest.approx(186.0)
        assert rect.right == rect.left + rect.width
        assert rect.bottom == rect.top + rect.height

    def test_fraction_clamped_low(self):
        """Below-range volumes use the 0.02 fraction floor."""
        assert self.area.container_for(-5.0, VOLUME) == self.area.container_for(VOLUME.minimum, VOLUME)
        rect = self.area.container_for(VOLUME.minimum, VOLUME)
        assert rect.width >= math.floor(500 * 0.45)
        assert rect.height >= math.floor(480 * 0.25)

    def test_fraction_clamped_high(self):
        """Above-range volumes use the 0.95 fraction ceiling."""
        rect = self.area.container_for(50.0, VOLUME)
        assert (rect.width, rect.height) == (438, 416)
        assert rect.width <= 500 * 0.9
        assert rect.height <= 480 * 0.9

    def test_container_inside_area_for_all_volumes(self):
        """Every in-range volume yields a positive rect inside the area."""
        bounds = self.area.bounds()
        previous = None
        for i in range(101):
            volume = VOLUME.minimum + (VOLUME.maximum - VOLUME.minimum) * i / 100
            rect = self.area.container_for(volume, VOLUME)
            assert rect.width > 0 and rect.height > 0
            assert bounds.left <= rect.left and rect.right <= bounds.right
            assert bounds.top <= rect.top and rect.bottom <= bounds.bottom
            if previous is not None:
                assert rect.width >= previous.width
                assert rect.height >= previous.height
            previous = rect

    def test_gauge_rect(self):
        """Gauge bar sits 10 px from the right edge, as tall as the container area."""
        gauge = self.area.gauge_rect()
        assert (gauge.left, gauge.top, gauge.width, gauge.height) == (506, 20, 24, 480)


class TestParticle:
    """Tests for Particle class."""

    def test_particle_creation(self):
        """Particle stores initial state."""
        p = Particle(id="p01", x=50, y=30, vx=10, vy=-5)
        assert (p.id, p.x, p.y, p.vx, p.vy) == ("p01", 50, 30, 10, -5)
        assert p.radius == 3

    def test_particle_step_movement(self, particle, box):
        """Particle moves based on velocity."""
        particle.step(dt=1.0, container=box)
        assert particle.x == 60
        assert particle.y == 25
        assert particle.container is box

    def test_particle_step_speed_scale(self, particle, box):
        """Displacement is multiplied by the speed scale."""
        particle.step(dt=1.0, container=box, scale=2.0)
        assert particle.x == 70
        assert particle.y == 20

    def test_particle_bounce_left_wall(self, box):
        """Particle bounces off left wall, clamped one radius inside."""
        p = Particle(id="p01", x=5, y=30, vx=-10, vy=0)
        p.step(dt=1.0, container=box)
        assert p.x == 3
        assert p.vx == 10

    def test_particle_bounce_right_wall(self, box):
        """Particle bounces off right wall."""
        p = Particle(id="p01", x=95, y=30, vx=10, vy=0)
        p.step(dt=1.0, container=box)
        assert p.x == 97
        assert p.vx == -10

    def test_particle_bounce_top_wall(self, box):
        """Particle bounces off top wall."""
        p = Particle(id="p01", x=50, y=5, vx=0, vy=-10)
        p.step(dt=1.0, container=box)
        assert p.y == 3
        assert p.vy == 10

    def test_particle_bounce_bottom_wall(self, box):
        """Particle bounces off bottom wall."""
        p = Particle(id="p01", x=50, y=55, vx=0, vy=10)
        p.step(dt=1.0, container=box)
        assert p.y == 57
        assert p.vy == -10

    def test_particle_corner_bounce(self, box):
        """A corner hit flips both components independently."""
        p = Particle(id="p01", x=4, y=4, vx=-10, vy=-20)
        p.step(dt=1.0, container=box)
        assert (p.x, p.y) == (3, 3)
        assert (p.vx, p.vy) == (10, 20)

    def test_particle_edge_contact_within_radius(self, box):
        """A center inside the box but within one radius of a wall is pushed back."""
        p = Particle(id="p01", x=99, y=30, vx=0, vy=0)
        p.step(dt=0.1, container=box)
        assert p.x == 97
        assert p.vx == 0

    def test_reset_places_inside(self, box, rng):
        """Reset keeps the particle one radius away from every wall."""
        p = Particle(id="p01", x=-100, y=-100, vx=0, vy=0)
        for _ in range(200):
            p.reset(box, rng)
            assert_inside(p, box)
            assert 30 - EPS <= p.speed < 120 + EPS
        assert p.container is box

    def test_spawn(self, box, rng):
        """spawn creates a particle already seeded in the container."""
        p = Particle.spawn("p07", box, rng, radius=2, min_speed=10, max_speed=20)
        assert p.id == "p07"
        assert_inside(p, box)
        assert 10 - EPS <= p.speed < 20 + EPS

    def test_is_outside(self, box):
        """Outside means the center lies beyond a wall."""
        assert Particle("a", 101, 30, 0, 0).is_outside(box)
        assert Particle("b", 50, -1, 0, 0).is_outside(box)
        assert not Particle("c", 100, 60, 0, 0).is_outside(box)

    def test_particle_to_state(self, particle):
        """Particle converts to immutable state."""
        state = particle.to_state()
        assert isinstance(state, ParticleState)
        assert (state.id, state.x, state.y) == ("p01", 50, 30)


class TestParticlePopulation:
    """Tests for the mole-driven particle count."""

    def test_target_count_default(self, rng):
        """n=1 mol with base 40 gives 43 particles."""
        population = ParticlePopulation(rng)
        assert population.target_count(1.0, MOLES) == 43

    def test_target_count_extremes(self, rng):
        """nmin gives floor(0.2*base), nmax gives 5*base."""
        population = ParticlePopulation(rng)
        assert population.target_count(MOLES.minimum, MOLES) == 8
        assert population.target_count(MOLES.maximum, MOLES) == 200

    def test_floor_clamp_at_nmin(self, rng):
        """When the formula yields fewer than 5, the floor clamp applies."""
        population = ParticlePopulation(rng, base_density=20)
        assert population.target_count(MOLES.minimum, MOLES) == 5

    def test_ceiling_clamp(self, rng):
        """Counts above 250 are capped."""
        population = ParticlePopulation(rng, base_density=100)
        assert population.target_count(MOLES.maximum, MOLES) == 250

    def test_count_bounded_and_monotonic(self, rng):
        """Count stays in [5, 250] and never decreases with n."""
        for base in (1, 20, 40, 80, 400):
            population = ParticlePopulation(rng, base_density=base)
            previous = 0
            for i in range(201):
                moles = MOLES.minimum + (MOLES.maximum - MOLES.minimum) * i / 200
                count = population.target_count(moles, MOLES)
                assert 5 <= count <= 250
                assert count >= previous
                previous = count

    def test_adjust_grows_inside_container(self, rng, box):
        """New particles are placed inside the container."""
        population = ParticlePopulation(rng)
        particles = []
        assert population.adjust(particles, 1.0, MOLES, box) == 43
        assert len(particles) == 43
        for p in particles:
            assert_inside(p, box)
        assert len({p.id for p in particles}) == 43

    def test_adjust_shrinks_from_end(self, rng, box):
        """Shrinking pops from the end and leaves survivors untouched."""
        population = ParticlePopulation(rng)
        particles = []
        population.adjust(particles, MOLES.maximum, MOLES, box)
        survivors = [(p.id, p.x, p.y) for p in particles[:8]]
        population.adjust(particles, MOLES.minimum, MOLES, box)
        assert [(p.id, p.x, p.y) for p in particles] == survivors

    def test_adjust_does_not_move_survivors(self, rng, box):
        """Growing keeps existing particles where they are, even outside a new container."""
        population = ParticlePopulation(rng)
        particles = [Particle("old", 500, 500, 1, 1)]
        population.adjust(particles, 1.0, MOLES, box)
        assert (particles[0].x, particles[0].y) == (500, 500)


class TestSpeedScale:
    """Tests for the temperature-derived speed multiplier."""

    def test_bounds(self):
        """0.4 at Tmin, 2.0 at Tmax."""
        assert speed_scale(100.0, TEMPERATURE) == pytest.approx(0.4)
        assert speed_scale(1000.0, TEMPERATURE) == pytest.approx(2.0)

    def test_midpoint(self):
        """Linear in between."""
        assert speed_scale(550.0, TEMPERATURE) == pytest.approx(1.2)

    def test_clamped(self):
        """Out-of-range temperatures saturate."""
        assert speed_scale(-50.0, TEMPERATURE) == pytest.approx(0.4)
        assert speed_scale(5000.0, TEMPERATURE) == pytest.approx(2.0)


class TestPressureGauge:
    """Tests for the logarithmic pressure gauge."""

    gauge = PressureGauge()

    def test_saturates_low(self):
        """At or below 1e2 Pa the gauge is empty."""
        assert self.gauge.fill_fraction(1e2) == 0.0
        assert self.gauge.fill_fraction(1.0) == 0.0
        assert self.gauge.fill_fraction(0.0) == 0.0
        assert self.gauge.fill_fraction(-10.0) == 0.0

    def test_saturates_high(self):
        """At or above 1e7 Pa the gauge is full."""
        assert self.gauge.fill_fraction(1e7) == pytest.approx(1.0)
        assert self.gauge.fill_fraction(1e12) == pytest.approx(1.0)

    def test_log_scale(self):
        """Each decade fills a fifth of the gauge."""
        assert self.gauge.fill_fraction(1e3) == pytest.approx(0.2)
        assert self.gauge.fill_fraction(10 ** 4.5) == pytest.approx(0.5)

    def test_monotonic(self):
        """Fill increases with pressure between the bounds."""
        values = [self.gauge.fill_fraction(10 ** (2 + 5 * i / 50)) for i in range(51)]
        assert all(0.0 <= v <= 1.0 for v in values)
        assert all(b > a for a, b in zip(values, values[1:]))

    def test_fill_height(self):
        """Pixel height floors the fraction times the gauge height."""
        assert self.gauge.fill_height(24943.39, 480) == math.floor(480 * self.gauge.fill_fraction(24943.39))
        assert self.gauge.fill_height(1e9, 480) == 480


class TestReadout:
    """Tests for display formatting."""

    def test_reference_pressure_string(self):
        """24943.39 Pa is shown as 2.494e4 Pa."""
        assert format_si(24943.387854, "Pa") == "2.494e4 Pa"

    def test_fixed_notation_below_precision(self):
        """Values under 10^4 use fixed notation with four significant digits."""
        assert format_si(2494.3, "Pa") == "2494 Pa"
        assert format_si(1.5, "Pa") == "1.500 Pa"
        assert format_si(831.4, "Pa") == "831.4 Pa"

    def test_small_values_scientific(self):
        """|P| < 1 uses a three-digit mantissa."""
        assert format_si(0.05, "Pa") == "5.00e-2 Pa"
        assert format_si(0.00123, "Pa") == "1.23e-3 Pa"

    def test_zero(self):
        """Zero has no exponent."""
        assert format_si(0, "Pa") == "0 Pa"

    def test_to_precision(self):
        """Exponent switches at -6 and at the requested digit count."""
        assert to_precision(1234567.0, 4) == "1.235e6"
        assert to_precision(0.000123, 2) == "0.00012"
        assert to_precision(1e-7, 3) == "1.00e-7"
        assert to_precision(0, 3) == "0.00"

    def test_readout_build(self):
        """Readout formats every value and slider label."""
        readout = Readout.build(300.0, 1.0, 0.1, 24943.387854)
        assert readout.temperature == "300.0 K"
        assert readout.moles == "1.0000 mol"
        assert readout.volume == "0.10000 m³"
        assert readout.pressure == "2.494e4 Pa"
        assert readout.slider_labels == {"temperature": "300.0", "moles": "1.000", "volume": "0.1000"}


class TestStepper:
    """Tests for one simulation tick."""

    def test_step_returns_current_container(self, context):
        """The tick uses the freshly computed container."""
        result = step(context, 1 / 60)
        assert result.container == context.container()
        assert result.speed_scale == pytest.approx(speed_scale(300.0, context.temperature_range))
        assert result.relocated == 0

    def test_particles_move(self, context):
        """Particles change position over a tick."""
        before = [(p.x, p.y) for p in context.particles]
        step(context, 0.05)
        after = [(p.x, p.y) for p in context.particles]
        assert sum(1 for a, b in zip(before, after) if a != b) > 0

    def test_all_particles_inside_after_each_tick(self, sim_config):
        """After every tick every particle is inside that tick's container."""
        context = SimulationContext(sim_config, rng=random.Random(5))
        driver = random.Random(6)
        for i in range(300):
            if i % 10 == 0:
                context.set_input("volume", driver.uniform(0.0, 1.1))
                context.set_input("moles", driver.uniform(0.0, 5.5))
                context.set_input("temperature", driver.uniform(50, 1100))
            result = step(context, driver.uniform(0.0, 0.2))
            for particle in context.particles:
                assert_inside(particle, result.container)

    def test_shrink_relocates_instead_of_clamping(self, sim_config):
        """A particle left outside by a shrinking container is re-seeded inside it."""
        context = SimulationContext(sim_config, rng=random.Random(3))
        context.set_input("volume", 1.0)
        big = context.container()
        stray = context.particles[0]
        stray.x, stray.y = big.right - 5, big.top + big.height / 2
        stray.vx, stray.vy = 500.0, 0.0

        context.set_input("volume", 0.01)
        small = context.container()
        assert_inside(stray, small)
        assert stray.x != small.right - stray.radius
        assert 30 - EPS <= stray.speed < 120 + EPS

        result = step(context, 1 / 60)
        assert result.relocated == 0
        assert_inside(stray, small)

    def test_relocate_strays(self, rng, box):
        """Only particles outside the container are re-seeded."""
        inside = Particle("a", 50, 30, 10, 0)
        outside = Particle("b", 150, 30, 10, 0)
        assert relocate_strays([inside, outside], box, rng) == 1
        assert (inside.x, inside.y) == (50, 30)
        assert_inside(outside, box)

    def test_reset_replaces_advance(self, sim_config):
        """A relocated particle is not also advanced in the same tick."""
        context = SimulationContext(sim_config, rng=random.Random(11))
        stray = context.particles[0]
        stray.x = -1000.0
        replay_rng = random.Random()
        replay_rng.setstate(context.rng.getstate())
        expected = Particle("expected", 0.0, 0.0, 0.0, 0.0)
        expected.reset(context.container(), replay_rng)

        step(context, 1.0)
        assert (stray.x, stray.y, stray.vx, stray.vy) == (expected.x, expected.y, expected.vx, expected.vy)
        assert_inside(stray, context.container())


class TestSimulationContext:
    """Tests for SimulationContext."""

    def test_initial_state(self, context):
        """Context starts at the default inputs with the matching population."""
        assert context.thermo.to_dict() == {"temperature": 300.0, "moles": 1.0, "volume": 0.1}
        assert len(context.particles) == 43
        assert context.pressure() == pytest.approx(24943.39, abs=0.01)

    def test_set_input_clamps_to_slider(self, context):
        """Inputs are clamped to their slider range."""
        assert context.set_input("temperature", 5000) == 1000.0
        assert context.thermo.temperature == 1000.0
        assert context.set_input("volume", -1) == 0.01

    def test_set_input_adjusts_population(self, context):
        """Changing moles resizes the population immediately."""
        context.set_input("moles", 5.0)
        assert len(context.particles) == 200
        context.set_input("moles", 0.1)
        assert len(context.particles) == 8

    def test_set_input_unknown_variable(self, context):
        """Unknown input names raise InputError."""
        with pytest.raises(InputError) as excinfo:
            context.set_input("pressure", 1.0)
        assert excinfo.value.context["variable"] == "pressure"

    def test_reset_restores_defaults(self, context):
        """Reset restores T=300, n=1, V=0.1 and the population for them."""
        context.set_input("temperature", 900)
        context.set_input("moles", 4.0)
        context.set_input("volume", 0.9)
        assert context.reset() == 43
        assert context.thermo.to_dict() == {"temperature": 300.0, "moles": 1.0, "volume": 0.1}
        assert len(context.particles) == 43
        assert context.pressure() == pytest.approx(24943.39, abs=0.01)

    def test_snapshot(self, context):
        """Snapshot carries geometry, particles, pressure and readouts."""
        snap = context.snapshot(tick=3, sim_time=0.05)
        assert isinstance(snap, FrameSnapshot)
        assert snap.container == context.container()
        assert len(snap.particles) == 43
        assert snap.readout.pressure == "2.494e4 Pa"
        assert 0.0 <= snap.gauge_fraction <= 1.0
        assert snap.target_count == 43

    def test_snapshot_uses_tick_container(self, context):
        """A tick result's container is reused, not recomputed."""
        result = step(context, 0.01)
        snap = context.snapshot(1, 0.01, result)
        assert snap.container is result.container


class TestFrameSnapshot:
    """Tests for FrameSnapshot serialization."""

    def test_to_dict(self, context):
        """to_dict exposes everything the renderer draws."""
        d = context.snapshot(tick=100, sim_time=1.5).to_dict()
        assert d["tick"] == 100
        assert d["sim_time_s"] == 1.5
        assert set(d["container"]) == {"left", "top", "right", "bottom", "width", "height"}
        assert d["gauge"]["width"] == 24
        assert 0.0 <= d["gauge"]["fraction"] <= 1.0
        assert d["radius"] == 3
        assert set(d["particles"][0]) == {"id", "x", "y"}
        assert d["inputs"]["temperature"] == {"value": 300.0, "min": 100.0, "max": 1000.0,
                                               "default": 300.0, "step": 1}
        assert d["readout"]["pressure"] == "2.494e4 Pa"

    def test_snapshot_uses_slots(self):
        """FrameSnapshot uses __slots__ for memory efficiency."""
        assert hasattr(FrameSnapshot, "__slots__")
        assert hasattr(ParticleState, "__slots__")


class TestDefaultConfigContext:
    """The shipped defaults drive a self-consistent simulation."""

    def test_default_config(self):
        context = SimulationContext(SimulationConfig(seed=0))
        for _ in range(120):
            result = step(context, 1 / 60)
        assert all(not p.is_outside(result.container) for p in context.particles)
