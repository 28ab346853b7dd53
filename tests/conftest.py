"""Pytest fixtures for all tests."""

import random

import pytest
from httpx import AsyncClient, ASGITransport

from communication.bus import EventBus
from config import Config, ServerConfig, SimulationConfig
from simulation.context import SimulationContext
from simulation.engine import SimulationEngine
from simulation.entities import Particle
from simulation.geometry import ContainerRect
from ui.app import create_app


@pytest.fixture
def rng():
    """Seeded random source."""
    return random.Random(1234)


@pytest.fixture
def box():
    """A 100x60 container at the origin."""
    return ContainerRect(0, 0, 100, 60)


@pytest.fixture
def particle():
    """Create a test particle."""
    return Particle(id="p01", x=50, y=30, vx=10, vy=-5)


@pytest.fixture
def sim_config():
    """Create test simulation config."""
    return SimulationConfig(frame_rate=50, seed=1234)


@pytest.fixture
def context(sim_config):
    """Simulation context at the default inputs."""
    return SimulationContext(sim_config)


@pytest.fixture
async def bus():
    """Create test event bus."""
    return EventBus(queue_size=10)


@pytest.fixture
async def engine(bus, sim_config):
    """Create test simulation engine."""
    eng = SimulationEngine(bus=bus, config=sim_config)
    yield eng
    if eng._task:
        await eng.stop()


@pytest.fixture
def app_config(monkeypatch, tmp_path):
    """App config with known API credentials and logs under tmp_path."""
    monkeypatch.delenv("API_USERNAME", raising=False)
    monkeypatch.delenv("API_PASSWORD", raising=False)
    config = Config(simulation=SimulationConfig(seed=99),
                    server=ServerConfig(api_username="tester", api_password="secret"))
    config.logging.file = str(tmp_path / "simulator.log")
    config.logging.crash_file = str(tmp_path / "crash.log")
    return config


@pytest.fixture
async def app(app_config):
    """Create test FastAPI app."""
    return create_app(app_config)


@pytest.fixture
async def client(app):
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
