"""Pytest configuration and fixtures for ec2manager tests."""

import os
import sys
from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
import yaml

unit_root = Path(__file__).parent
if str(unit_root) not in sys.path:
    sys.path.insert(0, str(unit_root))

from ec2manager.core.cache import EntityCache  # noqa: E402
from ec2manager.core.config import ConfigLoader  # noqa: E402
from ec2manager.core.events import EventChannel  # noqa: E402
from ec2manager.core.machine import InstanceManager  # noqa: E402
from ec2manager.core.models import InstanceRecord, InstanceTypeSpec  # noqa: E402
from ec2manager.core.tasks import TaskOrchestrator  # noqa: E402
from fakes import FakeEC2Manager, FakePricingService, RecordingSpawner  # noqa: E402

LAUNCHED = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def aws_credentials() -> Generator[None, None, None]:
    """Fixture to set AWS credentials for testing with proper cleanup.

    Yields
    ------
    None
        Control back to test after setting credentials
    """
    keys = ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_DEFAULT_REGION")
    saved = {key: os.environ.get(key) for key in keys}

    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"

    yield

    for key, value in saved.items():
        if value is not None:
            os.environ[key] = value
        else:
            os.environ.pop(key, None)


@pytest.fixture
def config_file(tmp_path: Path) -> Generator[Path, None, None]:
    """Point EC2MANAGER_CONFIG at a temporary file for the test.

    Yields
    ------
    Path
        Path to temporary config file (not created)
    """
    config_path = tmp_path / "ec2-instance-manager.yaml"

    original_env = os.environ.get("EC2MANAGER_CONFIG")
    os.environ["EC2MANAGER_CONFIG"] = str(config_path)

    yield config_path

    if original_env is not None:
        os.environ["EC2MANAGER_CONFIG"] = original_env
    else:
        os.environ.pop("EC2MANAGER_CONFIG", None)


@pytest.fixture
def write_config(config_file: Path) -> Callable[[dict[str, Any]], None]:
    """Helper fixture to write config data to file."""

    def _write(config_data: dict[str, Any]) -> None:
        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

    return _write


@pytest.fixture
def sample_instances() -> list[InstanceRecord]:
    """Three instances in mixed states, deliberately not sorted by name."""
    return [
        InstanceRecord(
            instance_id="i-0003",
            instance_type="m5.large",
            state="running",
            name="web-2",
            architecture="x86_64",
            availability_zone="us-east-1b",
            public_ip="3.3.3.3",
            launch_time=LAUNCHED,
        ),
        InstanceRecord(
            instance_id="i-0001",
            instance_type="t3.micro",
            state="stopped",
            name="db",
            architecture="x86_64",
            availability_zone="us-east-1a",
        ),
        InstanceRecord(
            instance_id="i-0002",
            instance_type="t4g.small",
            state="running",
            name="api",
            architecture="arm64",
            availability_zone="us-east-1a",
            public_ip="2.2.2.2",
            launch_time=LAUNCHED - timedelta(days=2),
        ),
    ]


@pytest.fixture
def sample_types() -> list[InstanceTypeSpec]:
    x86 = frozenset({"x86_64"})
    arm = frozenset({"arm64"})
    return [
        InstanceTypeSpec("c5.large", x86, 2, 4096),
        InstanceTypeSpec("m5.large", x86, 2, 8192),
        InstanceTypeSpec("t3.micro", x86, 2, 1024),
        InstanceTypeSpec("t3.small", x86, 2, 2048),
        InstanceTypeSpec("t3a.nano", x86, 2, 512),
        InstanceTypeSpec("t4g.micro", arm, 2, 1024),
        InstanceTypeSpec("t4g.small", arm, 2, 2048),
    ]


@pytest.fixture
def fake_compute(sample_instances, sample_types) -> FakeEC2Manager:
    return FakeEC2Manager(
        instances=sample_instances,
        instance_types=sample_types,
        spot_prices={"t3.micro": 0.0031, "t3a.nano": 0.0015},
    )


@pytest.fixture
def fake_pricing() -> FakePricingService:
    return FakePricingService(
        prices={
            "c5.large": 0.085,
            "m5.large": 0.096,
            "t3.micro": 0.0104,
            "t3.small": 0.0208,
            "t3a.nano": 0.0047,
        }
    )


@pytest.fixture
def spawner() -> RecordingSpawner:
    return RecordingSpawner()


@pytest.fixture
def channel() -> EventChannel:
    return EventChannel()


@pytest.fixture
def orchestrator(fake_compute, fake_pricing, channel, spawner) -> TaskOrchestrator:
    return TaskOrchestrator(fake_compute, fake_pricing, channel, spawn=spawner)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_manager(
    fake_compute, sample_instances, sample_types, orchestrator, channel, clock, tmp_path
) -> Callable[..., InstanceManager]:
    """Factory building an InstanceManager over the fakes.

    Keyword arguments override config keys. The entity cache starts with the
    sample instances and types.
    """

    def _make(**config_overrides: Any) -> InstanceManager:
        config = dict(ConfigLoader.BUILT_IN_DEFAULTS)
        config.update(config_overrides)
        loader = ConfigLoader(tmp_path / "config.yaml")
        cache = EntityCache(sample_instances, sample_types)
        return InstanceManager(
            config,
            cache,
            orchestrator,
            channel,
            config_loader=loader,
            clock=clock,
            now=lambda: datetime(2024, 5, 1, 14, 30, 5),
        )

    return _make


@pytest.fixture
def manager(make_manager) -> InstanceManager:
    return make_manager()
