"""In-memory stand-ins for the AWS provider clients."""

from fakes.channel import drain_events
from fakes.fake_ec2_manager import FakeEC2Manager, FakePricingService, RecordingSpawner

__all__ = ["FakeEC2Manager", "FakePricingService", "RecordingSpawner", "drain_events"]
