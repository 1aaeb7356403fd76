"""Entity records shared by the providers, the state machine and the renderer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class InstanceRecord:
    """Snapshot of one EC2 instance as returned by a refresh.

    Attributes
    ----------
    instance_id : str
        Unique instance identifier
    instance_type : str
        Current instance type name
    state : str
        Instance state name ("running", "stopped", ...)
    name : str | None
        Value of the Name tag, if any
    architecture : str | None
        CPU architecture reported by EC2
    availability_zone : str | None
        Placement availability zone
    public_ip : str | None
        Public IPv4 address
    launch_time : datetime | None
        Last launch time (timezone-aware)
    """

    instance_id: str
    instance_type: str
    state: str
    name: str | None = None
    architecture: str | None = None
    availability_zone: str | None = None
    public_ip: str | None = None
    launch_time: datetime | None = None


@dataclass(frozen=True)
class InstanceTypeSpec:
    """Static description of an instance type."""

    name: str
    architectures: frozenset[str] = field(default_factory=frozenset)
    vcpus: int | None = None
    memory_mib: int | None = None


@dataclass(frozen=True)
class PriceRecord:
    """Known hourly USD prices for one instance type.

    Either field stays None until the matching bulk price fetch completes.
    """

    on_demand: float | None = None
    spot: float | None = None
