"""AWS-specific utility functions for ec2manager."""

from __future__ import annotations

from typing import Any

from ec2manager.core.models import InstanceRecord, InstanceTypeSpec


def extract_instance_from_response(response: dict[str, Any]) -> dict[str, Any]:
    """Extract first instance from AWS describe_instances response.

    Parameters
    ----------
    response : dict[str, Any]
        Response from boto3 describe_instances call

    Returns
    -------
    dict[str, Any]
        The first instance dictionary

    Raises
    ------
    ValueError
        If response has no reservations or instances
    """
    if not response.get("Reservations"):
        raise ValueError("No reservations in response")
    if not response["Reservations"][0].get("Instances"):
        raise ValueError("No instances in reservation")
    return response["Reservations"][0]["Instances"][0]


def instance_record_from_api(instance: dict[str, Any]) -> InstanceRecord:
    """Build an InstanceRecord from one describe_instances entry.

    Parameters
    ----------
    instance : dict[str, Any]
        Instance dictionary from a describe_instances reservation

    Returns
    -------
    InstanceRecord
        Normalized instance record; missing state and type become "unknown"
    """
    tags = {tag["Key"]: tag["Value"] for tag in instance.get("Tags", [])}

    return InstanceRecord(
        instance_id=instance.get("InstanceId", ""),
        instance_type=instance.get("InstanceType") or "unknown",
        state=instance.get("State", {}).get("Name") or "unknown",
        name=tags.get("Name"),
        architecture=instance.get("Architecture"),
        availability_zone=instance.get("Placement", {}).get("AvailabilityZone"),
        public_ip=instance.get("PublicIpAddress"),
        launch_time=instance.get("LaunchTime"),
    )


def instance_type_spec_from_api(entry: dict[str, Any]) -> InstanceTypeSpec:
    """Build an InstanceTypeSpec from one describe_instance_types entry."""
    architectures = entry.get("ProcessorInfo", {}).get("SupportedArchitectures", [])

    return InstanceTypeSpec(
        name=entry["InstanceType"],
        architectures=frozenset(architectures),
        vcpus=entry.get("VCpuInfo", {}).get("DefaultVCpus"),
        memory_mib=entry.get("MemoryInfo", {}).get("SizeInMiB"),
    )


def get_aws_credentials_error_message() -> str:
    """Get standard AWS credentials error message.

    Returns
    -------
    str
        Formatted AWS credentials error message
    """
    return (
        "AWS credentials not found\n\n"
        "Configure your credentials:\n"
        "  aws configure\n\n"
        "Or set environment variables:\n"
        "  export AWS_ACCESS_KEY_ID=...\n"
        "  export AWS_SECRET_ACCESS_KEY=..."
    )
