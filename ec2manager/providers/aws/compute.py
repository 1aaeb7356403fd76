"""EC2 instance operations for ec2manager."""

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import boto3

from ec2manager.constants import (
    SPOT_PRODUCT_DESCRIPTION,
    STOP_POLL_INTERVAL_SECONDS,
    STOP_WAIT_TIMEOUT_SECONDS,
)
from ec2manager.core.models import InstanceRecord, InstanceTypeSpec
from ec2manager.providers.aws.errors import handle_aws_errors
from ec2manager.providers.aws.utils import (
    extract_instance_from_response,
    instance_record_from_api,
    instance_type_spec_from_api,
)
from ec2manager.providers.exceptions import WaitTimeoutError

logger = logging.getLogger(__name__)


class EC2Manager:
    """Thin synchronous wrapper over the EC2 API used by the dashboard workers.

    Every public method converts botocore failures into the provider
    exception hierarchy, so workers only need to catch ``ProviderError``.

    Parameters
    ----------
    region : str
        AWS region for EC2 operations
    boto3_client_factory : Callable[..., Any] | None
        Optional factory for creating boto3 clients. If None, uses boto3.client
    sleep : Callable[[float], None] | None
        Sleep function used between state polls. If None, uses time.sleep
    clock : Callable[[], float] | None
        Monotonic clock used for poll deadlines. If None, uses time.monotonic
    """

    def __init__(
        self,
        region: str,
        boto3_client_factory: Callable[..., Any] | None = None,
        sleep: Callable[[float], None] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.region = region
        self.boto3_client_factory = boto3_client_factory or boto3.client
        self.ec2_client = self.boto3_client_factory("ec2", region_name=region)
        self._sleep = sleep or time.sleep
        self._clock = clock or time.monotonic

    def list_instances(self) -> list[InstanceRecord]:
        """List every instance in the region.

        Returns
        -------
        list[InstanceRecord]
            Instances in API order
        """
        instances = []

        with handle_aws_errors():
            paginator = self.ec2_client.get_paginator("describe_instances")

            for page in paginator.paginate():
                for reservation in page.get("Reservations", []):
                    for instance in reservation.get("Instances", []):
                        instances.append(instance_record_from_api(instance))

        logger.debug("Listed %d instances in %s", len(instances), self.region)
        return instances

    def get_instance_state(self, instance_id: str) -> str:
        """Return the current state name of an instance.

        Parameters
        ----------
        instance_id : str
            Instance ID to describe

        Returns
        -------
        str
            State name, or "unknown" if the response carries none
        """
        with handle_aws_errors():
            response = self.ec2_client.describe_instances(InstanceIds=[instance_id])

        try:
            instance = extract_instance_from_response(response)
        except ValueError:
            return "unknown"

        return instance.get("State", {}).get("Name") or "unknown"

    def stop_instance(self, instance_id: str, force: bool = False) -> None:
        """Request an instance stop without waiting for it to complete.

        Parameters
        ----------
        instance_id : str
            Instance ID to stop
        force : bool
            Force the stop without a graceful OS shutdown
        """
        logger.info("Stopping instance %s (force=%s)", instance_id, force)

        with handle_aws_errors():
            self.ec2_client.stop_instances(InstanceIds=[instance_id], Force=force)

    def start_instance(self, instance_id: str) -> None:
        """Request an instance start without waiting for it to complete."""
        logger.info("Starting instance %s", instance_id)

        with handle_aws_errors():
            self.ec2_client.start_instances(InstanceIds=[instance_id])

    def reboot_instance(self, instance_id: str) -> None:
        """Request an in-place OS reboot."""
        logger.info("Rebooting instance %s", instance_id)

        with handle_aws_errors():
            self.ec2_client.reboot_instances(InstanceIds=[instance_id])

    def force_reboot_instance(
        self,
        instance_id: str,
        timeout: float = STOP_WAIT_TIMEOUT_SECONDS,
        poll_interval: float = STOP_POLL_INTERVAL_SECONDS,
    ) -> None:
        """Force-stop an instance, wait until it is stopped, then start it.

        Parameters
        ----------
        instance_id : str
            Instance ID to power-cycle
        timeout : float
            Maximum seconds to wait for the stopped state
        poll_interval : float
            Seconds between state polls

        Raises
        ------
        WaitTimeoutError
            If the instance does not stop within the timeout
        """
        self.stop_instance(instance_id, force=True)
        self.wait_until_stopped(instance_id, timeout=timeout, poll_interval=poll_interval)
        self.start_instance(instance_id)

    def wait_until_stopped(
        self,
        instance_id: str,
        timeout: float = STOP_WAIT_TIMEOUT_SECONDS,
        poll_interval: float = STOP_POLL_INTERVAL_SECONDS,
    ) -> None:
        """Poll the instance state until it reports 'stopped'.

        Parameters
        ----------
        instance_id : str
            Instance ID to poll
        timeout : float
            Maximum seconds to wait
        poll_interval : float
            Seconds between polls

        Raises
        ------
        WaitTimeoutError
            If the instance is still not stopped when the timeout elapses
        """
        started = self._clock()

        while True:
            state = self.get_instance_state(instance_id)

            if state == "stopped":
                logger.info("Instance %s stopped", instance_id)
                return

            if self._clock() - started > timeout:
                logger.warning(
                    "Instance %s still %s after %ss", instance_id, state, timeout
                )
                raise WaitTimeoutError("Timeout waiting for instance to stop")

            logger.debug("Instance %s is %s, waiting", instance_id, state)
            self._sleep(poll_interval)

    def modify_instance_type(self, instance_id: str, new_type: str) -> None:
        """Change the instance type attribute of a stopped instance."""
        logger.info("Changing instance %s type to %s", instance_id, new_type)

        with handle_aws_errors():
            self.ec2_client.modify_instance_attribute(
                InstanceId=instance_id, InstanceType={"Value": new_type}
            )

    def modify_credit_specification(self, instance_id: str, credit_spec: str) -> None:
        """Set the CPU credit option of a burstable instance.

        Parameters
        ----------
        instance_id : str
            Instance ID to modify
        credit_spec : str
            "standard" or "unlimited"
        """
        logger.info("Setting instance %s CPU credits to %s", instance_id, credit_spec)

        with handle_aws_errors():
            self.ec2_client.modify_instance_credit_specification(
                InstanceCreditSpecifications=[
                    {"InstanceId": instance_id, "CpuCredits": credit_spec}
                ]
            )

    def list_instance_types(self) -> list[InstanceTypeSpec]:
        """Describe every instance type offered in the region.

        Returns
        -------
        list[InstanceTypeSpec]
            Instance types sorted by name
        """
        types = []

        with handle_aws_errors():
            paginator = self.ec2_client.get_paginator("describe_instance_types")

            for page in paginator.paginate():
                for entry in page.get("InstanceTypes", []):
                    if entry.get("InstanceType"):
                        types.append(instance_type_spec_from_api(entry))

        types.sort(key=lambda spec: spec.name)
        logger.debug("Loaded %d instance types for %s", len(types), self.region)
        return types

    def fetch_spot_prices(self, availability_zone: str) -> dict[str, float]:
        """Fetch current Linux spot prices for one availability zone.

        Parameters
        ----------
        availability_zone : str
            Availability zone to query (e.g., "us-east-1a")

        Returns
        -------
        dict[str, float]
            Hourly USD spot price keyed by instance type
        """
        prices: dict[str, float] = {}

        with handle_aws_errors():
            paginator = self.ec2_client.get_paginator("describe_spot_price_history")
            page_iterator = paginator.paginate(
                AvailabilityZone=availability_zone,
                ProductDescriptions=[SPOT_PRODUCT_DESCRIPTION],
                StartTime=datetime.now(UTC),
            )

            for page in page_iterator:
                for entry in page.get("SpotPriceHistory", []):
                    instance_type = entry.get("InstanceType")

                    try:
                        price = float(entry.get("SpotPrice", ""))
                    except ValueError:
                        continue

                    if instance_type:
                        prices[instance_type] = price

        logger.debug("Fetched %d spot prices for %s", len(prices), availability_zone)
        return prices
