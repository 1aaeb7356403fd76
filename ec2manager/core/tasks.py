"""Background workers that report to the UI loop through the event channel.

Workers receive the provider clients and the channel, nothing else. They never
touch application state and are never cancelled once spawned.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ec2manager.constants import (
    BURSTABLE_FAMILY_PREFIX,
    STOP_POLL_INTERVAL_SECONDS,
    STOP_WAIT_TIMEOUT_SECONDS,
)
from ec2manager.core.events import (
    BulkOnDemandFetched,
    BulkSpotFetched,
    Error,
    EventChannel,
    InstancesFetched,
    InstancesUpdated,
    Message,
)
from ec2manager.providers.exceptions import ProviderError

if TYPE_CHECKING:
    from ec2manager.providers.aws import EC2Manager, PricingService

logger = logging.getLogger(__name__)

Spawner = Callable[[str, Callable[[], None]], None]

REBOOT_NOTE = "Rebooted. (Note: AWS Runtime does not reset)"


def spawn_thread(name: str, target: Callable[[], None]) -> None:
    """Run ``target`` on a new daemon thread."""
    thread = threading.Thread(target=target, name=f"ec2manager-{name}", daemon=True)
    thread.start()


def is_burstable(instance_type: str) -> bool:
    return instance_type.startswith(BURSTABLE_FAMILY_PREFIX)


@dataclass(frozen=True)
class ResizeStep:
    """One step of the resize workflow.

    Attributes
    ----------
    label : str
        Step name used in the failure message ("<label> failed: ...")
    action : Callable[[], None]
        Remote call performed by the step
    progress : str | None
        Message emitted before the step runs
    abort_on_failure : bool
        Whether a failure ends the workflow
    """

    label: str
    action: Callable[[], None]
    progress: str | None = None
    abort_on_failure: bool = True


class TaskOrchestrator:
    """Launch fire-and-forget workers for every slow remote operation.

    Parameters
    ----------
    compute : EC2Manager
        EC2 client shared by all workers
    pricing : PricingService | None
        Price List client, or None when pricing is unavailable
    channel : EventChannel
        Channel every worker reports into
    spawn : Spawner | None
        Callable starting a named worker. If None, uses daemon threads
    wait_timeout : float
        Ceiling in seconds for waiting until an instance is stopped
    poll_interval : float
        Seconds between state polls while waiting

    Attributes
    ----------
    spawn : Spawner
        Worker launcher
    """

    def __init__(
        self,
        compute: EC2Manager,
        pricing: PricingService | None,
        channel: EventChannel,
        spawn: Spawner | None = None,
        wait_timeout: float = STOP_WAIT_TIMEOUT_SECONDS,
        poll_interval: float = STOP_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.compute = compute
        self.pricing = pricing
        self.channel = channel
        self.spawn = spawn or spawn_thread
        self.wait_timeout = wait_timeout
        self.poll_interval = poll_interval

    @property
    def pricing_available(self) -> bool:
        return self.pricing is not None and self.pricing.pricing_available

    def _launch(self, name: str, body: Callable[[], None]) -> None:
        def runner() -> None:
            try:
                body()
            except Exception as e:
                logger.exception("Background task failed", extra={"task": name})
                self.channel.send(Error(f"Unexpected error in {name}: {e}"))

        logger.debug("Launching background task", extra={"task": name})
        self.spawn(name, runner)

    def refresh_instances(self) -> None:
        self._launch("refresh", self._refresh_instances)

    def fetch_on_demand_prices(self) -> None:
        self._launch("on-demand-prices", self._fetch_on_demand_prices)

    def fetch_spot_prices(self, availability_zone: str) -> None:
        self._launch("spot-prices", lambda: self._fetch_spot_prices(availability_zone))

    def stop_instance(self, instance_id: str) -> None:
        self._launch(
            "stop",
            lambda: self._run_action(
                "Stop", lambda: self.compute.stop_instance(instance_id), "Stopped. Refreshing..."
            ),
        )

    def start_instance(self, instance_id: str) -> None:
        self._launch(
            "start",
            lambda: self._run_action(
                "Start", lambda: self.compute.start_instance(instance_id), "Started. Refreshing..."
            ),
        )

    def reboot_instance(self, instance_id: str) -> None:
        self._launch(
            "reboot",
            lambda: self._run_action(
                "Reboot", lambda: self.compute.reboot_instance(instance_id), REBOOT_NOTE
            ),
        )

    def force_reboot_instance(self, instance_id: str) -> None:
        self._launch(
            "force-reboot",
            lambda: self._run_action(
                "Forced Reboot",
                lambda: self.compute.force_reboot_instance(
                    instance_id, timeout=self.wait_timeout, poll_interval=self.poll_interval
                ),
                "Forced Reboot Complete.",
            ),
        )

    def resize_instance(self, instance_id: str, new_type: str, credit_spec: str) -> None:
        self._launch("resize", lambda: self.run_resize(instance_id, new_type, credit_spec))

    def _refresh_instances(self) -> None:
        try:
            instances = self.compute.list_instances()
        except ProviderError as e:
            logger.warning("Instance refresh failed: %s", e, extra={"task": "refresh"})
            self.channel.send(Error(str(e)))
            return

        self.channel.send(InstancesFetched(instances))

    def _fetch_on_demand_prices(self) -> None:
        if not self.pricing_available:
            return

        try:
            prices = self.pricing.fetch_on_demand_prices()
        except ProviderError as e:
            logger.warning("On-demand price fetch failed: %s", e, extra={"task": "on-demand-prices"})
            return

        self.channel.send(BulkOnDemandFetched(prices))

    def _fetch_spot_prices(self, availability_zone: str) -> None:
        try:
            prices = self.compute.fetch_spot_prices(availability_zone)
        except ProviderError as e:
            logger.warning("Spot price fetch failed: %s", e, extra={"task": "spot-prices"})
            return

        self.channel.send(BulkSpotFetched(prices))

    def _run_action(
        self, label: str, action: Callable[[], None], success_message: str
    ) -> None:
        try:
            action()
        except ProviderError as e:
            logger.warning("%s failed: %s", label, e)
            self.channel.send(Error(f"{label} failed: {e}"))
            return

        self.channel.send(Message(success_message))
        self.channel.send(InstancesUpdated())

    def resize_steps(
        self, instance_id: str, new_type: str, credit_spec: str
    ) -> list[ResizeStep]:
        """Build the ordered resize workflow for one instance.

        Parameters
        ----------
        instance_id : str
            Instance to resize
        new_type : str
            Target instance type
        credit_spec : str
            CPU credit specification applied when the target type is burstable

        Returns
        -------
        list[ResizeStep]
            Stop, wait, modify, optional credit spec, start
        """
        compute = self.compute
        steps = [
            ResizeStep("Stop", lambda: compute.stop_instance(instance_id)),
            ResizeStep(
                "Wait",
                lambda: compute.wait_until_stopped(
                    instance_id, timeout=self.wait_timeout, poll_interval=self.poll_interval
                ),
                progress="Waiting for stop...",
            ),
            ResizeStep(
                "Modify",
                lambda: compute.modify_instance_type(instance_id, new_type),
                progress=f"Changing to {new_type}...",
            ),
        ]

        if is_burstable(new_type):
            steps.append(
                ResizeStep(
                    "Credit spec",
                    lambda: compute.modify_credit_specification(instance_id, credit_spec),
                    progress="Setting credit spec...",
                    abort_on_failure=False,
                )
            )

        steps.append(
            ResizeStep(
                "Start", lambda: compute.start_instance(instance_id), progress="Starting..."
            )
        )
        return steps

    def run_resize(self, instance_id: str, new_type: str, credit_spec: str) -> None:
        """Execute the resize workflow on the calling thread.

        Aborts at the first failing step that is not marked as tolerated.
        Completed steps are not rolled back.
        """
        for step in self.resize_steps(instance_id, new_type, credit_spec):
            if step.progress:
                self.channel.send(Message(step.progress))

            try:
                step.action()
            except ProviderError as e:
                logger.warning(
                    "Resize of %s to %s: %s failed: %s",
                    instance_id,
                    new_type,
                    step.label,
                    e,
                    extra={"task": "resize"},
                )
                self.channel.send(Error(f"{step.label} failed: {e}"))

                if step.abort_on_failure:
                    return

        logger.info("Resized %s to %s", instance_id, new_type, extra={"task": "resize"})
        self.channel.send(Message("Done. Refreshing..."))
        self.channel.send(InstancesUpdated())
