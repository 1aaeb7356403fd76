"""Application state machine: the only writer of dashboard state.

The InstanceManager consumes two inputs, key presses and worker events, and
turns both into state transitions. Anything that needs a remote result is
handed to the TaskOrchestrator and the transition completes immediately.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from ec2manager.constants import (
    DEFAULT_CREDIT_SPECIFICATION,
    DEFAULT_INSTANCE_TYPE,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    PAGE_STEP,
)
from ec2manager.core.cache import EntityCache
from ec2manager.core.events import (
    AppEvent,
    BulkOnDemandFetched,
    BulkSpotFetched,
    Error,
    EventChannel,
    InstancesFetched,
    InstancesUpdated,
    Message,
)
from ec2manager.core.filters import apply_instance_filter, apply_type_filter, sort_by_price
from ec2manager.core.models import InstanceRecord
from ec2manager.core.state import (
    ApplicationState,
    ConfirmReboot,
    FilterInput,
    ListMode,
    Processing,
    SelectingType,
)
from ec2manager.providers.exceptions import ProviderError

if TYPE_CHECKING:
    from ec2manager.core.config import ConfigLoader
    from ec2manager.core.tasks import TaskOrchestrator

logger = logging.getLogger(__name__)

NAVIGATION_KEYS = frozenset(("up", "down", "pageup", "pagedown"))


def is_character(key: str) -> bool:
    """Return True if ``key`` is a single printable character."""
    return len(key) == 1 and key.isprintable()


def choose_type(state: SelectingType) -> str | None:
    """Resolve which instance type Enter confirms in the type picker.

    A single remaining option always wins, then the highlighted option, then
    an option spelled exactly like the typed input.
    """
    if len(state.options) == 1:
        return state.options[0]

    if state.selected_index is not None and 0 <= state.selected_index < len(state.options):
        return state.options[state.selected_index]

    if state.input in state.options:
        return state.input

    return None


def move_index(index: int | None, delta: int, count: int) -> int | None:
    """Move a picker index by ``delta`` while staying inside ``[0, count - 1]``."""
    if index is None or count == 0:
        return index

    return max(0, min(index + delta, count - 1))


class InstanceManager:
    """Context object owning every piece of mutable dashboard state.

    Parameters
    ----------
    config : dict[str, Any]
        Loaded configuration (see ConfigLoader)
    cache : EntityCache
        Entity cache holding instances, type metadata and prices
    tasks : TaskOrchestrator
        Launcher for background workers
    channel : EventChannel
        Channel the workers report into
    config_loader : ConfigLoader | None
        Store used to persist the filter on exit
    clock : Callable[[], float] | None
        Monotonic clock for the refresh timer. If None, uses time.monotonic
    now : Callable[[], datetime] | None
        Wall clock for the "last refreshed" stamp. If None, uses datetime.now

    Attributes
    ----------
    state : ApplicationState
        Current UI mode
    filter : str
        Instance filter text
    visible : list[InstanceRecord]
        Filtered, name-sorted instances shown in the list
    selected : int | None
        Highlighted row in ``visible``
    should_quit : bool
        Set once the user asked to quit
    last_refreshed : str | None
        Local time of the last successful refresh (HH:MM:SS)
    """

    def __init__(
        self,
        config: dict[str, Any],
        cache: EntityCache,
        tasks: TaskOrchestrator,
        channel: EventChannel,
        config_loader: ConfigLoader | None = None,
        clock: Callable[[], float] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.cache = cache
        self.tasks = tasks
        self.channel = channel
        self.config_loader = config_loader
        self._clock = clock or time.monotonic
        self._now = now or datetime.now
        self.state: ApplicationState = ListMode()
        self.filter: str = config.get("filter") or ""
        self.visible: list[InstanceRecord] = []
        self.selected: int | None = 0
        self.should_quit = False
        self.last_refreshed: str | None = None
        self._last_tick = self._clock()
        self.update_filter()

    @property
    def refresh_interval(self) -> float:
        return self.config.get("refresh_interval_seconds") or DEFAULT_REFRESH_INTERVAL_SECONDS

    @property
    def default_instance_type(self) -> str:
        return self.config.get("default_instance_type") or DEFAULT_INSTANCE_TYPE

    @property
    def credit_spec(self) -> str:
        return self.config.get("t_family_credit") or DEFAULT_CREDIT_SPECIFICATION

    def bootstrap(self) -> None:
        """Load instance type metadata and the first instance list synchronously.

        Type metadata is optional: on failure the picker falls back to a
        built-in list. A failing instance listing is raised to the caller.

        Raises
        ------
        ProviderError
            If the initial instance listing fails
        """
        compute = self.tasks.compute

        try:
            instance_types = compute.list_instance_types()
        except ProviderError as e:
            logger.warning("Instance type metadata unavailable: %s", e)
            instance_types = []

        self.cache = EntityCache(compute.list_instances(), instance_types)
        self._stamp_refresh()
        self.update_filter()

    def selected_instance(self) -> InstanceRecord | None:
        if self.selected is None or not 0 <= self.selected < len(self.visible):
            return None

        return self.visible[self.selected]

    def update_filter(self) -> None:
        self.visible, self.selected = apply_instance_filter(
            self.cache.instances, self.filter, self.selected
        )

    def _stamp_refresh(self) -> None:
        self.last_refreshed = self._now().strftime("%H:%M:%S")

    def _candidate_types(self) -> list[str]:
        instance = self.selected_instance()
        architecture = instance.architecture if instance else None
        return self.cache.types_for_architecture(architecture)

    def _default_picker_state(self) -> SelectingType:
        return SelectingType(
            input=self.default_instance_type,
            options=tuple(sorted(self._candidate_types())),
            selected_index=None,
            default_mode_active=True,
        )

    def tick(self) -> bool:
        """Launch a periodic refresh when the refresh interval has elapsed.

        Returns
        -------
        bool
            True if a refresh was launched
        """
        now = self._clock()

        if now - self._last_tick < self.refresh_interval:
            return False

        self._last_tick = now
        self.tasks.refresh_instances()
        return True

    def process_next_event(self) -> bool:
        """Handle at most one pending worker event without blocking.

        Returns
        -------
        bool
            True if an event was handled
        """
        event = self.channel.try_receive()

        if event is None:
            return False

        self.handle_event(event)
        return True

    def run_iteration(self) -> bool:
        """One loop iteration minus drawing and input: timer, then one event.

        Returns
        -------
        bool
            True if state may have changed and a redraw is due
        """
        refreshed = self.tick()
        handled = self.process_next_event()
        return refreshed or handled

    def handle_event(self, event: AppEvent) -> None:
        """Apply one worker event to the application state.

        Parameters
        ----------
        event : AppEvent
            Event received from the channel

        Raises
        ------
        TypeError
            If the event is not one of the known event types
        """
        logger.debug("Handling event %s", type(event).__name__)

        if isinstance(event, InstancesFetched):
            self.cache.replace_instances(event.instances)
            self.update_filter()
            self._stamp_refresh()
        elif isinstance(event, BulkOnDemandFetched):
            self.cache.merge_on_demand_prices(event.prices)
            state = self.state

            if isinstance(state, SelectingType) and not state.default_mode_active:
                options = sort_by_price(state.options, self.cache.prices)
                self.state = SelectingType(
                    input=state.input,
                    options=tuple(options),
                    selected_index=0 if options else None,
                    default_mode_active=False,
                )
        elif isinstance(event, BulkSpotFetched):
            self.cache.merge_spot_prices(event.prices)
        elif isinstance(event, InstancesUpdated):
            self.tasks.refresh_instances()

            if isinstance(self.state, Processing):
                self.state = ListMode()
        elif isinstance(event, Error):
            self.state = Processing(f"Error: {event.text}")
        elif isinstance(event, Message):
            self.state = Processing(event.text)
        else:
            raise TypeError(f"Unhandled event: {event!r}")

    def handle_key(self, key: str) -> None:
        """Apply one key press to the application state.

        Parameters
        ----------
        key : str
            A single printable character, or a key name such as "up",
            "pagedown", "enter", "escape", "backspace" or "ctrl+c"

        Raises
        ------
        TypeError
            If the current state is not one of the known modes
        """
        if key == "ctrl+c":
            self.should_quit = True
            return

        state = self.state

        if isinstance(state, ListMode):
            self._handle_list_key(key)
        elif isinstance(state, FilterInput):
            self._handle_filter_key(key)
        elif isinstance(state, SelectingType):
            self._handle_selecting_type_key(state, key)
        elif isinstance(state, ConfirmReboot):
            self._handle_confirm_reboot_key(state, key)
        elif isinstance(state, Processing):
            if key in ("escape", "enter"):
                self.state = ListMode()
        else:
            raise TypeError(f"Unhandled application state: {state!r}")

    def _handle_list_key(self, key: str) -> None:
        count = len(self.visible)

        if key == "q":
            self.should_quit = True
        elif key in ("up", "down", "pageup", "pagedown", "home", "end"):
            if count:
                self.selected = self._moved_selection(key, count)
        elif key == "f":
            self.state = FilterInput()
        elif key == "c":
            self._open_type_picker()
        elif key == "s":
            self._stop_selected()
        elif key == "S":
            self._start_selected()
        elif key == "r":
            self._request_reboot()

    def _moved_selection(self, key: str, count: int) -> int:
        if key == "home":
            return 0
        if key == "end":
            return count - 1

        current = self.selected

        if current is None:
            return 0
        if key == "down":
            return 0 if current >= count - 1 else current + 1
        if key == "up":
            return count - 1 if current == 0 else current - 1
        if key == "pagedown":
            return min(current + PAGE_STEP, count - 1)
        return max(current - PAGE_STEP, 0)

    def _open_type_picker(self) -> None:
        instance = self.selected_instance()

        if instance is None:
            return

        if instance.availability_zone:
            if self.tasks.pricing_available and not self.cache.has_on_demand_prices():
                self.tasks.fetch_on_demand_prices()

            self.tasks.fetch_spot_prices(instance.availability_zone)

        self.state = self._default_picker_state()

    def _stop_selected(self) -> None:
        instance = self.selected_instance()

        if instance is None:
            return

        self.state = Processing(f"Stopping {instance.instance_id}...")
        self.tasks.stop_instance(instance.instance_id)

    def _start_selected(self) -> None:
        instance = self.selected_instance()

        if instance is None:
            return

        self.state = Processing(f"Starting {instance.instance_id}...")
        self.tasks.start_instance(instance.instance_id)

    def _request_reboot(self) -> None:
        instance = self.selected_instance()

        if instance is None:
            return

        if instance.state.lower() == "running":
            self.state = ConfirmReboot(instance.instance_id)
        else:
            self.state = Processing(
                f"Error: Cannot reboot instance {instance.instance_id} "
                f"because it is in state '{instance.state}'."
            )

    def _handle_filter_key(self, key: str) -> None:
        if key in ("escape", "enter"):
            self.state = ListMode()
        elif key == "backspace":
            self.filter = self.filter[:-1]
            self.update_filter()
        elif is_character(key):
            self.filter += key
            self.update_filter()

    def _handle_confirm_reboot_key(self, state: ConfirmReboot, key: str) -> None:
        instance_id = state.instance_id

        if key in ("y", "enter"):
            self.state = Processing(f"Rebooting {instance_id}...")
            self.tasks.reboot_instance(instance_id)
        elif key == "f":
            self.state = Processing(f"Forced Rebooting {instance_id}...")
            self.tasks.force_reboot_instance(instance_id)
        elif key in ("n", "escape"):
            self.state = ListMode()

    def _handle_selecting_type_key(self, state: SelectingType, key: str) -> None:
        count = len(state.options)

        if key == "escape":
            self.state = ListMode()
        elif key == "enter":
            self._confirm_type(state)
        elif key in NAVIGATION_KEYS:
            if state.default_mode_active:
                self.state = SelectingType(
                    input="", options=state.options, selected_index=0, default_mode_active=False
                )
                return

            step = PAGE_STEP if key in ("pageup", "pagedown") else 1
            delta = -step if key in ("up", "pageup") else step
            self.state = SelectingType(
                input=state.input,
                options=state.options,
                selected_index=move_index(state.selected_index, delta, count),
                default_mode_active=False,
            )
        elif key in ("home", "end"):
            index = None
            if count:
                index = 0 if key == "home" else count - 1

            self.state = SelectingType(
                input="" if state.default_mode_active else state.input,
                options=state.options,
                selected_index=index,
                default_mode_active=False,
            )
        elif key == "backspace":
            if state.default_mode_active:
                return

            text = state.input[:-1]

            if not text:
                self.state = self._default_picker_state()
                return

            self._filter_types(text)
        elif is_character(key):
            text = key if state.default_mode_active else state.input + key
            self._filter_types(text)

    def _filter_types(self, text: str) -> None:
        options, index = apply_type_filter(self._candidate_types(), text, self.cache.prices)
        self.state = SelectingType(
            input=text,
            options=tuple(options),
            selected_index=index,
            default_mode_active=False,
        )

    def _confirm_type(self, state: SelectingType) -> None:
        new_type = choose_type(state)
        instance = self.selected_instance()

        if new_type is None or instance is None:
            return

        if new_type == instance.instance_type:
            self.state = ListMode()
            return

        logger.info(
            "Resizing %s from %s to %s",
            instance.instance_id,
            instance.instance_type,
            new_type,
        )
        self.state = Processing(f"Stopping {instance.instance_id}...")
        self.tasks.resize_instance(instance.instance_id, new_type, self.credit_spec)

    def save_config(self) -> None:
        """Persist the current filter text into the config file."""
        self.config["filter"] = self.filter

        if self.config_loader is not None:
            self.config_loader.save_config(self.config)
