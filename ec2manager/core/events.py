"""Events emitted by background workers and the channel that carries them."""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass, field
from typing import Union

from ec2manager.constants import EVENT_QUEUE_MAX_SIZE
from ec2manager.core.models import InstanceRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstancesFetched:
    """A refresh finished with a full instance list."""

    instances: list[InstanceRecord] = field(default_factory=list)


@dataclass(frozen=True)
class BulkOnDemandFetched:
    """A full on-demand price snapshot keyed by type name."""

    prices: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class BulkSpotFetched:
    """A full spot price snapshot keyed by type name."""

    prices: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class Message:
    """User-visible progress message."""

    text: str


@dataclass(frozen=True)
class Error:
    """User-visible error message."""

    text: str


@dataclass(frozen=True)
class InstancesUpdated:
    """Instances were changed remotely and the list should be refreshed."""


AppEvent = Union[
    InstancesFetched,
    BulkOnDemandFetched,
    BulkSpotFetched,
    Message,
    Error,
    InstancesUpdated,
]


class EventChannel:
    """Bounded FIFO between background workers and the UI loop.

    Parameters
    ----------
    maxsize : int
        Channel capacity; a send on a full channel blocks the sender

    Notes
    -----
    Ordering is preserved per sending thread only. Events from different
    workers interleave in whatever order they are sent.
    """

    def __init__(self, maxsize: int = EVENT_QUEUE_MAX_SIZE) -> None:
        self._queue: queue.Queue[AppEvent] = queue.Queue(maxsize=maxsize)

    def send(self, event: AppEvent) -> None:
        """Enqueue an event, blocking while the channel is full."""
        logger.debug("Sending event %s", type(event).__name__)
        self._queue.put(event)

    def try_receive(self) -> AppEvent | None:
        """Return the oldest pending event without blocking, or None."""
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None
