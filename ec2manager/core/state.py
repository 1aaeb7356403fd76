"""UI modes of the dashboard.

Exactly one of these objects is the current state of an InstanceManager.
They are immutable: every transition builds a new object instead of
patching fields of the old one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class ListMode:
    """Default browsing mode."""


@dataclass(frozen=True)
class FilterInput:
    """The free-text instance filter is being edited."""


@dataclass(frozen=True)
class SelectingType:
    """Modal instance type picker.

    Attributes
    ----------
    input : str
        Text shown in the picker input
    options : tuple[str, ...]
        Currently visible type names
    selected_index : int | None
        Highlighted offset into options
    default_mode_active : bool
        True while the picker still shows the untouched configured default
    """

    input: str
    options: tuple[str, ...]
    selected_index: int | None = None
    default_mode_active: bool = False


@dataclass(frozen=True)
class ConfirmReboot:
    """Yes/force/no gate before rebooting ``instance_id``."""

    instance_id: str


@dataclass(frozen=True)
class Processing:
    """Status or error message shown until dismissed."""

    message: str

    @property
    def is_error(self) -> bool:
        return self.message.startswith("Error")


ApplicationState = Union[ListMode, FilterInput, SelectingType, ConfirmReboot, Processing]
