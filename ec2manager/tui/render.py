"""Pure projections of dashboard state into table rows and status text."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime

from rich.text import Text

from ec2manager.core.models import InstanceRecord, InstanceTypeSpec, PriceRecord
from ec2manager.core.state import (
    ApplicationState,
    ConfirmReboot,
    FilterInput,
    ListMode,
    Processing,
    SelectingType,
)
from ec2manager.utils import format_uptime

INSTANCE_COLUMNS = (
    "Instance ID",
    "Name",
    "Type",
    "State",
    "AZ",
    "Public IP",
    "Arch",
    "Runtime",
)

TYPE_COLUMNS = ("Type", "CPUs", "Mem (GiB)", "OD Price", "Spot Price", "Discount")

STATE_STYLES = {"running": "green", "stopped": "red"}


def instance_uptime(instance: InstanceRecord, now: datetime | None = None) -> str:
    if instance.state.lower() != "running":
        return "-"

    return format_uptime(instance.launch_time, now or datetime.now(UTC))


def instance_row(instance: InstanceRecord, now: datetime | None = None) -> tuple:
    """Build the cells of one instance table row.

    Parameters
    ----------
    instance : InstanceRecord
        Instance to render
    now : datetime | None
        Reference time for the runtime column. If None, uses the current UTC time

    Returns
    -------
    tuple
        Cells in INSTANCE_COLUMNS order; missing values render as "-"
    """
    return (
        instance.instance_id,
        instance.name or "-",
        Text(instance.instance_type, style="cyan"),
        Text(instance.state, style=STATE_STYLES.get(instance.state, "")),
        instance.availability_zone or "-",
        instance.public_ip or "-",
        instance.architecture or "-",
        instance_uptime(instance, now),
    )


def format_price(value: float | None) -> str:
    return "-" if value is None else f"${value:.4f}"


def format_discount(on_demand: float | None, spot: float | None) -> str:
    """Format the spot discount against on-demand as a whole percent."""
    if on_demand is None or spot is None or on_demand <= 0:
        return "-"

    return f"{(1 - spot / on_demand) * 100:.0f}%"


def type_row(
    type_name: str, spec: InstanceTypeSpec | None, price: PriceRecord | None
) -> tuple[str, ...]:
    """Build the cells of one type picker row.

    Parameters
    ----------
    type_name : str
        Instance type name
    spec : InstanceTypeSpec | None
        Metadata for the type, if known
    price : PriceRecord | None
        Known prices for the type, if any

    Returns
    -------
    tuple[str, ...]
        Cells in TYPE_COLUMNS order
    """
    vcpus = "-"
    memory = "-"

    if spec is not None:
        if spec.vcpus is not None:
            vcpus = str(spec.vcpus)
        if spec.memory_mib is not None:
            memory = f"{spec.memory_mib / 1024:.1f}"

    on_demand = price.on_demand if price else None
    spot = price.spot if price else None

    return (
        type_name,
        vcpus,
        memory,
        format_price(on_demand),
        format_price(spot),
        format_discount(on_demand, spot),
    )


def type_rows(
    state: SelectingType,
    type_map: Mapping[str, InstanceTypeSpec],
    prices: Mapping[str, PriceRecord],
) -> list[tuple[str, ...]]:
    return [type_row(name, type_map.get(name), prices.get(name)) for name in state.options]


def picker_input(state: SelectingType) -> Text:
    """Render the picker input, dimmed while the configured default is untouched."""
    if state.default_mode_active:
        return Text(state.input, style="dim italic")

    return Text(state.input, style="yellow")


def status_text(state: ApplicationState, filter_text: str) -> str:
    """Key hints for the status bar in the current mode.

    Raises
    ------
    TypeError
        If the state is not one of the known modes
    """
    if isinstance(state, ListMode):
        return (
            f"Filter: '{filter_text}' | q: Quit | f: Filter | c: Change Type | "
            "s: Stop | S: Start | r: Reboot | ↑↓: Select"
        )
    if isinstance(state, FilterInput):
        return f"Filter: '{filter_text}' | Enter: Apply | Esc: Cancel"
    if isinstance(state, SelectingType):
        return "Enter: Confirm | Esc: Cancel | Type to filter"
    if isinstance(state, ConfirmReboot):
        return "y/Enter: Confirm Reboot | f: Force | n/Esc: Cancel"
    if isinstance(state, Processing):
        if state.is_error:
            return "Error Occurred | Enter/Esc: Dismiss"
        return "Processing..."

    raise TypeError(f"Unhandled application state: {state!r}")


def refreshed_text(last_refreshed: str | None) -> str:
    if last_refreshed is None:
        return ""

    return f"Last Refreshed: {last_refreshed}"


def overlay_content(state: ApplicationState) -> tuple[str, str] | None:
    """Title and body of the centred dialog for the current mode.

    Returns
    -------
    tuple[str, str] | None
        Dialog title and body, or None when no dialog is shown
    """
    if isinstance(state, ConfirmReboot):
        return (
            "Confirm Reboot",
            f"Are you sure you want to reboot {state.instance_id}? (y/n)",
        )
    if isinstance(state, Processing):
        return ("Processing", state.message)

    return None
