"""Tests for table rows, status text and dialogs."""

from datetime import UTC, datetime, timedelta

import pytest
from rich.text import Text

from ec2manager.core.models import InstanceRecord, InstanceTypeSpec, PriceRecord
from ec2manager.core.state import (
    ConfirmReboot,
    FilterInput,
    ListMode,
    Processing,
    SelectingType,
)
from ec2manager.tui.render import (
    INSTANCE_COLUMNS,
    TYPE_COLUMNS,
    format_discount,
    format_price,
    instance_row,
    instance_uptime,
    overlay_content,
    picker_input,
    refreshed_text,
    status_text,
    type_row,
    type_rows,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def test_instance_row_running() -> None:
    instance = InstanceRecord(
        instance_id="i-0001",
        instance_type="t3.micro",
        state="running",
        name="web",
        architecture="x86_64",
        availability_zone="us-east-1a",
        public_ip="1.2.3.4",
        launch_time=NOW - timedelta(hours=3, minutes=5),
    )

    row = instance_row(instance, NOW)

    assert len(row) == len(INSTANCE_COLUMNS)
    assert row[:2] == ("i-0001", "web")
    assert isinstance(row[2], Text)
    assert row[2].plain == "t3.micro"
    assert row[3].plain == "running"
    assert str(row[3].style) == "green"
    assert row[4:] == ("us-east-1a", "1.2.3.4", "x86_64", "3h 5m")


def test_instance_row_missing_values() -> None:
    instance = InstanceRecord(instance_id="i-0002", instance_type="m5.large", state="stopped")

    row = instance_row(instance, NOW)

    assert row[1] == "-"
    assert str(row[3].style) == "red"
    assert row[4:] == ("-", "-", "-", "-")


def test_uptime_only_for_running_instances() -> None:
    launched = NOW - timedelta(days=2, hours=1)
    running = InstanceRecord("i-1", "t3.micro", "running", launch_time=launched)
    stopping = InstanceRecord("i-2", "t3.micro", "stopping", launch_time=launched)

    assert instance_uptime(running, NOW) == "2d 1h"
    assert instance_uptime(stopping, NOW) == "-"


@pytest.mark.parametrize(
    "value,expected",
    [(None, "-"), (0.0104, "$0.0104"), (0.1, "$0.1000"), (1.23456, "$1.2346")],
)
def test_format_price(value, expected) -> None:
    assert format_price(value) == expected


@pytest.mark.parametrize(
    "on_demand,spot,expected",
    [
        (0.1, 0.03, "70%"),
        (0.0104, 0.0031, "70%"),
        (0.1, 0.1, "0%"),
        (None, 0.03, "-"),
        (0.1, None, "-"),
        (0.0, 0.03, "-"),
    ],
)
def test_format_discount(on_demand, spot, expected) -> None:
    assert format_discount(on_demand, spot) == expected


def test_type_row_with_spec_and_prices() -> None:
    spec = InstanceTypeSpec("t3.micro", frozenset({"x86_64"}), vcpus=2, memory_mib=1024)
    price = PriceRecord(on_demand=0.0104, spot=0.0031)

    row = type_row("t3.micro", spec, price)

    assert len(row) == len(TYPE_COLUMNS)
    assert row == ("t3.micro", "2", "1.0", "$0.0104", "$0.0031", "70%")


def test_type_row_unknown_type() -> None:
    assert type_row("x9.huge", None, None) == ("x9.huge", "-", "-", "-", "-", "-")


def test_type_rows_follow_option_order() -> None:
    state = SelectingType("t3", ("t3.small", "t3.micro"), 0, False)
    type_map = {"t3.micro": InstanceTypeSpec("t3.micro", vcpus=2, memory_mib=1024)}

    rows = type_rows(state, type_map, {"t3.small": PriceRecord(on_demand=0.0208)})

    assert [row[0] for row in rows] == ["t3.small", "t3.micro"]
    assert rows[0][3] == "$0.0208"
    assert rows[1][1] == "2"


def test_picker_input_style() -> None:
    default = picker_input(SelectingType("t3a.nano", (), None, True))
    typed = picker_input(SelectingType("t3", (), None, False))

    assert default.plain == "t3a.nano"
    assert "dim" in str(default.style)
    assert str(typed.style) == "yellow"


class TestStatusText:
    def test_list_mode_shows_filter_and_keys(self) -> None:
        text = status_text(ListMode(), "web")

        assert text.startswith("Filter: 'web' | q: Quit")
        assert "c: Change Type" in text
        assert "r: Reboot" in text

    def test_other_modes(self) -> None:
        assert "Esc: Cancel" in status_text(FilterInput(), "")
        assert "Enter: Confirm" in status_text(SelectingType("", ()), "")
        assert "f: Force" in status_text(ConfirmReboot("i-1"), "")
        assert status_text(Processing("Stopping i-1..."), "") == "Processing..."
        assert status_text(Processing("Error: boom"), "") == "Error Occurred | Enter/Esc: Dismiss"

    def test_unknown_state_raises(self) -> None:
        with pytest.raises(TypeError):
            status_text(object(), "")


def test_refreshed_text() -> None:
    assert refreshed_text(None) == ""
    assert refreshed_text("14:30:05") == "Last Refreshed: 14:30:05"


def test_overlay_content() -> None:
    assert overlay_content(ListMode()) is None
    assert overlay_content(SelectingType("", ())) is None
    assert overlay_content(ConfirmReboot("i-1")) == (
        "Confirm Reboot",
        "Are you sure you want to reboot i-1? (y/n)",
    )
    assert overlay_content(Processing("Starting i-1...")) == ("Processing", "Starting i-1...")
