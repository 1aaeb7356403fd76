"""Pure filtering and ordering rules for instances and type candidates."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence

from ec2manager.core.models import InstanceRecord, PriceRecord


def instance_matches(instance: InstanceRecord, query: str) -> bool:
    """Check whether an instance matches a lowercase query.

    Parameters
    ----------
    instance : InstanceRecord
        Instance to test
    query : str
        Already lowercased query text

    Returns
    -------
    bool
        True if the query is a substring of the id, name, type or state
    """
    fields = (instance.instance_id, instance.name or "", instance.instance_type, instance.state)
    return any(query in value.lower() for value in fields)


def filter_instances(
    instances: Iterable[InstanceRecord], query: str
) -> list[InstanceRecord]:
    """Filter instances case-insensitively and sort them by name.

    An empty query matches every instance. Instances without a name sort as
    if their name were the empty string.
    """
    needle = query.lower()
    visible = [i for i in instances if not needle or instance_matches(i, needle)]
    visible.sort(key=lambda i: i.name or "")
    return visible


def clamp_selection(selected: int | None, count: int) -> int | None:
    """Keep a selection index valid for a list of ``count`` rows."""
    if count == 0:
        return None

    if selected is None or selected >= count or selected < 0:
        return 0

    return selected


def apply_instance_filter(
    instances: Iterable[InstanceRecord], query: str, selected: int | None = None
) -> tuple[list[InstanceRecord], int | None]:
    """Derive the visible instance list and the adjusted selection.

    Parameters
    ----------
    instances : Iterable[InstanceRecord]
        Full instance list
    query : str
        Free-text filter
    selected : int | None
        Current selection index

    Returns
    -------
    tuple[list[InstanceRecord], int | None]
        Visible instances sorted by name, and the selection index
    """
    visible = filter_instances(instances, query)
    return visible, clamp_selection(selected, len(visible))


def on_demand_price(prices: Mapping[str, PriceRecord], type_name: str) -> float:
    record = prices.get(type_name)

    if record is None or record.on_demand is None:
        return math.inf

    return record.on_demand


def sort_by_price(
    type_names: Iterable[str], prices: Mapping[str, PriceRecord]
) -> list[str]:
    """Order type names by on-demand price, unknown prices last, then by name."""
    return sorted(type_names, key=lambda name: (on_demand_price(prices, name), name))


def apply_type_filter(
    candidates: Sequence[str], text: str, prices: Mapping[str, PriceRecord]
) -> tuple[list[str], int | None]:
    """Rank instance type candidates for the type picker.

    Parameters
    ----------
    candidates : Sequence[str]
        Type names compatible with the instance architecture
    text : str
        Typed filter text; matched as a case-sensitive substring
    prices : Mapping[str, PriceRecord]
        Known prices keyed by type name

    Returns
    -------
    tuple[list[str], int | None]
        Ranked options, and 0 when non-empty or None when empty
    """
    matching = [name for name in candidates if text in name]
    options = sort_by_price(matching, prices)
    return options, (0 if options else None)
