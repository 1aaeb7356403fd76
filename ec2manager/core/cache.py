"""In-memory entity cache owned by the state machine."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace

from ec2manager.constants import DEFAULT_ARCHITECTURE, FALLBACK_INSTANCE_TYPES
from ec2manager.core.models import InstanceRecord, InstanceTypeSpec, PriceRecord

logger = logging.getLogger(__name__)


class EntityCache:
    """Instances, instance type metadata and accumulated prices.

    Only the state machine writes to the cache; workers never see it.

    Parameters
    ----------
    instances : Iterable[InstanceRecord]
        Initial instance list
    instance_types : Iterable[InstanceTypeSpec]
        Instance type metadata, loaded once at startup

    Attributes
    ----------
    instances : list[InstanceRecord]
        Last full instance list, replaced on every refresh
    instance_types : list[InstanceTypeSpec]
        Instance type metadata
    type_map : dict[str, InstanceTypeSpec]
        Instance type metadata keyed by name
    prices : dict[str, PriceRecord]
        Known prices keyed by instance type name
    """

    def __init__(
        self,
        instances: Iterable[InstanceRecord] = (),
        instance_types: Iterable[InstanceTypeSpec] = (),
    ) -> None:
        self.instances: list[InstanceRecord] = list(instances)
        self.instance_types: list[InstanceTypeSpec] = list(instance_types)
        self.type_map: dict[str, InstanceTypeSpec] = {
            spec.name: spec for spec in self.instance_types
        }
        self.prices: dict[str, PriceRecord] = {}

    def replace_instances(self, instances: Iterable[InstanceRecord]) -> None:
        self.instances = list(instances)

    def merge_on_demand_prices(self, prices: Mapping[str, float]) -> None:
        """Set the on-demand field for every type in ``prices``.

        Spot prices already known for those types are left untouched.
        """
        for type_name, price in prices.items():
            record = self.prices.get(type_name, PriceRecord())
            self.prices[type_name] = replace(record, on_demand=price)

        logger.debug("Merged %d on-demand prices", len(prices))

    def merge_spot_prices(self, prices: Mapping[str, float]) -> None:
        """Set the spot field for every type in ``prices``."""
        for type_name, price in prices.items():
            record = self.prices.get(type_name, PriceRecord())
            self.prices[type_name] = replace(record, spot=price)

        logger.debug("Merged %d spot prices", len(prices))

    def has_on_demand_prices(self) -> bool:
        return any(record.on_demand is not None for record in self.prices.values())

    def types_for_architecture(self, architecture: str | None) -> list[str]:
        """Return instance type names that support an architecture.

        Parameters
        ----------
        architecture : str | None
            Architecture tag; x86_64 is assumed when None

        Returns
        -------
        list[str]
            Compatible type names in metadata order, or the fallback list when
            no metadata is loaded
        """
        if not self.instance_types:
            return list(FALLBACK_INSTANCE_TYPES)

        arch = architecture or DEFAULT_ARCHITECTURE
        return [spec.name for spec in self.instance_types if arch in spec.architectures]
