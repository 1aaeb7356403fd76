"""AWS Price List client for bulk EC2 on-demand rates.

This module retrieves every Linux on-demand rate of a region in one paginated
sweep, with in-memory caching to avoid repeating the sweep.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any, Optional

import boto3

from ec2manager.providers.aws.errors import handle_aws_errors
from ec2manager.providers.aws.pricing_parsers import parse_price_list

logger = logging.getLogger(__name__)

PRICING_API_REGION = "us-east-1"
"""Region hosting the Price List API endpoint used for all regions."""

PRICE_LIST_PAGE_SIZE = 100


class PricingCache:
    """In-memory cache for price maps with time-based expiration.

    Parameters
    ----------
    ttl_hours : int, default=24
        Time-to-live for cached entries in hours

    Notes
    -----
    Cache is not persisted to disk. Access is lock-protected because
    several price workers may run at the same time.
    """

    def __init__(self, ttl_hours: int = 24) -> None:
        self._cache: dict[str, tuple[dict[str, float], datetime]] = {}
        self._ttl = timedelta(hours=ttl_hours)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[dict[str, float]]:
        """Return a copy of the cached price map if present and fresh.

        Parameters
        ----------
        key : str
            Cache key

        Returns
        -------
        dict[str, float] or None
            Cached prices, or None when missing or expired
        """
        with self._lock:
            if key in self._cache:
                prices, timestamp = self._cache[key]

                if datetime.now() - timestamp < self._ttl:
                    return dict(prices)

                del self._cache[key]

            return None

    def set(self, key: str, prices: dict[str, float]) -> None:
        """Store a price map with the current timestamp."""
        with self._lock:
            self._cache[key] = (dict(prices), datetime.now())


class PricingService:
    """AWS Price List client scoped to one region.

    Parameters
    ----------
    region : str
        Region whose on-demand rates are fetched
    boto3_client_factory : Callable[..., Any] | None
        Optional factory for creating boto3 clients. If None, uses boto3.client
    use_cache : bool, default=True
        Enable in-memory caching with 24-hour TTL

    Attributes
    ----------
    pricing_available : bool
        True if the Price List client could be created

    Notes
    -----
    The Price List API endpoint lives in us-east-1 regardless of the priced
    region; the region itself is selected with the regionCode filter.
    """

    FILTERS = (
        ("tenancy", "Shared"),
        ("operatingSystem", "Linux"),
        ("preInstalledSw", "NA"),
        ("capacitystatus", "Used"),
    )

    def __init__(
        self,
        region: str,
        boto3_client_factory: Callable[..., Any] | None = None,
        use_cache: bool = True,
    ) -> None:
        self.region = region
        self.cache = PricingCache() if use_cache else None
        self.pricing_available = False
        client_factory = boto3_client_factory or boto3.client

        try:
            self.pricing_client = client_factory("pricing", region_name=PRICING_API_REGION)
            self.pricing_available = True
            logger.debug("AWS Pricing API initialized for %s", region)
        except Exception as e:
            logger.warning("Failed to initialize AWS Pricing API: %s", e)
            self.pricing_client = None

    def _build_filters(self) -> list[dict[str, str]]:
        filters = [{"Type": "TERM_MATCH", "Field": "regionCode", "Value": self.region}]
        filters.extend(
            {"Type": "TERM_MATCH", "Field": field, "Value": value}
            for field, value in self.FILTERS
        )
        return filters

    def fetch_on_demand_prices(self) -> dict[str, float]:
        """Fetch hourly Linux on-demand rates for every instance type.

        Returns
        -------
        dict[str, float]
            Hourly USD rate keyed by instance type; empty when the Price List
            API is unavailable

        Raises
        ------
        ProviderError
            If a get_products call fails
        """
        if not self.pricing_available or self.pricing_client is None:
            return {}

        cache_key = f"ec2_on_demand_{self.region}"

        if self.cache:
            cached = self.cache.get(cache_key)

            if cached is not None:
                return cached

        prices: dict[str, float] = {}
        request: dict[str, Any] = {
            "ServiceCode": "AmazonEC2",
            "Filters": self._build_filters(),
            "MaxResults": PRICE_LIST_PAGE_SIZE,
        }

        with handle_aws_errors():
            while True:
                response = self.pricing_client.get_products(**request)
                prices.update(parse_price_list(response.get("PriceList", [])))

                next_token = response.get("NextToken")

                if not next_token:
                    break

                request["NextToken"] = next_token

        logger.info("Fetched %d on-demand prices for %s", len(prices), self.region)

        if self.cache and prices:
            self.cache.set(cache_key, prices)

        return prices
