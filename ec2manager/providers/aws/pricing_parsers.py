"""AWS Pricing API response parsers.

This module extracts instance types and hourly on-demand rates from the
nested JSON documents returned by the AWS Price List API.
"""

import json
from typing import Any, Optional


def _load_price_item(price_item_json: str) -> Optional[dict[str, Any]]:
    try:
        data = json.loads(price_item_json)
    except (json.JSONDecodeError, TypeError):
        return None

    return data if isinstance(data, dict) else None


def parse_instance_type(price_item_json: str) -> Optional[str]:
    """Extract the instance type name from a Price List entry.

    Parameters
    ----------
    price_item_json : str
        JSON string from AWS Price List API response

    Returns
    -------
    str or None
        Value of product.attributes.instanceType, or None if absent
    """
    data = _load_price_item(price_item_json)

    if data is None:
        return None

    instance_type = data.get("product", {}).get("attributes", {}).get("instanceType")
    return instance_type if isinstance(instance_type, str) and instance_type else None


def parse_ec2_pricing(price_item_json: str) -> Optional[float]:
    """Extract hourly on-demand rate from AWS EC2 pricing response.

    Parameters
    ----------
    price_item_json : str
        JSON string from AWS Price List API response containing EC2 pricing data

    Returns
    -------
    float or None
        Hourly USD rate for the EC2 instance, or None if parsing fails

    Notes
    -----
    AWS Pricing API returns complex nested JSON with this structure:
    terms → OnDemand → {offer_code} → priceDimensions → {dimension} → pricePerUnit → USD
    Only the first offer and first dimension are considered.
    """
    data = _load_price_item(price_item_json)

    if data is None:
        return None

    try:
        on_demand = data.get("terms", {}).get("OnDemand", {})

        if not on_demand:
            return None

        offer_terms = next(iter(on_demand.values()))
        price_dimensions = offer_terms.get("priceDimensions", {})

        if not price_dimensions:
            return None

        dimension = next(iter(price_dimensions.values()))
        usd_price = dimension.get("pricePerUnit", {}).get("USD")

        if usd_price is None:
            return None

        return float(usd_price)
    except (AttributeError, KeyError, ValueError, StopIteration):
        return None


def parse_price_list(price_list: list[str]) -> dict[str, float]:
    """Collect instance type → hourly rate pairs from a Price List page.

    Entries lacking either the instance type or a parseable price are skipped.

    Parameters
    ----------
    price_list : list[str]
        PriceList array from a get_products response

    Returns
    -------
    dict[str, float]
        Hourly USD rate keyed by instance type
    """
    prices = {}

    for item in price_list:
        instance_type = parse_instance_type(item)
        rate = parse_ec2_pricing(item)

        if instance_type is not None and rate is not None:
            prices[instance_type] = rate

    return prices
