"""
Generic median pricer for catalog-priced services.

Reduces every matching Price List record to a monthly figure and returns the
median, so one oddly priced SKU does not skew the estimate.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Union
import json
import logging

from cost_engine.core.config import config
from cost_engine.core.errors import NoPricingDataError
from cost_engine.pricing.currency import to_display_currency


logger = logging.getLogger(__name__)

HOURLY_UNIT = "Hrs"

PriceRecord = Union[str, Dict[str, Any]]


def decode_price_record(record: PriceRecord) -> Dict[str, Any]:
    """Price List returns each product as a JSON string; accept dicts as well."""
    if isinstance(record, dict):
        return record
    try:
        decoded = json.loads(record)
    except (TypeError, ValueError):
        logger.warning("Skipping undecodable price record")
        return {}
    return decoded if isinstance(decoded, dict) else {}


def _parse_rate(raw: Any) -> Decimal:
    try:
        rate = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return Decimal(0)
    if rate.is_nan() or rate.is_infinite() or rate < 0:
        return Decimal(0)
    return rate


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def extract_hourly_rate(record: PriceRecord, currency: Optional[str] = None) -> Decimal:
    """
    Extract the on-demand hourly rate from one price record.

    Within each OnDemand term the first price dimension billed in "Hrs" is
    used. When several terms carry one, the last term scanned wins. A record
    with no hourly dimension, a malformed term, or an unparsable rate yields 0.
    """
    currency = currency or config.SOURCE_CURRENCY
    terms = _as_dict(decode_price_record(record).get("terms"))
    on_demand = _as_dict(terms.get("OnDemand"))

    hourly_rate = Decimal(0)
    for term in on_demand.values():
        for dimension in _as_dict(_as_dict(term).get("priceDimensions")).values():
            dimension = _as_dict(dimension)
            if dimension.get("unit") == HOURLY_UNIT:
                hourly_rate = _parse_rate(_as_dict(dimension.get("pricePerUnit")).get(currency))
                break
    return hourly_rate


def median_of(values: Iterable[int]) -> int:
    """
    Median of integer samples.

    For an even count the two central values are averaged and rounded half up.

    Raises:
        NoPricingDataError: If there are no samples
    """
    ordered = sorted(values)
    if not ordered:
        raise NoPricingDataError("No pricing information found")

    middle = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return ordered[middle]
    average = Decimal(ordered[middle - 1] + ordered[middle]) / 2
    return int(average.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def monthly_prices(
    records: List[PriceRecord],
    exchange_rate: Optional[Decimal] = None,
    hours_per_month: Optional[int] = None,
) -> List[int]:
    """Project each record's hourly rate to a rounded monthly display amount."""
    hours = config.HOURS_PER_MONTH if hours_per_month is None else hours_per_month
    return [
        to_display_currency(extract_hourly_rate(record) * hours, exchange_rate)
        for record in records
    ]


def price_from_catalog(
    records: List[PriceRecord],
    exchange_rate: Optional[Decimal] = None,
    hours_per_month: Optional[int] = None,
) -> int:
    """
    Reduce catalog price records to a single monthly estimate.

    Args:
        records: Price List records matching the requested attributes
        exchange_rate: Source to display currency rate (defaults to config)
        hours_per_month: Hours used to project hourly rates (defaults to 730)

    Returns:
        Median monthly price in the display currency

    Raises:
        NoPricingDataError: If no records were supplied
    """
    if not records:
        raise NoPricingDataError("No pricing information found")

    prices = monthly_prices(records, exchange_rate, hours_per_month)
    logger.debug("Monthly price samples: %s", prices)
    return median_of(prices)
