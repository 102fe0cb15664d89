"""
Tiered rate calculators for services billed by closed-form formulas.

Each calculator is a pure function over the request attributes and returns
the monthly cost in the source currency (USD). Conversion to the display
currency happens once on the returned total.
"""
import re
from decimal import Decimal
from typing import Callable, Dict

from cost_engine.core.errors import ValidationError
from cost_engine.domain.cost_models import AttributeMap
from cost_engine.domain.service_families import ServiceFamily, attribute_value


ONE_MILLION = Decimal(1_000_000)

# Compute-duration (AWS Lambda)
LAMBDA_GB_SECOND_RATE = Decimal("0.0000166667")
LAMBDA_PER_MILLION_REQUESTS_RATE = Decimal("0.20")

# Build/storage/transfer (AWS Amplify)
AMPLIFY_FREE_BUILD_MINUTES = 1000
AMPLIFY_FREE_STORAGE_GB = 5
AMPLIFY_FREE_TRANSFER_GB = 15
AMPLIFY_BUILD_MINUTE_RATE = Decimal("0.01")
AMPLIFY_STORAGE_GB_RATE = Decimal("0.023")
AMPLIFY_TRANSFER_GB_RATE = Decimal("0.15")

# Query/subscription/transfer (AWS AppSync)
APPSYNC_FREE_QUERIES = 250_000
APPSYNC_FREE_SUBSCRIPTION_MINUTES = 1_000_000
APPSYNC_FREE_TRANSFER_GB = 1
APPSYNC_QUERY_RATE = Decimal("4.00") / ONE_MILLION
APPSYNC_SUBSCRIPTION_MINUTE_RATE = Decimal("0.02") / ONE_MILLION
APPSYNC_TRANSFER_GB_RATE = Decimal("0.09")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_usage(attrs: AttributeMap, name: str) -> int:
    """
    Read a usage quantity from the attributes.

    Missing or blank values count as 0. Trailing units are ignored, so
    "128MB" reads as 128.

    Raises:
        ValidationError: If the value has no leading integer or is negative
    """
    raw = attribute_value(attrs, name)
    if not raw:
        return 0
    match = _LEADING_INT.match(raw)
    if match is None:
        raise ValidationError(f"Attribute '{name}' must be an integer (got: {raw!r})")
    value = int(match.group(1))
    if value < 0:
        raise ValidationError(f"Attribute '{name}' must not be negative (got: {value})")
    return value


def above_free_tier(usage: int, free_units: int) -> int:
    """Usage beyond the free allowance, never below zero."""
    return max(0, usage - free_units)


def calculate_compute_duration_cost(attrs: AttributeMap) -> Decimal:
    """
    Monthly cost for compute-duration billing (memory x duration + requests).

    The per-invocation compute and request cost is multiplied by the request
    count once more at the end. This matches the figures the estimator has
    always produced and is kept as is.
    """
    memory_mb = parse_usage(attrs, "memory")
    duration_ms = parse_usage(attrs, "duration")
    requests = parse_usage(attrs, "requests")

    gb_seconds = (Decimal(memory_mb) / 1024) * (Decimal(duration_ms) / 1000)
    compute_cost = gb_seconds * LAMBDA_GB_SECOND_RATE
    request_cost = (Decimal(requests) / ONE_MILLION) * LAMBDA_PER_MILLION_REQUESTS_RATE

    return (compute_cost + request_cost) * requests


def calculate_build_storage_transfer_cost(attrs: AttributeMap) -> Decimal:
    """Monthly cost for build minutes, hosted storage and data served."""
    build_minutes = parse_usage(attrs, "buildMinutes")
    storage_gb = parse_usage(attrs, "storage")
    transfer_gb = parse_usage(attrs, "dataTranfer")

    build_cost = above_free_tier(build_minutes, AMPLIFY_FREE_BUILD_MINUTES) * AMPLIFY_BUILD_MINUTE_RATE
    storage_cost = above_free_tier(storage_gb, AMPLIFY_FREE_STORAGE_GB) * AMPLIFY_STORAGE_GB_RATE
    transfer_cost = above_free_tier(transfer_gb, AMPLIFY_FREE_TRANSFER_GB) * AMPLIFY_TRANSFER_GB_RATE

    return build_cost + storage_cost + transfer_cost


def calculate_query_subscription_transfer_cost(attrs: AttributeMap) -> Decimal:
    """Monthly cost for queries, real-time subscription minutes and data transfer."""
    queries = parse_usage(attrs, "queries")
    subscription_minutes = parse_usage(attrs, "subscriptionMinutes")
    transfer_gb = parse_usage(attrs, "dataTransfer")

    query_cost = above_free_tier(queries, APPSYNC_FREE_QUERIES) * APPSYNC_QUERY_RATE
    subscription_cost = (
        above_free_tier(subscription_minutes, APPSYNC_FREE_SUBSCRIPTION_MINUTES)
        * APPSYNC_SUBSCRIPTION_MINUTE_RATE
    )
    transfer_cost = above_free_tier(transfer_gb, APPSYNC_FREE_TRANSFER_GB) * APPSYNC_TRANSFER_GB_RATE

    return query_cost + subscription_cost + transfer_cost


TIERED_CALCULATORS: Dict[ServiceFamily, Callable[[AttributeMap], Decimal]] = {
    ServiceFamily.COMPUTE_DURATION: calculate_compute_duration_cost,
    ServiceFamily.BUILD_STORAGE_TRANSFER: calculate_build_storage_transfer_cost,
    ServiceFamily.QUERY_SUBSCRIPTION_TRANSFER: calculate_query_subscription_transfer_cost,
}
