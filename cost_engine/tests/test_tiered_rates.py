"""
Tests for tiered rate calculators.
"""

from decimal import Decimal

import pytest

from cost_engine.core.errors import ValidationError
from cost_engine.pricing.currency import to_display_currency
from cost_engine.pricing.tiered_rates import (
    TIERED_CALCULATORS,
    calculate_build_storage_transfer_cost,
    calculate_compute_duration_cost,
    calculate_query_subscription_transfer_cost,
    parse_usage,
)


def test_zero_requests_costs_nothing():
    """Zero requests annihilates both the compute and the request term."""
    cost = calculate_compute_duration_cost({"memory": "128", "duration": "100", "requests": "0"})

    assert cost == 0


def test_compute_duration_multiplies_by_requests_again():
    """(compute + request cost) is multiplied by the request count a second time."""
    attrs = {"memory": "1024", "duration": "1000", "requests": "1000000", "regionCode": "us-east-1"}

    cost = calculate_compute_duration_cost(attrs)

    # (1 GB-s * 0.0000166667 + 1M/1M * 0.20) * 1,000,000
    assert cost == Decimal("200016.6667")
    assert to_display_currency(cost, 150) == 30002500


def test_compute_duration_small_workload():
    attrs = {"memory": "128", "duration": "100", "requests": "1000"}

    # (0.0125 GB-s * 0.0000166667 + 0.001 * 0.20) * 1000 = 0.20020833375 USD
    assert to_display_currency(calculate_compute_duration_cost(attrs), 150) == 30


def test_build_storage_transfer_below_free_tier_is_free():
    attrs = {"buildMinutes": "500", "storage": "2", "dataTranfer": "5", "regionCode": "us-east-1"}

    assert calculate_build_storage_transfer_cost(attrs) == 0


def test_build_storage_transfer_above_free_tier():
    """Only usage above 1000 min / 5 GB / 15 GB is billed."""
    attrs = {"buildMinutes": "1500", "storage": "10", "dataTranfer": "20"}

    cost = calculate_build_storage_transfer_cost(attrs)

    # 500 * 0.01 + 5 * 0.023 + 5 * 0.15
    assert cost == Decimal("5.865")
    assert to_display_currency(cost, 150) == 880


def test_build_storage_transfer_accepts_data_transfer_spelling():
    """Both transfer attribute spellings are read."""
    typo = calculate_build_storage_transfer_cost({"dataTranfer": "115"})
    fixed = calculate_build_storage_transfer_cost({"dataTransfer": "115"})

    assert typo == fixed == Decimal("15.00")


def test_query_subscription_transfer_queries_only():
    attrs = {"queries": "1000000", "subscriptionMinutes": "0", "dataTransfer": "0"}

    cost = calculate_query_subscription_transfer_cost(attrs)

    assert cost == (1_000_000 - 250_000) * Decimal("4.00") / 1_000_000
    assert to_display_currency(cost, 150) == 450


def test_query_subscription_transfer_all_terms():
    attrs = {"queries": "250000", "subscriptionMinutes": "3000000", "dataTransfer": "11"}

    cost = calculate_query_subscription_transfer_cost(attrs)

    # 0 queries billed + 2M minutes * 0.02/M + 10 GB * 0.09
    assert cost == Decimal("0.94")


@pytest.mark.parametrize("family", list(TIERED_CALCULATORS))
@pytest.mark.parametrize("usage", ["0", "1", "999", "1000", "250000", "10000000"])
def test_calculators_never_return_negative(family, usage):
    attrs = {
        "memory": usage, "duration": usage, "requests": usage,
        "buildMinutes": usage, "storage": usage, "dataTranfer": usage,
        "queries": usage, "subscriptionMinutes": usage, "dataTransfer": usage,
        "regionCode": "us-east-1",
    }

    assert TIERED_CALCULATORS[family](attrs) >= 0


def test_missing_usage_defaults_to_zero():
    assert calculate_query_subscription_transfer_cost({"regionCode": "us-east-1"}) == 0
    assert parse_usage({"storage": ""}, "storage") == 0


def test_usage_with_unit_suffix_reads_leading_integer():
    assert parse_usage({"memory": "128MB"}, "memory") == 128
    assert parse_usage({"memory": " 256 "}, "memory") == 256


def test_non_numeric_usage_is_rejected():
    with pytest.raises(ValidationError):
        calculate_compute_duration_cost({"memory": "lots", "requests": "10"})


def test_negative_usage_is_rejected():
    with pytest.raises(ValidationError):
        calculate_build_storage_transfer_cost({"storage": "-10"})
