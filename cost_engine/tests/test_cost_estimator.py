"""
Tests for the cost estimation engine.
"""

from decimal import Decimal
import logging

import pytest
from unittest.mock import Mock

from cost_engine.core.errors import CatalogFetchError, NoPricingDataError, ValidationError
from cost_engine.domain.cost_models import FilterPredicate
from cost_engine.domain.service_families import ServiceFamily, resolve_family
from cost_engine.pricing.aws_pricing_client import AWSPricingCatalog
from cost_engine.services.cost_estimator import CostEstimationEngine


EC2_ATTRIBUTES = {"instanceType": "t3.micro", "regionCode": "us-east-1"}


def test_service_codes_resolve_to_families():
    assert resolve_family("AWSLambda") is ServiceFamily.COMPUTE_DURATION
    assert resolve_family("AWSAmplify") is ServiceFamily.BUILD_STORAGE_TRANSFER
    assert resolve_family("AWSAppSync") is ServiceFamily.QUERY_SUBSCRIPTION_TRANSFER
    assert resolve_family("AmazonEC2") is ServiceFamily.GENERIC_CATALOG
    assert resolve_family("AmazonRDS") is ServiceFamily.GENERIC_CATALOG


@pytest.mark.asyncio
async def test_tiered_family_skips_catalog_and_reports_zero_actual(engine, mock_catalog, mock_usage):
    attrs = {"queries": "1000000", "subscriptionMinutes": "0", "dataTransfer": "0", "regionCode": "us-east-1"}

    estimate = await engine.estimate("AWSAppSync", attrs)

    assert estimate.monthly_estimate == 450
    assert estimate.actual_last_month.amount == 0
    assert estimate.actual_last_month.currency == "JPY"
    assert estimate.family == "query_subscription_transfer"
    mock_catalog.get_products.assert_not_awaited()
    mock_usage.actual_last_month.assert_not_awaited()


@pytest.mark.asyncio
async def test_lambda_estimate(engine):
    attrs = {"memory": "128", "duration": "100", "requests": "0", "regionCode": "us-east-1"}

    estimate = await engine.estimate("AWSLambda", attrs)

    assert estimate.monthly_estimate == 0


@pytest.mark.asyncio
async def test_amplify_below_free_tier(engine):
    attrs = {"buildMinutes": "500", "storage": "2", "dataTranfer": "5", "regionCode": "us-east-1"}

    estimate = await engine.estimate("AWSAmplify", attrs)

    assert estimate.monthly_estimate == 0


@pytest.mark.asyncio
async def test_generic_service_uses_catalog_median_and_actual_spend(
    engine, mock_catalog, mock_usage, price_record
):
    mock_catalog.get_products.return_value = [
        price_record("0.0104"), price_record("0.0208"), price_record("0.0416"),
    ]
    mock_usage.actual_last_month.return_value = Decimal("7.59")

    estimate = await engine.estimate("AmazonEC2", EC2_ATTRIBUTES)

    assert estimate.monthly_estimate == 2278
    assert estimate.actual_last_month.amount == 1139  # 7.59 * 150 = 1138.5 -> 1139
    assert estimate.family == "generic_catalog"
    mock_catalog.get_products.assert_awaited_once_with("AmazonEC2", [
        FilterPredicate(field="instanceType", value="t3.micro"),
        FilterPredicate(field="regionCode", value="us-east-1"),
    ])
    mock_usage.actual_last_month.assert_awaited_once_with("AmazonEC2", "t3.micro")


@pytest.mark.asyncio
async def test_generic_service_without_matches_is_not_found(engine, mock_catalog, mock_usage):
    mock_catalog.get_products.return_value = []

    with pytest.raises(NoPricingDataError):
        await engine.estimate("AmazonEC2", EC2_ATTRIBUTES)

    mock_usage.actual_last_month.assert_not_awaited()


@pytest.mark.asyncio
async def test_catalog_failure_propagates(engine, mock_catalog):
    mock_catalog.get_products.side_effect = CatalogFetchError("boom")

    with pytest.raises(CatalogFetchError):
        await engine.estimate("AmazonEC2", EC2_ATTRIBUTES)


@pytest.mark.asyncio
async def test_negative_actual_spend_reported_as_zero(engine, mock_catalog, mock_usage, price_record, caplog):
    mock_catalog.get_products.return_value = [price_record("0.0116")]
    mock_usage.actual_last_month.return_value = Decimal("-3.20")

    with caplog.at_level(logging.WARNING, logger="cost_engine.services.cost_estimator"):
        estimate = await engine.estimate("AmazonEC2", EC2_ATTRIBUTES)

    assert estimate.actual_last_month.amount == 0
    assert "Negative actual cost" in caplog.text


@pytest.mark.asyncio
@pytest.mark.parametrize("service, attrs", [
    ("", {"regionCode": "us-east-1"}),
    ("   ", {"regionCode": "us-east-1"}),
    ("AWSLambda", {"memory": "128", "duration": "100", "requests": "10"}),
    ("AmazonRDS", {"regionCode": ""}),
    ("AmazonEC2", {"regionCode": "us-east-1"}),
    ("AWSLambda", {"memory": "128", "regionCode": "us-east-1"}),
])
async def test_invalid_requests_are_rejected_before_pricing(engine, mock_catalog, service, attrs):
    with pytest.raises(ValidationError):
        await engine.estimate(service, attrs)

    mock_catalog.get_products.assert_not_awaited()


@pytest.mark.asyncio
async def test_estimate_is_idempotent(engine, mock_catalog, mock_usage, price_record):
    mock_catalog.get_products.return_value = [price_record("0.0416"), price_record("0.0104")]
    mock_usage.actual_last_month.return_value = Decimal("1.00")

    first = await engine.estimate("AmazonEC2", EC2_ATTRIBUTES)
    second = await engine.estimate("AmazonEC2", EC2_ATTRIBUTES)

    assert first == second


@pytest.mark.asyncio
async def test_estimate_keeps_its_own_copy_of_attributes(engine):
    attrs = {"memory": "128", "duration": "100", "requests": "10", "regionCode": "us-east-1"}

    estimate = await engine.estimate("AWSLambda", attrs)
    attrs["regionCode"] = "eu-west-1"

    assert estimate.attributes["regionCode"] == "us-east-1"


@pytest.mark.asyncio
async def test_estimate_serializes_for_api(engine):
    attrs = {"buildMinutes": "1500", "storage": "10", "dataTranfer": "20", "regionCode": "us-east-1"}

    data = (await engine.estimate("AWSAmplify", attrs)).to_dict()

    assert data == {
        "service": "AWSAmplify",
        "attributes": attrs,
        "family": "build_storage_transfer",
        "currency": "JPY",
        "monthly_estimate": 880,
        "actual_last_month": {"amount": 0, "currency": "JPY"},
    }


@pytest.mark.asyncio
async def test_generic_estimate_through_real_catalog_client(mock_usage, price_record):
    """Pages from the boto3 client flow through pagination into the median."""
    pricing_client = Mock()
    pricing_client.get_products = Mock(side_effect=[
        {"PriceList": [price_record("0.0104")], "NextToken": "next"},
        {"PriceList": [price_record("0.0208"), price_record("0.0416")]},
    ])
    engine = CostEstimationEngine(
        catalog=AWSPricingCatalog(pricing_client),
        usage=mock_usage,
        exchange_rate=Decimal("150"),
        display_currency="JPY",
    )

    estimate = await engine.estimate("AmazonEC2", EC2_ATTRIBUTES)

    assert estimate.monthly_estimate == 2278
    assert pricing_client.get_products.call_count == 2


@pytest.mark.asyncio
async def test_list_services_and_attribute_values(engine, mock_catalog):
    mock_catalog.list_service_codes.return_value = ["AmazonEC2", "AWSLambda"]
    mock_catalog.list_attribute_values.return_value = ["t3.micro", "m5.large"]

    assert await engine.list_services() == ["AmazonEC2", "AWSLambda"]
    assert await engine.list_attribute_values("AmazonEC2", "instanceType") == ["t3.micro", "m5.large"]
    mock_catalog.list_attribute_values.assert_awaited_once_with("AmazonEC2", "instanceType")


@pytest.mark.asyncio
async def test_list_service_attributes_reads_first_product(engine, mock_catalog, price_record):
    mock_catalog.get_products.return_value = [
        price_record("0.01", attributes={"instanceType": "t3.micro", "vcpu": "2", "regionCode": "us-east-1"}),
        price_record("0.02"),
    ]

    described = await engine.list_service_attributes("AmazonEC2")

    assert described.attributes == ["instanceType", "vcpu", "regionCode"]
    assert described.total_products == 2
    mock_catalog.get_products.assert_awaited_once_with("AmazonEC2")


@pytest.mark.asyncio
async def test_list_service_attributes_without_products_is_not_found(engine, mock_catalog):
    mock_catalog.get_products.return_value = []

    with pytest.raises(NoPricingDataError):
        await engine.list_service_attributes("AmazonNothing")
