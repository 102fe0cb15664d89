"""
Cost estimation engine.
Prices one service configuration through its tiered formula or the catalog
median, and reconciles catalog-priced services against last month's bill.
"""
from decimal import Decimal
from typing import List, Optional
import logging

from cost_engine.core.config import config
from cost_engine.core.errors import NoPricingDataError
from cost_engine.domain.cost_models import (
    ActualCost,
    AttributeMap,
    CostEstimate,
    ServiceAttributes,
)
from cost_engine.domain.service_families import ServiceFamily, resolve_family, validate_request
from cost_engine.pricing.aws_pricing_client import (
    AWSPricingCatalog,
    create_boto_session,
    create_pricing_client,
    parse_products,
    product_attribute_names,
)
from cost_engine.pricing.cost_explorer_client import (
    CostExplorerUsageClient,
    create_cost_explorer_client,
)
from cost_engine.pricing.currency import to_display_currency
from cost_engine.pricing.filters import build_filters
from cost_engine.pricing.median_pricer import price_from_catalog
from cost_engine.pricing.tiered_rates import TIERED_CALCULATORS


logger = logging.getLogger(__name__)

# Attribute whose value scopes the actual-spend lookup
USAGE_DIMENSION_ATTRIBUTE = "instanceType"


class CostEstimationEngine:
    """Stateless estimator over injected catalog and usage clients."""

    def __init__(
        self,
        catalog: AWSPricingCatalog,
        usage: CostExplorerUsageClient,
        exchange_rate: Optional[Decimal] = None,
        display_currency: Optional[str] = None,
    ):
        """
        Args:
            catalog: Price List catalog client
            usage: Cost Explorer usage client
            exchange_rate: Source to display currency rate (defaults to config)
            display_currency: Currency code reported with estimates (defaults to config)
        """
        self.catalog = catalog
        self.usage = usage
        self.exchange_rate = config.EXCHANGE_RATE if exchange_rate is None else exchange_rate
        self.display_currency = display_currency or config.DISPLAY_CURRENCY

    async def estimate(self, service: str, attributes: AttributeMap) -> CostEstimate:
        """
        Estimate the monthly cost of one service configuration.

        Args:
            service: Service code (e.g. 'AmazonEC2', 'AWSLambda')
            attributes: Requested attributes, including 'regionCode'

        Returns:
            CostEstimate in the display currency

        Raises:
            ValidationError: If the service or a required attribute is missing
            NoPricingDataError: If the catalog has no matching products
            CatalogFetchError: If the catalog query fails
            UsageFetchError: If the actual-spend lookup fails
        """
        validate_request(service, attributes)
        attributes = dict(attributes)
        family = resolve_family(service)
        logger.info("Estimating %s (%s) with attributes %s", service, family.value, attributes)

        if family is ServiceFamily.GENERIC_CATALOG:
            monthly, actual = await self._estimate_from_catalog(service, attributes)
        else:
            monthly = self._estimate_tiered(family, attributes)
            # Actual spend is not reconciled for tiered families
            actual = 0

        return CostEstimate(
            service=service,
            attributes=attributes,
            monthly_estimate=monthly,
            actual_last_month=ActualCost(amount=actual, currency=self.display_currency),
            family=family.value,
            currency=self.display_currency,
        )

    def _estimate_tiered(self, family: ServiceFamily, attributes: AttributeMap) -> int:
        usd_cost = TIERED_CALCULATORS[family](attributes)
        return to_display_currency(usd_cost, self.exchange_rate)

    async def _estimate_from_catalog(self, service: str, attributes: AttributeMap):
        filters = build_filters(attributes)
        records = await self.catalog.get_products(service, filters)
        if not records:
            raise NoPricingDataError("No pricing information found")
        logger.info("Found %d price records for %s", len(records), service)
        monthly = price_from_catalog(records, exchange_rate=self.exchange_rate)

        actual_usd = await self.usage.actual_last_month(
            service, attributes.get(USAGE_DIMENSION_ATTRIBUTE)
        )
        if actual_usd < 0:
            # Credits and refunds can net a month below zero
            logger.warning("Negative actual cost %s for %s reported as 0", actual_usd, service)
            actual_usd = Decimal(0)
        return monthly, to_display_currency(actual_usd, self.exchange_rate)

    async def list_services(self) -> List[str]:
        """Every service code available in the pricing catalog."""
        return await self.catalog.list_service_codes()

    async def list_attribute_values(self, service: str, attribute: str) -> List[str]:
        """Every legal value of one attribute of one service."""
        return await self.catalog.list_attribute_values(service, attribute)

    async def list_service_attributes(self, service: str) -> ServiceAttributes:
        """
        Attribute names a service's products are described by.

        Fetches every product of the service and reads the attribute names of
        the first one.

        Raises:
            NoPricingDataError: If the service has no products
        """
        products = parse_products(await self.catalog.get_products(service))
        if not products:
            raise NoPricingDataError(f"No products found for {service}")
        names = product_attribute_names(products[0])
        logger.info("%s products expose %d attributes", service, len(names))
        return ServiceAttributes(
            service=service,
            attributes=list(names),
            total_products=len(products),
        )


def create_engine() -> CostEstimationEngine:
    """Build an engine wired to real AWS clients from one boto3 session."""
    session = create_boto_session()
    return CostEstimationEngine(
        catalog=AWSPricingCatalog(create_pricing_client(session)),
        usage=CostExplorerUsageClient(create_cost_explorer_client(session)),
    )
