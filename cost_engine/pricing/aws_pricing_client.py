"""
AWS Pricing API client.
Uses boto3 to page through the official AWS Price List API.
"""
from functools import partial
from typing import Any, Dict, List, Optional, Sequence, Tuple
import asyncio
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from cost_engine.core.config import config
from cost_engine.core.errors import CatalogFetchError
from cost_engine.domain.cost_models import FilterPredicate
from cost_engine.pricing.median_pricer import decode_price_record
from cost_engine.pricing.pagination import fetch_all, Page
from cost_engine.resilience.circuit_breaker import CircuitBreaker, get_circuit_breaker


logger = logging.getLogger(__name__)


def create_boto_config() -> Config:
    """Shared botocore settings for the pricing and cost explorer clients."""
    return Config(
        connect_timeout=config.AWS_CONNECT_TIMEOUT,
        read_timeout=config.AWS_READ_TIMEOUT,
        retries={'max_attempts': 0}  # No retries, circuit breaker handles failures
    )


def create_boto_session() -> boto3.session.Session:
    """boto3 session using the configured named profile, if any."""
    if config.AWS_PROFILE:
        return boto3.session.Session(profile_name=config.AWS_PROFILE)
    return boto3.session.Session()


def create_pricing_client(session: Optional[boto3.session.Session] = None) -> Any:
    """Create a boto3 'pricing' client. The Price List API lives in us-east-1."""
    session = session or create_boto_session()
    return session.client(
        'pricing',
        region_name=config.AWS_PRICING_REGION,
        config=create_boto_config()
    )


class AWSPricingCatalog:
    """Paginated access to the AWS Price List catalog."""

    def __init__(self, pricing_client: Any, circuit_breaker: Optional[CircuitBreaker] = None):
        """
        Args:
            pricing_client: boto3 'pricing' client (owned by the caller)
            circuit_breaker: Breaker guarding catalog calls (shared "aws_pricing" by default)
        """
        self.pricing_client = pricing_client
        self.circuit_breaker = circuit_breaker or get_circuit_breaker("aws_pricing")

    async def _call(self, operation: str, **kwargs: Any) -> Dict[str, Any]:
        """Run one blocking Price List call off the event loop."""
        if not self.circuit_breaker.allow_request():
            raise CatalogFetchError(
                "AWS pricing service temporarily unavailable (circuit breaker open)"
            )
        try:
            response = await asyncio.to_thread(getattr(self.pricing_client, operation), **kwargs)
        except ClientError as error:
            self.circuit_breaker.record_failure()
            logger.error(f"AWS pricing API error in {operation}: {error}")
            raise CatalogFetchError(f"Failed to query AWS pricing: {error}") from error
        except BotoCoreError as error:
            self.circuit_breaker.record_failure()
            logger.error(f"AWS pricing transport error in {operation}: {error}")
            raise CatalogFetchError(f"Failed to reach AWS pricing: {error}") from error
        except BaseException:
            # Cancelled or unexpected: neither success nor a remote failure
            self.circuit_breaker.release_trial()
            raise

        self.circuit_breaker.record_success()
        return response

    @staticmethod
    def _with_cursor(kwargs: Dict[str, Any], cursor: Optional[str]) -> Dict[str, Any]:
        if cursor:
            kwargs['NextToken'] = cursor
        return kwargs

    async def services_page(self, cursor: Optional[str] = None) -> Page:
        """One page of service codes."""
        response = await self._call('describe_services', **self._with_cursor({}, cursor))
        codes = [
            service['ServiceCode']
            for service in response.get('Services', [])
            if service.get('ServiceCode')
        ]
        return codes, response.get('NextToken')

    async def attribute_values_page(
        self,
        service_code: str,
        attribute_name: str,
        cursor: Optional[str] = None
    ) -> Page:
        """One page of legal values for a service attribute."""
        response = await self._call(
            'get_attribute_values',
            **self._with_cursor(
                {'ServiceCode': service_code, 'AttributeName': attribute_name},
                cursor
            )
        )
        values = [value.get('Value') or '' for value in response.get('AttributeValues', [])]
        return values, response.get('NextToken')

    async def products_page(
        self,
        service_code: str,
        filters: Sequence[FilterPredicate] = (),
        cursor: Optional[str] = None
    ) -> Page:
        """One page of raw price records (JSON strings) matching the filters."""
        kwargs: Dict[str, Any] = {
            'ServiceCode': service_code,
            'FormatVersion': 'aws_v1',
            'MaxResults': config.PRODUCTS_PAGE_SIZE,
        }
        if filters:
            kwargs['Filters'] = [predicate.to_dict() for predicate in filters]
        response = await self._call('get_products', **self._with_cursor(kwargs, cursor))
        return response.get('PriceList', []), response.get('NextToken')

    async def list_service_codes(self) -> List[str]:
        """Every service code in the catalog."""
        return await fetch_all(self.services_page)

    async def list_attribute_values(self, service_code: str, attribute_name: str) -> List[str]:
        """Every legal value of one attribute of one service."""
        return await fetch_all(partial(self.attribute_values_page, service_code, attribute_name))

    async def get_products(
        self,
        service_code: str,
        filters: Sequence[FilterPredicate] = ()
    ) -> List[str]:
        """Every price record matching the filters."""
        return await fetch_all(partial(self.products_page, service_code, tuple(filters)))


def parse_products(price_list: List[Any]) -> List[Dict[str, Any]]:
    """Decode Price List JSON strings, skipping anything that is not an object."""
    return [product for product in map(decode_price_record, price_list) if product]


def product_attribute_names(product: Dict[str, Any]) -> Tuple[str, ...]:
    """Attribute names of one decoded product."""
    return tuple((product.get('product') or {}).get('attributes', {}).keys())
