"""
AWS Cost Explorer client.
Looks up what a service actually cost over the previous calendar month.
"""
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple
import asyncio
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from cost_engine.core.config import config
from cost_engine.core.errors import UsageFetchError
from cost_engine.pricing.aws_pricing_client import create_boto_config, create_boto_session
from cost_engine.resilience.circuit_breaker import CircuitBreaker, get_circuit_breaker


logger = logging.getLogger(__name__)

COST_METRIC = "UnblendedCost"
SECONDARY_DIMENSION = "INSTANCE_TYPE"


def create_cost_explorer_client(session: Optional[boto3.session.Session] = None) -> Any:
    """Create a boto3 'ce' client."""
    session = session or create_boto_session()
    return session.client(
        'ce',
        region_name=config.COST_EXPLORER_REGION,
        config=create_boto_config()
    )


def previous_month_period(today: Optional[date] = None) -> Tuple[date, date]:
    """
    Closed calendar month before `today`.

    Returns:
        (first day of last month, first day of this month). Cost Explorer
        treats End as exclusive, so the range covers every day of last month.
    """
    today = today or date.today()
    end = today.replace(day=1)
    start = (end - timedelta(days=1)).replace(day=1)
    return start, end


def build_usage_filter(service: str, dimension_value: Optional[str]) -> Dict[str, Any]:
    """Cost Explorer filter on SERVICE and, when given, INSTANCE_TYPE."""
    service_filter = {'Dimensions': {'Key': 'SERVICE', 'Values': [service]}}
    if not dimension_value:
        return service_filter
    return {
        'And': [
            service_filter,
            {'Dimensions': {'Key': SECONDARY_DIMENSION, 'Values': [dimension_value]}},
        ]
    }


class CostExplorerUsageClient:
    """Actual-spend lookups against Cost Explorer."""

    def __init__(self, ce_client: Any, circuit_breaker: Optional[CircuitBreaker] = None):
        """
        Args:
            ce_client: boto3 'ce' client (owned by the caller)
            circuit_breaker: Breaker guarding usage calls (shared "cost_explorer" by default)
        """
        self.ce_client = ce_client
        self.circuit_breaker = circuit_breaker or get_circuit_breaker("cost_explorer")

    async def actual_last_month(
        self,
        service: str,
        dimension_value: Optional[str] = None,
        today: Optional[date] = None
    ) -> Decimal:
        """
        Billed cost for `service` over the previous calendar month.

        Args:
            service: Service identifier to filter on
            dimension_value: Secondary dimension value (instance type), optional
            today: Reference date (defaults to the current date)

        Returns:
            Amount in the source currency, Decimal("0") if nothing was billed

        Raises:
            UsageFetchError: If the Cost Explorer call fails
        """
        start, end = previous_month_period(today)

        if not self.circuit_breaker.allow_request():
            raise UsageFetchError(
                "Cost Explorer temporarily unavailable (circuit breaker open)"
            )
        try:
            response = await asyncio.to_thread(
                self.ce_client.get_cost_and_usage,
                TimePeriod={'Start': start.isoformat(), 'End': end.isoformat()},
                Granularity='MONTHLY',
                Metrics=[COST_METRIC],
                Filter=build_usage_filter(service, dimension_value),
            )
        except (ClientError, BotoCoreError) as error:
            self.circuit_breaker.record_failure()
            logger.error(f"Cost Explorer error for {service}: {error}")
            raise UsageFetchError(f"Failed to query actual cost: {error}") from error
        except BaseException:
            self.circuit_breaker.release_trial()
            raise

        self.circuit_breaker.record_success()
        return self._first_amount(response)

    @staticmethod
    def _first_amount(response: Dict[str, Any]) -> Decimal:
        results = response.get('ResultsByTime') or []
        if not results:
            return Decimal("0")
        amount = ((results[0].get('Total') or {}).get(COST_METRIC) or {}).get('Amount')
        if not amount:
            return Decimal("0")
        try:
            return Decimal(amount)
        except InvalidOperation as error:
            raise UsageFetchError(f"Unexpected cost amount from Cost Explorer: {amount!r}") from error
