"""
Shared pytest fixtures for cost engine tests.
"""

import sys
import json
from decimal import Decimal
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

import pytest
from unittest.mock import AsyncMock, Mock
from fastapi.testclient import TestClient

from cost_engine.api.dependencies import get_engine
from cost_engine.main import app
from cost_engine.pricing.aws_pricing_client import AWSPricingCatalog
from cost_engine.pricing.cost_explorer_client import CostExplorerUsageClient
from cost_engine.resilience.circuit_breaker import reset_circuit_breakers
from cost_engine.services.cost_estimator import CostEstimationEngine


def build_price_record(hourly_usd, unit="Hrs", attributes=None):
    """Price List record (as the JSON string boto3 returns) with one OnDemand term."""
    return json.dumps({
        "product": {
            "sku": "SKU123",
            "attributes": attributes or {
                "instanceType": "t3.micro",
                "regionCode": "us-east-1",
            },
        },
        "terms": {
            "OnDemand": {
                "SKU123.JRTCKXETXF": {
                    "priceDimensions": {
                        "SKU123.JRTCKXETXF.6YS6EN2CT7": {
                            "unit": unit,
                            "pricePerUnit": {"USD": hourly_usd},
                        }
                    }
                }
            }
        },
    })


@pytest.fixture(autouse=True)
def fresh_circuit_breakers():
    """Each test starts with closed breakers."""
    reset_circuit_breakers()
    yield
    reset_circuit_breakers()


@pytest.fixture
def price_record():
    """Factory for Price List records."""
    return build_price_record


@pytest.fixture
def mock_catalog():
    """Mock pricing catalog with async methods."""
    catalog = Mock(spec=AWSPricingCatalog)
    catalog.get_products = AsyncMock(return_value=[])
    catalog.list_service_codes = AsyncMock(return_value=[])
    catalog.list_attribute_values = AsyncMock(return_value=[])
    return catalog


@pytest.fixture
def mock_usage():
    """Mock Cost Explorer usage client reporting no spend."""
    usage = Mock(spec=CostExplorerUsageClient)
    usage.actual_last_month = AsyncMock(return_value=Decimal("0"))
    return usage


@pytest.fixture
def engine(mock_catalog, mock_usage):
    """Engine over mock clients, converting USD to JPY at 150."""
    return CostEstimationEngine(
        catalog=mock_catalog,
        usage=mock_usage,
        exchange_rate=Decimal("150"),
        display_currency="JPY",
    )


@pytest.fixture
def client(engine):
    """FastAPI test client wired to the mock-backed engine."""
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()
