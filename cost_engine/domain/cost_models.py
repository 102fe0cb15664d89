"""
Domain models for cost estimation.
Defines the structure of filter predicates and cost estimates.
"""
from typing import List, Dict, Any
from dataclasses import dataclass, field


# Requested configuration attributes, e.g. {"instanceType": "t3.micro", "regionCode": "us-east-1"}
AttributeMap = Dict[str, str]

REGION_KEY = "regionCode"
TERM_MATCH = "TERM_MATCH"


@dataclass(frozen=True)
class FilterPredicate:
    """Exact-match filter applied to a product query."""
    field: str
    value: str
    type: str = TERM_MATCH

    def to_dict(self) -> Dict[str, str]:
        """Convert to the Filters shape the Price List API expects."""
        return {"Type": self.type, "Field": self.field, "Value": self.value}


@dataclass(frozen=True)
class ActualCost:
    """Billed cost for the previous calendar month."""
    amount: int
    currency: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"amount": self.amount, "currency": self.currency}


@dataclass(frozen=True)
class CostEstimate:
    """Represents the monthly estimate for one service configuration."""
    service: str
    attributes: AttributeMap
    monthly_estimate: int  # display currency, rounded
    actual_last_month: ActualCost
    family: str
    currency: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "service": self.service,
            "attributes": dict(self.attributes),
            "family": self.family,
            "currency": self.currency,
            "monthly_estimate": self.monthly_estimate,
            "actual_last_month": self.actual_last_month.to_dict(),
        }


@dataclass(frozen=True)
class ServiceAttributes:
    """Attribute names exposed by a service's catalog products."""
    service: str
    attributes: List[str] = field(default_factory=list)
    total_products: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "service": self.service,
            "attributes": list(self.attributes),
            "total_products": self.total_products,
        }
