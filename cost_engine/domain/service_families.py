"""
Service family dispatch and the attribute registry.

Every service code resolves to exactly one ServiceFamily. Services with a
closed-form tiered formula are listed explicitly; everything else is priced
from the catalog.
"""
from enum import Enum
from typing import Dict, List, Tuple

from cost_engine.core.errors import ValidationError
from cost_engine.domain.cost_models import AttributeMap, REGION_KEY


class ServiceFamily(Enum):
    """Pricing path used for a service."""
    COMPUTE_DURATION = "compute_duration"
    BUILD_STORAGE_TRANSFER = "build_storage_transfer"
    QUERY_SUBSCRIPTION_TRANSFER = "query_subscription_transfer"
    GENERIC_CATALOG = "generic_catalog"


# External service code -> family
SERVICE_FAMILIES: Dict[str, ServiceFamily] = {
    "AWSLambda": ServiceFamily.COMPUTE_DURATION,
    "AWSAmplify": ServiceFamily.BUILD_STORAGE_TRANSFER,
    "AWSAppSync": ServiceFamily.QUERY_SUBSCRIPTION_TRANSFER,
}

# Attributes the estimate form collects per service
ATTRIBUTES: Dict[str, Tuple[str, ...]] = {
    "AmazonEC2": (
        "instanceType",
        REGION_KEY,
    ),
    "AWSAmplify": (
        "buildMinutes",  # build minutes per month
        "storage",       # GB stored
        "dataTranfer",   # GB served
        REGION_KEY,
    ),
    "AWSLambda": (
        "memory",    # MB, 128 to 10,240
        "duration",  # ms per invocation
        "requests",  # invocations per month
        REGION_KEY,
    ),
    "AWSAppSync": (
        "queries",              # queries and mutations per month
        "subscriptionMinutes",  # real-time connection minutes
        "dataTransfer",         # GB out
        REGION_KEY,
    ),
}


# Alternate spellings accepted for a registered attribute
ATTRIBUTE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "dataTranfer": ("dataTransfer",),
}


def attribute_value(attributes: AttributeMap, name: str) -> str:
    """Return the stripped value of `name` or one of its aliases, or ''."""
    for key in (name,) + ATTRIBUTE_ALIASES.get(name, ()):
        value = str(attributes.get(key) or "").strip()
        if value:
            return value
    return ""


def resolve_family(service: str) -> ServiceFamily:
    """Map a service code to its pricing family."""
    return SERVICE_FAMILIES.get(service, ServiceFamily.GENERIC_CATALOG)


def required_attributes(service: str) -> List[str]:
    """Attributes that must be set before `service` can be estimated."""
    return list(ATTRIBUTES.get(service, (REGION_KEY,)))


def validate_request(service: str, attributes: AttributeMap) -> None:
    """
    Check an estimate request before any pricing work is done.

    Raises:
        ValidationError: If the service is empty, the region is missing, or a
            registered attribute for the service is missing or blank.
    """
    if not service or not service.strip():
        raise ValidationError("service and region are required")
    if attributes is None or not attribute_value(attributes, REGION_KEY):
        raise ValidationError("service and region are required")

    missing = [
        name for name in required_attributes(service)
        if not attribute_value(attributes, name)
    ]
    if missing:
        raise ValidationError(
            f"Missing required attributes for {service}: {', '.join(missing)}"
        )
