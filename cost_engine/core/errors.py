"""
Error taxonomy for the cost estimation engine.

Every engine failure derives from CostEngineError and carries the HTTP status
the API layer maps it to.
"""


class CostEngineError(Exception):
    """Base class for cost estimation failures."""
    http_status: int = 500


class ValidationError(CostEngineError):
    """Raised when a request is missing a required or well-formed attribute."""
    http_status = 400


class NoPricingDataError(CostEngineError):
    """Raised when the catalog returned no price records for a query."""
    http_status = 404


class CatalogFetchError(CostEngineError):
    """Raised when a pricing catalog call fails at any page."""
    pass


class UsageFetchError(CostEngineError):
    """Raised when the historical cost and usage lookup fails."""
    pass


class PaginationLimitExceeded(CatalogFetchError):
    """Raised when a listing never exhausts its cursor."""
    pass
