"""
Shared dependencies and response helpers for API routes.
"""
from functools import lru_cache
from typing import Any, Dict
import logging

from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from cost_engine.core.errors import CostEngineError, ValidationError
from cost_engine.services.cost_estimator import CostEstimationEngine, create_engine


logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_engine() -> CostEstimationEngine:
    """
    Application-wide engine.

    Built on first use so boto3 clients are created once per process.
    Tests replace it through app.dependency_overrides.
    """
    return create_engine()


def error_response(error: Exception, context: str) -> JSONResponse:
    """
    Shape a failure as {"success": false, "error": ...}.

    Engine errors keep their message and status; anything else is logged
    and reported as a generic 500.
    """
    if isinstance(error, CostEngineError):
        if error.http_status >= 500:
            logger.error(f"{context} failed: {error}")
        return JSONResponse(
            status_code=error.http_status,
            content={"success": False, "error": str(error)}
        )

    logger.exception(f"Unexpected error while {context}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": f"An unexpected error occurred while {context}"}
    )


def request_validation_response(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report a request the models rejected as a 400 in the usual error shape."""
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body") or "body"
        problems.append(f"{field}: {error['msg']}")
    return error_response(
        ValidationError(f"Invalid request: {'; '.join(problems)}"),
        "validating request"
    )


def ok(**payload: Any) -> Dict[str, Any]:
    """Successful response body."""
    return {"success": True, **payload}
