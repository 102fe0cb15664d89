"""
API route for monthly cost estimates.
"""
from typing import Any, Dict, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from cost_engine.api.dependencies import error_response, get_engine, ok
from cost_engine.services.cost_estimator import CostEstimationEngine


router = APIRouter()


class CostEstimateRequest(BaseModel):
    """Request model for a cost estimate."""
    service: str = Field("", description="Service code (e.g. 'AmazonEC2', 'AWSLambda')")
    attribute: Dict[str, str] = Field(
        default_factory=dict,
        description="Requested attributes, including 'regionCode'"
    )


@router.post("/api/costs", response_model=None)
async def estimate_cost(
    estimate_request: CostEstimateRequest,
    engine: CostEstimationEngine = Depends(get_engine)
) -> Union[Dict[str, Any], JSONResponse]:
    """
    Estimate the monthly cost of one service configuration.

    Returns:
        {"success": true, "data": estimate} or {"success": false, "error": message}
        with 400 for invalid input, 404 when the catalog has no matching
        products and 500 for remote failures.
    """
    try:
        estimate = await engine.estimate(estimate_request.service, estimate_request.attribute)
    except Exception as error:
        return error_response(error, "estimating costs")
    return ok(data=estimate.to_dict())
