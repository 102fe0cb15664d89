"""
API route for listing legal values of a service attribute.
"""
from typing import Any, Dict, Union

from fastapi import APIRouter, Depends, Query
from starlette.responses import JSONResponse

from cost_engine.api.dependencies import error_response, get_engine, ok
from cost_engine.services.cost_estimator import CostEstimationEngine


router = APIRouter()


@router.get("/api/specs", response_model=None)
async def list_attribute_values(
    service: str = Query("AmazonEC2", description="Service code"),
    attribute: str = Query("instanceType", description="Attribute name"),
    engine: CostEstimationEngine = Depends(get_engine)
) -> Union[Dict[str, Any], JSONResponse]:
    """
    List every value the catalog knows for one attribute of one service.

    Returns:
        {"success": true, "service", "attribute", "values"}
    """
    try:
        values = await engine.list_attribute_values(service, attribute)
    except Exception as error:
        return error_response(error, "listing attribute values")
    return ok(service=service, attribute=attribute, values=values)
