"""
API routes for listing catalog services and their attributes.
"""
from typing import Any, Dict, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from cost_engine.api.dependencies import error_response, get_engine, ok
from cost_engine.services.cost_estimator import CostEstimationEngine


router = APIRouter()


class ServiceAttributesRequest(BaseModel):
    """Request model for describing a service's attributes."""
    service: str = Field(..., description="Service code (e.g. 'AmazonEC2')")


@router.get("/api/services", response_model=None)
async def list_services(
    engine: CostEstimationEngine = Depends(get_engine)
) -> Union[Dict[str, Any], JSONResponse]:
    """
    List every service code in the pricing catalog.

    Returns:
        {"success": true, "data": [service codes]}
    """
    try:
        services = await engine.list_services()
    except Exception as error:
        return error_response(error, "listing services")
    return ok(data=services)


@router.post("/api/services", response_model=None)
async def describe_service_attributes(
    attributes_request: ServiceAttributesRequest,
    engine: CostEstimationEngine = Depends(get_engine)
) -> Union[Dict[str, Any], JSONResponse]:
    """
    Describe which attributes a service's products carry.

    Pages through every product of the service, so this is slow for large
    catalogs such as AmazonEC2.

    Returns:
        {"success": true, "service", "attributes", "total_products"}
    """
    try:
        described = await engine.list_service_attributes(attributes_request.service)
    except Exception as error:
        return error_response(error, "describing service attributes")
    return ok(**described.to_dict())
