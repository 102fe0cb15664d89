"""
Main FastAPI application bootstrap.
Configures logging and includes routers.
"""
import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from cost_engine.core.config import config
from cost_engine.api.costs import router as costs_router
from cost_engine.api.dependencies import request_validation_response
from cost_engine.api.services import router as services_router
from cost_engine.api.specs import router as specs_router


logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Validate configuration on startup
try:
    config.validate()
except ValueError as error:
    raise RuntimeError(f"Configuration error: {error}") from error

logger.info(
    "Pricing region=%s, cost explorer region=%s, %s->%s at %s",
    config.AWS_PRICING_REGION,
    config.COST_EXPLORER_REGION,
    config.SOURCE_CURRENCY,
    config.DISPLAY_CURRENCY,
    config.EXCHANGE_RATE,
)


app = FastAPI(
    title="Cloud Cost Estimation",
    description="Monthly cost estimates from the AWS Price List API",
)

app.add_exception_handler(RequestValidationError, request_validation_response)

app.include_router(services_router)
app.include_router(specs_router)
app.include_router(costs_router)


@app.get("/health")
async def health() -> dict:
    """Liveness check; does not touch AWS."""
    return {"status": "ok"}
