"""FastAPI application entrypoint for the prompt pipeline backend."""
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from app.api.routes import api_router
from app.core.config import get_settings
from app.core.logging import configure_logging

configure_logging(get_settings().log_level)
logger = logging.getLogger("app.access")

app = FastAPI(title="PromptEnhancer API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")


class HealthResponse(BaseModel):
    status: str = "ok"


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check() -> HealthResponse:
    """Return service health information for monitoring and load-balancers."""
    return HealthResponse()


@app.middleware("http")
async def request_log_middleware(request: Request, call_next):
    # Correlation id
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000.0
    logger.info(
        "%s %s -> %s",
        request.method,
        request.url.path,
        response.status_code,
        extra={
            "request_id": request_id,
            "status_code": response.status_code,
            "duration_ms": elapsed_ms,
        },
    )
    # Propagate request id to client
    response.headers["X-Request-Id"] = request_id
    return response
