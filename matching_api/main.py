from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from matching_api.api.errors import register_error_handlers
from matching_api.api.router import router as api_router
from matching_api.core.config import settings
from matching_api.core.logging import configure_logging
from matching_api.db import init_db
from matching_api.middleware.rate_limit import RateLimitMiddleware
from matching_api.middleware.request_id import RequestIdMiddleware
from matching_api.middleware.security_headers import SecurityHeadersMiddleware

configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.db_create_tables:
        init_db()
    logger.info("startup", env=settings.env, auth_mode=settings.auth_mode)
    yield


app = FastAPI(title="Matching Embedding Jobs API", lifespan=lifespan)

# Starlette runs the LAST added middleware FIRST (outermost):
# RequestId and SecurityHeaders wrap CORS preflights and 429s, RateLimit is innermost.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

register_error_handlers(app)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
def root():
    return {"name": "Matching Embedding Jobs API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(api_router)
