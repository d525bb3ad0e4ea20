from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.cors import CORSMiddleware

from storefront.api.v1 import api_router
from storefront.api.v1.exception_handlers import register_exception_handlers
from storefront.core.config import settings
from storefront.middlewares.logging_middleware import LoggingMiddleware
from storefront.middlewares.rate_limit import limiter
from storefront.utils.logger import configure_logging, get_logger


# Configure logging to prevent duplicates
configure_logging()
logger = get_logger("main")

app = FastAPI(title="Storefront API", debug=settings.debug)

# allowed_hosts_list falls back to localhost origins when nothing valid is configured
allowed_origins = settings.allowed_hosts_list
logger.info(f"CORS allowed origins: {allowed_origins}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# 1) SlowAPI rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# 2) Logging middleware
app.add_middleware(LoggingMiddleware)

# 3) Domain exceptions -> HTTP responses
register_exception_handlers(app)

# Prometheus instrumentation
Instrumentator().instrument(app).expose(app)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "healthy", "message": "Backend is running"}


@app.get("/")
async def root():
    return {"message": "Storefront API"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
