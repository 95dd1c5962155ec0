import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import links
from .config import settings
from .database import Database
from .errors import StorageFailure
from .logging_config import setup_logging
from .observability import PrometheusMiddleware, metrics_endpoint
from . import pages

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

START_TIME = time.monotonic()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup logic
    db = Database(settings.DATABASE_URL, echo=settings.ENVIRONMENT == "development")
    if settings.CREATE_SCHEMA:
        await db.create_schema()
    app.state.db = db
    logger.info("storage ready")
    yield
    # Shutdown logic
    await db.dispose()

app = FastAPI(
    title="Shortlink",
    description="Short links with click counting",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(PrometheusMiddleware)

def is_api_path(request: Request) -> bool:
    return request.url.path.startswith("/api/")

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if is_api_path(request):
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)
    message = "Page not found" if exc.status_code == 404 else str(exc.detail)
    return pages.render_error_page(request, message, exc.status_code)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": "Invalid request body"}, status_code=status.HTTP_400_BAD_REQUEST)

@app.exception_handler(StorageFailure)
async def storage_failure_handler(request: Request, exc: StorageFailure):
    logger.error("storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return internal_error_response(request)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return internal_error_response(request)

def internal_error_response(request: Request):
    if is_api_path(request):
        return JSONResponse({"error": "Internal server error"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return pages.render_error_page(request, "Something went wrong.", status.HTTP_500_INTERNAL_SERVER_ERROR)

app.add_route("/metrics", metrics_endpoint)

@app.get("/healthz")
async def healthz():
    return {
        "ok": True,
        "version": settings.APP_VERSION,
        "uptime": time.monotonic() - START_TIME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=status.HTTP_204_NO_CONTENT)

app.include_router(links.router, prefix="/api")
app.mount("/static", StaticFiles(directory=pages.STATIC_DIR), name="static")
# Registered last: its /{code} route would otherwise shadow the paths above.
app.include_router(pages.router)

if __name__ == "__main__":
    uvicorn.run("shortlink.main:app", host=settings.HOST, port=settings.PORT, log_config=None)
