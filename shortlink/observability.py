from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import time

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"]
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)

LINKS_CREATED_TOTAL = Counter("links_created_total", "Total links created")
LINKS_DELETED_TOTAL = Counter("links_deleted_total", "Total links soft-deleted")
REDIRECT_TOTAL = Counter("redirect_total", "Total redirects")
REDIRECT_404_TOTAL = Counter("redirect_404_total", "Total failed redirects (404)")


def metric_path(path: str) -> str:
    """Collapse per-code paths so label cardinality stays bounded."""
    if path.startswith("/api/links/"):
        return "/api/links/{code}"
    if path.startswith("/code/"):
        return "/code/{code}"
    if path.startswith("/static/"):
        return "/static"
    if path in ("/", "/api/links", "/healthz", "/metrics", "/favicon.ico"):
        return path
    if len(path) > 1 and "/" not in path[1:]:
        return "/{code}"
    return "other"


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        path = metric_path(request.url.path)
        HTTP_REQUESTS_TOTAL.labels(method=request.method, path=path, status=str(response.status_code)).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(method=request.method, path=path).observe(process_time)

        return response

def metrics_endpoint(request: Request):
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
