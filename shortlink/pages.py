from pathlib import Path

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from .codes import is_reserved
from .config import settings
from .database import get_db
from .errors import NotFound
from .observability import REDIRECT_TOTAL, REDIRECT_404_TOTAL
from .services import links as link_service
from .services.redirects import resolve_and_record

TEMPLATES_DIR = Path(__file__).parent / "templates"
STATIC_DIR = Path(__file__).parent / "static"

templates = Jinja2Templates(directory=TEMPLATES_DIR)

router = APIRouter(include_in_schema=False)

def render_error_page(request: Request, message: str, status_code: int):
    return templates.TemplateResponse(
        request, "404.html", {"message": message, "status_code": status_code}, status_code=status_code
    )

@router.get("/")
async def dashboard(request: Request, db: AsyncSession = Depends(get_db)):
    links = await link_service.list_links(db)
    return templates.TemplateResponse(
        request, "dashboard.html", {"links": links, "base_url": settings.public_base_url}
    )

@router.get("/code/{code}")
async def stats(request: Request, code: str, db: AsyncSession = Depends(get_db)):
    try:
        link = await link_service.get_link(db, code)
    except NotFound:
        return render_error_page(request, "Short link not found", status.HTTP_404_NOT_FOUND)
    return templates.TemplateResponse(
        request, "stats.html", {"link": link, "base_url": settings.public_base_url}
    )

# Must stay the last route registered: it matches any single path segment.
@router.get("/{code}")
async def redirect(request: Request, code: str, db: AsyncSession = Depends(get_db)):
    if is_reserved(code):
        return render_error_page(request, "Short link not found", status.HTTP_404_NOT_FOUND)
    try:
        target_url = await resolve_and_record(db, code)
    except NotFound:
        REDIRECT_404_TOTAL.inc()
        return render_error_page(
            request, "Short link not found or has been deleted.", status.HTTP_404_NOT_FOUND
        )

    REDIRECT_TOTAL.inc()
    return RedirectResponse(url=target_url, status_code=status.HTTP_302_FOUND)
