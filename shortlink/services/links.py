import logging
from typing import Annotated, List, Optional

from pydantic import AnyUrl, TypeAdapter, UrlConstraints, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .. import crud
from ..codes import allocate_code
from ..config import settings
from ..database import bounded
from ..errors import CodeConflict, InvalidURL, NotFound
from ..models import Link

logger = logging.getLogger(__name__)

# No length cap: HttpUrl would refuse anything past 2083 characters.
_http_url = TypeAdapter(Annotated[AnyUrl, UrlConstraints(allowed_schemes=["http", "https"], host_required=True)])

def validate_target_url(url) -> bool:
    """True for absolute http(s) URLs with a host. Scheme case is ignored."""
    if not isinstance(url, str) or not url or url != url.strip():
        return False
    try:
        parsed = _http_url.validate_python(url)
    except ValidationError:
        return False
    return parsed.scheme in ("http", "https")

async def create_link(db: AsyncSession, target_url: str, requested_code: Optional[str] = None) -> Link:
    if isinstance(target_url, str):
        target_url = target_url.strip()
    if not validate_target_url(target_url):
        raise InvalidURL(target_url)

    timeout = settings.STORAGE_TIMEOUT_SECONDS
    code = await allocate_code(
        lambda candidate: bounded(crud.code_in_use(db, candidate), timeout),
        requested_code or None,
        max_attempts=settings.CODE_MAX_ATTEMPTS,
    )

    # The caller's string (trimmed) is stored; pydantic's normalized form would add a
    # trailing slash to bare hosts.
    link = Link(code=code, target_url=target_url)
    try:
        link = await bounded(crud.create_link(db, link), timeout)
    except IntegrityError:
        # Another request claimed the code between the pre-check and the insert.
        await db.rollback()
        raise CodeConflict(code)

    logger.info("link created", extra={"code": code})
    return link

async def get_link(db: AsyncSession, code: str) -> Link:
    link = await bounded(crud.get_active_link(db, code), settings.STORAGE_TIMEOUT_SECONDS)
    if link is None:
        raise NotFound(code)
    return link

async def list_links(db: AsyncSession) -> List[Link]:
    # Unpaginated: fine while the table stays small.
    return await bounded(crud.list_active_links(db), settings.STORAGE_TIMEOUT_SECONDS)

async def delete_link(db: AsyncSession, code: str) -> None:
    deleted = await bounded(crud.soft_delete_link(db, code), settings.STORAGE_TIMEOUT_SECONDS)
    if not deleted:
        raise NotFound(code)
    logger.info("link deleted", extra={"code": code})
