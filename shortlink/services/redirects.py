import logging
from urllib.parse import urlsplit

from sqlalchemy.ext.asyncio import AsyncSession

from .. import crud
from ..config import settings
from ..database import bounded
from ..errors import NotFound

logger = logging.getLogger(__name__)

def normalize_target(url: str) -> str:
    # Rows created through the API always carry a scheme; older rows may not.
    if urlsplit(url).scheme.lower() in ("http", "https"):
        return url
    logger.warning("stored target without scheme, assuming https", extra={"target_url": url})
    return "https://" + url

async def resolve_and_record(db: AsyncSession, code: str) -> str:
    """Count a visit to ``code`` and return where to send the visitor.

    Raises NotFound without touching any counter when no active link holds
    the code.
    """
    target_url = await bounded(crud.record_click(db, code), settings.STORAGE_TIMEOUT_SECONDS)
    if target_url is None:
        raise NotFound(code)
    return normalize_target(target_url)
