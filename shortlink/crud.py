from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, exists
from sqlalchemy.sql import func
from .models import Link
from typing import Optional, List

# Every read below is scoped to active rows; soft-deleted links are invisible.

async def code_in_use(db: AsyncSession, code: str) -> bool:
    result = await db.execute(
        select(exists().where(Link.code == code, Link.deleted_at.is_(None)))
    )
    return bool(result.scalar())

async def create_link(db: AsyncSession, link: Link) -> Link:
    db.add(link)
    await db.commit()
    await db.refresh(link)
    return link

async def get_active_link(db: AsyncSession, code: str) -> Optional[Link]:
    result = await db.execute(
        select(Link).where(Link.code == code, Link.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()

async def list_active_links(db: AsyncSession) -> List[Link]:
    result = await db.execute(
        select(Link)
        .where(Link.deleted_at.is_(None))
        .order_by(Link.created_at.desc(), Link.id.desc())
    )
    return list(result.scalars().all())

async def soft_delete_link(db: AsyncSession, code: str) -> bool:
    result = await db.execute(
        update(Link)
        .where(Link.code == code, Link.deleted_at.is_(None))
        .values(deleted_at=func.now())
        .returning(Link.code)
        .execution_options(synchronize_session=False)
    )
    deleted = result.scalar_one_or_none()
    await db.commit()
    return deleted is not None

async def record_click(db: AsyncSession, code: str) -> Optional[str]:
    """Increment the counter of the active link and return its target.

    Single UPDATE ... RETURNING so concurrent clicks on one code are
    serialized by the row lock and never read a stale counter.
    """
    result = await db.execute(
        update(Link)
        .where(Link.code == code, Link.deleted_at.is_(None))
        .values(total_clicks=Link.total_clicks + 1, last_clicked_at=func.now())
        .returning(Link.target_url)
        .execution_options(synchronize_session=False)
    )
    target_url = result.scalar_one_or_none()
    await db.commit()
    return target_url
