from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ..database import get_db
from ..schemas import ErrorOut, LinkCreate, LinkOut
from ..errors import CodeConflict, InvalidFormat, InvalidURL, NotFound
from ..observability import LINKS_CREATED_TOTAL, LINKS_DELETED_TOTAL
from ..services import links as link_service

router = APIRouter(responses={500: {"model": ErrorOut}})

NOT_FOUND = {404: {"model": ErrorOut}}

# StorageFailure is not caught here; the app-level handler turns it into a 500.

@router.post(
    "/links",
    response_model=LinkOut,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorOut}, 409: {"model": ErrorOut}},
)
async def create_link(
    link_in: LinkCreate,
    db: AsyncSession = Depends(get_db)
):
    try:
        link = await link_service.create_link(db, link_in.url, link_in.code)
    except (InvalidURL, InvalidFormat) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CodeConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    LINKS_CREATED_TOTAL.inc()
    return link

@router.get("/links", response_model=List[LinkOut])
async def list_links(db: AsyncSession = Depends(get_db)):
    return await link_service.list_links(db)

@router.get("/links/{code}", response_model=LinkOut, responses=NOT_FOUND)
async def get_link(
    code: str,
    db: AsyncSession = Depends(get_db)
):
    try:
        return await link_service.get_link(db, code)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

@router.delete("/links/{code}", status_code=status.HTTP_204_NO_CONTENT, responses=NOT_FOUND)
async def delete_link(
    code: str,
    db: AsyncSession = Depends(get_db)
):
    try:
        await link_service.delete_link(db, code)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    LINKS_DELETED_TOTAL.inc()
    return None
