from fastapi import APIRouter, Depends, HTTPException, Request, status
from typing import List

from ...errors import CodeConflict, InvalidCode, InvalidUrl, NotFound
from ...schemas import LinkCreate, LinkCreated, LinkDeleted, LinkOut
from ...services.links import LinkService

router = APIRouter()

def get_link_service(request: Request) -> LinkService:
    return request.app.state.service

async def read_link_create(request: Request) -> LinkCreate:
    """Body of a create request; anything but a JSON object counts as empty."""
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    return LinkCreate.model_validate(payload if isinstance(payload, dict) else {})

@router.post("/links", response_model=LinkCreated, status_code=status.HTTP_201_CREATED)
async def create_link(
    link_in: LinkCreate = Depends(read_link_create),
    service: LinkService = Depends(get_link_service)
):
    try:
        link, short_url = await service.create(link_in.url, link_in.code)
    except (InvalidUrl, InvalidCode) as e:
        raise HTTPException(status_code=400, detail=e.message)
    except CodeConflict as e:
        raise HTTPException(status_code=409, detail=e.message)

    return LinkCreated(link=LinkOut.model_validate(link), short_url=short_url)

@router.get("/links", response_model=List[LinkOut])
async def list_links(service: LinkService = Depends(get_link_service)):
    return await service.list()

@router.get("/links/{code}", response_model=LinkOut)
async def get_link(
    code: str,
    service: LinkService = Depends(get_link_service)
):
    try:
        return await service.get(code)
    except InvalidCode as e:
        raise HTTPException(status_code=400, detail=e.message)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message)

@router.delete("/links/{code}", response_model=LinkDeleted)
async def delete_link(
    code: str,
    service: LinkService = Depends(get_link_service)
):
    try:
        deleted = await service.delete(code)
    except InvalidCode as e:
        raise HTTPException(status_code=400, detail=e.message)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message)

    return LinkDeleted(deleted=deleted)
