from typing import List
from fastapi import APIRouter, Query, status

from tourops.api.v1.schemas import TransportIn, TransportUpdate, TransportOut, MessageOut, Page
from tourops.deps import SessionDep, PaginationDep
from tourops.services import TransportService


router = APIRouter()


@router.get("", response_model=Page[TransportOut])
async def list_transports(sess: SessionDep, paging: PaginationDep):
    service = TransportService(sess)
    items, total = await service.list_transports(skip=paging.skip, limit=paging.limit)
    return Page[TransportOut].build(
        [TransportOut.model_validate(t) for t in items], total, paging.page, paging.limit
    )


@router.post("", response_model=TransportOut, status_code=status.HTTP_201_CREATED)
async def create_transport(payload: TransportIn, sess: SessionDep):
    service = TransportService(sess)
    transport = await service.create_transport(**payload.model_dump())
    await sess.commit()
    return TransportOut.model_validate(transport)


@router.get("/available", response_model=List[TransportOut])
async def list_available_transports(sess: SessionDep, passengers: int = Query(1)):
    """Operational, active vehicles seating at least *passengers*"""
    service = TransportService(sess)
    return [TransportOut.model_validate(t) for t in await service.list_available(passengers)]


@router.get("/{transport_id}", response_model=TransportOut)
async def get_transport(transport_id: str, sess: SessionDep):
    service = TransportService(sess)
    return TransportOut.model_validate(await service.get_transport(transport_id))


@router.put("/{transport_id}", response_model=TransportOut)
async def update_transport(transport_id: str, payload: TransportUpdate, sess: SessionDep):
    service = TransportService(sess)
    transport = await service.update_transport(transport_id, payload.model_dump(exclude_unset=True))
    await sess.commit()
    return TransportOut.model_validate(transport)


@router.delete("/{transport_id}", response_model=MessageOut)
async def delete_transport(transport_id: str, sess: SessionDep):
    service = TransportService(sess)
    await service.delete_transport(transport_id)
    await sess.commit()
    return MessageOut(message="Transport deleted", id=transport_id)
