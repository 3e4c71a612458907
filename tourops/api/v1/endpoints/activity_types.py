from typing import List
from fastapi import APIRouter, status

from tourops.api.v1.schemas import ActivityTypeIn, ActivityTypeUpdate, ActivityTypeOut, MessageOut
from tourops.deps import SessionDep
from tourops.services import ActivityTypeService


router = APIRouter()


@router.get("", response_model=List[ActivityTypeOut])
async def list_activity_types(sess: SessionDep):
    service = ActivityTypeService(sess)
    types = await service.list_types()
    return [ActivityTypeOut.model_validate(t) for t in types]


@router.post("", response_model=ActivityTypeOut, status_code=status.HTTP_201_CREATED)
async def create_activity_type(payload: ActivityTypeIn, sess: SessionDep):
    service = ActivityTypeService(sess)
    activity_type = await service.create_type(
        code=payload.code,
        name=payload.name,
        description=payload.description,
    )
    await sess.commit()
    return ActivityTypeOut.model_validate(activity_type)


@router.get("/{type_id}", response_model=ActivityTypeOut)
async def get_activity_type(type_id: str, sess: SessionDep):
    service = ActivityTypeService(sess)
    return ActivityTypeOut.model_validate(await service.get_type(type_id))


@router.put("/{type_id}", response_model=ActivityTypeOut)
async def update_activity_type(type_id: str, payload: ActivityTypeUpdate, sess: SessionDep):
    service = ActivityTypeService(sess)
    activity_type = await service.update_type(type_id, payload.model_dump(exclude_unset=True))
    await sess.commit()
    return ActivityTypeOut.model_validate(activity_type)


@router.delete("/{type_id}", response_model=MessageOut)
async def delete_activity_type(type_id: str, sess: SessionDep):
    service = ActivityTypeService(sess)
    await service.delete_type(type_id)
    await sess.commit()
    return MessageOut(message="Activity type deleted", id=type_id)
