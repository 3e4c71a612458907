from typing import List, Optional
from fastapi import APIRouter, Query, status

from tourops.api.v1.schemas import (
    GuideIn, GuideUpdate, GuideOut, LanguageIn, LanguageOut, MessageOut, Page
)
from tourops.deps import SessionDep, PaginationDep
from tourops.services import GuideService, LanguageService


router = APIRouter()
languages_router = APIRouter()


@router.get("", response_model=Page[GuideOut])
async def list_guides(
    sess: SessionDep,
    paging: PaginationDep,
    status: Optional[bool] = Query(None),
):
    service = GuideService(sess)
    items, total = await service.list_guides(status=status, skip=paging.skip, limit=paging.limit)
    return Page[GuideOut].build(
        [GuideOut.model_validate(g) for g in items], total, paging.page, paging.limit
    )


@router.post("", response_model=GuideOut, status_code=status.HTTP_201_CREATED)
async def create_guide(payload: GuideIn, sess: SessionDep):
    service = GuideService(sess)
    guide = await service.create_guide(**payload.model_dump())
    await sess.commit()
    return GuideOut.model_validate(guide)


@router.get("/{guide_id}", response_model=GuideOut)
async def get_guide(guide_id: str, sess: SessionDep):
    service = GuideService(sess)
    return GuideOut.model_validate(await service.get_guide(guide_id))


@router.put("/{guide_id}", response_model=GuideOut)
async def update_guide(guide_id: str, payload: GuideUpdate, sess: SessionDep):
    service = GuideService(sess)
    guide = await service.update_guide(guide_id, payload.model_dump(exclude_unset=True))
    await sess.commit()
    return GuideOut.model_validate(guide)


@router.delete("/{guide_id}", response_model=MessageOut)
async def delete_guide(guide_id: str, sess: SessionDep):
    service = GuideService(sess)
    await service.delete_guide(guide_id)
    await sess.commit()
    return MessageOut(message="Guide deleted", id=guide_id)


@languages_router.get("", response_model=List[LanguageOut])
async def list_languages(sess: SessionDep):
    service = LanguageService(sess)
    return [LanguageOut.model_validate(lang) for lang in await service.list_languages()]


@languages_router.post("", response_model=LanguageOut, status_code=status.HTTP_201_CREATED)
async def create_language(payload: LanguageIn, sess: SessionDep):
    service = LanguageService(sess)
    language = await service.create_language(code=payload.code, name=payload.name)
    await sess.commit()
    return LanguageOut.model_validate(language)
