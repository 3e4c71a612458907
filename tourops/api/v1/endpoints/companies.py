from typing import Optional
from fastapi import APIRouter, Query, status

from tourops.api.v1.schemas import CompanyIn, CompanyUpdate, CompanyOut, MessageOut, Page
from tourops.deps import SessionDep, PaginationDep
from tourops.services import CompanyService


router = APIRouter()


@router.get("", response_model=Page[CompanyOut])
async def list_companies(
    sess: SessionDep,
    paging: PaginationDep,
    status: Optional[bool] = Query(None),
):
    service = CompanyService(sess)
    items, total = await service.list_companies(status=status, skip=paging.skip, limit=paging.limit)
    return Page[CompanyOut].build(
        [CompanyOut.model_validate(c) for c in items], total, paging.page, paging.limit
    )


@router.post("", response_model=CompanyOut, status_code=status.HTTP_201_CREATED)
async def create_company(payload: CompanyIn, sess: SessionDep):
    service = CompanyService(sess)
    company = await service.create_company(**payload.model_dump())
    await sess.commit()
    return CompanyOut.model_validate(company)


@router.get("/{company_id}", response_model=CompanyOut)
async def get_company(company_id: str, sess: SessionDep):
    service = CompanyService(sess)
    return CompanyOut.model_validate(await service.get_company(company_id))


@router.put("/{company_id}", response_model=CompanyOut)
async def update_company(company_id: str, payload: CompanyUpdate, sess: SessionDep):
    service = CompanyService(sess)
    company = await service.update_company(company_id, payload.model_dump(exclude_unset=True))
    await sess.commit()
    return CompanyOut.model_validate(company)


@router.put("/{company_id}/toggle-status", response_model=CompanyOut)
async def toggle_company_status(company_id: str, sess: SessionDep):
    service = CompanyService(sess)
    company = await service.get_company(company_id)
    company = await service.set_status(company_id, not company.status)
    await sess.commit()
    return CompanyOut.model_validate(company)


@router.delete("/{company_id}", response_model=MessageOut)
async def delete_company(company_id: str, sess: SessionDep):
    service = CompanyService(sess)
    await service.delete_company(company_id)
    await sess.commit()
    return MessageOut(message="Company deleted", id=company_id)
