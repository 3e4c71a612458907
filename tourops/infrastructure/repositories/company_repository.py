from typing import Optional, List, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from tourops.core import BaseRepository
from tourops.models import Company


class CompanyRepository(BaseRepository[Company]):
    """Company repository implementation"""

    def __init__(self, session: AsyncSession):
        super().__init__(Company, session)

    async def get_by_name(self, name: str) -> Optional[Company]:
        """Get company by name"""
        query = select(Company).where(Company.name == name)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_paginated(
        self,
        *,
        status: Optional[bool] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Company], int]:
        """List companies by name with the total count"""
        filters = []
        if status is not None:
            filters.append(Company.status.is_(status))

        query = (
            select(Company)
            .where(*filters)
            .order_by(Company.name)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        total = await self.session.scalar(
            select(func.count()).select_from(Company).where(*filters)
        )
        return list(result.scalars().all()), total or 0
