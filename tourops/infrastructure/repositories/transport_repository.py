from typing import List, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from tourops.core import BaseRepository
from tourops.models import Transport, Setting


class TransportRepository(BaseRepository[Transport]):
    """Transport repository implementation"""

    def __init__(self, session: AsyncSession):
        super().__init__(Transport, session)

    async def list_paginated(self, *, skip: int = 0, limit: int = 10) -> Tuple[List[Transport], int]:
        query = select(Transport).order_by(Transport.model, Transport.id).offset(skip).limit(limit)
        result = await self.session.execute(query)
        total = await self.session.scalar(select(func.count()).select_from(Transport))
        return list(result.scalars().all()), total or 0

    async def list_available(self, min_capacity: int = 1) -> List[Transport]:
        """Active, operational vehicles that seat at least *min_capacity*"""
        query = (
            select(Transport)
            .where(
                Transport.status.is_(True),
                Transport.operational_status.is_(True),
                Transport.capacity >= min_capacity,
            )
            .order_by(Transport.capacity, Transport.model)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())


class SettingRepository(BaseRepository[Setting]):
    """System configuration repository implementation"""

    default_order = (Setting.key,)

    def __init__(self, session: AsyncSession):
        super().__init__(Setting, session)

    async def get_many(self, keys: List[str]) -> List[Setting]:
        if not keys:
            return []
        result = await self.session.execute(
            select(Setting).where(Setting.key.in_(keys)).order_by(Setting.key)
        )
        return list(result.scalars().all())
