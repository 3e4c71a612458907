from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tourops.core import get_settings
from tourops.infrastructure import get_session

# Type alias for dependency injection
SessionDep = Annotated[AsyncSession, Depends(get_session)]


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def pagination(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
) -> Pagination:
    """page/limit query parameters, limit capped at MAX_PAGE_SIZE"""
    settings = get_settings()
    if limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    return Pagination(page=page, limit=min(limit, settings.MAX_PAGE_SIZE))


PaginationDep = Annotated[Pagination, Depends(pagination)]
