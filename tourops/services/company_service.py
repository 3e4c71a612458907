"""Partner companies that refer bookings for a commission."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, List, Dict, Any, Tuple

from tourops.core import BaseService, NotFoundError, ValidationError, ConflictError
from tourops.infrastructure.repositories import CompanyRepository, BookingRepository
from tourops.models import Company
from tourops.services.configuration_service import ConfigurationService

logger = logging.getLogger(__name__)


def validate_commission(value: Any) -> Decimal:
    try:
        pct = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("commissionPercentage must be a number", field="commission_percentage")
    if not pct.is_finite() or pct < 0 or pct > 100:
        raise ValidationError("commissionPercentage must be between 0 and 100", field="commission_percentage")
    return pct


class CompanyService(BaseService):
    """Service for company management."""

    def __init__(
        self,
        session,
        company_repo: Optional[CompanyRepository] = None,
        booking_repo: Optional[BookingRepository] = None,
    ):
        super().__init__(session)
        self.company_repo = company_repo or CompanyRepository(session)
        self.booking_repo = booking_repo or BookingRepository(session)

    async def _check_name(self, name: Optional[str], company_id: Optional[str] = None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required", field="name")
        existing = await self.company_repo.get_by_name(name)
        if existing and existing.id != company_id:
            raise ConflictError(f"Company '{name}' already exists", reason="duplicate_name")
        return name

    async def create_company(
        self,
        name: str,
        commission_percentage: Any = None,
        status: bool = True,
    ) -> Company:
        """Create a company.

        Args:
            name: Unique display name
            commission_percentage: Default commission for its bookings (0-100);
                the ``default_commission_percentage`` setting when omitted
            status: Whether the company may take new bookings

        Returns:
            The created company

        Raises:
            ValidationError: If name is blank or commission out of range
            ConflictError: If the name is taken
        """
        if commission_percentage is None:
            commission_percentage = await ConfigurationService(self.session).get_value(
                "default_commission_percentage", 0
            )
        data = {
            "name": await self._check_name(name),
            "commission_percentage": validate_commission(commission_percentage),
            "status": status,
        }
        company = await self.company_repo.create(obj_in=data)
        logger.info("Company %s created (%s)", company.id, company.name)
        return company

    async def get_company(self, company_id: str) -> Company:
        company = await self.company_repo.get(company_id)
        if not company:
            raise NotFoundError("Company", company_id)
        return company

    async def list_companies(
        self,
        *,
        status: Optional[bool] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Company], int]:
        return await self.company_repo.list_paginated(status=status, skip=skip, limit=limit)

    async def update_company(self, company_id: str, changes: Dict[str, Any]) -> Company:
        """Update provided fields. Existing bookings keep their commission."""
        await self.get_company(company_id)
        data: Dict[str, Any] = {}
        if "name" in changes:
            data["name"] = await self._check_name(changes["name"], company_id)
        if changes.get("commission_percentage") is not None:
            data["commission_percentage"] = validate_commission(changes["commission_percentage"])
        if changes.get("status") is not None:
            data["status"] = bool(changes["status"])

        if data:
            await self.company_repo.update(id=company_id, obj_in=data)
        return await self.get_company(company_id)

    async def set_status(self, company_id: str, status: bool) -> Company:
        return await self.update_company(company_id, {"status": status})

    async def delete_company(self, company_id: str) -> bool:
        """Delete a company no booking refers to.

        Raises:
            NotFoundError: If company not found
            ConflictError: If bookings reference the company
        """
        await self.get_company(company_id)
        bookings = await self.booking_repo.count_by_company(company_id)
        if bookings:
            raise ConflictError(
                "Cannot delete company referenced by bookings",
                reason="has_bookings",
                bookings=bookings,
            )
        deleted = await self.company_repo.delete(id=company_id)
        logger.info("Company %s deleted", company_id)
        return deleted
