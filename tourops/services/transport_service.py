import logging
from typing import Optional, List, Dict, Any, Tuple

from tourops.core import BaseService, NotFoundError, ValidationError
from tourops.infrastructure.repositories import TransportRepository
from tourops.models import Transport

logger = logging.getLogger(__name__)


class TransportService(BaseService):
    """Vehicle fleet"""

    def __init__(self, session, transport_repo: Optional[TransportRepository] = None):
        super().__init__(session)
        self.transport_repo = transport_repo or TransportRepository(session)

    def _clean(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if "model" in data:
            data["model"] = (data["model"] or "").strip()
            if not data["model"]:
                raise ValidationError("Model is required", field="model")
        if "capacity" in data:
            capacity = data["capacity"]
            if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity <= 0:
                raise ValidationError("Capacity must be a positive integer", field="capacity")
        return data

    async def create_transport(
        self,
        model: str,
        capacity: int,
        operational_status: bool = True,
        status: bool = True,
    ) -> Transport:
        data = self._clean({
            "model": model,
            "capacity": capacity,
            "operational_status": operational_status,
            "status": status,
        })
        transport = await self.transport_repo.create(obj_in=data)
        logger.info("Transport %s created (%s, %s seats)", transport.id, transport.model, transport.capacity)
        return transport

    async def get_transport(self, transport_id: str) -> Transport:
        transport = await self.transport_repo.get(transport_id)
        if not transport:
            raise NotFoundError("Transport", transport_id)
        return transport

    async def list_transports(self, *, skip: int = 0, limit: int = 10) -> Tuple[List[Transport], int]:
        return await self.transport_repo.list_paginated(skip=skip, limit=limit)

    async def list_available(self, passengers: int = 1) -> List[Transport]:
        """Vehicles in service that can carry *passengers*, smallest first"""
        if passengers < 1:
            raise ValidationError("passengers must be at least 1", field="passengers")
        return await self.transport_repo.list_available(min_capacity=passengers)

    async def update_transport(self, transport_id: str, changes: Dict[str, Any]) -> Transport:
        await self.get_transport(transport_id)
        data = self._clean({k: v for k, v in changes.items() if v is not None})
        if data:
            await self.transport_repo.update(id=transport_id, obj_in=data)
        return await self.get_transport(transport_id)

    async def delete_transport(self, transport_id: str) -> bool:
        await self.get_transport(transport_id)
        deleted = await self.transport_repo.delete(id=transport_id)
        logger.info("Transport %s deleted", transport_id)
        return deleted
