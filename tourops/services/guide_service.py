import logging
from typing import Optional, List, Dict, Any, Tuple, Sequence

from tourops.core import BaseService, NotFoundError, ValidationError, ConflictError
from tourops.infrastructure.repositories import GuideRepository, LanguageRepository
from tourops.models import Guide, Language
from tourops.services.booking_service import normalize_phone

logger = logging.getLogger(__name__)


class LanguageService(BaseService):
    """Languages a guide can work in"""

    def __init__(self, session, language_repo: Optional[LanguageRepository] = None):
        super().__init__(session)
        self.language_repo = language_repo or LanguageRepository(session)

    async def list_languages(self) -> List[Language]:
        return await self.language_repo.get_multi(limit=1000)

    async def create_language(self, code: str, name: str) -> Language:
        code = (code or "").strip().lower()
        name = (name or "").strip()
        if not code:
            raise ValidationError("Code is required", field="code")
        if not name:
            raise ValidationError("Name is required", field="name")
        if await self.language_repo.get_by_code(code):
            raise ConflictError(f"Language '{code}' already exists", reason="duplicate_code")
        return await self.language_repo.create(obj_in={"code": code, "name": name})


class GuideService(BaseService):
    """Guide roster"""

    def __init__(
        self,
        session,
        guide_repo: Optional[GuideRepository] = None,
        language_repo: Optional[LanguageRepository] = None,
    ):
        super().__init__(session)
        self.guide_repo = guide_repo or GuideRepository(session)
        self.language_repo = language_repo or LanguageRepository(session)

    async def _languages(self, language_ids: Sequence[str]) -> List[Language]:
        ids = list(dict.fromkeys(language_ids))
        languages = await self.language_repo.get_many(ids)
        found = {lang.id for lang in languages}
        for language_id in ids:
            if language_id not in found:
                raise NotFoundError("Language", language_id)
        return languages

    def _clean(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if "name" in data:
            data["name"] = (data["name"] or "").strip()
            if not data["name"]:
                raise ValidationError("Name is required", field="name")
        if "phone" in data:
            data["phone"] = normalize_phone(data["phone"], field="phone")
        if "email" in data and isinstance(data["email"], str):
            data["email"] = data["email"].strip() or None
        if data.get("max_party_size") is not None:
            size = data["max_party_size"]
            if not isinstance(size, int) or isinstance(size, bool) or size <= 0:
                raise ValidationError("maxPartySize must be a positive integer", field="max_party_size")
        return data

    async def create_guide(
        self,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        can_lead: bool = False,
        max_party_size: Optional[int] = None,
        status: bool = True,
        language_ids: Sequence[str] = (),
    ) -> Guide:
        data = self._clean({
            "name": name,
            "email": email,
            "phone": phone,
            "can_lead": can_lead,
            "max_party_size": max_party_size,
            "status": status,
        })
        guide = Guide(**data)
        guide.languages = await self._languages(language_ids)
        self.session.add(guide)
        await self.session.flush()
        logger.info("Guide %s created (%s)", guide.id, guide.name)
        return await self.get_guide(guide.id)

    async def get_guide(self, guide_id: str) -> Guide:
        guide = await self.guide_repo.get(guide_id)
        if not guide:
            raise NotFoundError("Guide", guide_id)
        return guide

    async def list_guides(
        self,
        *,
        status: Optional[bool] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Guide], int]:
        return await self.guide_repo.list_paginated(status=status, skip=skip, limit=limit)

    async def update_guide(self, guide_id: str, changes: Dict[str, Any]) -> Guide:
        guide = await self.get_guide(guide_id)
        changes = dict(changes)
        language_ids = changes.pop("language_ids", None)

        data = self._clean(changes)
        for field, value in data.items():
            if hasattr(guide, field):
                setattr(guide, field, value)
        if language_ids is not None:
            guide.languages = await self._languages(language_ids)

        await self.session.flush()
        return await self.get_guide(guide_id)

    async def delete_guide(self, guide_id: str) -> bool:
        await self.get_guide(guide_id)
        assignments = await self.guide_repo.count_assignments(guide_id)
        if assignments:
            raise ConflictError(
                "Cannot delete a guide with schedule assignments",
                reason="has_assignments",
                assignments=assignments,
            )
        deleted = await self.guide_repo.delete(id=guide_id)
        logger.info("Guide %s deleted", guide_id)
        return deleted
