import logging
from collections import Counter
from typing import Optional, List, Sequence, Union, Dict, Any

from tourops.core import BaseService, NotFoundError, ValidationError, ConflictError
from tourops.infrastructure.repositories import (
    AssignmentRepository, GuideRepository, ScheduleRepository
)
from tourops.models import ActivityAssignment, ActivitySchedule
from tourops.services.guide_selection import AssignmentDraft, GuideSelector, CapacityGuideSelector

logger = logging.getLogger(__name__)


def _as_draft(item: Union[AssignmentDraft, Dict[str, Any]]) -> AssignmentDraft:
    if isinstance(item, AssignmentDraft):
        return item
    if isinstance(item, dict):
        return AssignmentDraft(guide_id=item["guide_id"], is_leader=bool(item.get("is_leader")))
    # pydantic models and other attribute carriers
    return AssignmentDraft(guide_id=item.guide_id, is_leader=bool(item.is_leader))


class AssignmentService(BaseService):
    """Guides assigned to a schedule, with at most one leader"""

    def __init__(
        self,
        session,
        assignment_repo: Optional[AssignmentRepository] = None,
        guide_repo: Optional[GuideRepository] = None,
        schedule_repo: Optional[ScheduleRepository] = None,
        selector: Optional[GuideSelector] = None,
    ):
        super().__init__(session)
        self.assignment_repo = assignment_repo or AssignmentRepository(session)
        self.guide_repo = guide_repo or GuideRepository(session)
        self.schedule_repo = schedule_repo or ScheduleRepository(session)
        self.selector = selector or CapacityGuideSelector(self.guide_repo)

    async def _get_schedule(self, schedule_id: str) -> ActivitySchedule:
        schedule = await self.schedule_repo.get(schedule_id)
        if not schedule:
            raise NotFoundError("Schedule", schedule_id)
        return schedule

    async def _validate(self, schedule: ActivitySchedule, drafts: List[AssignmentDraft]) -> None:
        leaders = sum(1 for d in drafts if d.is_leader)
        if leaders > 1:
            raise ConflictError("Only one guide can lead a schedule", reason="multiple_leaders")

        repeated = [guide_id for guide_id, n in Counter(d.guide_id for d in drafts).items() if n > 1]
        if repeated:
            raise ConflictError(
                "A guide can only be assigned once per schedule",
                reason="duplicate_guide",
                guide_ids=repeated,
            )

        guide_ids = [d.guide_id for d in drafts]
        guides = {g.id: g for g in await self.guide_repo.get_many(guide_ids)}
        for guide_id in guide_ids:
            guide = guides.get(guide_id)
            if not guide:
                raise NotFoundError("Guide", guide_id)
            if not guide.status:
                raise ValidationError(f"Guide {guide.name} is not active", field="guide_id")

        if schedule.status:
            clashes = await self.assignment_repo.find_guide_conflicts(
                guide_ids,
                schedule.scheduled_start,
                schedule.scheduled_end,
                exclude_schedule_id=schedule.id,
            )
            if clashes:
                raise ConflictError(
                    "Guide is already assigned to an overlapping schedule",
                    reason="guide_overlap",
                    conflicts=[{"guideId": g, "scheduleId": s} for g, s in clashes],
                )

    async def list_assignments(self, schedule_id: str) -> List[ActivityAssignment]:
        await self._get_schedule(schedule_id)
        return await self.assignment_repo.list_by_schedule(schedule_id)

    async def replace_assignments(self, schedule_id: str, assignments: Sequence) -> List[ActivityAssignment]:
        """Replace every assignment of a schedule, or change nothing on error"""
        schedule = await self._get_schedule(schedule_id)
        drafts = [_as_draft(a) for a in assignments]
        await self._validate(schedule, drafts)

        await self.assignment_repo.delete_by_schedule(schedule_id)
        for draft in drafts:
            await self.assignment_repo.create(obj_in={
                "activity_schedule_id": schedule_id,
                "guide_id": draft.guide_id,
                "is_leader": draft.is_leader,
            })

        logger.info("Schedule %s assignments replaced: %s guides, leader %s",
                    schedule_id, len(drafts), next((d.guide_id for d in drafts if d.is_leader), None))
        return await self.assignment_repo.list_by_schedule(schedule_id)

    async def auto_assign(self, schedule_id: str, party_size: Optional[int] = None) -> List[ActivityAssignment]:
        """Let the selector staff a schedule that has no guides yet"""
        schedule = await self._get_schedule(schedule_id)
        if await self.assignment_repo.list_by_schedule(schedule_id):
            raise ConflictError("Schedule already has guide assignments", reason="assignments_exist")

        size = schedule.capacity if party_size is None else party_size
        drafts = await self.selector.select_guides(schedule, size)
        if not drafts:
            raise ConflictError("No leader-capable guide is available for this schedule",
                                reason="no_guides_available")

        return await self.replace_assignments(schedule_id, drafts)
