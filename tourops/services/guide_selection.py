"""Guide selection strategies used by automatic assignment.

A selector only proposes assignments; the assignment service validates
the proposal with the same rules as a manual replacement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from tourops.infrastructure.repositories import GuideRepository
from tourops.models import ActivitySchedule


@dataclass(frozen=True)
class AssignmentDraft:
    guide_id: str
    is_leader: bool = False


class GuideSelector(ABC):
    """Strategy interface for picking guides for a schedule"""

    @abstractmethod
    async def select_guides(self, schedule: ActivitySchedule, party_size: int) -> List[AssignmentDraft]:
        """Return proposed assignments, at most one of them flagged as leader"""
        pass


class CapacityGuideSelector(GuideSelector):
    """Leader first, then helpers until their party sizes cover the group.

    Only active guides without an overlapping active assignment are
    considered. A guide with no max_party_size covers any group.
    """

    def __init__(self, guide_repo: GuideRepository):
        self.guide_repo = guide_repo

    async def select_guides(self, schedule: ActivitySchedule, party_size: int) -> List[AssignmentDraft]:
        free = await self.guide_repo.list_free_between(schedule.scheduled_start, schedule.scheduled_end)

        leader = next((g for g in free if g.can_lead), None)
        if leader is None:
            return []

        drafts = [AssignmentDraft(guide_id=leader.id, is_leader=True)]
        covered: Optional[int] = leader.max_party_size
        for guide in free:
            if covered is None or covered >= party_size:
                break
            if guide.id == leader.id:
                continue
            drafts.append(AssignmentDraft(guide_id=guide.id))
            covered = None if guide.max_party_size is None else covered + guide.max_party_size

        return drafts
