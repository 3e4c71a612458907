"""Price computation for bookings.

Pure functions only: totals are informational and never decide whether a
booking is accepted.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class CategoryPrices:
    """Per-category unit prices"""

    adult: Decimal
    child: Decimal
    senior: Decimal


@dataclass(frozen=True)
class PartyCounts:
    adult: int = 0
    child: int = 0
    senior: int = 0

    @property
    def total(self) -> int:
        return self.adult + self.child + self.senior


def _money(value) -> Decimal:
    return Decimal(str(value if value is not None else 0))


def resolve_prices(activity, schedule=None) -> CategoryPrices:
    """Occurrence-level override per category, falling back to the activity price"""

    def pick(name: str) -> Decimal:
        override = getattr(schedule, name, None) if schedule is not None else None
        return _money(override if override is not None else getattr(activity, name))

    return CategoryPrices(
        adult=pick("adult_price"),
        child=pick("child_price"),
        senior=pick("senior_price"),
    )


def compute_total(counts: PartyCounts, prices: CategoryPrices) -> Decimal:
    """adult*adult_price + child*child_price + senior*senior_price, in cents"""
    total = (
        counts.adult * prices.adult
        + counts.child * prices.child
        + counts.senior * prices.senior
    )
    return Decimal(total).quantize(CENTS, rounding=ROUND_HALF_UP)


def commission_amount(total: Decimal, percentage: Optional[Decimal]) -> Decimal:
    """Commission owed to the referring company for *total*"""
    if not percentage:
        return Decimal("0.00")
    return (total * _money(percentage) / Decimal(100)).quantize(CENTS, rounding=ROUND_HALF_UP)
