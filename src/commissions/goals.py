"""Day / week / month goal progress for meetings and sales.

Independent from commission amounts: it only compares what happened since
the start of each period with the share of the monthly target that period
represents.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from commissions.records import (
    CENT,
    HUNDRED,
    ZERO,
    ActivityRecord,
    CommissionPolicy,
    ContactRecord,
    DealRecord,
    index_contacts,
    resolve_closer,
)
from commissions.valuation import BusinessModel, deal_value

DEFAULT_SDR_MEETINGS_TARGET = Decimal("20")
DEFAULT_CLOSER_SALES_TARGET = Decimal("10000")


def _round2(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class GoalProgress:
    current: Decimal
    target: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class GoalData:
    daily: GoalProgress
    weekly: GoalProgress
    monthly: GoalProgress


@dataclass(frozen=True)
class GoalTargets:
    sdr_meetings_target: Decimal = DEFAULT_SDR_MEETINGS_TARGET
    closer_sales_target: Decimal = DEFAULT_CLOSER_SALES_TARGET

    @classmethod
    def from_policy(cls, policy: CommissionPolicy | None) -> "GoalTargets":
        """Unset or zero targets fall back to the product defaults."""
        if policy is None:
            return cls()
        return cls(
            sdr_meetings_target=policy.sdr_meetings_target or DEFAULT_SDR_MEETINGS_TARGET,
            closer_sales_target=policy.closer_sales_target or DEFAULT_CLOSER_SALES_TARGET,
        )


def goal_percentage(current, target) -> Decimal:
    if not target:
        return ZERO
    return _round2(Decimal(current) / Decimal(target) * HUNDRED)


class GoalProgressCalculator:
    """Compute ``GoalData`` relative to a reference ``now``.

    Each period runs from its start (00:00 today, Monday 00:00, the 1st at
    00:00) up to and including ``now``, in ``now``'s timezone.
    """

    def __init__(self, targets: GoalTargets, now: datetime) -> None:
        self.targets = targets
        self.now = now
        self.day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        self.week_start = self.day_start - timedelta(days=now.weekday())
        self.month_start = self.day_start.replace(day=1)
        self.days_in_month = calendar.monthrange(now.year, now.month)[1]

    @property
    def earliest_start(self) -> datetime:
        """Start of the longest period; the week can begin last month."""
        return min(self.week_start, self.month_start)

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def daily_target(self, monthly_target: Decimal) -> Decimal:
        return _round2(Decimal(monthly_target) / self.days_in_month)

    def weekly_target(self, monthly_target: Decimal) -> Decimal:
        # Weeks in the month from its real length (28 days -> 4, 31 -> 4.43).
        weeks_in_month = Decimal(self.days_in_month) / Decimal(7)
        return _round2(Decimal(monthly_target) / weeks_in_month)

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def meetings_progress(
        self,
        meetings: Iterable[ActivityRecord],
        employee_id: str | None = None,
    ) -> GoalData:
        """Completed meetings dated by when they were held."""
        held_at = [
            m.held_at
            for m in meetings
            if m.is_completed
            and m.held_at is not None
            and (employee_id is None or m.sdr_id == employee_id)
        ]
        counts = [
            Decimal(sum(1 for ts in held_at if start <= ts <= self.now))
            for start in (self.day_start, self.week_start, self.month_start)
        ]
        return self._build(counts, Decimal(self.targets.sdr_meetings_target))

    def sales_progress(
        self,
        deals: Iterable[DealRecord],
        business_model: BusinessModel = BusinessModel.TCV,
        employee_id: str | None = None,
        contacts: Iterable[ContactRecord] | None = None,
    ) -> GoalData:
        """Won deals dated by ``sale_date``, valued by the business model.

        Filtering by employee credits a deal to its contact's closer first,
        like the commission overview does.
        """
        business_model = BusinessModel.parse(business_model)
        contacts_by_id = index_contacts(contacts)
        won = [
            d
            for d in deals
            if d.is_won
            and d.sale_date is not None
            and (employee_id is None or resolve_closer(d, contacts_by_id) == employee_id)
        ]
        totals = [
            sum(
                (deal_value(d, business_model) for d in won if start <= d.sale_date <= self.now),
                ZERO,
            )
            for start in (self.day_start, self.week_start, self.month_start)
        ]
        return self._build(totals, Decimal(self.targets.closer_sales_target))

    def _build(self, currents: list[Decimal], monthly_target: Decimal) -> GoalData:
        daily, weekly, monthly = currents
        targets = (
            self.daily_target(monthly_target),
            self.weekly_target(monthly_target),
            monthly_target,
        )
        progress = [
            GoalProgress(
                current=_round2(current),
                target=target,
                percentage=goal_percentage(current, target),
            )
            for current, target in zip((daily, weekly, monthly), targets)
        ]
        return GoalData(daily=progress[0], weekly=progress[1], monthly=progress[2])
