"""SDR and closer rankings for the dashboard leaderboards."""
from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from commissions.goals import goal_percentage
from commissions.records import (
    CENT,
    ZERO,
    ActivityRecord,
    CommissionPolicy,
    ContactRecord,
    DealRecord,
    index_contacts,
    resolve_closer,
)
from commissions.valuation import BusinessModel, deal_value

DEFAULT_LIMIT = 10


@dataclass(frozen=True)
class RankingEntry:
    rank: int
    employee_id: str
    count: int  # meetings held (SDR) or deals won (closer)
    revenue: Decimal
    goal_target: Decimal
    goal_percentage: Decimal


class RankingEngine:
    """Rank employees against an even split of the team's monthly target."""

    def __init__(self, policy: CommissionPolicy, business_model: BusinessModel = BusinessModel.TCV) -> None:
        self.policy = policy
        self.business_model = BusinessModel.parse(business_model)

    @staticmethod
    def individual_target(monthly_target: Decimal, headcount: int) -> Decimal:
        return (Decimal(monthly_target) / max(headcount, 1)).quantize(CENT, rounding=ROUND_HALF_UP)

    def sdr_ranking(
        self,
        meetings: Iterable[ActivityRecord],
        sdr_headcount: int,
        limit: int = DEFAULT_LIMIT,
    ) -> list[RankingEntry]:
        target = self.individual_target(self.policy.sdr_meetings_target, sdr_headcount)
        held = Counter(m.sdr_id for m in meetings if m.sdr_id and m.is_completed)
        ordered = sorted(held.items(), key=lambda item: (-item[1], item[0]))[:limit]
        return [
            RankingEntry(
                rank=rank,
                employee_id=sdr_id,
                count=count,
                revenue=ZERO,
                goal_target=target,
                goal_percentage=goal_percentage(count, target),
            )
            for rank, (sdr_id, count) in enumerate(ordered, start=1)
        ]

    def closer_ranking(
        self,
        deals: Iterable[DealRecord],
        closer_headcount: int,
        limit: int = DEFAULT_LIMIT,
        contacts: Iterable[ContactRecord] | None = None,
    ) -> list[RankingEntry]:
        """Sorted by deals won, then by revenue.

        A deal counts for its contact's closer when there is one, otherwise
        for the closer on the deal (orphan deals included).
        """
        contacts_by_id = index_contacts(contacts)
        target = self.individual_target(self.policy.closer_sales_target, closer_headcount)
        counts: Counter = Counter()
        revenue: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for deal in deals:
            closer_id = resolve_closer(deal, contacts_by_id) if deal.is_won else None
            if not closer_id:
                continue
            counts[closer_id] += 1
            revenue[closer_id] += deal_value(deal, self.business_model)

        ordered = sorted(counts, key=lambda cid: (-counts[cid], -revenue[cid], cid))[:limit]
        return [
            RankingEntry(
                rank=rank,
                employee_id=closer_id,
                count=counts[closer_id],
                revenue=revenue[closer_id],
                goal_target=target,
                goal_percentage=goal_percentage(revenue[closer_id], target),
            )
            for rank, closer_id in enumerate(ordered, start=1)
        ]
