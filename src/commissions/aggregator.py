"""Fan-out/fan-in of the role formulas over a tenant's records.

One ``CommissionAggregator`` holds exactly one policy snapshot, one business
model and one formula variant, so a report can never mix valuation modes.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping

from commissions.formulas import (
    DEFAULT_VARIANT,
    FormulaVariant,
    Role,
    calculate_closer_commission,
    calculate_sdr_commission,
)
from commissions.records import (
    ZERO,
    ActivityRecord,
    CommissionPolicy,
    ContactRecord,
    DealRecord,
    index_contacts,
    resolve_closer,
)
from commissions.valuation import BusinessModel, deal_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmployeeCommissionResult:
    employee_id: str
    role: Role
    total_sales: Decimal
    sales_count: int  # meetings held (SDR) or won deals (Closer)
    base_commission: Decimal
    bonus: Decimal
    checkpoint_tier: int
    checkpoint_multiplier: Decimal
    target_achievement_percent: Decimal
    final_commission: Decimal
    converted_count: int = 0  # converted meetings, SDR only


@dataclass(frozen=True)
class RoleCommissionSummary:
    role: Role
    total_commissions: Decimal
    employee_count: int
    total_sales: Decimal
    sales_count: int
    employees: tuple[EmployeeCommissionResult, ...]


@dataclass(frozen=True)
class OverviewReport:
    total_commissions: Decimal
    sdr_commissions: Decimal
    closer_commissions: Decimal
    sdr_count: int
    closer_count: int
    total_sales: Decimal
    total_deals: int
    average_achievement_percent: Decimal
    sdr: RoleCommissionSummary
    closer: RoleCommissionSummary


def _summarize(role: Role, results: list[EmployeeCommissionResult]) -> RoleCommissionSummary:
    results = sorted(results, key=lambda r: r.employee_id)
    return RoleCommissionSummary(
        role=role,
        total_commissions=sum((r.final_commission for r in results), ZERO),
        employee_count=len(results),
        total_sales=sum((r.total_sales for r in results), ZERO),
        sales_count=sum(r.sales_count for r in results),
        employees=tuple(results),
    )


class CommissionAggregator:
    """Compute per-employee commissions and roll them up by role."""

    def __init__(
        self,
        policy: CommissionPolicy,
        business_model: BusinessModel = BusinessModel.TCV,
        variant: FormulaVariant = DEFAULT_VARIANT,
    ) -> None:
        self.policy = policy
        self.business_model = BusinessModel.parse(business_model)
        self.variant = FormulaVariant(variant)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def sdr_summary(
        self,
        meetings: Iterable[ActivityRecord],
        deals: Iterable[DealRecord] = (),
    ) -> RoleCommissionSummary:
        """Completed meetings drive the commission, sourced won deals the sales total."""
        completed_by_sdr: dict[str, list[ActivityRecord]] = defaultdict(list)
        for meeting in meetings:
            if meeting.sdr_id and meeting.is_completed:
                completed_by_sdr[meeting.sdr_id].append(meeting)

        sales_by_sdr: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for deal in self._won_valid_deals(deals):
            if deal.sdr_id:
                sales_by_sdr[deal.sdr_id] += deal_value(deal, self.business_model)

        results = []
        for sdr_id in set(completed_by_sdr) | set(sales_by_sdr):
            held = completed_by_sdr.get(sdr_id, [])
            converted = sum(1 for m in held if m.converted_to_sale)
            commission = calculate_sdr_commission(len(held), converted, self.policy, self.variant)
            results.append(
                EmployeeCommissionResult(
                    employee_id=sdr_id,
                    role=Role.SDR,
                    total_sales=sales_by_sdr.get(sdr_id, ZERO),
                    sales_count=commission.meetings_held,
                    base_commission=commission.base_commission,
                    bonus=commission.bonus_commission,
                    checkpoint_tier=commission.checkpoint_tier,
                    checkpoint_multiplier=commission.checkpoint_multiplier,
                    target_achievement_percent=commission.target_achievement_percent,
                    final_commission=commission.final_commission,
                    converted_count=commission.meetings_converted,
                )
            )
        summary = _summarize(Role.SDR, results)
        logger.debug(
            "SDR summary: %d employees, total=%s", summary.employee_count, summary.total_commissions
        )
        return summary

    def closer_summary(
        self,
        deals: Iterable[DealRecord],
        contacts: Iterable[ContactRecord] | Mapping[str, ContactRecord] | None = None,
    ) -> RoleCommissionSummary:
        """Won, non-orphan deals grouped by the closer responsible for them."""
        contacts_by_id = index_contacts(contacts)

        deals_by_closer: dict[str, list[DealRecord]] = defaultdict(list)
        for deal in self._won_valid_deals(deals):
            closer_id = resolve_closer(deal, contacts_by_id)
            if closer_id:
                deals_by_closer[closer_id].append(deal)

        results = []
        for closer_id, closer_deals in deals_by_closer.items():
            total = sum((deal_value(d, self.business_model) for d in closer_deals), ZERO)
            commission = calculate_closer_commission(
                total, len(closer_deals), self.policy, self.variant
            )
            results.append(
                EmployeeCommissionResult(
                    employee_id=closer_id,
                    role=Role.CLOSER,
                    total_sales=commission.total_sales,
                    sales_count=commission.sales_count,
                    base_commission=commission.base_commission,
                    bonus=commission.bonus_commission,
                    checkpoint_tier=commission.checkpoint_tier,
                    checkpoint_multiplier=commission.checkpoint_multiplier,
                    target_achievement_percent=commission.target_achievement_percent,
                    final_commission=commission.final_commission,
                )
            )
        summary = _summarize(Role.CLOSER, results)
        logger.debug(
            "Closer summary: %d employees, total=%s", summary.employee_count, summary.total_commissions
        )
        return summary

    def overview(
        self,
        meetings: Iterable[ActivityRecord],
        deals: Iterable[DealRecord],
        contacts: Iterable[ContactRecord] | Mapping[str, ContactRecord] | None = None,
    ) -> OverviewReport:
        deals = list(deals)
        sdr = self.sdr_summary(meetings, deals)
        closer = self.closer_summary(deals, contacts)

        # A deal with both an SDR and a closer would be counted twice if the
        # role totals were added; count each won deal once instead.
        won = self._won_valid_deals(deals)
        total_sales = sum((deal_value(d, self.business_model) for d in won), ZERO)

        everyone = sdr.employees + closer.employees
        if everyone:
            average = sum((e.target_achievement_percent for e in everyone), ZERO) / len(everyone)
        else:
            average = ZERO

        return OverviewReport(
            total_commissions=sdr.total_commissions + closer.total_commissions,
            sdr_commissions=sdr.total_commissions,
            closer_commissions=closer.total_commissions,
            sdr_count=sdr.employee_count,
            closer_count=closer.employee_count,
            total_sales=total_sales,
            total_deals=len(won),
            average_achievement_percent=average,
            sdr=sdr,
            closer=closer,
        )

    def results_by_employee(self, report: OverviewReport) -> dict[tuple[str, Role], EmployeeCommissionResult]:
        return {(e.employee_id, e.role): e for e in report.sdr.employees + report.closer.employees}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _won_valid_deals(deals: Iterable[DealRecord]) -> list[DealRecord]:
        return [d for d in deals if d.is_won and not d.is_orphan]
