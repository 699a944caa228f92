"""Calling layer around the commission engine.

Loads a policy snapshot and the period's records through a repository, runs
the pure engine, and persists ``UserCommission`` snapshots. Storage failures
(missing or duplicated settings) surface here, before the engine runs.
"""
from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.utils import timezone

from commissions.aggregator import CommissionAggregator, EmployeeCommissionResult, OverviewReport
from commissions.formulas import (
    DEFAULT_VARIANT,
    CloserMetrics,
    FormulaVariant,
    Role,
    SDRMetrics,
    closer_metrics_for_period,
    project_commission,
    sdr_metrics_for_period,
)
from commissions.goals import GoalData, GoalProgressCalculator, GoalTargets
from commissions.rankings import RankingEngine, RankingEntry
from commissions.records import CENT, ZERO, ActivityRecord, CommissionPolicy, ContactRecord, DealRecord
from commissions.repository import (
    CommissionError,
    CommissionRepository,
    CommissionSettingsNotFound,
    DjangoCommissionRepository,
    DuplicateCommissionSettings,
)
from commissions.tiers import NextCheckpoint, next_checkpoint
from commissions.valuation import BusinessModel

logger = logging.getLogger(__name__)

__all__ = [
    "CommissionError",
    "CommissionService",
    "CommissionSettingsNotFound",
    "DuplicateCommissionSettings",
    "current_period",
    "parse_period",
]

ROLE_BY_USER_ROLE = {"SDR": Role.SDR, "CLOSER": Role.CLOSER}


def current_period() -> str:
    today = timezone.localdate()
    return f"{today.year}-{today.month:02d}"


def parse_period(period: str) -> tuple[int, int]:
    """``"2026-03" -> (2026, 3)``. Raises ValueError on malformed input."""
    if not period or len(period) != 7 or period[4] != "-":
        raise ValueError(f"Periode invalide: {period!r} (attendu YYYY-MM).")
    year, month = int(period[:4]), int(period[5:7])
    if not 1 <= month <= 12:
        raise ValueError(f"Mois invalide: {month}.")
    return year, month


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """Aware [start, end) datetimes of a calendar month in the current timezone."""
    start = timezone.make_aware(datetime(year, month, 1))
    if month == 12:
        end = timezone.make_aware(datetime(year + 1, 1, 1))
    else:
        end = timezone.make_aware(datetime(year, month + 1, 1))
    return start, end


def _q2(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PeriodSnapshot:
    """Everything one computation pass reads, captured once."""

    policy: CommissionPolicy
    business_model: BusinessModel
    meetings: tuple[ActivityRecord, ...]
    deals: tuple[DealRecord, ...]
    contacts: tuple[ContactRecord, ...]


@dataclass(frozen=True)
class Projection:
    achieved: Decimal
    days_elapsed: int
    days_in_month: int
    projected_commission: Decimal
    next_checkpoint: NextCheckpoint | None


class CommissionService:
    """Commission operations for one whitelabel."""

    def __init__(
        self,
        whitelabel_id,
        repository: CommissionRepository | None = None,
        variant: FormulaVariant = DEFAULT_VARIANT,
    ) -> None:
        self.whitelabel_id = whitelabel_id
        self.repository = repository or DjangoCommissionRepository()
        self.variant = variant

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def load_period(self, year: int, month: int) -> PeriodSnapshot:
        start, end = month_bounds(year, month)
        return PeriodSnapshot(
            policy=self.repository.get_policy(self.whitelabel_id),
            business_model=self.repository.get_business_model(self.whitelabel_id),
            meetings=tuple(self.repository.list_meetings(self.whitelabel_id, start, end)),
            deals=tuple(self.repository.list_deals(self.whitelabel_id, start, end)),
            contacts=tuple(self.repository.list_contacts(self.whitelabel_id)),
        )

    def aggregator_for(self, snapshot: PeriodSnapshot) -> CommissionAggregator:
        return CommissionAggregator(snapshot.policy, snapshot.business_model, self.variant)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def overview(self, year: int, month: int) -> OverviewReport:
        snapshot = self.load_period(year, month)
        report = self.aggregator_for(snapshot).overview(
            snapshot.meetings, snapshot.deals, snapshot.contacts
        )
        logger.info(
            "Commission overview whitelabel=%s period=%d-%02d total=%s",
            self.whitelabel_id, year, month, report.total_commissions,
        )
        return report

    def user_metrics(self, user, year: int, month: int) -> SDRMetrics | CloserMetrics | None:
        """Live metrics of one user; None for roles without commissions."""
        role = ROLE_BY_USER_ROLE.get(getattr(user, "role", None))
        if role is None:
            return None
        snapshot = self.load_period(year, month)
        user_id = str(user.pk)
        user_name = user.get_full_name() or user.email
        if role is Role.SDR:
            return sdr_metrics_for_period(
                snapshot.meetings, snapshot.policy, user_id, user_name, month, year, self.variant
            )
        return closer_metrics_for_period(
            snapshot.deals, snapshot.policy, user_id, user_name, month, year,
            snapshot.business_model, self.variant, snapshot.contacts,
        )

    def projection(self, user, now: datetime | None = None) -> Projection | None:
        """Where the user ends the month if the current daily pace holds."""
        now = timezone.localtime(now) if now is not None else timezone.localtime()
        metrics = self.user_metrics(user, now.year, now.month)
        if metrics is None:
            return None
        policy = self.repository.get_policy(self.whitelabel_id)
        if isinstance(metrics, SDRMetrics):
            role, achieved = Role.SDR, Decimal(metrics.meetings_held)
        else:
            role, achieved = Role.CLOSER, metrics.total_sales
        days_in_month = calendar.monthrange(now.year, now.month)[1]
        return Projection(
            achieved=achieved,
            days_elapsed=now.day,
            days_in_month=days_in_month,
            projected_commission=project_commission(
                achieved, now.day, policy, role, days_in_month, self.variant
            ),
            next_checkpoint=next_checkpoint(metrics.target_achievement_percent, policy),
        )

    def goals(self, now: datetime | None = None, employee_id: str | None = None) -> dict[str, GoalData]:
        """Day, week and month progress up to ``now``.

        The week starts on Monday and may begin in the previous month, so
        records are loaded from whichever period starts first.
        """
        now = timezone.localtime(now) if now is not None else timezone.localtime()
        try:
            policy = self.repository.get_policy(self.whitelabel_id)
        except CommissionSettingsNotFound:
            policy = None
        calculator = GoalProgressCalculator(GoalTargets.from_policy(policy), now)
        since = calculator.earliest_start
        meetings = self.repository.list_meetings_held_since(self.whitelabel_id, since)
        deals = self.repository.list_deals(self.whitelabel_id, since, None)
        return {
            "meetings": calculator.meetings_progress(meetings, employee_id),
            "sales": calculator.sales_progress(
                deals,
                self.repository.get_business_model(self.whitelabel_id),
                employee_id,
                contacts=self.repository.list_contacts(self.whitelabel_id),
            ),
        }

    def rankings(self, role: Role, year: int, month: int, limit: int = 10) -> list[RankingEntry]:
        snapshot = self.load_period(year, month)
        engine = RankingEngine(snapshot.policy, snapshot.business_model)
        if Role(role) is Role.SDR:
            headcount = len(self.repository.list_employees(self.whitelabel_id, "SDR"))
            return engine.sdr_ranking(snapshot.meetings, headcount, limit)
        headcount = len(self.repository.list_employees(self.whitelabel_id, "CLOSER"))
        return engine.closer_ranking(snapshot.deals, headcount, limit, contacts=snapshot.contacts)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot_month(self, year: int, month: int, *, final: bool = False, user_ids=None) -> int:
        """Upsert ``UserCommission`` rows for the period. Returns rows written.

        Rows already closed (``is_final``) are left untouched.
        """
        from commissions.models import UserCommission

        snapshot = self.load_period(year, month)
        report = self.aggregator_for(snapshot).overview(
            snapshot.meetings, snapshot.deals, snapshot.contacts
        )
        results = self.aggregator_for(snapshot).results_by_employee(report)

        written = 0
        with transaction.atomic():
            for employee in self.repository.list_employees(self.whitelabel_id):
                role = ROLE_BY_USER_ROLE.get(employee.role)
                if role is None or (user_ids is not None and employee.id not in user_ids):
                    continue
                result = results.get((employee.id, role)) or self._empty_result(
                    employee.id, role, snapshot.policy
                )
                existing = UserCommission.objects.filter(
                    whitelabel_id=self.whitelabel_id,
                    user_id=employee.id,
                    period_year=year,
                    period_month=month,
                ).first()
                if existing is not None and existing.is_final:
                    continue
                UserCommission.objects.update_or_create(
                    whitelabel_id=self.whitelabel_id,
                    user_id=employee.id,
                    period_year=year,
                    period_month=month,
                    defaults=self._row_defaults(result, final),
                )
                written += 1

        logger.info(
            "Snapshot commissions whitelabel=%s period=%d-%02d rows=%d final=%s",
            self.whitelabel_id, year, month, written, final,
        )
        return written

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _empty_result(employee_id: str, role: Role, policy: CommissionPolicy) -> EmployeeCommissionResult:
        """Result for an employee with no activity in the period (tier 0, nothing paid)."""
        return EmployeeCommissionResult(
            employee_id=employee_id,
            role=role,
            total_sales=ZERO,
            sales_count=0,
            base_commission=policy.closer_fixed_commission if role is Role.CLOSER else ZERO,
            bonus=ZERO,
            checkpoint_tier=0,
            checkpoint_multiplier=ZERO,
            target_achievement_percent=ZERO,
            final_commission=ZERO,
        )

    @staticmethod
    def _row_defaults(result: EmployeeCommissionResult, final: bool) -> dict:
        is_sdr = result.role is Role.SDR
        return {
            "user_role": result.role.value,
            "meetings_held": result.sales_count if is_sdr else 0,
            "meetings_converted": result.converted_count if is_sdr else 0,
            "total_sales": _q2(result.total_sales),
            "sales_count": 0 if is_sdr else result.sales_count,
            "base_commission": _q2(result.base_commission),
            "checkpoint_tier": result.checkpoint_tier,
            "checkpoint_multiplier": Decimal(result.checkpoint_multiplier).quantize(Decimal("0.0001")),
            "final_commission": _q2(result.final_commission),
            "target_achievement_percent": _q2(result.target_achievement_percent),
            "is_final": final,
        }


def previous_period(today: date | None = None) -> tuple[int, int]:
    today = today or timezone.localdate()
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1
