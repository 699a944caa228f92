"""Role formulas: SDR (prospecting) and Closer (closing) commissions.

Two ways of combining base, bonus and checkpoint multiplier exist in the
history of this product:

* ``MULTIPLICATIVE`` (default): ``final = (base + bonus) * multiplier``.
  Below checkpoint 1 the whole commission is forfeited.
* ``ADDITIVE_LEGACY``: ``final = base + bonus + base * multiplier``. Kept so
  old payouts can be reproduced; never the default.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable

from commissions.records import (
    HUNDRED,
    ZERO,
    ActivityRecord,
    CommissionPolicy,
    ContactRecord,
    DealRecord,
    index_contacts,
    resolve_closer,
    to_decimal,
)
from commissions.tiers import achievement_percent, resolve_checkpoint_tier
from commissions.valuation import BusinessModel, deal_value


class Role(str, Enum):
    SDR = "sdr"
    CLOSER = "closer"


class FormulaVariant(str, Enum):
    MULTIPLICATIVE = "multiplicative"
    ADDITIVE_LEGACY = "additive_legacy"


DEFAULT_VARIANT = FormulaVariant.MULTIPLICATIVE


# ────────────────────────────────────────────────────────────
# Formula results
# ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SDRCommission:
    meetings_held: int
    meetings_converted: int
    meeting_commission: Decimal
    bonus_commission: Decimal
    base_commission: Decimal  # before the checkpoint multiplier
    target_achievement_percent: Decimal
    checkpoint_tier: int
    checkpoint_multiplier: Decimal
    final_commission: Decimal
    variant: FormulaVariant = DEFAULT_VARIANT


@dataclass(frozen=True)
class CloserCommission:
    total_sales: Decimal
    sales_count: int
    fixed_commission: Decimal
    per_sale_commission: Decimal
    percent_commission: Decimal
    base_commission: Decimal
    bonus_commission: Decimal
    target_achievement_percent: Decimal
    checkpoint_tier: int
    checkpoint_multiplier: Decimal
    final_commission: Decimal
    variant: FormulaVariant = DEFAULT_VARIANT


# ────────────────────────────────────────────────────────────
# Formulas
# ────────────────────────────────────────────────────────────

def calculate_sdr_commission(
    meetings_held: int,
    meetings_converted: int,
    policy: CommissionPolicy,
    variant: FormulaVariant = DEFAULT_VARIANT,
) -> SDRCommission:
    held = to_decimal(meetings_held)
    converted = to_decimal(meetings_converted)
    meeting_commission = held * policy.sdr_meeting_commission
    bonus = converted * policy.sdr_bonus_closed_meeting

    achievement = achievement_percent(held, policy.sdr_meetings_target)
    checkpoint = resolve_checkpoint_tier(achievement, policy)

    if variant is FormulaVariant.ADDITIVE_LEGACY:
        base = meeting_commission
        final = base + bonus + base * checkpoint.multiplier
    else:
        base = meeting_commission + bonus
        final = base * checkpoint.multiplier

    return SDRCommission(
        meetings_held=int(meetings_held or 0),
        meetings_converted=int(meetings_converted or 0),
        meeting_commission=meeting_commission,
        bonus_commission=bonus,
        base_commission=base,
        target_achievement_percent=achievement,
        checkpoint_tier=checkpoint.tier,
        checkpoint_multiplier=checkpoint.multiplier,
        final_commission=final,
        variant=variant,
    )


def calculate_closer_commission(
    total_sales,
    sales_count: int,
    policy: CommissionPolicy,
    variant: FormulaVariant = DEFAULT_VARIANT,
) -> CloserCommission:
    total_sales = to_decimal(total_sales)
    fixed = policy.closer_fixed_commission
    per_sale = to_decimal(sales_count) * policy.closer_per_sale_commission
    percent = total_sales * policy.closer_commission_percent / HUNDRED

    achievement = achievement_percent(total_sales, policy.closer_sales_target)
    checkpoint = resolve_checkpoint_tier(achievement, policy)

    if variant is FormulaVariant.ADDITIVE_LEGACY:
        base = fixed + percent
        bonus = per_sale
        final = base + bonus + base * checkpoint.multiplier
    else:
        base = fixed + per_sale + percent
        bonus = ZERO
        final = base * checkpoint.multiplier

    return CloserCommission(
        total_sales=total_sales,
        sales_count=int(sales_count or 0),
        fixed_commission=fixed,
        per_sale_commission=per_sale,
        percent_commission=percent,
        base_commission=base,
        bonus_commission=bonus,
        target_achievement_percent=achievement,
        checkpoint_tier=checkpoint.tier,
        checkpoint_multiplier=checkpoint.multiplier,
        final_commission=final,
        variant=variant,
    )


# ────────────────────────────────────────────────────────────
# Per-period metrics for a single employee
# ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SDRMetrics:
    user_id: str
    user_name: str
    period_month: int
    period_year: int
    meetings_held: int
    meetings_converted: int
    meetings_target: Decimal
    target_achievement_percent: Decimal
    base_commission: Decimal
    bonus_commission: Decimal
    checkpoint_tier: int
    checkpoint_multiplier: Decimal
    final_commission: Decimal


@dataclass(frozen=True)
class CloserMetrics:
    user_id: str
    user_name: str
    period_month: int
    period_year: int
    total_sales: Decimal
    sales_count: int
    sales_target: Decimal
    target_achievement_percent: Decimal
    base_commission: Decimal
    checkpoint_tier: int
    checkpoint_multiplier: Decimal
    final_commission: Decimal


def sdr_metrics_for_period(
    meetings: Iterable[ActivityRecord],
    policy: CommissionPolicy,
    user_id: str,
    user_name: str,
    period_month: int,
    period_year: int,
    variant: FormulaVariant = DEFAULT_VARIANT,
) -> SDRMetrics:
    completed = [m for m in meetings if m.is_completed and m.sdr_id == user_id]
    converted = sum(1 for m in completed if m.converted_to_sale)
    commission = calculate_sdr_commission(len(completed), converted, policy, variant)
    return SDRMetrics(
        user_id=user_id,
        user_name=user_name,
        period_month=period_month,
        period_year=period_year,
        meetings_held=commission.meetings_held,
        meetings_converted=commission.meetings_converted,
        meetings_target=policy.sdr_meetings_target,
        target_achievement_percent=commission.target_achievement_percent,
        base_commission=commission.base_commission,
        bonus_commission=commission.bonus_commission,
        checkpoint_tier=commission.checkpoint_tier,
        checkpoint_multiplier=commission.checkpoint_multiplier,
        final_commission=commission.final_commission,
    )


def closer_metrics_for_period(
    deals: Iterable[DealRecord],
    policy: CommissionPolicy,
    user_id: str,
    user_name: str,
    period_month: int,
    period_year: int,
    business_model: BusinessModel = BusinessModel.TCV,
    variant: FormulaVariant = DEFAULT_VARIANT,
    contacts: Iterable[ContactRecord] | None = None,
) -> CloserMetrics:
    """Won, non-orphan deals credited to ``user_id`` the way the overview credits them."""
    contacts_by_id = index_contacts(contacts)
    won = [
        d for d in deals
        if d.is_won and not d.is_orphan and resolve_closer(d, contacts_by_id) == user_id
    ]
    total = sum((deal_value(d, business_model) for d in won), ZERO)
    commission = calculate_closer_commission(total, len(won), policy, variant)
    return CloserMetrics(
        user_id=user_id,
        user_name=user_name,
        period_month=period_month,
        period_year=period_year,
        total_sales=commission.total_sales,
        sales_count=commission.sales_count,
        sales_target=policy.closer_sales_target,
        target_achievement_percent=commission.target_achievement_percent,
        base_commission=commission.base_commission,
        checkpoint_tier=commission.checkpoint_tier,
        checkpoint_multiplier=commission.checkpoint_multiplier,
        final_commission=commission.final_commission,
    )


def project_commission(
    achieved,
    days_elapsed: int,
    policy: CommissionPolicy,
    role: Role,
    days_in_month: int = 30,
    variant: FormulaVariant = DEFAULT_VARIANT,
) -> Decimal:
    """Final commission if the current daily pace holds for the whole month.

    Conservative on purpose: SDR projections assume no further conversions,
    Closer projections assume no per-sale component.
    """
    if days_elapsed <= 0:
        return ZERO
    projected_total = to_decimal(achieved) / Decimal(days_elapsed) * Decimal(days_in_month)
    if Role(role) is Role.SDR:
        meetings = int(projected_total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        return calculate_sdr_commission(meetings, 0, policy, variant).final_commission
    return calculate_closer_commission(projected_total, 0, policy, variant).final_commission
