from datetime import datetime, timezone
from decimal import Decimal

from commissions.formulas import (
    FormulaVariant,
    Role,
    calculate_closer_commission,
    calculate_sdr_commission,
    closer_metrics_for_period,
    project_commission,
    sdr_metrics_for_period,
)
from commissions.records import ActivityRecord, CommissionPolicy, DealRecord
from commissions.valuation import BusinessModel

POLICY = CommissionPolicy()


def test_sdr_commission_reaches_checkpoint_2():
    result = calculate_sdr_commission(16, 4, POLICY)

    assert result.base_commission == Decimal("1200")
    assert result.target_achievement_percent == Decimal("80")
    assert result.checkpoint_tier == 2
    assert result.checkpoint_multiplier == Decimal("0.75")
    assert result.final_commission == Decimal("900")


def test_closer_commission_above_target():
    result = calculate_closer_commission(Decimal("12000"), 3, POLICY)

    assert result.base_commission == Decimal("1200")
    assert result.target_achievement_percent == Decimal("120")
    assert result.checkpoint_tier == 3
    assert result.final_commission == Decimal("1200")


def test_closer_below_checkpoint_forfeits_everything():
    policy = CommissionPolicy(
        closer_fixed_commission=500,
        closer_per_sale_commission=150,
        closer_commission_percent=5,
        closer_sales_target=15000,
    )
    result = calculate_closer_commission(Decimal("6000"), 2, policy)

    assert result.base_commission == Decimal("1100")
    assert result.target_achievement_percent == Decimal("40")
    assert result.checkpoint_tier == 0
    assert result.final_commission == Decimal("0")


def test_sdr_without_meetings_earns_nothing():
    result = calculate_sdr_commission(0, 0, POLICY)
    assert result.final_commission == Decimal("0")
    assert result.checkpoint_tier == 0


def test_additive_legacy_formulas_are_reproducible():
    sdr = calculate_sdr_commission(16, 4, POLICY, FormulaVariant.ADDITIVE_LEGACY)
    # 800 + 400 + 800 * 0.75
    assert sdr.base_commission == Decimal("800")
    assert sdr.final_commission == Decimal("1800")

    closer = calculate_closer_commission(12000, 3, POLICY, FormulaVariant.ADDITIVE_LEGACY)
    # 1200 + 0 + 1200 * 1
    assert closer.final_commission == Decimal("2400")
    assert closer.variant is FormulaVariant.ADDITIVE_LEGACY


def test_sdr_metrics_count_only_own_completed_meetings():
    meetings = [
        ActivityRecord(sdr_id="u1", status="completed", converted_to_sale=True),
        ActivityRecord(sdr_id="u1", status="completed"),
        ActivityRecord(sdr_id="u1", status="scheduled"),
        ActivityRecord(sdr_id="u1", status="no-show"),
        ActivityRecord(sdr_id="u2", status="completed"),
    ]
    metrics = sdr_metrics_for_period(meetings, POLICY, "u1", "Ana", 3, 2026)

    assert metrics.meetings_held == 2
    assert metrics.meetings_converted == 1
    assert metrics.meetings_target == Decimal("20")
    assert metrics.target_achievement_percent == Decimal("10")
    assert metrics.final_commission == Decimal("0")


def test_closer_metrics_skip_orphans_and_other_closers():
    sale_date = datetime(2026, 3, 5, tzinfo=timezone.utc)
    deals = [
        DealRecord(value=6000, status="won", closer_id="c1", contact_id="k1", sale_date=sale_date),
        DealRecord(value=6000, status="won", assigned_to="c1", contact_id="k2", sale_date=sale_date),
        DealRecord(value=9000, status="won", closer_id="c1", sale_date=sale_date),  # orphan
        DealRecord(value=9000, status="lost", closer_id="c1", contact_id="k3"),
        DealRecord(value=9000, status="won", closer_id="c2", contact_id="k4"),
    ]
    metrics = closer_metrics_for_period(deals, POLICY, "c1", "Bruno", 3, 2026)

    assert metrics.sales_count == 2
    assert metrics.total_sales == Decimal("12000")
    assert metrics.checkpoint_tier == 3
    assert metrics.final_commission == Decimal("1200")


def test_closer_metrics_value_mrr_deals_monthly():
    deals = [DealRecord(value=12000, status="won", duration=12, closer_id="c1", contact_id="k1")]
    metrics = closer_metrics_for_period(
        deals, POLICY, "c1", "Bruno", 3, 2026, business_model=BusinessModel.MRR
    )
    assert metrics.total_sales == Decimal("1000")


def test_projection_extrapolates_daily_pace():
    # 8 meetings in 10 days -> 24 over 30 days -> 120% -> tier 3
    projected = project_commission(8, 10, POLICY, Role.SDR, days_in_month=30)
    assert projected == Decimal("1200")

    # 3000 in 10 days -> 9000 -> 90% -> tier 2
    projected = project_commission(3000, 10, POLICY, Role.CLOSER, days_in_month=30)
    assert projected == Decimal("675")


def test_projection_is_zero_before_first_day():
    assert project_commission(5, 0, POLICY, Role.SDR) == Decimal("0")


def test_closer_metrics_credit_the_contact_closer_like_the_overview():
    from commissions.aggregator import CommissionAggregator
    from commissions.records import ContactRecord

    deals = [DealRecord(value=12000, status="won", closer_id="deal-closer", contact_id="k1")]
    contacts = [ContactRecord(id="k1", closer_id="contact-closer")]

    summary = CommissionAggregator(POLICY).closer_summary(deals, contacts)
    mine = closer_metrics_for_period(deals, POLICY, "contact-closer", "Bia", 3, 2026, contacts=contacts)
    theirs = closer_metrics_for_period(deals, POLICY, "deal-closer", "Davi", 3, 2026, contacts=contacts)

    assert summary.employees[0].employee_id == "contact-closer"
    assert mine.final_commission == summary.employees[0].final_commission == Decimal("1200")
    assert theirs.sales_count == 0
