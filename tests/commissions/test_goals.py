from datetime import datetime, timedelta, timezone
from decimal import Decimal

from commissions.goals import GoalProgressCalculator, GoalTargets, goal_percentage
from commissions.records import ActivityRecord, CommissionPolicy, DealRecord
from commissions.valuation import BusinessModel

# Wednesday 18 March 2026, 15:00 UTC
NOW = datetime(2026, 3, 18, 15, 0, tzinfo=timezone.utc)


def _calculator(targets=None):
    return GoalProgressCalculator(targets or GoalTargets(), NOW)


def test_period_starts():
    calc = _calculator()

    assert calc.day_start == datetime(2026, 3, 18, tzinfo=timezone.utc)
    assert calc.week_start == datetime(2026, 3, 16, tzinfo=timezone.utc)
    assert calc.month_start == datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert calc.days_in_month == 31


def test_targets_derive_from_month_length():
    calc = _calculator()

    # 20 / 31 and 20 / (31 / 7)
    assert calc.daily_target(Decimal("20")) == Decimal("0.65")
    assert calc.weekly_target(Decimal("20")) == Decimal("4.52")


def test_meetings_progress_buckets_by_held_date():
    meetings = [
        ActivityRecord(sdr_id="s1", status="completed", completed_at=NOW - timedelta(hours=2)),
        ActivityRecord(sdr_id="s1", status="completed", completed_at=NOW - timedelta(days=1)),
        ActivityRecord(sdr_id="s1", status="completed", scheduled_at=NOW - timedelta(days=10)),
        ActivityRecord(sdr_id="s2", status="completed", completed_at=NOW - timedelta(hours=1)),
        ActivityRecord(sdr_id="s1", status="scheduled", scheduled_at=NOW - timedelta(hours=1)),
        ActivityRecord(sdr_id="s1", status="completed", completed_at=NOW + timedelta(hours=1)),
        ActivityRecord(sdr_id="s1", status="completed", completed_at=datetime(2026, 2, 27, tzinfo=timezone.utc)),
    ]
    progress = _calculator().meetings_progress(meetings)

    assert progress.daily.current == Decimal("2")
    assert progress.weekly.current == Decimal("3")
    assert progress.monthly.current == Decimal("4")
    assert progress.monthly.target == Decimal("20")
    assert progress.monthly.percentage == Decimal("20.00")


def test_meetings_progress_for_one_employee():
    meetings = [
        ActivityRecord(sdr_id="s1", status="completed", completed_at=NOW - timedelta(hours=2)),
        ActivityRecord(sdr_id="s2", status="completed", completed_at=NOW - timedelta(hours=1)),
    ]
    progress = _calculator().meetings_progress(meetings, employee_id="s2")

    assert progress.daily.current == Decimal("1")


def test_sales_progress_uses_sale_date_and_business_model():
    deals = [
        DealRecord(value=3000, status="won", duration=3, closer_id="c1", sale_date=NOW - timedelta(hours=3)),
        DealRecord(value=6000, status="won", duration=6, closer_id="c1", sale_date=NOW - timedelta(days=5)),
        DealRecord(value=9000, status="open", closer_id="c1", sale_date=NOW - timedelta(hours=1)),
        DealRecord(value=9000, status="won", closer_id="c1"),
    ]
    calc = _calculator()

    tcv = calc.sales_progress(deals, BusinessModel.TCV)
    assert tcv.daily.current == Decimal("3000")
    assert tcv.weekly.current == Decimal("3000")
    assert tcv.monthly.current == Decimal("9000")
    assert tcv.monthly.percentage == Decimal("90.00")

    mrr = calc.sales_progress(deals, BusinessModel.MRR)
    assert mrr.monthly.current == Decimal("2000")


def test_goal_percentage_with_zero_target():
    assert goal_percentage(5, 0) == Decimal("0")
    assert goal_percentage(1, 3) == Decimal("33.33")
    assert goal_percentage(2, 3) == Decimal("66.67")


def test_targets_fall_back_to_defaults():
    assert GoalTargets.from_policy(None) == GoalTargets()

    policy = CommissionPolicy(sdr_meetings_target=0, closer_sales_target=25000)
    targets = GoalTargets.from_policy(policy)
    assert targets.sdr_meetings_target == Decimal("20")
    assert targets.closer_sales_target == Decimal("25000")


def test_sales_progress_filters_by_contact_closer():
    from commissions.records import ContactRecord

    deals = [DealRecord(value=4000, status="won", closer_id="deal-closer", contact_id="k1", sale_date=NOW)]
    contacts = [ContactRecord(id="k1", closer_id="contact-closer")]
    calc = _calculator()

    assert calc.sales_progress(deals, employee_id="contact-closer", contacts=contacts).daily.current == Decimal("4000.00")
    assert calc.sales_progress(deals, employee_id="deal-closer", contacts=contacts).daily.current == Decimal("0.00")


def test_earliest_start_reaches_into_previous_month():
    # Sunday 1 March 2026: the week began on Monday 23 February
    calc = GoalProgressCalculator(GoalTargets(), datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))

    assert calc.earliest_start == datetime(2026, 2, 23, tzinfo=timezone.utc)
    assert _calculator().earliest_start == datetime(2026, 3, 1, tzinfo=timezone.utc)
