from decimal import Decimal

import pytest

from commissions.formulas import Role, SDRMetrics
from commissions.models import UserCommission
from commissions.services import (
    CommissionService,
    CommissionSettingsNotFound,
    month_bounds,
    parse_period,
    previous_period,
)


def test_parse_period():
    assert parse_period("2026-03") == (2026, 3)
    for bad in ("2026-13", "2026/03", "26-03", ""):
        with pytest.raises(ValueError):
            parse_period(bad)


def test_previous_period_wraps_year():
    from datetime import date

    assert previous_period(date(2026, 1, 1)) == (2025, 12)
    assert previous_period(date(2026, 7, 1)) == (2026, 6)


@pytest.mark.django_db
def test_month_bounds_are_half_open():
    start, end = month_bounds(2026, 12)
    assert (start.year, start.month, start.day) == (2026, 12, 1)
    assert (end.year, end.month, end.day) == (2027, 1, 1)


@pytest.mark.django_db
def test_overview_from_database(whitelabel, march_activity):
    report = CommissionService(str(whitelabel.pk)).overview(2026, 3)

    assert report.sdr_commissions == Decimal("900")
    assert report.closer_commissions == Decimal("1200")
    assert report.total_commissions == Decimal("2100")
    # orphan deal excluded
    assert report.total_sales == Decimal("12000")
    assert report.total_deals == 3


@pytest.mark.django_db
def test_overview_without_settings_raises(whitelabel):
    with pytest.raises(CommissionSettingsNotFound):
        CommissionService(str(whitelabel.pk)).overview(2026, 3)


@pytest.mark.django_db
def test_other_month_is_empty(whitelabel, march_activity):
    report = CommissionService(str(whitelabel.pk)).overview(2026, 4)

    assert report.total_commissions == Decimal("0")
    assert report.sdr_count == 0


@pytest.mark.django_db
def test_user_metrics_per_role(whitelabel, sdr_user, closer_user, admin_user, march_activity):
    service = CommissionService(str(whitelabel.pk))

    sdr = service.user_metrics(sdr_user, 2026, 3)
    assert isinstance(sdr, SDRMetrics)
    assert sdr.meetings_held == 16
    assert sdr.final_commission == Decimal("900")

    closer = service.user_metrics(closer_user, 2026, 3)
    assert closer.sales_count == 3
    assert closer.final_commission == Decimal("1200")

    assert service.user_metrics(admin_user, 2026, 3) is None


@pytest.mark.django_db
def test_snapshot_month_persists_rows(whitelabel, sdr_user, closer_user, admin_user, march_activity):
    written = CommissionService(str(whitelabel.pk)).snapshot_month(2026, 3)

    assert written == 2
    sdr_row = UserCommission.objects.get(user=sdr_user, period_year=2026, period_month=3)
    assert sdr_row.user_role == Role.SDR.value
    assert sdr_row.meetings_held == 16
    assert sdr_row.meetings_converted == 4
    assert sdr_row.checkpoint_tier == 2
    assert sdr_row.final_commission == Decimal("900.00")

    closer_row = UserCommission.objects.get(user=closer_user)
    assert closer_row.total_sales == Decimal("12000.00")
    assert closer_row.sales_count == 3
    assert closer_row.target_achievement_percent == Decimal("120.00")
    assert not UserCommission.objects.filter(user=admin_user).exists()


@pytest.mark.django_db
def test_snapshot_month_is_idempotent_and_keeps_final_rows(whitelabel, sdr_user, march_activity):
    service = CommissionService(str(whitelabel.pk))
    service.snapshot_month(2026, 3, final=True)
    assert UserCommission.objects.filter(is_final=True).count() == 2

    UserCommission.objects.filter(user=sdr_user).update(final_commission=Decimal("1.00"))
    written = service.snapshot_month(2026, 3)

    assert written == 0
    assert UserCommission.objects.count() == 2
    assert UserCommission.objects.get(user=sdr_user).final_commission == Decimal("1.00")


@pytest.mark.django_db
def test_snapshot_month_writes_zero_rows_for_idle_employees(whitelabel, sdr_user, commission_settings):
    CommissionService(str(whitelabel.pk)).snapshot_month(2026, 3)

    row = UserCommission.objects.get(user=sdr_user)
    assert row.final_commission == Decimal("0")
    assert row.checkpoint_tier == 0


@pytest.mark.django_db
def test_rankings_use_headcount(whitelabel, sdr_user, closer_user, march_activity):
    service = CommissionService(str(whitelabel.pk))

    sdr_ranking = service.rankings(Role.SDR, 2026, 3)
    assert sdr_ranking[0].employee_id == str(sdr_user.pk)
    assert sdr_ranking[0].count == 16
    assert sdr_ranking[0].goal_target == Decimal("20.00")

    closer_ranking = service.rankings(Role.CLOSER, 2026, 3)
    # the orphan deal still counts in the leaderboard
    assert closer_ranking[0].count == 4


# ────────────────────────────────────────────────────────────
# Goals at the start of a month
# ────────────────────────────────────────────────────────────

def _early_month_repository():
    from datetime import datetime, timezone

    from commissions.records import ActivityRecord, CommissionPolicy, ContactRecord, DealRecord
    from commissions.repository import InMemoryCommissionRepository

    return InMemoryCommissionRepository(
        policies={"wl": CommissionPolicy()},
        deals={
            "wl": [
                DealRecord(
                    value=5000, status="won", closer_id="deal-closer", contact_id="k1",
                    sale_date=datetime(2026, 2, 27, 12, 0, tzinfo=timezone.utc),
                ),
            ]
        },
        meetings={
            "wl": [
                ActivityRecord(
                    sdr_id="s1", status="completed",
                    scheduled_at=datetime(2026, 2, 27, 14, 0, tzinfo=timezone.utc),
                    completed_at=datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc),
                ),
            ]
        },
        contacts={"wl": [ContactRecord(id="k1", closer_id="contact-closer")]},
    )


@pytest.mark.django_db
def test_goals_week_reaches_back_into_previous_month():
    from datetime import datetime, timezone

    service = CommissionService("wl", repository=_early_month_repository())
    goals = service.goals(now=datetime(2026, 3, 1, 15, 0, tzinfo=timezone.utc))

    assert goals["sales"].weekly.current == Decimal("5000.00")
    assert goals["sales"].monthly.current == Decimal("0.00")


@pytest.mark.django_db
def test_goals_date_meetings_by_completion():
    from datetime import datetime, timezone

    service = CommissionService("wl", repository=_early_month_repository())
    goals = service.goals(now=datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc))

    meetings = goals["meetings"]
    assert (meetings.daily.current, meetings.weekly.current, meetings.monthly.current) == (
        Decimal("1.00"), Decimal("1.00"), Decimal("1.00"),
    )


@pytest.mark.django_db
def test_goals_employee_filter_uses_contact_closer():
    from datetime import datetime, timezone

    service = CommissionService("wl", repository=_early_month_repository())
    now = datetime(2026, 3, 1, 15, 0, tzinfo=timezone.utc)

    assert service.goals(now=now, employee_id="contact-closer")["sales"].weekly.current == Decimal("5000.00")
    assert service.goals(now=now, employee_id="deal-closer")["sales"].weekly.current == Decimal("0.00")


@pytest.mark.django_db
def test_goals_from_database_count_meeting_completed_after_month_start(whitelabel, sdr_user, commission_settings):
    from datetime import datetime, timezone

    from crm.models import Meeting

    Meeting.objects.create(
        whitelabel=whitelabel,
        sdr=sdr_user,
        title="Reportee",
        scheduled_at=datetime(2026, 2, 26, 14, 0, tzinfo=timezone.utc),
        completed_at=datetime(2026, 3, 2, 14, 0, tzinfo=timezone.utc),
        status=Meeting.Status.COMPLETED,
    )

    goals = CommissionService(str(whitelabel.pk)).goals(
        now=datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc), employee_id=str(sdr_user.pk),
    )

    assert goals["meetings"].monthly.current == Decimal("1.00")


@pytest.mark.django_db
def test_user_metrics_credit_contact_closer(whitelabel, closer_user, commission_settings, period_start):
    from accounts.models import User
    from crm.models import Contact, Deal

    other_closer = User.objects.create_user(
        email="other-closer@test.com",
        password="testpass123",
        first_name="Outro",
        last_name="Closer",
        role=User.Role.CLOSER,
        whitelabel=whitelabel,
    )
    contact = Contact.objects.create(whitelabel=whitelabel, name="Lead Beta", closer=closer_user)
    Deal.objects.create(
        whitelabel=whitelabel,
        contact=contact,
        title="Contrat",
        value=Decimal("12000"),
        status=Deal.Status.WON,
        closer=other_closer,
        sale_date=period_start,
    )
    service = CommissionService(str(whitelabel.pk))

    overview_row = {e.employee_id: e for e in service.overview(2026, 3).closer.employees}[str(closer_user.pk)]
    metrics = service.user_metrics(closer_user, 2026, 3)

    assert metrics.final_commission == overview_row.final_commission == Decimal("1200")
    assert service.user_metrics(other_closer, 2026, 3).sales_count == 0
    assert service.rankings(Role.CLOSER, 2026, 3)[0].employee_id == str(closer_user.pk)
