from decimal import Decimal

from commissions.aggregator import CommissionAggregator
from commissions.formulas import FormulaVariant, Role
from commissions.records import ActivityRecord, CommissionPolicy, ContactRecord, DealRecord
from commissions.valuation import BusinessModel

POLICY = CommissionPolicy()


def _meetings(sdr_id, held, converted=0):
    return [
        ActivityRecord(sdr_id=sdr_id, status="completed", converted_to_sale=i < converted)
        for i in range(held)
    ]


def _won(value, **kwargs):
    kwargs.setdefault("contact_id", "k1")
    return DealRecord(value=value, status="won", **kwargs)


def test_sdr_summary_groups_completed_meetings():
    meetings = (
        _meetings("s1", 16, converted=4)
        + _meetings("s2", 5)
        + [ActivityRecord(sdr_id="s2", status="cancelled"), ActivityRecord(sdr_id=None, status="completed")]
    )
    summary = CommissionAggregator(POLICY).sdr_summary(meetings)

    assert summary.role is Role.SDR
    assert [e.employee_id for e in summary.employees] == ["s1", "s2"]
    s1, s2 = summary.employees
    assert s1.final_commission == Decimal("900")
    assert s1.converted_count == 4
    assert s2.sales_count == 5
    assert s2.final_commission == Decimal("0")
    assert summary.total_commissions == Decimal("900")


def test_sdr_summary_includes_sdrs_with_only_sourced_sales():
    summary = CommissionAggregator(POLICY).sdr_summary([], [_won(5000, sdr_id="s9")])

    assert summary.employee_count == 1
    only = summary.employees[0]
    assert only.employee_id == "s9"
    assert only.total_sales == Decimal("5000")
    assert only.final_commission == Decimal("0")


def test_closer_summary_excludes_orphans_and_open_deals():
    deals = [
        _won(6000, closer_id="c1"),
        _won(6000, closer_id="c1", contact_id="k2"),
        DealRecord(value=50000, status="won", closer_id="c1"),  # orphan
        DealRecord(value=50000, status="open", closer_id="c1", contact_id="k3"),
    ]
    summary = CommissionAggregator(POLICY).closer_summary(deals)

    assert summary.employee_count == 1
    assert summary.total_sales == Decimal("12000")
    assert summary.sales_count == 2
    assert summary.total_commissions == Decimal("1200")


def test_closer_resolution_prefers_contact_closer():
    deals = [_won(10000, closer_id="deal-closer", contact_id="k1")]
    contacts = [ContactRecord(id="k1", closer_id="contact-closer")]
    summary = CommissionAggregator(POLICY).closer_summary(deals, contacts)

    assert [e.employee_id for e in summary.employees] == ["contact-closer"]


def test_closer_resolution_falls_back_to_assignee():
    summary = CommissionAggregator(POLICY).closer_summary([_won(10000, assigned_to="a1")])
    assert summary.employees[0].employee_id == "a1"


def test_role_summary_total_is_sum_of_employees():
    deals = [_won(12000, closer_id="c1"), _won(7600, closer_id="c2", contact_id="k2"), _won(2000, closer_id="c3")]
    summary = CommissionAggregator(POLICY).closer_summary(deals)

    assert summary.total_commissions == sum(e.final_commission for e in summary.employees)
    assert summary.total_sales == sum(e.total_sales for e in summary.employees)


def test_overview_counts_each_won_deal_once():
    meetings = _meetings("s1", 16, converted=4)
    deals = [_won(12000, sdr_id="s1", closer_id="c1")]
    report = CommissionAggregator(POLICY).overview(meetings, deals)

    assert report.sdr_count == 1
    assert report.closer_count == 1
    assert report.total_sales == Decimal("12000")
    assert report.total_deals == 1
    assert report.total_commissions == report.sdr_commissions + report.closer_commissions
    assert report.total_commissions == Decimal("2100")
    # (80 + 120) / 2
    assert report.average_achievement_percent == Decimal("100")


def test_overview_is_idempotent():
    meetings = _meetings("s1", 10, converted=2) + _meetings("s2", 18)
    deals = [_won(9000, closer_id="c1"), _won(3000, closer_id="c2", contact_id="k2")]
    aggregator = CommissionAggregator(POLICY)

    assert aggregator.overview(meetings, deals) == aggregator.overview(meetings, deals)


def test_empty_overview_is_all_zero():
    report = CommissionAggregator(POLICY).overview([], [])

    assert report.total_commissions == Decimal("0")
    assert report.average_achievement_percent == Decimal("0")
    assert report.sdr.employees == ()


def test_mrr_valuation_flows_through_overview():
    deals = [_won(120000, duration=12, closer_id="c1")]
    report = CommissionAggregator(POLICY, BusinessModel.MRR).overview([], deals)

    assert report.total_sales == Decimal("10000")
    assert report.closer.employees[0].checkpoint_tier == 3


def test_variant_is_applied_to_every_employee():
    aggregator = CommissionAggregator(POLICY, variant=FormulaVariant.ADDITIVE_LEGACY)
    summary = aggregator.sdr_summary(_meetings("s1", 16, converted=4))

    assert summary.employees[0].final_commission == Decimal("1800")


def test_results_by_employee_keys_on_id_and_role():
    aggregator = CommissionAggregator(POLICY)
    report = aggregator.overview(_meetings("u1", 4), [_won(1000, closer_id="u1")])
    results = aggregator.results_by_employee(report)

    assert set(results) == {("u1", Role.SDR), ("u1", Role.CLOSER)}
