"""Read-only access to the records the commission engine consumes.

The engine only ever receives what a repository returns, so swapping the
Django implementation for the in-memory one is all a test needs.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from commissions.records import ActivityRecord, CommissionPolicy, ContactRecord, DealRecord
from commissions.valuation import BusinessModel


class CommissionError(Exception):
    """Base class for errors raised around the commission engine."""


class CommissionSettingsNotFound(CommissionError, LookupError):
    """The whitelabel has no commission settings row."""


class DuplicateCommissionSettings(CommissionError, LookupError):
    """More than one settings row exists for a whitelabel."""


@dataclass(frozen=True)
class Employee:
    id: str
    name: str
    email: str = ""
    role: str = ""
    avatar_url: str = ""


class CommissionRepository(Protocol):
    def get_policy(self, whitelabel_id) -> CommissionPolicy: ...

    def get_business_model(self, whitelabel_id) -> BusinessModel: ...

    def list_meetings(self, whitelabel_id, start: datetime | None = None, end: datetime | None = None) -> list[ActivityRecord]: ...

    def list_meetings_held_since(self, whitelabel_id, since: datetime) -> list[ActivityRecord]: ...

    def list_deals(self, whitelabel_id, start: datetime | None = None, end: datetime | None = None) -> list[DealRecord]: ...

    def list_contacts(self, whitelabel_id) -> list[ContactRecord]: ...

    def list_employees(self, whitelabel_id, role: str | None = None) -> list[Employee]: ...


# ────────────────────────────────────────────────────────────
# Django ORM
# ────────────────────────────────────────────────────────────

class DjangoCommissionRepository:
    """Load snapshots from the database.

    Meetings are windowed on ``scheduled_at`` (goals use the held date),
    deals on ``sale_date``; open deals without a sale date are never part of
    a period.
    """

    def get_policy(self, whitelabel_id) -> CommissionPolicy:
        from commissions.models import CommissionSettings

        rows = list(CommissionSettings.objects.filter(whitelabel_id=whitelabel_id)[:2])
        if not rows:
            raise CommissionSettingsNotFound(
                f"Aucun parametrage de commission pour le whitelabel {whitelabel_id}."
            )
        if len(rows) > 1:
            raise DuplicateCommissionSettings(
                f"Plusieurs parametrages de commission pour le whitelabel {whitelabel_id}."
            )
        return rows[0].to_policy()

    def get_business_model(self, whitelabel_id) -> BusinessModel:
        from whitelabels.models import Whitelabel

        raw = (
            Whitelabel.objects.filter(pk=whitelabel_id)
            .values_list("business_model", flat=True)
            .first()
        )
        return BusinessModel.parse(raw)

    def list_meetings(self, whitelabel_id, start=None, end=None) -> list[ActivityRecord]:
        from crm.models import Meeting

        qs = Meeting.objects.filter(whitelabel_id=whitelabel_id)
        if start is not None:
            qs = qs.filter(scheduled_at__gte=start)
        if end is not None:
            qs = qs.filter(scheduled_at__lt=end)
        return [m.to_record() for m in qs.order_by("scheduled_at", "pk")]

    def list_meetings_held_since(self, whitelabel_id, since) -> list[ActivityRecord]:
        """Meetings whose completion (or schedule, when never completed) falls after ``since``."""
        from django.db.models.functions import Coalesce

        from crm.models import Meeting

        qs = (
            Meeting.objects.filter(whitelabel_id=whitelabel_id)
            .annotate(held_on=Coalesce("completed_at", "scheduled_at"))
            .filter(held_on__gte=since)
        )
        return [m.to_record() for m in qs.order_by("held_on", "pk")]

    def list_deals(self, whitelabel_id, start=None, end=None) -> list[DealRecord]:
        from crm.models import Deal

        qs = Deal.objects.filter(whitelabel_id=whitelabel_id)
        if start is not None:
            qs = qs.filter(sale_date__gte=start)
        if end is not None:
            qs = qs.filter(sale_date__lt=end)
        return [d.to_record() for d in qs.order_by("sale_date", "pk")]

    def list_contacts(self, whitelabel_id) -> list[ContactRecord]:
        from crm.models import Contact

        return [
            ContactRecord(
                id=str(c.pk),
                sdr_id=str(c.sdr_id) if c.sdr_id else None,
                closer_id=str(c.closer_id) if c.closer_id else None,
                funnel_stage=c.funnel_stage,
                meeting_date=c.meeting_date,
            )
            for c in Contact.objects.filter(whitelabel_id=whitelabel_id)
        ]

    def list_employees(self, whitelabel_id, role: str | None = None) -> list[Employee]:
        from accounts.models import User

        qs = User.objects.filter(whitelabel_id=whitelabel_id, is_active=True)
        if role:
            qs = qs.filter(role=role)
        return [
            Employee(
                id=str(u.pk),
                name=u.get_full_name() or u.email,
                email=u.email,
                role=u.role,
                avatar_url=u.avatar_url,
            )
            for u in qs
        ]


# ────────────────────────────────────────────────────────────
# In-memory (tests, previews)
# ────────────────────────────────────────────────────────────

@dataclass
class InMemoryCommissionRepository:
    policies: dict = field(default_factory=dict)
    business_models: dict = field(default_factory=dict)
    meetings: dict = field(default_factory=dict)
    deals: dict = field(default_factory=dict)
    contacts: dict = field(default_factory=dict)
    employees: dict = field(default_factory=dict)

    def get_policy(self, whitelabel_id) -> CommissionPolicy:
        try:
            return self.policies[whitelabel_id]
        except KeyError:
            raise CommissionSettingsNotFound(whitelabel_id) from None

    def get_business_model(self, whitelabel_id) -> BusinessModel:
        return BusinessModel.parse(self.business_models.get(whitelabel_id))

    def list_meetings(self, whitelabel_id, start=None, end=None) -> list[ActivityRecord]:
        return [
            m for m in self.meetings.get(whitelabel_id, [])
            if _within(m.scheduled_at, start, end)
        ]

    def list_meetings_held_since(self, whitelabel_id, since) -> list[ActivityRecord]:
        return [
            m for m in self.meetings.get(whitelabel_id, [])
            if _within(m.held_at, since, None)
        ]

    def list_deals(self, whitelabel_id, start=None, end=None) -> list[DealRecord]:
        return [
            d for d in self.deals.get(whitelabel_id, [])
            if _within(d.sale_date, start, end)
        ]

    def list_contacts(self, whitelabel_id) -> list[ContactRecord]:
        return list(self.contacts.get(whitelabel_id, []))

    def list_employees(self, whitelabel_id, role: str | None = None) -> list[Employee]:
        return [
            e for e in self.employees.get(whitelabel_id, [])
            if role is None or e.role == role
        ]


def _within(ts: datetime | None, start: datetime | None, end: datetime | None) -> bool:
    if start is None and end is None:
        return True
    if ts is None:
        return False
    if start is not None and ts < start:
        return False
    if end is not None and ts >= end:
        return False
    return True
