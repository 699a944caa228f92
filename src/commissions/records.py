"""Immutable input records for the commission engine.

Everything here is plain data: the engine never sees a model instance or a
queryset. ``crm.models`` and ``commissions.repository`` build these from the
database; tests build them by hand.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Mapping

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Coerce anything to a finite Decimal, 0 when it is not a number."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        return ZERO
    return number if number.is_finite() else ZERO


class MeetingStatus:
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class DealStatus:
    OPEN = "open"
    WON = "won"
    LOST = "lost"


@dataclass(frozen=True)
class ActivityRecord:
    """A prospecting meeting as seen by the engine."""

    sdr_id: str | None
    status: str
    converted_to_sale: bool = False
    scheduled_at: datetime | None = None
    completed_at: datetime | None = None
    contact_id: str | None = None
    id: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == MeetingStatus.COMPLETED

    @property
    def held_at(self) -> datetime | None:
        return self.completed_at or self.scheduled_at


@dataclass(frozen=True)
class DealRecord:
    """A sales opportunity. ``value`` and ``duration`` may hold raw input."""

    value: object
    status: str
    duration: object = None
    sdr_id: str | None = None
    closer_id: str | None = None
    contact_id: str | None = None
    sale_date: datetime | None = None
    assigned_to: str | None = None
    id: str | None = None

    @property
    def is_won(self) -> bool:
        return self.status == DealStatus.WON

    @property
    def is_orphan(self) -> bool:
        return not self.contact_id


@dataclass(frozen=True)
class ContactRecord:
    id: str
    sdr_id: str | None = None
    closer_id: str | None = None
    funnel_stage: str | None = None
    meeting_date: datetime | None = None


@dataclass(frozen=True)
class CommissionPolicy:
    """Snapshot of a tenant's commission settings.

    Percentages are stored as whole numbers (``75`` means 75%).
    """

    checkpoint_1_percent: Decimal = Decimal("50")
    checkpoint_2_percent: Decimal = Decimal("75")
    checkpoint_3_percent: Decimal = Decimal("100")
    checkpoint_1_commission_percent: Decimal = Decimal("50")
    checkpoint_2_commission_percent: Decimal = Decimal("75")
    checkpoint_3_commission_percent: Decimal = Decimal("100")
    sdr_meeting_commission: Decimal = Decimal("50")
    sdr_meetings_target: Decimal = Decimal("20")
    sdr_bonus_closed_meeting: Decimal = Decimal("100")
    closer_fixed_commission: Decimal = ZERO
    closer_per_sale_commission: Decimal = ZERO
    closer_commission_percent: Decimal = Decimal("10")
    closer_sales_target: Decimal = Decimal("10000")

    def __post_init__(self):
        # Frozen dataclass: normalize in place through object.__setattr__.
        for name in self.__dataclass_fields__:
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @classmethod
    def from_mapping(cls, data: dict) -> "CommissionPolicy":
        """Build a policy from a dict, ignoring unknown keys and nulls."""
        known = {
            key: value
            for key, value in data.items()
            if key in cls.__dataclass_fields__ and value is not None
        }
        return cls(**known)


def index_contacts(contacts) -> dict[str, ContactRecord]:
    """``{contact_id: ContactRecord}`` from a list, a mapping or nothing."""
    if not contacts:
        return {}
    if isinstance(contacts, Mapping):
        return dict(contacts)
    return {c.id: c for c in contacts}


def resolve_closer(deal: DealRecord, contacts_by_id: Mapping[str, ContactRecord] | None = None) -> str | None:
    """Closer credited with a deal: the contact's closer, then the deal's, then the assignee."""
    contact = contacts_by_id.get(deal.contact_id) if contacts_by_id and deal.contact_id else None
    contact_closer = contact.closer_id if contact else None
    return contact_closer or deal.closer_id or deal.assigned_to
