"""Turn a won deal into a single commissionable amount."""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Iterable

from commissions.records import ZERO, DealRecord, to_decimal


class BusinessModel(str, Enum):
    TCV = "TCV"  # one-time total contract value
    MRR = "MRR"  # recurring: value spread over the contract duration

    @classmethod
    def parse(cls, raw, default: "BusinessModel | None" = None) -> "BusinessModel":
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return default or cls.TCV


def deal_value(deal: DealRecord, business_model: BusinessModel) -> Decimal:
    """Commissionable amount of ``deal``.

    MRR deals without a positive duration are worth nothing rather than
    raising: a recurring contract with no term has no monthly value.
    """
    value = to_decimal(deal.value)
    if business_model is BusinessModel.MRR:
        duration = to_decimal(deal.duration)
        if duration <= 0:
            return ZERO
        return value / duration
    return value


def total_sales(deals: Iterable[DealRecord], business_model: BusinessModel) -> Decimal:
    return sum((deal_value(deal, business_model) for deal in deals), ZERO)
