"""Locale-aware display helpers for money and percentages.

The commission engine is purely numeric; everything that turns a number into
a user-facing string goes through here.
"""
from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from babel.core import UnknownLocaleError
from babel.numbers import format_currency as babel_format_currency
from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "BRL"
DEFAULT_LOCALE = "pt-BR"


def _finite_decimal(value) -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return Decimal("0")
    if not number.is_finite():
        return Decimal("0")
    return number


def _babel_locale(locale: str) -> str:
    # Babel wants "pt_BR", the rest of the app stores BCP 47 tags ("pt-BR").
    return locale.replace("-", "_")


def format_currency(value, currency: str | None = None, locale: str | None = None) -> str:
    """Format ``value`` as money with exactly two decimals.

    Babel separates the symbol with a non-breaking space for pt-BR:
    ``format_currency(1234.5) == "R$\\xa01.234,50"``.
    """
    currency = currency or getattr(settings, "DEFAULT_CURRENCY", DEFAULT_CURRENCY)
    locale = locale or getattr(settings, "DEFAULT_LOCALE", DEFAULT_LOCALE)
    amount = _finite_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    try:
        return babel_format_currency(
            amount, currency, locale=_babel_locale(locale), currency_digits=False,
        )
    except (UnknownLocaleError, ValueError):
        logger.warning("Unknown locale %r, falling back to %s", locale, DEFAULT_LOCALE)
        return babel_format_currency(
            amount, currency, locale=_babel_locale(DEFAULT_LOCALE), currency_digits=False,
        )


def format_percent(value, decimals: int = 1) -> str:
    """``12.345 -> "12.3%"``. Non-finite values render as zero."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = 0.0
    if not math.isfinite(number):
        number = 0.0
    return f"{number:.{decimals}f}%"
