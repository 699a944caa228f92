from decimal import Decimal

from core.formatting import format_currency, format_percent


def _plain(text):
    return text.replace("\xa0", " ")


def test_format_currency_defaults_to_brazilian_real():
    assert _plain(format_currency(Decimal("1234.5"))) == "R$ 1.234,50"


def test_format_currency_always_shows_two_decimals():
    assert _plain(format_currency(1000)) == "R$ 1.000,00"
    assert _plain(format_currency("0.005")) == "R$ 0,01"


def test_format_currency_other_locale():
    assert format_currency(Decimal("1234.5"), "USD", "en-US") == "$1,234.50"


def test_format_currency_non_finite_renders_zero():
    assert _plain(format_currency(float("nan"))) == "R$ 0,00"
    assert _plain(format_currency("abc")) == "R$ 0,00"


def test_format_currency_unknown_locale_falls_back():
    assert _plain(format_currency(10, "BRL", "xx-YY")) == "R$ 10,00"


def test_format_percent():
    assert format_percent(12.345) == "12.3%"
    assert format_percent(Decimal("80"), decimals=0) == "80%"
    assert format_percent(float("inf")) == "0.0%"
