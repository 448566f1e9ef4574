"""Utility helpers shared by the jurisdiction calculators."""

from __future__ import annotations


def rate_label(prefix: str, rate: float) -> str:
    """Return a tax-type label such as ``DIVIDEND_28`` for ``rate``."""

    percentage = round(rate * 100, 2)
    if float(int(percentage)) == percentage:
        return f"{prefix}_{int(percentage)}"
    return f"{prefix}_{percentage:g}".replace(".", "_")


def round_currency(value: float) -> float:
    """Round monetary amounts to two decimals."""

    return round(value, 2)


def round_rate(value: float) -> float:
    """Round rate values to four decimals."""

    return round(value, 4)


__all__ = ["rate_label", "round_currency", "round_rate"]
