"""Progressive bracket tax primitive shared by every jurisdiction."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

_LOGGER = logging.getLogger(__name__)


class Band(Protocol):
    """Any marginal-rate band exposing lower/upper bounds and a rate."""

    @property
    def lower_bound(self) -> float: ...

    @property
    def upper_bound(self) -> float | None: ...

    @property
    def rate(self) -> float: ...


@dataclass(frozen=True, slots=True)
class Bracket:
    """Concrete band used for derived structures (thresholds, shifted sets)."""

    lower_bound: float
    upper_bound: float | None
    rate: float


def compute_bracket_tax(amount: float, brackets: Iterable[Band]) -> float:
    """Return the marginal tax due on ``amount`` across ``brackets``.

    Bands are consumed in ascending ``lower_bound`` order. Each contributes
    ``min(remaining, width) * rate``; a band whose upper bound does not exceed
    its lower bound is skipped rather than treated as an error.
    """

    if amount <= 0:
        return 0.0

    remaining = float(amount)
    total = 0.0
    for bracket in sorted(brackets, key=lambda band: band.lower_bound):
        if remaining <= 0:
            break
        upper = bracket.upper_bound
        if upper is None:
            taxable_slice = remaining
        else:
            width = upper - bracket.lower_bound
            if width <= 0:
                _LOGGER.warning(
                    "Skipping empty bracket %.2f-%.2f at rate %.4f",
                    bracket.lower_bound,
                    upper,
                    bracket.rate,
                )
                continue
            taxable_slice = min(remaining, width)
        total += taxable_slice * bracket.rate
        remaining -= taxable_slice

    return total


def threshold_brackets(thresholds: Sequence[tuple[float, float]]) -> tuple[Bracket, ...]:
    """Model ``(threshold, rate)`` surtax steps as contiguous brackets.

    Each threshold is the lower bound of a band closed by the next threshold;
    the last band is open-ended. A zero-rate band covers income below the
    first threshold.
    """

    ordered = sorted(thresholds)
    if not ordered:
        return ()

    bands = [Bracket(0.0, ordered[0][0], 0.0)]
    for index, (threshold, rate) in enumerate(ordered):
        upper = ordered[index + 1][0] if index + 1 < len(ordered) else None
        bands.append(Bracket(threshold, upper, rate))
    return tuple(bands)


def shift_brackets(brackets: Iterable[Band], offset: float) -> tuple[Bracket, ...]:
    """Translate ``brackets`` down by ``offset``, dropping collapsed bands.

    Used where brackets are stated on gross income but applied to income
    after an allowance has been removed.
    """

    shifted: list[Bracket] = []
    for bracket in sorted(brackets, key=lambda band: band.lower_bound):
        lower = max(0.0, bracket.lower_bound - offset)
        upper = None if bracket.upper_bound is None else max(0.0, bracket.upper_bound - offset)
        if upper is not None and upper <= lower:
            continue
        shifted.append(Bracket(lower, upper, bracket.rate))
    return tuple(shifted)


__all__ = ["Band", "Bracket", "compute_bracket_tax", "shift_brackets", "threshold_brackets"]
