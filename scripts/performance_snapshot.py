#!/usr/bin/env python3
"""Time repeated net income calculations against the bundled reference data."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from time import perf_counter

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from netincome.jurisdictions import bundled_registry  # noqa: E402
from netincome.models import CalculationDataset  # noqa: E402
from netincome.services import calculate_net_income  # noqa: E402

SAMPLE_PAYLOAD = {
    "income_records": [
        {"year": 2024, "month": month, "gross_amount": 3200, "currency": "EUR",
         "income_type": "employment", "source_jurisdiction": "PT"}
        for month in range(1, 13)
    ]
    + [
        {"year": 2024, "month": 6, "gross_amount": 1500, "currency": "GBP",
         "income_type": "dividend", "source_jurisdiction": "GB"},
        {"year": 2024, "month": 9, "gross_amount": 9000, "currency": "EUR",
         "income_type": "freelance", "source_jurisdiction": "PT",
         "documented_expenses": 600},
    ],
    "exchange_rates": [
        {"year": 2024, "from_currency": "GBP", "to_currency": "EUR", "rate": 1.17},
    ],
    "location_transitions": [
        {"date": "2023-12-01", "origin": "GB", "destination": "PT"},
    ],
}


def measure_backend(iterations: int) -> dict[str, float]:
    """Return timing statistics for repeated calculations."""

    dataset = CalculationDataset.model_validate(SAMPLE_PAYLOAD)
    registry = bundled_registry()
    calculate_net_income(dataset, registry)  # Warm caches
    start = perf_counter()
    for _ in range(iterations):
        calculate_net_income(dataset, registry)
    elapsed = perf_counter() - start
    return {
        "iterations": iterations,
        "total_ms": elapsed * 1000,
        "average_ms": (elapsed / iterations) * 1000,
    }


def main() -> None:
    iterations = int(os.getenv("NETINCOME_PROFILE_ITERATIONS", "75"))
    print(json.dumps({"backend": measure_backend(iterations)}, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
