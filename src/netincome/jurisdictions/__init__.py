"""Registry of supported tax jurisdictions.

The registry is an immutable code-to-implementation mapping built once from
the loaded reference datasets and passed explicitly to the orchestrator and
calculator. Lookups of unknown codes fail; there is no default jurisdiction.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Callable

from netincome.config.reference_data import load_reference_datasets
from netincome.errors import UnsupportedJurisdiction

from .base import Jurisdiction, TaxOptions
from .gb import UnitedKingdomJurisdiction
from .pt import PortugalJurisdiction

_LOGGER = logging.getLogger(__name__)

JURISDICTION_FACTORIES: Mapping[str, Callable[[Any], Jurisdiction]] = MappingProxyType(
    {
        PortugalJurisdiction.code: PortugalJurisdiction,
        UnitedKingdomJurisdiction.code: UnitedKingdomJurisdiction,
    }
)

JurisdictionRegistry = Mapping[str, Jurisdiction]


def build_registry(reference_data: Mapping[str, Any]) -> JurisdictionRegistry:
    """Instantiate one implementation per dataset, keyed by jurisdiction code."""

    registry: dict[str, Jurisdiction] = {}
    for code, dataset in reference_data.items():
        normalised = code.strip().upper()
        factory = JURISDICTION_FACTORIES.get(normalised)
        if factory is None:
            raise UnsupportedJurisdiction(normalised, available=JURISDICTION_FACTORIES)
        registry[normalised] = factory(dataset)
    _LOGGER.debug("Built jurisdiction registry for %s", ", ".join(sorted(registry)) or "none")
    return MappingProxyType(registry)


@lru_cache(maxsize=1)
def bundled_registry() -> JurisdictionRegistry:
    """Registry built from every dataset declared in the bundled manifest."""

    return build_registry(load_reference_datasets())


def get_jurisdiction(registry: JurisdictionRegistry, code: str) -> Jurisdiction:
    """Return the implementation registered for ``code``."""

    try:
        return registry[code]
    except KeyError as exc:
        raise UnsupportedJurisdiction(code, available=registry) from exc


__all__ = [
    "JURISDICTION_FACTORIES",
    "Jurisdiction",
    "JurisdictionRegistry",
    "PortugalJurisdiction",
    "TaxOptions",
    "UnitedKingdomJurisdiction",
    "build_registry",
    "bundled_registry",
    "get_jurisdiction",
]
