"""United Kingdom: income tax bands, allowances and National Insurance."""

from .jurisdiction import UnitedKingdomJurisdiction

__all__ = ["UnitedKingdomJurisdiction"]
