"""Portugal: IRS brackets, solidarity surtax, social security and NHR."""

from .jurisdiction import PortugalJurisdiction

__all__ = ["PortugalJurisdiction"]
