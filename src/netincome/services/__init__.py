"""Service layer composing residency determination and tax computation."""

from .calculation_service import calculate_net_income, calculate_record

__all__ = ["calculate_net_income", "calculate_record"]
