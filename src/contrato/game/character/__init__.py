"""Character-related game mechanics."""

from .attributes import (
    BALANCE_TOTAL,
    CorruptionState,
    DerivedAttributes,
    HuntFrequency,
    apply_derived_attributes,
    derive_attributes,
    get_corruption_state,
)
from .skills import get_skill_rating, get_skill_ratings, set_skill_rating

__all__ = [
    "BALANCE_TOTAL",
    "CorruptionState",
    "DerivedAttributes",
    "HuntFrequency",
    "apply_derived_attributes",
    "derive_attributes",
    "get_corruption_state",
    "get_skill_rating",
    "get_skill_ratings",
    "set_skill_rating",
]
