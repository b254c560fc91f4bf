"""Game systems that apply the rules to character records."""

from .derivation import AttributeDeriver
from .history import HistoryLog, format_timestamp
from .items import create_item, prepare_item_data
from .rolls import (
    NoResourceAvailableError,
    PendingRoll,
    RollChoice,
    RollMode,
    RollOutcome,
    RollRejectedError,
    RollResolver,
    UnknownSkillError,
)

__all__ = [
    "AttributeDeriver",
    "HistoryLog",
    "format_timestamp",
    "create_item",
    "prepare_item_data",
    "NoResourceAvailableError",
    "PendingRoll",
    "RollChoice",
    "RollMode",
    "RollOutcome",
    "RollRejectedError",
    "RollResolver",
    "UnknownSkillError",
]
