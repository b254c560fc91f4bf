"""SQLAlchemy models for Contrato de Sangue."""

from contrato.database.models.base import Base, TimestampMixin
from contrato.database.models.character import Character
from contrato.database.models.history import HistoryEntry, HistoryKind
from contrato.database.models.item import Item, ItemType

__all__ = [
    "Base",
    "TimestampMixin",
    "Character",
    "HistoryEntry",
    "HistoryKind",
    "Item",
    "ItemType",
]
