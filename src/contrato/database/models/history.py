"""Append-only history log entries owned by a character."""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .character import Character


class HistoryKind(enum.Enum):
    """Kinds of events recorded on a character's history."""

    CORRUPTION_THRESHOLD_CROSSED = "corruption-threshold-crossed"
    ROLL = "roll"


class HistoryEntry(Base):
    """
    One audit event on a character's history.

    Entries are only ever inserted; the integer primary key gives the
    append order.
    """

    __tablename__ = "history_entries"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Append order",
    )

    character_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("characters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning character",
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="When the event happened",
    )

    kind: Mapped[HistoryKind] = mapped_column(
        Enum(HistoryKind, values_callable=lambda kinds: [k.value for k in kinds]),
        nullable=False,
        comment="Event kind",
    )

    payload: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Event details",
    )

    character: Mapped["Character"] = relationship(
        "Character",
        back_populates="history",
    )

    def __repr__(self) -> str:
        """String representation of HistoryEntry."""
        return f"<HistoryEntry(id={self.id}, kind={self.kind.value}, payload={self.payload})>"
