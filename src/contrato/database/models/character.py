"""Character model for Contrato de Sangue player characters."""

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .history import HistoryEntry
    from .item import Item


class Character(Base, TimestampMixin):
    """
    Player character record.

    The attribute columns are nullable on purpose: a freshly created record
    carries no values until the attribute deriver initializes them, and the
    host may write anything into them between derivation passes.
    """

    __tablename__ = "characters"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique character identifier",
    )

    name: Mapped[str] = mapped_column(
        String(60),
        nullable=False,
        index=True,
        comment="Character name",
    )

    # Core attributes; humanity + bestiality is kept at 12 by the deriver
    humanity: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Humanidade (1-12)",
    )

    bestiality: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Bestialidade (0-11)",
    )

    corruption: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Mortalidade, unbounded",
    )

    # Dice pool (Reserva de Dados)
    dice_pool_current: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Dice left in the pool",
    )

    dice_pool_max: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        comment="Pool size, bestiality + 1",
    )

    # Derived corruption state
    penalty_tier: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        comment="Mortality penalty tier (0-4)",
    )

    hunt_frequency: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="none",
        server_default="none",
        comment="How often the character must hunt",
    )

    # Last hunt frequency already announced (reminder + history entry)
    last_hunt_frequency: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        comment="Last-seen hunt frequency marker",
    )

    # Skills - maps skill key to rating
    # Example: {"atletismo": 2, "ocultismo": 3}
    skills: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        server_default="{}",
        comment="Skill ratings by skill key",
    )

    notes: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default="",
        comment="Free-form player notes",
    )

    # Relationships
    history: Mapped[list["HistoryEntry"]] = relationship(
        "HistoryEntry",
        back_populates="character",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="HistoryEntry.id",
    )

    items: Mapped[list["Item"]] = relationship(
        "Item",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Item.name",
    )

    def __repr__(self) -> str:
        """String representation of Character."""
        return (
            f"<Character(id={self.id}, name='{self.name}', "
            f"humanity={self.humanity}, bestiality={self.bestiality}, "
            f"corruption={self.corruption})>"
        )
