"""Item model for powers, advantages and equipment."""

import enum
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .character import Character


class ItemType(enum.Enum):
    """Types of items a character can own."""

    POWER = "power"
    ADVANTAGE = "advantage"
    EQUIPMENT = "equipment"


class Item(Base, TimestampMixin):
    """
    A power, advantage or piece of equipment owned by a character.

    Numeric effects are applied by hand at the table; the record only keeps
    what the sheet displays.
    """

    __tablename__ = "items"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique item identifier",
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("characters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning character",
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Display name of the item",
    )

    item_type: Mapped[ItemType] = mapped_column(
        Enum(ItemType, values_callable=lambda types: [t.value for t in types]),
        nullable=False,
        comment="power, advantage or equipment",
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Free-form description",
    )

    # Powers only
    activation: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="How a power is activated",
    )

    cost: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Cost to activate a power",
    )

    # Advantages only
    bonus: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        comment="Bonus granted by an advantage",
    )

    owner: Mapped["Character"] = relationship(
        "Character",
        back_populates="items",
    )

    def __repr__(self) -> str:
        """String representation of Item."""
        return f"<Item(id={self.id}, name='{self.name}', type={self.item_type.value})>"
