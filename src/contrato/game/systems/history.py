"""Per-character append-only history log."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog
from sqlalchemy import select

from contrato.database.models import HistoryEntry, HistoryKind

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from contrato.database.models import Character

logger = structlog.get_logger(__name__)


class HistoryLog:
    """
    Reads and appends history entries through a database session.

    Entries are never updated or deleted here; they go away only with the
    character that owns them.
    """

    def __init__(self, session: "AsyncSession") -> None:
        self.session = session

    async def append(
        self,
        character: "Character",
        kind: HistoryKind,
        payload: dict[str, Any],
        timestamp: datetime | None = None,
    ) -> HistoryEntry:
        """
        Add an entry to a character's history.

        The entry is flushed inside a savepoint, so a rejected insert rolls
        back only the entry and leaves the rest of the session usable.

        Args:
            character: Owning character (must already have an id)
            kind: Event kind
            payload: JSON-serializable event details
            timestamp: Event time, defaults to now (UTC)

        Returns:
            The flushed HistoryEntry

        Raises:
            ValueError: If the character has no id yet
            SQLAlchemyError: If the database rejects the entry
        """
        if character.id is None:
            raise ValueError("Character must have an id before history can be recorded")

        entry = HistoryEntry(
            character_id=character.id,
            timestamp=timestamp or datetime.now(UTC),
            kind=kind,
            payload=dict(payload),
        )
        async with self.session.begin_nested():
            self.session.add(entry)
            await self.session.flush()

        logger.debug(
            "history_entry_appended",
            character_id=str(character.id),
            kind=kind.value,
        )

        return entry

    async def entries(
        self, character_id: UUID, kind: HistoryKind | None = None
    ) -> list[HistoryEntry]:
        """
        Get a character's history in append order.

        Args:
            character_id: Owning character id
            kind: Only return entries of this kind

        Returns:
            List of HistoryEntry, oldest first
        """
        await self.session.flush()

        query = select(HistoryEntry).where(HistoryEntry.character_id == character_id)
        if kind is not None:
            query = query.where(HistoryEntry.kind == kind)

        result = await self.session.execute(query.order_by(HistoryEntry.id))
        return list(result.scalars().all())


def format_timestamp(timestamp: datetime | None) -> str:
    """Render a history timestamp for display; empty for missing values."""
    if not timestamp:
        return ""
    return timestamp.strftime("%d/%m/%Y %H:%M:%S")
