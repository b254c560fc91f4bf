"""Attribute derivation pass run on every character update.

Normalizes the record (see game.character.attributes) and, when the hunt
frequency changes, announces it once:
- stores the new frequency as the last-seen marker
- asks the calendar for a hunt reminder (unless the new frequency is none)
- records a corruption-threshold-crossed history entry

Nothing in here raises to the caller. Calendar and history problems are
logged as warnings and the derived values are still applied.
"""

from typing import TYPE_CHECKING

import structlog

from contrato.database.models import HistoryKind
from contrato.game.character.attributes import (
    HUNT_REMINDER_OFFSET_DAYS,
    DerivedAttributes,
    HuntFrequency,
    apply_derived_attributes,
)
from contrato.integrations.i18n import Localizer

if TYPE_CHECKING:
    from contrato.database.models import Character
    from contrato.game.systems.history import HistoryLog
    from contrato.integrations.calendar import ReminderScheduler

logger = structlog.get_logger(__name__)


class AttributeDeriver:
    """Recomputes derived fields and announces hunt-frequency changes."""

    def __init__(
        self,
        calendar: "ReminderScheduler | None" = None,
        localizer: Localizer | None = None,
    ) -> None:
        """
        Initialize the deriver.

        Args:
            calendar: Calendar used for hunt reminders; None when the table has none
            localizer: String table for the reminder text
        """
        self.calendar = calendar
        self.localizer = localizer or Localizer()

    async def prepare(
        self, character: "Character", history: "HistoryLog | None" = None
    ) -> DerivedAttributes:
        """
        Normalize a character and handle a hunt-frequency change.

        Safe to call any number of times: with the frequency unchanged it only
        rewrites the same values.

        Args:
            character: The Character model instance (mutated)
            history: History log for the threshold entry

        Returns:
            The derived attributes now stored on the character
        """
        derived = apply_derived_attributes(character)
        frequency = derived.corruption_state.hunt_frequency

        if character.last_hunt_frequency == frequency.value:
            return derived

        previous = character.last_hunt_frequency
        character.last_hunt_frequency = frequency.value

        logger.info(
            "hunt_frequency_changed",
            character_id=str(character.id),
            previous=previous,
            current=frequency.value,
            corruption=derived.corruption,
        )

        if frequency is not HuntFrequency.NONE:
            await self._schedule_hunt(character, frequency)

        await self._record_threshold(character, history, frequency, derived.corruption)

        return derived

    async def _schedule_hunt(self, character: "Character", frequency: HuntFrequency) -> None:
        """Ask the calendar for a hunt reminder; failures are only logged."""
        if self.calendar is None:
            logger.warning(
                "hunt_reminder_skipped",
                character_id=str(character.id),
                reason="calendar_unavailable",
                frequency=frequency.value,
            )
            return

        title = self.localizer.localize("CONTRATO.EVENT.MORTALITY")
        description = self.localizer.format(
            "CONTRATO.EVENT.MORTALITY_DESCRIPTION", frequency=frequency.value
        )

        try:
            await self.calendar.schedule_reminder(
                HUNT_REMINDER_OFFSET_DAYS[frequency], title, description
            )
        except Exception as e:
            logger.warning(
                "hunt_reminder_failed",
                character_id=str(character.id),
                frequency=frequency.value,
                error=str(e),
            )

    async def _record_threshold(
        self,
        character: "Character",
        history: "HistoryLog | None",
        frequency: HuntFrequency,
        corruption: int,
    ) -> None:
        """Append the threshold entry; failures are only logged."""
        if history is None:
            return

        try:
            await history.append(
                character,
                HistoryKind.CORRUPTION_THRESHOLD_CROSSED,
                {"level": frequency.value, "corruption": corruption},
            )
        except Exception as e:
            logger.warning(
                "history_append_failed",
                character_id=str(character.id),
                kind=HistoryKind.CORRUPTION_THRESHOLD_CROSSED.value,
                error=str(e),
            )
