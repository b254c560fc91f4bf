"""Sheet engine for Contrato de Sangue."""

import asyncio
import uuid
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from contrato.config import Settings, get_settings
from contrato.database.engine import close_db, get_session, init_db
from contrato.database.models import Character, HistoryEntry, Item, ItemType
from contrato.game.character.attributes import coerce_int
from contrato.game.character.sheet import build_sheet_context
from contrato.game.character.skills import set_skill_rating
from contrato.game.rules import RulesConfig, load_rules
from contrato.game.systems.derivation import AttributeDeriver
from contrato.game.systems.history import HistoryLog
from contrato.game.systems.items import create_item
from contrato.game.systems.rolls import (
    RollChooser,
    RollOutcome,
    RollResolver,
    UnknownSkillError,
)
from contrato.integrations.calendar import ReminderScheduler
from contrato.integrations.chat import ChatChannel, ChatLog
from contrato.integrations.dice import DiceRoller, RandomDiceRoller
from contrato.integrations.i18n import Localizer
from contrato.integrations.notifications import NotificationLog, Notifier
from contrato.logs import configure_logging

logger = structlog.get_logger(__name__)

# Sheet fields the player may type into directly
EDITABLE_ATTRIBUTES = ("humanity", "bestiality", "corruption")


class CharacterNotFoundError(Exception):
    """Raised when no character has the requested id."""

    pass


class SheetEngine:
    """
    Coordinates the rules core for every character sheet.

    Loads the rules and string table once, wires the collaborators into the
    attribute deriver and roll resolver, and serializes work on each
    character with its own lock.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        dice: DiceRoller | None = None,
        chat: ChatChannel | None = None,
        calendar: ReminderScheduler | None = None,
        notifier: Notifier | None = None,
        rules: RulesConfig | None = None,
        localizer: Localizer | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Settings, defaults to get_settings()
            dice: Die roller, defaults to RandomDiceRoller
            chat: Chat channel for roll reports, defaults to an in-memory ChatLog
            calendar: Calendar for hunt reminders; None disables reminders
            notifier: Where rejected actions are reported
            rules: Preloaded rules; loaded from settings on start() otherwise
            localizer: Preloaded strings; loaded from settings on start() otherwise
        """
        self._settings = settings or get_settings()
        self.dice = dice or RandomDiceRoller()
        self.chat = chat or ChatLog()
        self.calendar = calendar
        self.notifier = notifier or NotificationLog()
        self.rules = rules
        self.localizer = localizer
        self.deriver: AttributeDeriver | None = None
        self.resolver: RollResolver | None = None
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._running = False

        logger.info("sheet_engine_initialized")

    async def start(self) -> None:
        """
        Configure logging, create tables, load strings and rules.

        Raises:
            RulesLoadError: If the rules file can't be read
            RulesValidationError: If the rules file has invalid entries
        """
        configure_logging(self._settings)
        logger.info("sheet_engine_starting")

        await init_db()

        if self.localizer is None:
            self.localizer = Localizer.from_directory(
                self._settings.lang_path, self._settings.language
            )

        if self.rules is None:
            try:
                self.rules = load_rules(self._settings.rules_path, self.localizer)
            except Exception as e:
                logger.error("rules_load_failed", error=str(e), exc_info=True)
                raise

        self.deriver = AttributeDeriver(calendar=self.calendar, localizer=self.localizer)
        self.resolver = RollResolver(
            rules=self.rules,
            dice=self.dice,
            chat=self.chat,
            deriver=self.deriver,
            localizer=self.localizer,
            notifier=self.notifier,
        )

        self._running = True
        logger.info(
            "sheet_engine_started",
            total_skills=len(self.rules.skills),
            language=self.localizer.language,
        )

    async def stop(self) -> None:
        """Close the database and drop the character locks."""
        logger.info("sheet_engine_stopping")
        self._running = False
        self._locks.clear()
        await close_db()
        logger.info("sheet_engine_stopped")

    def _require_started(self) -> tuple[AttributeDeriver, RollResolver, RulesConfig, Localizer]:
        if (
            self.deriver is None
            or self.resolver is None
            or self.rules is None
            or self.localizer is None
        ):
            raise RuntimeError("SheetEngine.start() must be awaited first")
        return self.deriver, self.resolver, self.rules, self.localizer

    def lock_for(self, character_id: UUID) -> asyncio.Lock:
        """Get the lock serializing rolls and updates on one character."""
        lock = self._locks.get(character_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[character_id] = lock
        return lock

    async def _load(self, session: AsyncSession, character_id: UUID) -> Character:
        character = await session.get(Character, character_id)
        if character is None:
            # Unknown ids must not leave a lock behind
            self._locks.pop(character_id, None)
            raise CharacterNotFoundError(f"Character not found: {character_id}")
        return character

    async def create_character(self, name: str) -> UUID:
        """
        Create a character with default attributes.

        Args:
            name: Character name

        Returns:
            The new character's id
        """
        deriver, _, _, _ = self._require_started()

        character = Character(id=uuid.uuid4(), name=name, skills={}, notes="")
        async with get_session() as session:
            session.add(character)
            await deriver.prepare(character, HistoryLog(session))

        logger.info("character_created", character_id=str(character.id), name=name)
        return character.id

    async def update_attributes(self, character_id: UUID, changes: dict[str, Any]) -> Character:
        """
        Apply sheet edits to Humanity, Bestiality or Corruption.

        Non-numeric input is stored as 0, then the deriver runs.

        Args:
            character_id: Character to edit
            changes: Field name to raw input value

        Returns:
            The updated Character

        Raises:
            ValueError: If a field is not editable
            CharacterNotFoundError: If the character doesn't exist
        """
        deriver, _, _, _ = self._require_started()

        unknown = set(changes) - set(EDITABLE_ATTRIBUTES)
        if unknown:
            raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")

        async with self.lock_for(character_id):
            async with get_session() as session:
                character = await self._load(session, character_id)
                for field, value in changes.items():
                    setattr(character, field, coerce_int(value, 0))
                await deriver.prepare(character, HistoryLog(session))

        logger.info(
            "character_attributes_updated",
            character_id=str(character_id),
            fields=sorted(changes),
        )
        return character

    async def set_skill(self, character_id: UUID, skill_key: str, value: Any) -> int:
        """
        Set a skill rating from sheet input.

        Returns:
            The stored rating

        Raises:
            UnknownSkillError: If the skill is not configured
            CharacterNotFoundError: If the character doesn't exist
        """
        deriver, _, rules, _ = self._require_started()

        if not rules.has_skill(skill_key):
            raise UnknownSkillError(f"Unknown skill: {skill_key}", skill_key)

        async with self.lock_for(character_id):
            async with get_session() as session:
                character = await self._load(session, character_id)
                rating = set_skill_rating(character, skill_key, value)
                await deriver.prepare(character, HistoryLog(session))

        return rating

    async def roll_skill(
        self, character_id: UUID, skill_key: str, chooser: RollChooser
    ) -> RollOutcome | None:
        """
        Roll a skill for a character.

        The lock is taken only after the player has chosen, so an open dialog
        doesn't block other updates; resolve() re-checks the pool.

        Args:
            character_id: Rolling character
            skill_key: Skill to roll
            chooser: Async callable showing the roll dialog

        Returns:
            RollOutcome, or None if the player dismissed the dialog

        Raises:
            UnknownSkillError: If the skill is not configured
            NoResourceAvailableError: If the dice pool is empty
            CharacterNotFoundError: If the character doesn't exist
        """
        _, resolver, _, _ = self._require_started()

        async with get_session() as session:
            character = await self._load(session, character_id)
            pending = resolver.present_choice(character, skill_key)

        choice = await chooser(pending)
        if choice is None:
            logger.info(
                "roll_cancelled",
                character_id=str(character_id),
                skill_key=skill_key,
            )
            return None

        async with self.lock_for(character_id):
            async with get_session() as session:
                character = await self._load(session, character_id)
                return await resolver.resolve(session, character, pending, choice)

    async def get_sheet(self, character_id: UUID) -> dict[str, Any]:
        """
        Build the sheet context for a character.

        Raises:
            CharacterNotFoundError: If the character doesn't exist
        """
        _, _, rules, localizer = self._require_started()

        async with get_session() as session:
            character = await self._load(session, character_id)
            result = await session.execute(
                select(Item).where(Item.owner_id == character_id).order_by(Item.name)
            )
            items = list(result.scalars().all())
            return build_sheet_context(character, rules, localizer, items)

    async def get_history(self, character_id: UUID) -> list[HistoryEntry]:
        """
        Get a character's history, oldest first.

        Raises:
            CharacterNotFoundError: If the character doesn't exist
        """
        async with get_session() as session:
            await self._load(session, character_id)
            return await HistoryLog(session).entries(character_id)

    async def add_item(
        self,
        character_id: UUID,
        name: str,
        item_type: ItemType | str,
        **fields: Any,
    ) -> Item:
        """
        Give a character a power, advantage or piece of equipment.

        Raises:
            ValueError: If the type or a field is unknown
            CharacterNotFoundError: If the character doesn't exist
        """
        async with get_session() as session:
            character = await self._load(session, character_id)
            return create_item(session, character, name, item_type, **fields)

    async def delete_character(self, character_id: UUID) -> None:
        """
        Delete a character with its history and items.

        Raises:
            CharacterNotFoundError: If the character doesn't exist
        """
        async with self.lock_for(character_id):
            async with get_session() as session:
                character = await self._load(session, character_id)
                await session.delete(character)

        self._locks.pop(character_id, None)
        logger.info("character_deleted", character_id=str(character_id))
