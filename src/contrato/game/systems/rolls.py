"""Skill rolls for Contrato de Sangue.

A roll costs one die from the character's pool. The player spends it either
as a Sacred die (half the d6, rounded up, no side effect) or an Umbral die
(the full d6, but Bestiality grows by one). The spent die is added to a d12,
the skill rating and an optional situational modifier.

Rolling is a two-step protocol so the dialog stays out of the rules:
- present_choice() checks the preconditions and returns a PendingRoll
  describing the options to show
- resolve() applies the player's RollChoice and returns a RollOutcome

Once the pool die is spent it stays spent, even if a later step fails. The
same goes for the Bestiality an umbral die costs.
"""

import html
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from contrato.database.models import HistoryKind
from contrato.game.character.attributes import shift_toward_beast
from contrato.game.character.skills import get_skill_rating
from contrato.game.rules import RulesConfig, SituationalModifier
from contrato.game.systems.history import HistoryLog
from contrato.integrations.i18n import Localizer

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from contrato.database.models import Character
    from contrato.game.systems.derivation import AttributeDeriver
    from contrato.integrations.chat import ChatChannel
    from contrato.integrations.dice import DiceRoller
    from contrato.integrations.notifications import Notifier

logger = structlog.get_logger(__name__)

SPENT_DIE_SIDES = 6
BASE_DIE_SIDES = 12


class RollMode(StrEnum):
    """How the pool die is spent."""

    SACRED = "sacred"
    UMBRAL = "umbral"


MODE_LABEL_KEYS: dict[RollMode, str] = {
    RollMode.SACRED: "CONTRATO.ROLL.BUTTON.SAGRADO",
    RollMode.UMBRAL: "CONTRATO.ROLL.BUTTON.UMBRAL",
}


class RollRejectedError(Exception):
    """A roll refused before anything changed on the character."""

    def __init__(self, message: str, skill_key: str) -> None:
        super().__init__(message)
        self.skill_key = skill_key


class UnknownSkillError(RollRejectedError):
    """The skill key is not part of the configured skill set."""

    pass


class NoResourceAvailableError(RollRejectedError):
    """The character's dice pool is empty."""

    pass


@dataclass(frozen=True)
class PendingRoll:
    """
    A roll waiting for the player's decision.

    Attributes:
        character_id: Rolling character
        skill_key: Skill being rolled
        skill_label: Display label of the skill
        title: Dialog title
        message: Dialog prompt
        modes: Ways to spend the pool die, default first
        modifiers: Situational modifiers in display order, duplicates kept
    """

    character_id: str
    skill_key: str
    skill_label: str
    title: str
    message: str
    modes: tuple[RollMode, ...]
    modifiers: tuple[SituationalModifier, ...]

    def choose(self, mode: RollMode | str, modifier_index: int | None = None) -> "RollChoice":
        """
        Build a choice by modifier position.

        Positions keep duplicated modifiers apart.

        Args:
            mode: Sacred or umbral
            modifier_index: Index into `modifiers`, or None for no modifier

        Returns:
            RollChoice for resolve()

        Raises:
            IndexError: If modifier_index is out of range
        """
        modifier = None
        if modifier_index is not None:
            if not 0 <= modifier_index < len(self.modifiers):
                raise IndexError(f"No modifier at position {modifier_index}")
            modifier = self.modifiers[modifier_index]
        return RollChoice(mode=RollMode(mode), modifier=modifier)


@dataclass(frozen=True)
class RollChoice:
    """What the player picked in the roll dialog."""

    mode: RollMode
    modifier: SituationalModifier | None = None

    @property
    def modifier_value(self) -> int:
        """Situational modifier to add, 0 when none was picked."""
        return self.modifier.value if self.modifier else 0


@dataclass(frozen=True)
class RollOutcome:
    """Everything a resolved roll produced."""

    skill_key: str
    mode: RollMode
    d6: int
    d12: int
    skill_rating: int
    spent_die: int
    situational_modifier: int
    total: int
    report: str


RollChooser = Callable[[PendingRoll], Awaitable[RollChoice | None]]


def spent_die_value(mode: RollMode, d6: int) -> int:
    """
    Contribution of the spent pool die.

    Args:
        mode: Sacred (half, rounded up) or umbral (full value)
        d6: The d6 result

    Returns:
        1-3 for sacred, 1-6 for umbral

    Examples:
        >>> spent_die_value(RollMode.SACRED, 5)
        3
        >>> spent_die_value(RollMode.UMBRAL, 5)
        5
    """
    if mode is RollMode.SACRED:
        return math.ceil(d6 / 2)
    return d6


def format_signed(value: int) -> str:
    """Format a modifier for the report: '+ 2', '- 1', or '' for zero."""
    if value > 0:
        return f"+ {value}"
    if value < 0:
        return f"- {abs(value)}"
    return ""


def format_roll_report(
    title: str,
    skill_word: str,
    mode_label: str,
    d12: int,
    skill_rating: int,
    spent_die: int,
    situational_modifier: int,
    total: int,
) -> str:
    """
    Build the HTML chat message for a resolved roll.

    The situational modifier only appears when it is non-zero.

    Returns:
        HTML fragment, e.g.
        "<strong>Rolagem de Briga</strong><p>1d12 (7) + perícia (3) +
        Dado Sagrado (3)</p><p><strong>Total:</strong> 13</p>"
    """
    formula = (
        f"1d12 ({d12}) + {html.escape(skill_word)} ({skill_rating}) + "
        f"{html.escape(mode_label)} ({spent_die})"
    )
    signed = format_signed(situational_modifier)
    if signed:
        formula = f"{formula} {signed}"

    return (
        f"<strong>{html.escape(title)}</strong>"
        f"<p>{formula}</p>"
        f"<p><strong>Total:</strong> {total}</p>"
    )


class RollResolver:
    """Runs skill rolls against one rules configuration."""

    def __init__(
        self,
        rules: RulesConfig,
        dice: "DiceRoller",
        chat: "ChatChannel",
        deriver: "AttributeDeriver",
        localizer: Localizer | None = None,
        notifier: "Notifier | None" = None,
    ) -> None:
        self.rules = rules
        self.dice = dice
        self.chat = chat
        self.deriver = deriver
        self.localizer = localizer or Localizer()
        self.notifier = notifier

    def _reject(self, error: RollRejectedError) -> RollRejectedError:
        """Tell the player why the roll was refused."""
        if self.notifier is not None:
            self.notifier.warn(str(error))
        logger.info(
            "roll_rejected",
            reason=type(error).__name__,
            skill_key=error.skill_key,
        )
        return error

    def check_preconditions(self, character: "Character", skill_key: str) -> None:
        """
        Refuse rolls for unknown skills or with an empty pool.

        Raises:
            UnknownSkillError: If the skill is not configured
            NoResourceAvailableError: If the dice pool is empty
        """
        skill = self.rules.get_skill(skill_key)
        if skill is None:
            raise self._reject(
                UnknownSkillError(
                    self.localizer.format("CONTRATO.ROLL.UNKNOWN_SKILL", skill=skill_key),
                    skill_key,
                )
            )

        if (character.dice_pool_current or 0) <= 0:
            raise self._reject(
                NoResourceAvailableError(
                    self.localizer.format("CONTRATO.ROLL.NO_DICE", skill=skill.label),
                    skill_key,
                )
            )

    def present_choice(self, character: "Character", skill_key: str) -> PendingRoll:
        """
        Start a roll: validate it and describe the dialog to show.

        Nothing on the character changes here.

        Args:
            character: The rolling Character
            skill_key: Skill to roll

        Returns:
            PendingRoll with the available modes and modifiers

        Raises:
            UnknownSkillError: If the skill is not configured
            NoResourceAvailableError: If the dice pool is empty
        """
        self.check_preconditions(character, skill_key)
        skill = self.rules.skills[skill_key]

        return PendingRoll(
            character_id=str(character.id),
            skill_key=skill_key,
            skill_label=skill.label,
            title=self.localizer.format("CONTRATO.ROLL.DIALOG.TITLE", skill=skill.label),
            message=self.localizer.localize("CONTRATO.ROLL.DIALOG.MESSAGE"),
            modes=(RollMode.SACRED, RollMode.UMBRAL),
            modifiers=tuple(self.rules.modifiers),
        )

    async def resolve(
        self,
        session: "AsyncSession",
        character: "Character",
        pending: PendingRoll,
        choice: RollChoice,
    ) -> RollOutcome:
        """
        Finish a pending roll with the player's choice.

        The preconditions are checked again since the character may have
        changed while the dialog was open.
        """
        self.check_preconditions(character, pending.skill_key)
        return await self.resolve_roll(
            session, character, pending.skill_key, choice.mode, choice.modifier_value
        )

    async def resolve_roll(
        self,
        session: "AsyncSession",
        character: "Character",
        skill_key: str,
        mode: RollMode,
        situational_modifier: int = 0,
    ) -> RollOutcome:
        """
        Spend a pool die and roll the skill.

        The pool decrement is committed before any die is drawn, and the
        umbral shift right after the d6. Neither is undone if rolling or
        publishing fails afterwards.

        Args:
            session: Database session holding the character
            character: The rolling Character (mutated)
            skill_key: Skill to roll
            mode: Sacred or umbral
            situational_modifier: Amount added to the total

        Returns:
            RollOutcome; `total` is the roll result

        Raises:
            UnknownSkillError: If the skill is not configured
        """
        skill = self.rules.get_skill(skill_key)
        if skill is None:
            raise self._reject(
                UnknownSkillError(
                    self.localizer.format("CONTRATO.ROLL.UNKNOWN_SKILL", skill=skill_key),
                    skill_key,
                )
            )

        mode = RollMode(mode)
        history = HistoryLog(session)

        character.dice_pool_current = max(0, (character.dice_pool_current or 0) - 1)
        await session.commit()

        d6 = self.dice.roll_die(SPENT_DIE_SIDES)
        spent_die = spent_die_value(mode, d6)

        if mode is RollMode.UMBRAL:
            character.humanity, character.bestiality = shift_toward_beast(
                character.bestiality or 0
            )
            await self.deriver.prepare(character, history)
            await session.commit()

        d12 = self.dice.roll_die(BASE_DIE_SIDES)
        skill_rating = get_skill_rating(character, skill_key)
        total = d12 + skill_rating + spent_die + situational_modifier

        report = format_roll_report(
            title=self.localizer.format("CONTRATO.ROLL.DIALOG.TITLE", skill=skill.label),
            skill_word=self.localizer.localize("CONTRATO.ROLL.SKILL"),
            mode_label=self.localizer.localize(MODE_LABEL_KEYS[mode]),
            d12=d12,
            skill_rating=skill_rating,
            spent_die=spent_die,
            situational_modifier=situational_modifier,
            total=total,
        )
        await self.chat.publish(str(character.id), report)

        try:
            await history.append(
                character,
                HistoryKind.ROLL,
                {
                    "skill": skill_key,
                    "total": total,
                    "mode": mode.value,
                    "d6": d6,
                    "d12": d12,
                    "modifier": situational_modifier,
                    "humanity": character.humanity,
                    "bestiality": character.bestiality,
                    "corruption": character.corruption,
                },
            )
        except Exception as e:
            logger.warning(
                "history_append_failed",
                character_id=str(character.id),
                kind=HistoryKind.ROLL.value,
                error=str(e),
            )

        await session.commit()

        logger.info(
            "roll_resolved",
            character_id=str(character.id),
            skill_key=skill_key,
            mode=mode.value,
            d6=d6,
            d12=d12,
            total=total,
            dice_pool_current=character.dice_pool_current,
        )

        return RollOutcome(
            skill_key=skill_key,
            mode=mode,
            d6=d6,
            d12=d12,
            skill_rating=skill_rating,
            spent_die=spent_die,
            situational_modifier=situational_modifier,
            total=total,
            report=report,
        )

    async def initiate_roll(
        self,
        session: "AsyncSession",
        character: "Character",
        skill_key: str,
        chooser: RollChooser,
    ) -> RollOutcome | None:
        """
        Run a whole roll: present the choice, wait for it, resolve it.

        Args:
            session: Database session holding the character
            character: The rolling Character
            skill_key: Skill to roll
            chooser: Async callable showing the dialog; returns None when the
                player dismisses it

        Returns:
            RollOutcome, or None if the player cancelled (nothing changed)

        Raises:
            UnknownSkillError: If the skill is not configured
            NoResourceAvailableError: If the dice pool is empty
        """
        pending = self.present_choice(character, skill_key)

        choice = await chooser(pending)
        if choice is None:
            logger.info(
                "roll_cancelled",
                character_id=pending.character_id,
                skill_key=skill_key,
            )
            return None

        return await self.resolve(session, character, pending, choice)
