"""Tests for skill rolls: preconditions, resolution and reporting."""

from unittest.mock import patch

import pytest

from contrato.database.models import HistoryKind
from contrato.game.systems.derivation import AttributeDeriver
from contrato.game.systems.history import HistoryLog
from contrato.game.systems.rolls import (
    NoResourceAvailableError,
    PendingRoll,
    RollChoice,
    RollMode,
    RollResolver,
    UnknownSkillError,
    format_roll_report,
    format_signed,
    spent_die_value,
)


@pytest.fixture
def resolver(rules, dice, chat, calendar, localizer, notifier):
    deriver = AttributeDeriver(calendar=calendar, localizer=localizer)
    return RollResolver(
        rules=rules,
        dice=dice,
        chat=chat,
        deriver=deriver,
        localizer=localizer,
        notifier=notifier,
    )


def choose(mode, modifier_index=None):
    async def chooser(pending: PendingRoll):
        return pending.choose(mode, modifier_index)

    return chooser


async def dismiss(pending: PendingRoll):
    return None


class TestSpentDie:
    """Sacred and umbral contributions."""

    @pytest.mark.parametrize(("d6", "expected"), [(1, 1), (2, 1), (3, 2), (4, 2), (5, 3), (6, 3)])
    def test_sacred_halves_rounding_up(self, d6, expected):
        assert spent_die_value(RollMode.SACRED, d6) == expected

    @pytest.mark.parametrize("d6", range(1, 7))
    def test_umbral_is_full_value(self, d6):
        assert spent_die_value(RollMode.UMBRAL, d6) == d6


class TestReport:
    """Chat report formatting."""

    def test_signed_modifier(self):
        assert format_signed(2) == "+ 2"
        assert format_signed(-1) == "- 1"
        assert format_signed(0) == ""

    def test_zero_modifier_hidden(self):
        report = format_roll_report("Rolagem de Briga", "perícia", "Dado Sagrado", 7, 3, 3, 0, 13)

        assert report == (
            "<strong>Rolagem de Briga</strong>"
            "<p>1d12 (7) + perícia (3) + Dado Sagrado (3)</p>"
            "<p><strong>Total:</strong> 13</p>"
        )

    def test_negative_modifier_shown(self):
        report = format_roll_report("Rolagem de Briga", "perícia", "Dado Umbral", 2, 3, 4, -1, 8)
        assert "Dado Umbral (4) - 1</p>" in report

    def test_labels_escaped(self):
        report = format_roll_report("<b>x</b>", "perícia", "Dado", 1, 0, 1, 0, 2)
        assert "&lt;b&gt;x&lt;/b&gt;" in report


class TestPreconditions:
    """Rejected rolls leave the character untouched."""

    async def test_unknown_skill(self, resolver, db_session, test_character, notifier, dice):
        with pytest.raises(UnknownSkillError):
            await resolver.initiate_roll(db_session, test_character, "sympathy", choose("sacred"))

        assert test_character.dice_pool_current == 7
        assert notifier.warnings == ["Perícia desconhecida: sympathy"]
        assert dice.calls == []

    async def test_empty_pool(self, resolver, db_session, test_character, notifier, dice, chat):
        test_character.dice_pool_current = 0

        with pytest.raises(NoResourceAvailableError):
            await resolver.initiate_roll(db_session, test_character, "briga", choose("umbral"))

        assert test_character.dice_pool_current == 0
        assert test_character.bestiality == 6
        assert notifier.warnings == ["Sem dados na reserva para rolar Briga."]
        assert dice.calls == []
        assert chat.messages == []

    async def test_dismissed_dialog(self, resolver, db_session, test_character, dice, chat):
        outcome = await resolver.initiate_roll(db_session, test_character, "briga", dismiss)

        assert outcome is None
        assert test_character.dice_pool_current == 7
        assert dice.calls == []
        assert chat.messages == []

    async def test_pool_emptied_while_dialog_open(self, resolver, db_session, test_character):
        pending = resolver.present_choice(test_character, "briga")
        test_character.dice_pool_current = 0

        with pytest.raises(NoResourceAvailableError):
            await resolver.resolve(db_session, test_character, pending, pending.choose("sacred"))


class TestPendingRoll:
    """The dialog description."""

    def test_pending_roll_contents(self, resolver, test_character):
        pending = resolver.present_choice(test_character, "briga")

        assert pending.skill_label == "Briga"
        assert pending.title == "Rolagem de Briga"
        assert pending.modes == (RollMode.SACRED, RollMode.UMBRAL)
        assert len(pending.modifiers) == 8

    def test_duplicate_modifiers_stay_selectable(self, resolver, test_character):
        pending = resolver.present_choice(test_character, "briga")

        hurry = pending.choose("sacred", 5)
        wounds = pending.choose("sacred", 6)

        assert hurry.modifier_value == wounds.modifier_value == -2
        assert hurry.modifier.label == "Pressa extrema"
        assert wounds.modifier.label == "Ferimentos graves"
        assert hurry.modifier.option_label == "Pressa extrema (-2)"

    def test_bad_modifier_index(self, resolver, test_character):
        pending = resolver.present_choice(test_character, "briga")

        with pytest.raises(IndexError):
            pending.choose("sacred", 8)

    def test_no_modifier(self):
        assert RollChoice(mode=RollMode.UMBRAL).modifier_value == 0


class TestResolution:
    """Resolving rolls end to end."""

    async def test_sacred_scenario(self, resolver, db_session, test_character, dice, chat):
        dice.script(6, 5).script(12, 7)

        outcome = await resolver.initiate_roll(
            db_session, test_character, "briga", choose("sacred", 2)
        )

        assert outcome.spent_die == 3
        assert outcome.total == 7 + 3 + 3 + 0 == 13
        assert test_character.bestiality == 6
        assert test_character.humanity == 6
        assert test_character.dice_pool_current == 6
        assert dice.calls == [6, 12]
        assert chat.messages[0].content == outcome.report
        assert chat.messages[0].speaker_id == str(test_character.id)
        assert "Dado Sagrado (3)</p>" in outcome.report

    async def test_umbral_scenario(self, resolver, db_session, test_character, dice):
        dice.script(6, 4).script(12, 2)

        # index 3 is the first -1 entry
        outcome = await resolver.initiate_roll(
            db_session, test_character, "briga", choose("umbral", 3)
        )

        assert outcome.spent_die == 4
        assert outcome.total == 2 + 3 + 4 - 1 == 8
        assert test_character.bestiality == 7
        assert test_character.humanity == 5
        assert test_character.dice_pool_max == 8
        assert test_character.dice_pool_current == 6
        assert "Dado Umbral (4) - 1</p>" in outcome.report

    @pytest.mark.parametrize("mode", ["sacred", "umbral"])
    async def test_last_die_spent(self, resolver, db_session, test_character, dice, mode):
        test_character.dice_pool_current = 1
        dice.script(6, 6).script(12, 12)

        await resolver.resolve_roll(db_session, test_character, "briga", RollMode(mode))

        assert test_character.dice_pool_current == 0

    async def test_umbral_at_max_bestiality(self, resolver, db_session, test_character, dice):
        test_character.humanity, test_character.bestiality = 1, 11
        test_character.dice_pool_current = 2
        dice.script(6, 3).script(12, 5)

        await resolver.resolve_roll(db_session, test_character, "briga", RollMode.UMBRAL)

        assert (test_character.humanity, test_character.bestiality) == (1, 11)
        assert test_character.dice_pool_current == 1

    async def test_unrated_skill(self, resolver, db_session, test_character, dice):
        dice.script(6, 2).script(12, 10)

        outcome = await resolver.resolve_roll(
            db_session, test_character, "ocultismo", RollMode.SACRED, 3
        )

        assert outcome.skill_rating == 0
        assert outcome.total == 10 + 0 + 1 + 3
        assert "+ 3</p>" in outcome.report

    async def test_resolve_roll_unknown_skill(self, resolver, db_session, test_character, dice):
        with pytest.raises(UnknownSkillError):
            await resolver.resolve_roll(db_session, test_character, "nope", RollMode.SACRED)

        assert test_character.dice_pool_current == 7


class TestRollHistory:
    """Roll entries on the history log."""

    async def test_roll_entry(self, resolver, db_session, test_character, dice):
        dice.script(6, 4).script(12, 2)

        await resolver.resolve_roll(db_session, test_character, "briga", RollMode.UMBRAL, -1)

        entries = await HistoryLog(db_session).entries(test_character.id, HistoryKind.ROLL)
        assert len(entries) == 1
        payload = entries[0].payload
        assert payload["skill"] == "briga"
        assert payload["total"] == 8
        assert (payload["humanity"], payload["bestiality"], payload["corruption"]) == (5, 7, 0)
        assert (payload["mode"], payload["d6"], payload["d12"]) == ("umbral", 4, 2)

    async def test_rejected_history_insert_does_not_fail_roll(
        self, resolver, failing_history_store, test_character, dice, chat
    ):
        db_session = failing_history_store
        dice.script(6, 4).script(12, 7)

        outcome = await resolver.resolve_roll(
            db_session, test_character, "briga", RollMode.UMBRAL
        )

        assert outcome.total == 7 + 3 + 4
        assert len(chat.messages) == 1

        await db_session.refresh(test_character)
        assert test_character.dice_pool_current == 6
        assert test_character.bestiality == 7
        assert await HistoryLog(db_session).entries(test_character.id) == []


class TestFailureAfterSpending:
    """The pool die stays spent when a later step fails."""

    async def test_dice_failure_keeps_decrement(self, resolver, db_session, test_character):
        # nothing scripted: the d6 draw raises
        with pytest.raises(AssertionError):
            await resolver.resolve_roll(db_session, test_character, "briga", RollMode.SACRED)

        await db_session.rollback()
        await db_session.refresh(test_character)
        assert test_character.dice_pool_current == 6

    async def test_chat_failure_keeps_decrement(
        self, resolver, db_session, test_character, dice, chat
    ):
        dice.script(6, 1).script(12, 1)

        with patch.object(chat, "publish", side_effect=ConnectionError("chat down")):
            with pytest.raises(ConnectionError):
                await resolver.resolve_roll(db_session, test_character, "briga", RollMode.SACRED)

        await db_session.rollback()
        await db_session.refresh(test_character)
        assert test_character.dice_pool_current == 6

    async def test_chat_failure_keeps_umbral_shift(
        self, resolver, db_session, test_character, dice, chat
    ):
        dice.script(6, 4).script(12, 2)

        with patch.object(chat, "publish", side_effect=ConnectionError("chat down")):
            with pytest.raises(ConnectionError):
                await resolver.resolve_roll(db_session, test_character, "briga", RollMode.UMBRAL)

        await db_session.rollback()
        await db_session.refresh(test_character)
        assert test_character.dice_pool_current == 6
        assert (test_character.humanity, test_character.bestiality) == (5, 7)
        assert test_character.dice_pool_max == 8
