"""Data handed to the host's character-sheet template."""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from contrato.game.character.attributes import BALANCE_TOTAL, get_corruption_state
from contrato.game.character.skills import get_skill_rating
from contrato.game.rules import RulesConfig, SkillCategory

if TYPE_CHECKING:
    from contrato.database.models import Character, Item
    from contrato.integrations.i18n import Localizer


def group_skills(
    character: "Character", rules: RulesConfig, localizer: "Localizer"
) -> dict[str, dict[str, Any]]:
    """
    Group configured skills by category for the sheet panels.

    Args:
        character: The Character model instance
        rules: Rules configuration
        localizer: String table for category labels

    Returns:
        Mapping of category to {"label", "list"}, where "list" holds
        {"key", "label", "value"} entries sorted by label
    """
    categories: dict[str, dict[str, Any]] = {}

    for category in SkillCategory:
        skills = rules.skills_in_category(category)
        if not skills:
            continue

        entries = [
            {
                "key": skill.key,
                "label": skill.label,
                "value": get_skill_rating(character, skill.key),
            }
            for skill in skills
        ]
        entries.sort(key=lambda entry: entry["label"].casefold())

        categories[category.value] = {
            "label": localizer.localize(f"CONTRATO.SKILLS.TYPE.{category.value}"),
            "list": entries,
        }

    return categories


def balance_percentages(character: "Character") -> dict[str, float]:
    """Humanity and Bestiality as a share of 12, for the balance bar."""
    return {
        "human_pct": (character.humanity or 0) / BALANCE_TOTAL * 100,
        "bestial_pct": (character.bestiality or 0) / BALANCE_TOTAL * 100,
    }


def build_sheet_context(
    character: "Character",
    rules: RulesConfig,
    localizer: "Localizer",
    items: Iterable["Item"] = (),
) -> dict[str, Any]:
    """
    Assemble the template context for one character.

    Expects a character that already went through the attribute deriver.
    """
    corruption_state = get_corruption_state(character.corruption or 0)

    return {
        "id": str(character.id),
        "name": character.name,
        "attributes": {
            "humanity": character.humanity,
            "bestiality": character.bestiality,
            "corruption": character.corruption,
        },
        "dice_pool": {
            "current": character.dice_pool_current,
            "max": character.dice_pool_max,
        },
        "corruption": {
            "penalty": corruption_state.penalty_tier,
            "hunt": corruption_state.hunt_frequency.value,
        },
        "categories": group_skills(character, rules, localizer),
        "balance": balance_percentages(character),
        "items": [
            {
                "id": str(item.id),
                "name": item.name,
                "type": item.item_type.value,
                "description": item.description or "",
                "activation": item.activation,
                "cost": item.cost,
                "bonus": item.bonus,
            }
            for item in items
        ],
        "notes": character.notes or "",
    }
