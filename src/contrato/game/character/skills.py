"""Skill ratings for Contrato de Sangue characters."""

from typing import TYPE_CHECKING, Any

from sqlalchemy.orm.attributes import flag_modified

from contrato.game.character.attributes import coerce_int

if TYPE_CHECKING:
    from contrato.database.models.character import Character
    from contrato.game.rules import RulesConfig

DEFAULT_SKILL_RATING = 0


def get_skill_rating(character: "Character", skill_key: str) -> int:
    """Get a character's rating in a skill.

    Args:
        character: The Character model instance
        skill_key: Skill key (e.g., "ocultismo")

    Returns:
        The rating, 0 when the skill was never set or holds junk
    """
    skills = character.skills or {}
    return coerce_int(skills.get(skill_key), DEFAULT_SKILL_RATING)


def set_skill_rating(character: "Character", skill_key: str, value: Any) -> int:
    """Store a skill rating typed into the sheet.

    Non-numeric input is stored as 0, like any other sheet field.

    Args:
        character: The Character model instance (mutated)
        skill_key: Skill key
        value: Raw input value

    Returns:
        The rating that was stored
    """
    rating = coerce_int(value, 0)

    # Reassign so SQLAlchemy sees the JSON column change
    skills = dict(character.skills or {})
    skills[skill_key] = rating
    character.skills = skills
    flag_modified(character, "skills")

    return rating


def get_skill_ratings(character: "Character", rules: "RulesConfig") -> dict[str, int]:
    """Get the rating of every configured skill, defaulting to 0."""
    return {key: get_skill_rating(character, key) for key in rules.skills}
