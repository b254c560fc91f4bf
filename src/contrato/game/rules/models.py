"""
Static rules configuration for Contrato de Sangue.

Defines the skill enumeration and the situational modifier list that are
loaded once at start-up and handed to the deriver and roll resolver.
"""

from enum import StrEnum

from pydantic import BaseModel, Field


class SkillCategory(StrEnum):
    """Groups shown as separate panels on the sheet."""

    PHYSICAL = "physical"
    MENTAL = "mental"
    SOCIAL = "social"
    COMBAT = "combat"


class SkillDefinition(BaseModel):
    """
    A rollable skill.

    Attributes:
        key: Skill key stored on the character (e.g., "ocultismo")
        category: Sheet panel the skill belongs to
        label: Display label, already localized
    """

    key: str = Field(..., description="Skill key")
    category: SkillCategory = Field(..., description="Skill category")
    label: str = Field(..., description="Display label")


class SituationalModifier(BaseModel):
    """One entry of the roll dialog's modifier list."""

    value: int = Field(..., description="Amount added to the roll total")
    label: str = Field(..., description="Why the modifier applies")

    @property
    def signed_value(self) -> str:
        """Value with an explicit sign, e.g. '+3' or '-2'."""
        return f"+{self.value}" if self.value >= 0 else str(self.value)

    @property
    def option_label(self) -> str:
        """Label as shown in the dialog, e.g. 'Pressa extrema (-2)'."""
        return f"{self.label} ({self.signed_value})"


class RulesConfig(BaseModel):
    """
    Skills and modifiers for one running system.

    `skills` keeps the YAML order; `modifiers` is order-significant and may
    contain entries with the same value or even the same label.
    """

    skills: dict[str, SkillDefinition] = Field(default_factory=dict)
    modifiers: list[SituationalModifier] = Field(default_factory=list)

    def get_skill(self, key: str) -> SkillDefinition | None:
        """
        Get a skill definition by key.

        Args:
            key: Skill key

        Returns:
            The SkillDefinition if configured, None otherwise
        """
        return self.skills.get(key)

    def has_skill(self, key: str) -> bool:
        """Check whether a skill key is configured."""
        return key in self.skills

    def skills_in_category(self, category: SkillCategory) -> list[SkillDefinition]:
        """Get the skills of one category in configuration order."""
        return [skill for skill in self.skills.values() if skill.category == category]
