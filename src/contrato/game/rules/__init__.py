"""Rules configuration - skills and situational modifiers."""

from .loader import RulesLoadError, RulesValidationError, load_rules
from .models import RulesConfig, SituationalModifier, SkillCategory, SkillDefinition

__all__ = [
    "RulesConfig",
    "SituationalModifier",
    "SkillCategory",
    "SkillDefinition",
    "load_rules",
    "RulesLoadError",
    "RulesValidationError",
]
