"""
Rules loader module for Contrato de Sangue.

Handles loading and validating the skill and modifier configuration from YAML.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
import yaml
from pydantic import ValidationError

from .models import RulesConfig, SituationalModifier, SkillCategory, SkillDefinition

if TYPE_CHECKING:
    from contrato.integrations.i18n import Localizer

logger = structlog.get_logger(__name__)


class RulesLoadError(Exception):
    """Raised when the rules file cannot be read or parsed."""

    pass


class RulesValidationError(Exception):
    """Raised when a skill or modifier entry is invalid."""

    pass


def load_yaml_file(file_path: Path) -> dict[str, Any]:
    """
    Load the rules YAML file.

    Args:
        file_path: Path to the YAML file

    Returns:
        Parsed top-level mapping

    Raises:
        RulesLoadError: If the file cannot be loaded or parsed
    """
    try:
        with open(file_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise RulesLoadError(f"File not found: {file_path}")
    except yaml.YAMLError as e:
        raise RulesLoadError(f"YAML parsing error in {file_path}: {e}")

    if not data:
        raise RulesLoadError(f"Empty YAML file: {file_path}")

    if not isinstance(data, dict):
        raise RulesLoadError(f"Top level of {file_path} must be a mapping")

    for key in ("skills", "modifiers"):
        if key not in data:
            raise RulesLoadError(f"Missing '{key}' key in {file_path}")

    return data


def parse_skills(
    raw_skills: Any, file_path: Path, localizer: "Localizer | None" = None
) -> dict[str, SkillDefinition]:
    """
    Validate the `skills` mapping and build skill definitions.

    Args:
        raw_skills: Mapping of skill key to `{category, label}`
        file_path: Source file (for error messages)
        localizer: Optional string table used to resolve label keys

    Returns:
        Dictionary mapping skill key to SkillDefinition, in file order

    Raises:
        RulesValidationError: If the mapping or an entry is invalid
    """
    if not isinstance(raw_skills, dict) or not raw_skills:
        raise RulesValidationError(f"'skills' must be a non-empty mapping in {file_path}")

    skills: dict[str, SkillDefinition] = {}
    for key, entry in raw_skills.items():
        if not isinstance(entry, dict):
            raise RulesValidationError(f"Skill '{key}' in {file_path} must be a mapping")

        if "category" not in entry:
            raise RulesValidationError(
                f"Skill '{key}' in {file_path} missing required field: category"
            )

        if entry["category"] not in set(SkillCategory):
            raise RulesValidationError(
                f"Skill '{key}' in {file_path} has unknown category: {entry['category']}"
            )

        label = str(entry.get("label", key))
        if localizer is not None:
            label = localizer.localize(label)

        skills[str(key)] = SkillDefinition(key=str(key), category=entry["category"], label=label)

    return skills


def parse_modifiers(raw_modifiers: Any, file_path: Path) -> list[SituationalModifier]:
    """
    Validate the `modifiers` list.

    Duplicates are kept as separate options.

    Args:
        raw_modifiers: List of `{value, label}` mappings
        file_path: Source file (for error messages)

    Returns:
        List of SituationalModifier in file order

    Raises:
        RulesValidationError: If an entry is invalid
    """
    if not isinstance(raw_modifiers, list):
        raise RulesValidationError(f"'modifiers' must be a list in {file_path}")

    modifiers: list[SituationalModifier] = []
    for index, entry in enumerate(raw_modifiers):
        if not isinstance(entry, dict) or "value" not in entry or "label" not in entry:
            raise RulesValidationError(
                f"Modifier #{index} in {file_path} needs both 'value' and 'label'"
            )

        # bool is an int subclass; reject it along with floats and strings
        if isinstance(entry["value"], bool) or not isinstance(entry["value"], int):
            raise RulesValidationError(
                f"Modifier #{index} in {file_path} has non-integer value: {entry['value']!r}"
            )

        try:
            modifiers.append(SituationalModifier(value=entry["value"], label=str(entry["label"])))
        except ValidationError as e:
            raise RulesValidationError(f"Modifier #{index} in {file_path} is invalid: {e}")

    return modifiers


def load_rules(file_path: Path, localizer: "Localizer | None" = None) -> RulesConfig:
    """
    Load and validate the rules configuration.

    Args:
        file_path: Path to rules.yaml
        localizer: Optional string table for skill labels

    Returns:
        The RulesConfig to pass to the deriver and roll resolver

    Raises:
        RulesLoadError: If the file can't be loaded
        RulesValidationError: If an entry is invalid
    """
    data = load_yaml_file(file_path)

    rules = RulesConfig(
        skills=parse_skills(data["skills"], file_path, localizer),
        modifiers=parse_modifiers(data["modifiers"], file_path),
    )

    logger.info(
        "rules_loaded",
        path=str(file_path),
        total_skills=len(rules.skills),
        total_modifiers=len(rules.modifiers),
    )

    return rules
