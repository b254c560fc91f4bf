"""Character attributes and derived stats for Contrato de Sangue.

Humanity and Bestiality always add up to 12. Bestiality sizes the dice pool,
and Mortality (corruption) sets a penalty tier and how often the character
must hunt.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from contrato.database.models.character import Character

# Humanity + Bestiality
BALANCE_TOTAL = 12

DEFAULT_HUMANITY = 6
DEFAULT_BESTIALITY = 6
DEFAULT_CORRUPTION = 0

MIN_HUMANITY = 1
MAX_HUMANITY = 12
MIN_BESTIALITY = 0
MAX_BESTIALITY = 11


class HuntFrequency(StrEnum):
    """How often a character must hunt, by mortality tier."""

    NONE = "none"
    WEEKLY = "weekly"
    TWICE_WEEKLY = "twice-weekly"
    DAILY = "daily"
    CONSTANT = "constant"


# Lowest corruption for each tier, highest first
CORRUPTION_TIERS: list[tuple[int, int, HuntFrequency]] = [
    (12, 4, HuntFrequency.CONSTANT),
    (9, 3, HuntFrequency.DAILY),
    (6, 2, HuntFrequency.TWICE_WEEKLY),
    (3, 1, HuntFrequency.WEEKLY),
]

# Days from today until the hunt reminder fires
HUNT_REMINDER_OFFSET_DAYS: dict[HuntFrequency, int] = {
    HuntFrequency.WEEKLY: 7,
    HuntFrequency.TWICE_WEEKLY: 3,
    HuntFrequency.DAILY: 1,
    HuntFrequency.CONSTANT: 0,
}


@dataclass(frozen=True)
class CorruptionState:
    """Penalty tier and hunt frequency derived from corruption."""

    penalty_tier: int
    hunt_frequency: HuntFrequency


@dataclass(frozen=True)
class DerivedAttributes:
    """Normalized attribute values for one character."""

    humanity: int
    bestiality: int
    corruption: int
    dice_pool_current: int
    dice_pool_max: int
    corruption_state: CorruptionState


def coerce_int(value: Any, default: int) -> int:
    """Convert sheet input to an int, falling back to `default`.

    Numeric strings are accepted; None, bools, NaN and other junk are not.

    Examples:
        >>> coerce_int("7", 0)
        7
        >>> coerce_int(None, 6)
        6
        >>> coerce_int("abc", 0)
        0
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number or number in (float("inf"), float("-inf")):
        return default
    return int(number)


def get_corruption_state(corruption: int) -> CorruptionState:
    """Map corruption onto its penalty tier and hunt frequency.

    Args:
        corruption: Raw corruption (Mortalidade); anything below 3 is tier 0

    Returns:
        CorruptionState for the value

    Examples:
        >>> get_corruption_state(2)
        CorruptionState(penalty_tier=0, hunt_frequency=<HuntFrequency.NONE: 'none'>)
        >>> get_corruption_state(12).penalty_tier
        4
    """
    for threshold, tier, frequency in CORRUPTION_TIERS:
        if corruption >= threshold:
            return CorruptionState(penalty_tier=tier, hunt_frequency=frequency)
    return CorruptionState(penalty_tier=0, hunt_frequency=HuntFrequency.NONE)


def balance_attributes(humanity: int, bestiality: int) -> tuple[int, int]:
    """Restore Humanity + Bestiality = 12.

    Humanity wins when the pair disagrees; it is only clamped into 1-12 so
    Bestiality can stay within 0-11.

    Args:
        humanity: Current humanity
        bestiality: Current bestiality

    Returns:
        Tuple of (humanity, bestiality)
    """
    humanity = max(MIN_HUMANITY, min(MAX_HUMANITY, humanity))
    if humanity + bestiality != BALANCE_TOTAL:
        bestiality = max(MIN_BESTIALITY, BALANCE_TOTAL - humanity)
    return humanity, bestiality


def get_dice_pool_max(bestiality: int) -> int:
    """Dice pool size: Bestiality + 1."""
    return bestiality + 1


def clamp_dice_pool(current: Any, pool_max: int) -> int:
    """Keep the dice pool within 0..max.

    A pool that was never set (or holds anything but an int) refills to max.
    A pool already within bounds is left alone.
    """
    if isinstance(current, bool) or not isinstance(current, int):
        return pool_max
    if current > pool_max:
        return pool_max
    if current < 0:
        return 0
    return current


def shift_toward_beast(bestiality: int) -> tuple[int, int]:
    """Spend an umbral die: +1 Bestiality (max 11), Humanity follows.

    Returns:
        Tuple of (humanity, bestiality)
    """
    new_bestiality = min(MAX_BESTIALITY, bestiality + 1)
    new_humanity = max(0, BALANCE_TOTAL - new_bestiality)
    return new_humanity, new_bestiality


def derive_attributes(character: "Character") -> DerivedAttributes:
    """Compute the normalized attributes of a character without touching it.

    Steps run in order because each uses the previous one's output:
    defaults, the 12-point balance, the dice pool, then corruption.

    Args:
        character: The Character model instance

    Returns:
        DerivedAttributes with every invariant restored
    """
    humanity = coerce_int(character.humanity, DEFAULT_HUMANITY)
    bestiality = coerce_int(character.bestiality, DEFAULT_BESTIALITY)
    corruption = coerce_int(character.corruption, DEFAULT_CORRUPTION)

    humanity, bestiality = balance_attributes(humanity, bestiality)

    pool_max = get_dice_pool_max(bestiality)
    pool_current = clamp_dice_pool(character.dice_pool_current, pool_max)

    return DerivedAttributes(
        humanity=humanity,
        bestiality=bestiality,
        corruption=corruption,
        dice_pool_current=pool_current,
        dice_pool_max=pool_max,
        corruption_state=get_corruption_state(corruption),
    )


def apply_derived_attributes(character: "Character") -> DerivedAttributes:
    """Write the derived values back onto the character.

    Running this twice in a row changes nothing the second time.

    Args:
        character: The Character model instance (mutated)

    Returns:
        The DerivedAttributes that were applied
    """
    derived = derive_attributes(character)

    character.humanity = derived.humanity
    character.bestiality = derived.bestiality
    character.corruption = derived.corruption
    character.dice_pool_max = derived.dice_pool_max
    character.dice_pool_current = derived.dice_pool_current
    character.penalty_tier = derived.corruption_state.penalty_tier
    character.hunt_frequency = derived.corruption_state.hunt_frequency.value

    if character.skills is None:
        character.skills = {}

    return derived
