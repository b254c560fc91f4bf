"""Die rolling for skill checks."""

import random
from typing import Protocol


class DiceRoller(Protocol):
    """Anything that can roll a single die."""

    def roll_die(self, sides: int) -> int:
        """Roll one die, uniform in 1..sides."""
        ...


class RandomDiceRoller:
    """Rolls dice with the `random` module.

    Pass a seeded `random.Random` for reproducible sequences.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def roll_die(self, sides: int) -> int:
        """
        Roll one die.

        Args:
            sides: Number of faces (at least 1)

        Returns:
            Value between 1 and sides inclusive

        Raises:
            ValueError: If sides is less than 1
        """
        if sides < 1:
            raise ValueError(f"A die needs at least one side, got {sides}")
        return self._rng.randint(1, sides)
