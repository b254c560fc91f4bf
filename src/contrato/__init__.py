"""Contrato de Sangue - character-sheet rules for a gothic-punk horror RPG."""

__version__ = "0.1.0"
