from __future__ import annotations


class InvalidActionError(ValueError):
    """Raised when a player acts out of turn or breaks a betting rule.

    The game state is untouched when this is raised, so the caller can simply
    ask the player again.
    """


class ConfigurationError(ValueError):
    """Raised for a malformed variant descriptor, AI profile or table config."""


class InvariantViolation(RuntimeError):
    """Raised when the engine reaches a state that correct phase gating rules out."""


class SaveFileError(RuntimeError):
    """Raised when a save file is missing, unreadable or not loadable."""
