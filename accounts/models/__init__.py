"""Database row type definitions."""

from accounts.models.user import BotRow, PatchBaseline, UserRow

__all__ = [
    "BotRow",
    "PatchBaseline",
    "UserRow",
]
