"""Row type definitions for the users and bots tables."""

from typing import TypedDict


class UserRow(TypedDict, total=False):
    """Columns selected from the users table for a profile read."""

    username: str | None
    avatar: str | None
    bio: str | None
    deleted: bool | None
    flags: int | bytes | None
    email_ciphertext: str | None
    birthdate: str | None
    verified: bool | None


class BotRow(TypedDict, total=False):
    """Columns selected from the bots table for a profile read."""

    username: str | None
    avatar: str | None
    bio: str | None
    deleted: bool | None
    flags: int | bytes | None


class PatchBaseline(TypedDict):
    """Current user record a patch is validated and merged against.

    Always read fresh from the store, never from the cache.
    """

    username: str | None
    avatar: str | None
    bio: str | None
    phone: str | None
    email_hash: str | None
    email_ciphertext: str | None
    birthdate: str | None
    password_hash: str | None
