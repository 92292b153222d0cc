"""Authoritative profile store backed by Cassandra."""

import logging
from typing import Any, Sequence

from cassandra import OperationTimedOut, ReadTimeout, Unavailable, WriteTimeout
from cassandra.cluster import NoHostAvailable, Session

from accounts.core.cassandra import create_schema
from accounts.models import BotRow, PatchBaseline, UserRow

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (NoHostAvailable, OperationTimedOut, Unavailable, ReadTimeout, WriteTimeout)


class StoreError(Exception):
    """A store query or update failed."""


class StoreUnavailableError(StoreError):
    """The store could not be reached or timed out."""


class ProfileStore:
    """Typed access to the users and bots tables.

    Every statement is keyed by vanity (users) or id (bots). The
    session is owned by the caller and injected at construction.
    """

    def __init__(self, session: Session, keyspace: str = "accounts") -> None:
        self.session = session
        self.keyspace = keyspace

    def query(self, statement: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run a read statement and return its rows as dicts.

        Raises:
            StoreUnavailableError: On connectivity failures or timeouts.
            StoreError: On any other driver or server error.
        """
        try:
            return list(self.session.execute(statement, list(params)))
        except TRANSIENT_ERRORS as e:
            logger.error("Store unavailable during query: %s", e)
            raise StoreUnavailableError(str(e)) from e
        except Exception as e:
            logger.error("Store query failed: %s", e)
            raise StoreError(str(e)) from e

    def update(self, statement: str, params: Sequence[Any] = ()) -> None:
        """Run a write statement.

        Raises:
            StoreUnavailableError: On connectivity failures or timeouts.
            StoreError: On any other driver or server error.
        """
        try:
            self.session.execute(statement, list(params))
        except TRANSIENT_ERRORS as e:
            logger.error("Store unavailable during update: %s", e)
            raise StoreUnavailableError(str(e)) from e
        except Exception as e:
            logger.error("Store update failed: %s", e)
            raise StoreError(str(e)) from e

    def fetch_user(self, vanity: str) -> UserRow | None:
        rows = self.query(
            f"SELECT username, avatar, bio, deleted, flags, email_ciphertext, birthdate, verified "
            f"FROM {self.keyspace}.users WHERE vanity = %s",
            [vanity],
        )
        return rows[0] if rows else None

    def fetch_bot(self, bot_id: str) -> BotRow | None:
        rows = self.query(
            f"SELECT username, avatar, bio, deleted, flags FROM {self.keyspace}.bots WHERE id = %s",
            [bot_id],
        )
        return rows[0] if rows else None

    def fetch_patch_baseline(self, vanity: str) -> PatchBaseline | None:
        """Read the columns a patch is validated and merged against."""
        rows = self.query(
            f"SELECT username, avatar, bio, phone, email_hash, email_ciphertext, birthdate, password_hash "
            f"FROM {self.keyspace}.users WHERE vanity = %s",
            [vanity],
        )
        return rows[0] if rows else None

    def update_password(self, vanity: str, password_hash: str) -> None:
        self.update(
            f"UPDATE {self.keyspace}.users SET password_hash = %s WHERE vanity = %s",
            [password_hash, vanity],
        )

    def update_profile(
        self,
        vanity: str,
        *,
        username: str | None,
        avatar: str | None,
        bio: str | None,
        birthdate: str | None,
        phone: str | None,
        email_hash: str | None,
        email_ciphertext: str | None,
    ) -> None:
        """Write every patchable column in a single statement."""
        self.update(
            f"UPDATE {self.keyspace}.users SET username = %s, avatar = %s, bio = %s, birthdate = %s, "
            f"phone = %s, email_hash = %s, email_ciphertext = %s WHERE vanity = %s",
            [username, avatar, bio, birthdate, phone, email_hash, email_ciphertext, vanity],
        )

    def suspend(self, vanity: str) -> None:
        """Mark the user deleted. Nothing in this service clears the flag."""
        self.update(
            f"UPDATE {self.keyspace}.users SET deleted = true WHERE vanity = %s",
            [vanity],
        )
        logger.warning("Suspended account %s", vanity)

    def ensure_schema(self) -> None:
        create_schema(self.session, self.keyspace)
