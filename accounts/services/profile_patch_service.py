"""Validated partial updates of user profiles."""

import logging
import re
from collections.abc import Callable
from datetime import date

from accounts.api.middleware.error_handler import (
    APIError,
    AuthorizationError,
    InternalError,
    InvalidFieldError,
    NotFoundError,
    PhoneNotSupportedError,
    SuspendedForAgeError,
    TransientError,
)
from accounts.core.crypto import CredentialVerifier, PIICipher
from accounts.schemas.profile import UserPatch
from accounts.services.profile_cache import CacheError, ProfileCache
from accounts.services.profile_store import ProfileStore, StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)

USERNAME_MAX_LENGTH = 16  # Exclusive
BIO_MAX_LENGTH = 160
MINIMUM_AGE = 13

EMAIL_PATTERN = re.compile(r".+@.+.([a-zA-Z]{2,7})\Z")
PASSWORD_PATTERN = re.compile(r"([0-9|*|]|[$&+,:;=?@#|'<>.^*()%!-])+")
BIRTHDATE_PATTERN = re.compile(r"\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])")


def compute_age(born: date, today: date) -> int:
    """Full years elapsed between born and today."""
    return today.year - born.year - ((today.month, today.day) < (born.month, born.day))


def parse_birthdate(value: str) -> date | None:
    """Parse a YYYY-MM-DD birthdate, None if malformed or not a calendar date."""
    if not BIRTHDATE_PATTERN.fullmatch(value):
        return None
    year, month, day = (int(part) for part in value.split("-"))
    try:
        return date(year, month, day)
    except ValueError:
        return None


def store_failure(error: StoreError) -> APIError:
    """Map a store failure to the outcome reported to the caller."""
    if isinstance(error, StoreUnavailableError):
        return TransientError()
    return InternalError()


class ProfilePatchService:
    """Validates a patch field by field and applies it to the store.

    Fields are checked in a fixed order and the first failure aborts the
    patch before anything is written. The one exception is an under-age
    birthdate, which suspends the account.
    """

    def __init__(
        self,
        store: ProfileStore,
        cache: ProfileCache,
        cipher: PIICipher,
        verifier: CredentialVerifier,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self.cache = cache
        self.cipher = cipher
        self.verifier = verifier
        self.today = today

    async def patch_profile(self, identifier: str, current_requester: str, patch: UserPatch) -> None:
        """Apply a partial update to a user profile.

        Args:
            identifier: Vanity of the user to patch.
            current_requester: Vanity of the authenticated caller.
            patch: Fields to change.

        Raises:
            AuthorizationError: If the caller is not the profile owner.
            NotFoundError: If no user row exists for the identifier.
            InvalidFieldError: On the first field that fails validation.
            SuspendedForAgeError: If the birthdate is under the minimum age.
            TransientError: If the store is unreachable or times out.
            InternalError: On any other store failure.
        """
        if current_requester != identifier:
            raise AuthorizationError("Cannot modify another account")

        try:
            baseline = self.store.fetch_patch_baseline(identifier)
        except StoreError as e:
            raise store_failure(e) from e

        if baseline is None:
            raise NotFoundError()

        password_verified = False
        if patch.password is not None:
            stored_hash = baseline.get("password_hash")
            if not stored_hash or not self.verifier.verify(stored_hash, patch.password):
                raise InvalidFieldError("password")
            password_verified = True

        username = baseline.get("username")
        if patch.username is not None:
            if len(patch.username) >= USERNAME_MAX_LENGTH:
                raise InvalidFieldError("username")
            username = patch.username

        bio = baseline.get("bio")
        if patch.bio is not None:
            if len(patch.bio) > BIO_MAX_LENGTH:
                raise InvalidFieldError("bio")
            bio = patch.bio or None

        email_hash = baseline.get("email_hash")
        email_ciphertext = baseline.get("email_ciphertext")
        if patch.email is not None:
            if not password_verified or not EMAIL_PATTERN.search(patch.email):
                raise InvalidFieldError("email")
            email_hash = self.cipher.hash_index(patch.email)
            email_ciphertext = self.cipher.encrypt(patch.email)

        birthdate = baseline.get("birthdate")
        if patch.birthdate is not None:
            born = parse_birthdate(patch.birthdate)
            if born is None:
                raise InvalidFieldError("birthdate")
            if compute_age(born, self.today()) < MINIMUM_AGE:
                self._suspend(identifier)
                raise SuspendedForAgeError()
            birthdate = self.cipher.encrypt(patch.birthdate)

        if patch.phone is not None:
            raise PhoneNotSupportedError()

        if patch.newpassword is not None:
            if not password_verified or not PASSWORD_PATTERN.search(patch.newpassword):
                raise InvalidFieldError("password")
            # Written on its own, ahead of the combined update below
            try:
                self.store.update_password(identifier, self.verifier.hash(patch.newpassword))
            except StoreError as e:
                raise store_failure(e) from e

        try:
            self.store.update_profile(
                identifier,
                username=username,
                avatar=baseline.get("avatar"),
                bio=bio,
                birthdate=birthdate,
                phone=baseline.get("phone"),
                email_hash=email_hash,
                email_ciphertext=email_ciphertext,
            )
        except StoreError as e:
            raise store_failure(e) from e

        self._invalidate(identifier)
        logger.info("Patched profile %s", identifier)

    def _suspend(self, identifier: str) -> None:
        try:
            self.store.suspend(identifier)
        except StoreError as e:
            raise store_failure(e) from e
        self._invalidate(identifier)

    def _invalidate(self, identifier: str) -> None:
        try:
            self.cache.delete(identifier)
        except CacheError as e:
            logger.warning("Cache invalidation failed for %s: %s", identifier, e)
