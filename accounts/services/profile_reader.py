"""Cache-aside profile retrieval."""

import logging

from pydantic import ValidationError as PydanticValidationError

from accounts.api.middleware.error_handler import InternalError
from accounts.core.crypto import CipherError, PIICipher
from accounts.models import BotRow, UserRow
from accounts.schemas.profile import Profile
from accounts.services.profile_cache import CacheError, ProfileCache
from accounts.services.profile_store import ProfileStore, StoreError, StoreUnavailableError
from accounts.services.row_decoder import (
    RowDecodeError,
    decode_bool,
    decode_flags,
    decode_optional_text,
    decode_text,
)

logger = logging.getLogger(__name__)


class ProfileReader:
    """Reads profiles from the cache, falling back to the store.

    Cached snapshots never contain PII. Owners reading their own profile
    always go to the store so their decrypted email and birthdate are
    included.
    """

    def __init__(self, store: ProfileStore, cache: ProfileCache, cipher: PIICipher) -> None:
        self.store = store
        self.cache = cache
        self.cipher = cipher

    async def get_profile(self, identifier: str, requester: str | None = None) -> Profile:
        """Get a profile by vanity.

        Args:
            identifier: Vanity of the user or id of the bot.
            requester: Vanity of the caller, None when anonymous.

        Returns:
            Profile: The decoded profile, the empty placeholder when the
            identifier is unknown, or the suspended placeholder.

        Raises:
            InternalError: On store, decode or cipher failure.
        """
        is_owner = requester is not None and requester == identifier

        if not is_owner:
            cached = self._read_cache(identifier)
            if cached is not None:
                return cached

        try:
            user_row = self.store.fetch_user(identifier)
        except StoreUnavailableError:
            logger.warning("Store unavailable reading %s, returning empty profile", identifier)
            return Profile.empty()
        except StoreError as e:
            raise InternalError() from e

        try:
            if user_row is not None:
                if decode_bool(user_row, "deleted"):
                    return Profile.suspended(identifier)
                profile = self._decode_user(identifier, user_row, is_owner)
            else:
                bot_row = self.store.fetch_bot(identifier)
                if bot_row is None:
                    return Profile.empty()
                if decode_bool(bot_row, "deleted"):
                    return Profile.suspended(identifier)
                profile = self._decode_bot(identifier, bot_row)
        except StoreError as e:
            raise InternalError() from e
        except RowDecodeError as e:
            logger.error("Could not decode profile %s: %s", identifier, e)
            raise InternalError() from e
        except CipherError as e:
            logger.error("Could not decrypt PII for %s: %s", identifier, e)
            raise InternalError() from e

        self._write_cache(profile)
        return profile

    def _decode_user(self, vanity: str, row: UserRow, is_owner: bool) -> Profile:
        email = birthdate = None
        if is_owner:
            email_ciphertext = decode_optional_text(row, "email_ciphertext")
            birthdate_ciphertext = decode_optional_text(row, "birthdate")
            email = self.cipher.decrypt(email_ciphertext) if email_ciphertext else None
            birthdate = self.cipher.decrypt(birthdate_ciphertext) if birthdate_ciphertext else None

        return Profile(
            vanity=vanity,
            username=decode_text(row, "username"),
            avatar=decode_optional_text(row, "avatar"),
            bio=decode_optional_text(row, "bio"),
            email=email,
            birthdate=birthdate,
            flags=decode_flags(row),
            # verified column is not surfaced yet
            verified=False,
        )

    def _decode_bot(self, bot_id: str, row: BotRow) -> Profile:
        return Profile(
            vanity=bot_id,
            username=decode_text(row, "username"),
            avatar=decode_optional_text(row, "avatar"),
            bio=decode_optional_text(row, "bio"),
            flags=decode_flags(row),
        )

    def _read_cache(self, identifier: str) -> Profile | None:
        try:
            data = self.cache.get(identifier)
        except CacheError as e:
            logger.warning("Cache read failed for %s: %s", identifier, e)
            return None

        if data is None:
            return None

        try:
            return Profile.model_validate_json(data)
        except PydanticValidationError as e:
            logger.warning("Discarding undecodable cache entry %s: %s", identifier, e)
            return None

    def _write_cache(self, profile: Profile) -> None:
        if profile.is_empty:
            return
        try:
            self.cache.set(profile.vanity, profile.public_view().model_dump_json().encode("utf-8"))
        except CacheError as e:
            logger.warning("Cache write failed for %s: %s", profile.vanity, e)
