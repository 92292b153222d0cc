"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from accounts.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt
from accounts.core.crypto import CredentialVerifier, PIICipher
from accounts.schemas.auth import UserContext
from accounts.services.profile_cache import ProfileCache
from accounts.services.profile_patch_service import ProfilePatchService
from accounts.services.profile_reader import ProfileReader
from accounts.services.profile_store import ProfileStore


async def get_current_user(
    authorization: Annotated[str, Header(description="Bearer token")] = "",
) -> UserContext:
    """Extract and validate the requester from the Authorization header.

    Args:
        authorization: The Authorization header value (Bearer token).

    Returns:
        UserContext: The authenticated requester.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired.
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Expected: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return decode_jwt(parts[1]).to_user_context()
    except AuthError as e:
        if e.code == AuthErrorCode.TOKEN_EXPIRED:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"},
            ) from e

        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_optional_user(
    authorization: Annotated[str | None, Header()] = None,
) -> UserContext | None:
    """Extract the requester if an Authorization header is present.

    A present but invalid token is still rejected.
    """
    if not authorization:
        return None
    return await get_current_user(authorization)


CurrentUser = Annotated[UserContext, Depends(get_current_user)]
OptionalUser = Annotated[UserContext | None, Depends(get_optional_user)]


# Clients are created by the application lifespan and live on app.state


def get_profile_store(request: Request) -> ProfileStore:
    return request.app.state.profile_store


def get_profile_cache(request: Request) -> ProfileCache:
    return request.app.state.profile_cache


def get_pii_cipher(request: Request) -> PIICipher:
    return request.app.state.pii_cipher


def get_credential_verifier(request: Request) -> CredentialVerifier:
    return request.app.state.credential_verifier


def get_profile_reader(
    store: Annotated[ProfileStore, Depends(get_profile_store)],
    cache: Annotated[ProfileCache, Depends(get_profile_cache)],
    cipher: Annotated[PIICipher, Depends(get_pii_cipher)],
) -> ProfileReader:
    return ProfileReader(store=store, cache=cache, cipher=cipher)


def get_profile_patch_service(
    store: Annotated[ProfileStore, Depends(get_profile_store)],
    cache: Annotated[ProfileCache, Depends(get_profile_cache)],
    cipher: Annotated[PIICipher, Depends(get_pii_cipher)],
    verifier: Annotated[CredentialVerifier, Depends(get_credential_verifier)],
) -> ProfilePatchService:
    return ProfilePatchService(store=store, cache=cache, cipher=cipher, verifier=verifier)


Reader = Annotated[ProfileReader, Depends(get_profile_reader)]
PatchService = Annotated[ProfilePatchService, Depends(get_profile_patch_service)]
