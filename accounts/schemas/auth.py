"""Authentication schemas for bearer tokens and requester context."""

from pydantic import BaseModel, ConfigDict, Field


class UserContext(BaseModel):
    """Authenticated requester extracted from the bearer token."""

    model_config = ConfigDict(from_attributes=True)

    vanity: str = Field(description="Requester vanity (from token sub claim)")


class TokenPayload(BaseModel):
    """Bearer token claims."""

    model_config = ConfigDict(from_attributes=True)

    sub: str = Field(description="Subject - the requester's vanity")
    exp: int = Field(description="Expiration timestamp (Unix epoch)")
    iat: int = Field(description="Issued at timestamp (Unix epoch)")

    def to_user_context(self) -> UserContext:
        """Convert token payload to UserContext."""
        return UserContext(vanity=self.sub)
