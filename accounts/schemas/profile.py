"""Profile Pydantic schemas for API request/response models."""

from pydantic import BaseModel, ConfigDict, Field

SUSPENDED_USERNAME = "Account suspended"


class Profile(BaseModel):
    """Decoded profile of a user or bot.

    The same shape is returned for unknown identifiers (empty vanity)
    and suspended accounts, so callers decide which is an error.
    """

    model_config = ConfigDict(from_attributes=True)

    vanity: str = Field(default="", description="Public unique identifier")
    username: str = Field(default="", description="Display name")
    avatar: str | None = Field(default=None, description="Avatar reference")
    bio: str | None = Field(default=None, description="Profile biography")
    email: str | None = Field(default=None, description="Decrypted email, owner only")
    birthdate: str | None = Field(default=None, description="Decrypted birthdate (YYYY-MM-DD), owner only")
    deleted: bool = Field(default=False, description="Whether the account is suspended")
    flags: int = Field(default=0, ge=0, le=0xFFFFFFFF, description="32-bit account attribute bitfield")
    verified: bool = Field(default=False, description="Verified badge")

    @classmethod
    def empty(cls) -> "Profile":
        """Placeholder for an identifier with no row in either table."""
        return cls()

    @classmethod
    def suspended(cls, vanity: str) -> "Profile":
        """Redacted placeholder for a deleted account."""
        return cls(vanity=vanity, username=SUSPENDED_USERNAME, deleted=True)

    @property
    def is_empty(self) -> bool:
        return self.vanity == ""

    def public_view(self) -> "Profile":
        """Copy without owner-only PII."""
        return self.model_copy(update={"email": None, "birthdate": None})


class UserPatch(BaseModel):
    """Schema for patching a user profile.

    All fields are optional. `password` is the current password and is
    required to change email or password.
    """

    model_config = ConfigDict(extra="ignore")

    username: str | None = Field(default=None, description="New username (fewer than 16 characters)")
    bio: str | None = Field(default=None, description="New bio (at most 160 characters, empty clears it)")
    email: str | None = Field(default=None, description="New email address")
    birthdate: str | None = Field(default=None, description="Birthdate as YYYY-MM-DD")
    phone: str | None = Field(default=None, description="Phone number (not supported yet)")
    password: str | None = Field(default=None, description="Current password")
    newpassword: str | None = Field(default=None, description="Replacement password")
