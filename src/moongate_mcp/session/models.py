"""Session model shared by the store, the callback listener and the manager."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, field_serializer

Clock = Callable[[], datetime]


class AuthProvider(str, Enum):
    """How the session's bearer token was obtained."""

    GOOGLE = "google"
    APPLE = "apple"
    MANUAL = "manual"


class Session(BaseModel):
    """The authenticated identity and its bearer credential.

    Instants are serialized as epoch milliseconds so the on-disk record
    keeps the shape older releases wrote.
    """

    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(min_length=1)
    public_key: str = Field("", alias="publicKey")
    user_id: str = Field("", alias="userId")
    auth_provider: AuthProvider = Field(alias="authProvider")
    created_at: datetime = Field(alias="createdAt")
    expires_at: datetime = Field(alias="expiresAt")

    @field_serializer("created_at", "expires_at")
    def _serialize_instant(self, value: datetime) -> int:
        return int(value.timestamp() * 1000)

    @classmethod
    def issue(
        cls,
        token: str,
        auth_provider: AuthProvider,
        now: datetime,
        lifetime: timedelta,
        public_key: str = "",
        user_id: str = "",
    ) -> "Session":
        """Create a fresh session expiring ``lifetime`` after ``now``."""
        return cls(
            token=token,
            public_key=public_key,
            user_id=user_id,
            auth_provider=auth_provider,
            created_at=now,
            expires_at=now + lifetime,
        )

    def __repr__(self) -> str:
        return (
            f"Session(public_key={self.public_key!r}, "
            f"auth_provider={self.auth_provider.value!r}, "
            f"expires_at={self.expires_at.isoformat()!r}, token=<redacted>)"
        )

    __str__ = __repr__

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def time_until_expiry(self, now: datetime) -> timedelta:
        return self.expires_at - now

    def to_json(self) -> str:
        """Serialize to the persisted record format."""
        return self.model_dump_json(by_alias=True, indent=2)

    def public_view(self) -> dict[str, Any]:
        """Session details that are safe to hand back to a tool caller."""
        return {
            "publicKey": self.public_key or None,
            "userId": self.user_id or None,
            "authProvider": self.auth_provider.value,
            "createdAt": self.created_at.isoformat(),
            "expiresAt": self.expires_at.isoformat(),
        }


def utc_now() -> datetime:
    """Default clock for sessions: timezone-aware UTC now."""
    return datetime.now(timezone.utc)
