"""
Define Message structure to ensure consistency in the system
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.core.errors import InvalidMessage


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """
    Chat message. Immutable once created.
    The History Log assigns ``sequence`` on append; ``created_at`` is
    server-side and ``client_timestamp`` is only kept for display.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sender: str
    body: str
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    client_timestamp: datetime | None = Field(default=None, alias="clientTimestamp")
    sequence: int | None = None

    @field_validator("sender", "body")
    @classmethod
    def _strip_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @classmethod
    def create(cls, sender: str, body: str, client_timestamp: datetime | None = None) -> "Message":
        """Builds a message, raising InvalidMessage instead of a ValidationError."""
        try:
            return cls(sender=sender, body=body, client_timestamp=client_timestamp)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
            raise InvalidMessage(f"Invalid message field(s): {fields}") from e

    def to_wire(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
