from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ViberUser(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    avatar: Optional[str] = None
    language: Optional[str] = None
    country: Optional[str] = None
    api_version: Optional[int] = None

    model_config = ConfigDict(extra="ignore")


class ViberMessage(BaseModel):
    type: Optional[str] = "text"
    text: Optional[str] = None
    media: Optional[str] = None
    tracking_data: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class ViberWebhookRequest(BaseModel):
    event: str = ""
    timestamp: Optional[int] = None
    sender: Optional[ViberUser] = None
    user: Optional[ViberUser] = None  # conversation_started carries "user" instead of "sender"
    message: Optional[ViberMessage] = None
    message_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("message_token", "messageToken"),
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("message_token", mode="before")
    @classmethod
    def _token_as_str(cls, value: Any) -> Optional[str]:
        # Viber sends the token as a 64-bit integer
        if value is None:
            return None
        return str(value)


class WebhookAck(BaseModel):
    status: str = "ok"


@dataclass(frozen=True)
class Actor:
    """Conversation participant, whichever field of the payload it came from."""

    id: Optional[str]
    name: Optional[str] = None


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class StructuredMessage:
    type: Optional[str]
    text: Optional[str]
    keyboard: Optional[dict] = None


OutboundContent = Union[PlainText, StructuredMessage]


# Events whose participant arrives in "user"; all others use "sender"
USER_FIELD_EVENTS = frozenset({"conversation_started"})


def extract_actor(payload: ViberWebhookRequest) -> Optional[Actor]:
    source = payload.user if payload.event in USER_FIELD_EVENTS else payload.sender
    if source is None:
        return None
    return Actor(id=source.id or None, name=source.name)


def rate_limit_key(payload: ViberWebhookRequest, fallback: str = "unknown") -> str:
    for source in (payload.sender, payload.user):
        if source is not None and source.id:
            return source.id
    return fallback
