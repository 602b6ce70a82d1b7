from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class RealtimeFrame(BaseModel):
    """JSON frame exchanged over the admin websocket."""

    event: str
    data: Optional[Any] = None


class AdminSendMessage(BaseModel):
    customer_viber_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("customerViberId", "customer_viber_id"),
    )
    customer_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("customerId", "customer_id"),
    )
    message_text: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("messageText", "message_text"),
    )

    @field_validator("customer_viber_id", "customer_id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)
