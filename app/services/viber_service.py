from dataclasses import dataclass
from typing import Any, Optional

import httpx

from app.config import settings
from app.logging_config import get_logger
from app.schemas.viber import OutboundContent, PlainText, StructuredMessage

logger = get_logger("viber_service")


@dataclass
class DispatchResult:
    success: bool
    provider_response: Optional[Any] = None
    error: Optional[Any] = None


class ViberService:
    """Client for the Viber REST bot API send_message endpoint."""

    AUTH_HEADER = "X-Viber-Auth-Token"

    def __init__(
        self,
        auth_token: str,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.auth_token = auth_token
        self.api_url = api_url or settings.viber_api_url
        self.timeout = timeout if timeout is not None else settings.viber_timeout_seconds

    def build_payload(self, receiver: str, content: OutboundContent) -> dict:
        """Build the request body; raises ValueError for incomplete structured content."""
        match content:
            case PlainText(text=text):
                return {"receiver": receiver, "type": "text", "text": text}
            case StructuredMessage(type=msg_type, text=text, keyboard=keyboard):
                if not msg_type or not text:
                    raise ValueError("Message object must have 'type' and 'text' properties.")
                payload = {"receiver": receiver, "type": msg_type, "text": text}
                if keyboard:
                    payload["keyboard"] = keyboard
                return payload
            case _:
                raise ValueError(f"Unsupported message content: {type(content).__name__}")

    async def send(self, receiver: str, content: OutboundContent) -> DispatchResult:
        try:
            payload = self.build_payload(receiver, content)
        except ValueError as e:
            logger.warning(
                "Viber message rejected locally",
                extra={"context": {"receiver": receiver, "error": str(e)}},
            )
            return DispatchResult(success=False, error=str(e))

        headers = {self.AUTH_HEADER: self.auth_token, "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
                response.raise_for_status()
                return DispatchResult(success=True, provider_response=_response_body(response))
        except httpx.HTTPStatusError as e:
            error = _response_body(e.response)
            logger.error(
                "Viber API returned error status",
                extra={"context": {"receiver": receiver, "status_code": e.response.status_code, "error": error}},
            )
            return DispatchResult(success=False, error=error)
        except Exception as e:
            logger.error(f"Viber API error: {e}", extra={"context": {"receiver": receiver}})
            return DispatchResult(success=False, error=str(e))

    async def send_text(self, receiver: str, text: str) -> DispatchResult:
        return await self.send(receiver, PlainText(text))


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def get_viber_service() -> ViberService:
    return ViberService(settings.viber_bot_token)
