from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import httpx

from shop_assist.core.config import get_settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    """Raised when the email provider rejects or cannot receive a message."""


@dataclass(frozen=True)
class InvitationEmail:
    recipient: str
    family_name: str
    inviter_name: str
    role: str
    invitation_link: str
    expires_at: datetime


class EmailSender(ABC):
    @abstractmethod
    async def send_invitation(self, message: InvitationEmail) -> bool:
        raise NotImplementedError


class LoopsEmailSender(EmailSender):
    """Sends transactional email through the Loops API.

    Without an API key the message is only logged, which keeps local
    development usable.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        api_url: str,
        template_id: str,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.api_key = (api_key or "").strip() or None
        self.api_url = api_url
        self.template_id = template_id
        self.timeout_seconds = timeout_seconds

    async def send_invitation(self, message: InvitationEmail) -> bool:
        if not self.api_key:
            logger.info(
                "Email delivery not configured; invitation for %s: %s",
                message.recipient,
                message.invitation_link,
            )
            return False

        payload = {
            "transactionalId": self.template_id,
            "email": message.recipient,
            "dataVariables": {
                "familyName": message.family_name,
                "inviterName": message.inviter_name,
                "role": message.role,
                "invitationLink": message.invitation_link,
                "expiresAt": message.expires_at.date().isoformat(),
            },
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        timeout = httpx.Timeout(self.timeout_seconds, connect=5.0)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(
                f"Invitation email to {message.recipient} was not accepted."
            ) from exc
        return True


def build_invitation_link(invitation_id: UUID) -> str:
    base_url = get_settings().app_url.rstrip("/")
    return f"{base_url}/family/invitations/{invitation_id}"


def get_email_sender() -> EmailSender:
    settings = get_settings()
    return LoopsEmailSender(
        api_key=settings.loops_api_key,
        api_url=settings.loops_api_url,
        template_id=settings.loops_invitation_template_id,
        timeout_seconds=settings.email_timeout_seconds,
    )
