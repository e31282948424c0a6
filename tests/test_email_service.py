from datetime import datetime

import httpx
import pytest

from shop_assist.services.email_service import (
    EmailDeliveryError,
    InvitationEmail,
    LoopsEmailSender,
)


def build_message() -> InvitationEmail:
    return InvitationEmail(
        recipient="sofia@example.com",
        family_name="Casa Mora",
        inviter_name="Ana",
        role="editor",
        invitation_link="http://localhost:3000/family/invitations/abc",
        expires_at=datetime(2026, 1, 8, 12, 0, 0),
    )


def build_sender(api_key: str | None = "loops-key") -> LoopsEmailSender:
    return LoopsEmailSender(
        api_key=api_key,
        api_url="https://app.loops.so/api/v1/transactional",
        template_id="family-invitation",
    )


@pytest.mark.asyncio
async def test_sender_without_api_key_only_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    def unexpected_client(*args, **kwargs):
        raise AssertionError("no HTTP call expected")

    monkeypatch.setattr("shop_assist.services.email_service.httpx.AsyncClient", unexpected_client)

    assert await build_sender(api_key=None).send_invitation(build_message()) is False


@pytest.mark.asyncio
async def test_sender_posts_transactional_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    class DummyResponse:
        def raise_for_status(self) -> None:
            return None

    class DummyClient:
        async def __aenter__(self) -> "DummyClient":
            return self

        async def __aexit__(self, exc_type, exc, tb) -> bool:
            return False

        async def post(self, url: str, **kwargs: object) -> DummyResponse:
            captured["url"] = url
            captured.update(kwargs)
            return DummyResponse()

    monkeypatch.setattr(
        "shop_assist.services.email_service.httpx.AsyncClient",
        lambda *args, **kwargs: DummyClient(),
    )

    assert await build_sender().send_invitation(build_message()) is True
    assert captured["url"] == "https://app.loops.so/api/v1/transactional"
    assert captured["headers"] == {"Authorization": "Bearer loops-key"}
    payload = captured["json"]
    assert payload["transactionalId"] == "family-invitation"
    assert payload["email"] == "sofia@example.com"
    assert payload["dataVariables"]["familyName"] == "Casa Mora"
    assert payload["dataVariables"]["expiresAt"] == "2026-01-08"


@pytest.mark.asyncio
async def test_sender_wraps_transport_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    class DummyClient:
        async def __aenter__(self) -> "DummyClient":
            return self

        async def __aexit__(self, exc_type, exc, tb) -> bool:
            return False

        async def post(self, url: str, **kwargs: object):  # noqa: ANN202
            raise httpx.ConnectError("network down")

    monkeypatch.setattr(
        "shop_assist.services.email_service.httpx.AsyncClient",
        lambda *args, **kwargs: DummyClient(),
    )

    with pytest.raises(EmailDeliveryError):
        await build_sender().send_invitation(build_message())
