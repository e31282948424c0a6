from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from shop_assist import models as _models  # noqa: F401
from shop_assist.core.db import get_session
from shop_assist.main import app
from shop_assist.services.email_service import EmailSender, InvitationEmail, get_email_sender


class FakeEmailSender(EmailSender):
    def __init__(self) -> None:
        self.sent: list[InvitationEmail] = []
        self.fail = False

    async def send_invitation(self, message: InvitationEmail) -> bool:
        if self.fail:
            raise RuntimeError("mail provider unavailable")
        self.sent.append(message)
        return True


@pytest.fixture
async def session_maker() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
async def client(
    session_maker: async_sessionmaker[AsyncSession],
    email_sender: FakeEmailSender,
) -> AsyncIterator[AsyncClient]:
    async def override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_email_sender] = lambda: email_sender

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client

    app.dependency_overrides.clear()
