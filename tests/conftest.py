"""Shared fixtures: throwaway SQLite database, eager Celery, signed-up users."""
from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

TEST_DB = Path("./test_stamp.db")

os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{TEST_DB}")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")

from app.core.security import create_access_token, create_email_verification_token  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import async_session_maker, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.services.auth_service import reload, sign_up, verify_email  # noqa: E402

PASSWORD = "correct-horse"


async def _create_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _drop_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _clean_tables() -> None:
    async with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            await conn.execute(table.delete())


@pytest.fixture(scope="session", autouse=True)
def _schema() -> Iterator[None]:
    asyncio.run(_create_schema())
    yield
    asyncio.run(_drop_schema())
    TEST_DB.unlink(missing_ok=True)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    asyncio.run(_clean_tables())
    yield


def run(work: Callable):
    """Run ``work(db)`` in a fresh session on a fresh event loop."""

    async def _go():
        async with async_session_maker() as db:
            return await work(db)

    return asyncio.run(_go())


async def _sign_up(address: str, verified: bool) -> str:
    async with async_session_maker() as db:
        result = await sign_up(
            db,
            display_name=address.capitalize(),
            address=address,
            email=f"{address}@example.com",
            password=PASSWORD,
            confirm_password=PASSWORD,
        )
        uid = result.account.uid
        if verified:
            await verify_email(db, create_email_verification_token(uid, result.account.email))
            await reload(db, uid)
        return uid


@pytest.fixture
def make_user() -> Callable[..., str]:
    """Sign up ``address`` and return its uid. Verified unless told otherwise."""

    def _make(address: str, *, verified: bool = True) -> str:
        return asyncio.run(_sign_up(address, verified))

    return _make


def auth_headers(uid: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(uid)}"}


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
