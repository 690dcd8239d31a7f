"""Shared pytest fixtures — async test client, fake DB session, fake Redis."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import date, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest
from httpx import ASGITransport, AsyncClient

from irrisense.database import get_db
from irrisense.main import app
from irrisense.models.enums import CropNameEnum, SoilClassEnum

TEST_TZ = ZoneInfo("Africa/Porto-Novo")
TEST_USER = "farmer-001"


class FakeAsyncSession:
	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock()
		self.flush = AsyncMock()
		self.refresh = AsyncMock()
		self.delete = AsyncMock()
		self.added: list[Any] = []

	def add(self, instance: Any) -> None:
		self.added.append(instance)


class FakeRedis:
	"""Enough of redis.asyncio for SET NX claims and channel publishing."""

	def __init__(self) -> None:
		self.store: dict[str, str] = {}
		self.publish = AsyncMock(return_value=1)
		self.delete = AsyncMock(side_effect=self._delete)
		self.ping = AsyncMock(return_value=True)

	async def set(self, key: str, value: str, nx: bool = False, ex: int | None = None) -> bool | None:
		if nx and key in self.store:
			return None
		self.store[key] = value
		return True

	async def _delete(self, *keys: str) -> int:
		removed = [key for key in keys if self.store.pop(key, None) is not None]
		return len(removed)


def scalars_result(rows: list[Any]) -> MagicMock:
	"""Mimic ``(await session.execute(stmt)).scalars().all()``."""
	result = MagicMock()
	result.scalars.return_value.all.return_value = rows
	result.scalar_one_or_none.return_value = rows[0] if rows else None
	return result


def make_crop(**overrides: Any) -> SimpleNamespace:
	now = datetime(2026, 3, 1, 9, 0, tzinfo=TEST_TZ)
	values: dict[str, Any] = {
		"id": uuid.uuid4(),
		"user_id": TEST_USER,
		"name": CropNameEnum.tomato,
		"soil_class": SoilClassEnum.loamy,
		"planting_date": date(2026, 1, 30),
		"area_m2": 50.0,
		"created_at": now,
		"updated_at": now,
	}
	values.update(overrides)
	return SimpleNamespace(**values)


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for dependency overrides in API tests."""
	return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@pytest.fixture
def local_morning() -> datetime:
	return datetime(2026, 3, 1, 9, 0, tzinfo=TEST_TZ)


@pytest.fixture
def user_headers() -> dict[str, str]:
	return {"x-user-id": TEST_USER}


@pytest.fixture
async def client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled and DB dependency mocked."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	app.dependency_overrides[get_db] = override_get_db
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan
	app.state.redis = None

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()
