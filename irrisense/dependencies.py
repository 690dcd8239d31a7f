"""Request-scoped dependencies shared by the API routers."""

from __future__ import annotations

from fastapi import Header, HTTPException, Request, status
from redis.asyncio import Redis


async def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
	"""Caller identity, set by the authenticating gateway in front of the API."""
	if x_user_id is None or not x_user_id.strip():
		raise HTTPException(
			status_code=status.HTTP_401_UNAUTHORIZED,
			detail={"error": "missing_user", "message": "x-user-id header is required"},
		)
	return x_user_id.strip()


def get_redis(request: Request) -> Redis | None:
	return getattr(request.app.state, "redis", None)
