"""Notification routes: weather alerts, daily plan, preferences."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from irrisense.config import get_settings
from irrisense.database import get_db
from irrisense.dependencies import get_redis, get_user_id
from irrisense.engine.dedup import local_now
from irrisense.schemas.notifications import (
	DailyPlanOutcome,
	NotificationSettings,
	WeatherAlertOutcome,
	WeatherAlertRequest,
)
from irrisense.schemas.recommendation import WeatherSnapshotIn
from irrisense.services.crop_service import CropService
from irrisense.services.dispatch import RedisNotificationDispatcher
from irrisense.services.event_log_service import DailyActionGuard
from irrisense.services.notification_service import NotificationService
from irrisense.services.recommendation_service import RecommendationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="notification failure")


def _service(db: AsyncSession, redis_client: Redis | None) -> NotificationService:
	return NotificationService(
		db,
		RedisNotificationDispatcher(redis_client),
		DailyActionGuard(db, redis_client),
	)


@router.get("/settings", response_model=NotificationSettings)
async def get_notification_settings(
	db: AsyncSession = Depends(get_db),
	redis_client: Redis | None = Depends(get_redis),
	user_id: str = Depends(get_user_id),
) -> NotificationSettings:
	try:
		return await _service(db, redis_client).get_preferences(user_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.put("/settings", response_model=NotificationSettings)
async def update_notification_settings(
	payload: NotificationSettings,
	db: AsyncSession = Depends(get_db),
	redis_client: Redis | None = Depends(get_redis),
	user_id: str = Depends(get_user_id),
) -> NotificationSettings:
	try:
		return await _service(db, redis_client).update_preferences(user_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/weather-alert", response_model=WeatherAlertOutcome)
async def send_weather_alert(
	payload: WeatherAlertRequest,
	db: AsyncSession = Depends(get_db),
	redis_client: Redis | None = Depends(get_redis),
	user_id: str = Depends(get_user_id),
) -> WeatherAlertOutcome:
	try:
		return await _service(db, redis_client).check_and_send_weather_alert(
			user_id,
			payload.weather,
			payload.location,
		)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{crop_id}/daily", response_model=DailyPlanOutcome)
async def plan_daily_notifications(
	crop_id: uuid.UUID,
	weather: WeatherSnapshotIn,
	db: AsyncSession = Depends(get_db),
	redis_client: Redis | None = Depends(get_redis),
	user_id: str = Depends(get_user_id),
) -> DailyPlanOutcome:
	now = local_now(get_settings().local_timezone)
	try:
		crop = await CropService(db).get_crop(user_id, crop_id)
		recommendation = RecommendationService.build(crop, weather, now)
		return await _service(db, redis_client).plan_daily(user_id, str(crop.name), recommendation, now)
	except Exception as exc:
		raise _map_error(exc) from exc
