"""Irrigation event log routes: record, feedback, today's status, history, efficiency."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from irrisense.database import get_db
from irrisense.dependencies import get_redis, get_user_id
from irrisense.schemas.irrigation import (
	IrrigationEfficiencyRead,
	IrrigationEventRead,
	IrrigationFeedbackIn,
	IrrigationFeedbackRead,
	IrrigationHistoryRead,
	IrrigationLogIn,
	IrrigationTodayRead,
)
from irrisense.services.crop_service import CropService
from irrisense.services.dispatch import RedisNotificationDispatcher
from irrisense.services.event_log_service import AlreadyDoneTodayError, EventLogService

router = APIRouter(prefix="/irrigation", tags=["irrigation"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, AlreadyDoneTodayError):
		return HTTPException(
			status_code=status.HTTP_409_CONFLICT,
			detail={"error": "already_done_today", "kind": exc.kind, "discriminator": exc.discriminator},
		)
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="irrigation log failure")


@router.post("/{crop_id}/log", response_model=IrrigationEventRead, status_code=status.HTTP_201_CREATED)
async def log_irrigation(
	crop_id: uuid.UUID,
	payload: IrrigationLogIn,
	db: AsyncSession = Depends(get_db),
	redis_client: Redis | None = Depends(get_redis),
	user_id: str = Depends(get_user_id),
) -> IrrigationEventRead:
	service = EventLogService(db, redis_client, RedisNotificationDispatcher(redis_client))
	try:
		crop = await CropService(db).get_crop(user_id, crop_id)
		event = await service.log_irrigation(user_id, crop.name, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return IrrigationEventRead.model_validate(event)


@router.post("/{crop_id}/feedback", response_model=IrrigationFeedbackRead, status_code=status.HTTP_201_CREATED)
async def add_feedback(
	crop_id: uuid.UUID,
	payload: IrrigationFeedbackIn,
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_user_id),
) -> IrrigationFeedbackRead:
	service = EventLogService(db)
	try:
		crop = await CropService(db).get_crop(user_id, crop_id)
		feedback = await service.add_feedback(user_id, crop.name, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return IrrigationFeedbackRead.model_validate(feedback)


@router.get("/{crop_id}/today", response_model=IrrigationTodayRead)
async def irrigated_today(
	crop_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_user_id),
) -> IrrigationTodayRead:
	service = EventLogService(db)
	try:
		crop = await CropService(db).get_crop(user_id, crop_id)
		done = await service.guard.irrigated_today(user_id, crop.name)
	except Exception as exc:
		raise _map_error(exc) from exc
	return IrrigationTodayRead(crop_id=crop.id, crop_name=crop.name, irrigated_today=done)


@router.get("/history", response_model=IrrigationHistoryRead)
async def irrigation_history(
	days: int = Query(default=30, ge=1, le=365),
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_user_id),
) -> IrrigationHistoryRead:
	service = EventLogService(db)
	try:
		events = await service.history(user_id, days=days)
	except Exception as exc:
		raise _map_error(exc) from exc
	return IrrigationHistoryRead(
		days=days,
		items=[IrrigationEventRead.model_validate(event) for event in events],
	)


@router.get("/efficiency", response_model=IrrigationEfficiencyRead)
async def irrigation_efficiency(
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_user_id),
) -> IrrigationEfficiencyRead:
	service = EventLogService(db)
	try:
		crops = await CropService(db).list_crops(user_id)
		return await service.efficiency(user_id, crops)
	except Exception as exc:
		raise _map_error(exc) from exc
