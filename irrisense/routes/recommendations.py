"""Irrigation recommendation & forecast routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from irrisense.database import get_db
from irrisense.dependencies import get_user_id
from irrisense.engine.errors import RecommendationInputError
from irrisense.schemas.recommendation import (
	ForecastRead,
	ForecastRequest,
	RecommendationRead,
	WeatherSnapshotIn,
)
from irrisense.services.recommendation_service import RecommendationService

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, RecommendationInputError):
		return HTTPException(
			status_code=status.HTTP_400_BAD_REQUEST,
			detail={"error": "invalid_input", "field": exc.field, "message": str(exc)},
		)
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="recommendation failure")


@router.post("/{crop_id}", response_model=RecommendationRead)
async def get_recommendation(
	crop_id: uuid.UUID,
	weather: WeatherSnapshotIn,
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_user_id),
) -> RecommendationRead:
	service = RecommendationService(db)
	try:
		return await service.recommend(user_id, crop_id, weather)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{crop_id}/forecast", response_model=ForecastRead)
async def get_forecast(
	crop_id: uuid.UUID,
	payload: ForecastRequest,
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_user_id),
) -> ForecastRead:
	service = RecommendationService(db)
	try:
		return await service.forecast(user_id, crop_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
