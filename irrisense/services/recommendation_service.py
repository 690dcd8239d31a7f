"""Recommendation orchestration: load the crop, fix "now", run the engine."""

from __future__ import annotations

import uuid
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from irrisense.config import get_settings
from irrisense.engine.dedup import local_now
from irrisense.engine.recommendation import (
	CropInput,
	Recommendation,
	forecast_irrigation,
	generate_recommendation,
)
from irrisense.engine.tables import get_soil_profile
from irrisense.models.crops import Crop
from irrisense.schemas.recommendation import (
	ForecastDayRead,
	ForecastRead,
	ForecastRequest,
	RecommendationDebug,
	RecommendationRead,
	WeatherSnapshotIn,
)
from irrisense.services.crop_service import CropService

logger = structlog.get_logger("irrisense.recommendations")


class NonPositiveVolumeError(ValueError):
	"""The engine produced a zero-like volume; never surfaced as advice."""


class RecommendationService:
	def __init__(self, db: AsyncSession):
		self.db = db
		self.settings = get_settings()

	async def recommend(
		self,
		user_id: str,
		crop_id: uuid.UUID,
		weather: WeatherSnapshotIn,
		now: datetime | None = None,
	) -> RecommendationRead:
		crop = await CropService(self.db).get_crop(user_id, crop_id)
		now = now or local_now(self.settings.local_timezone)
		recommendation = self.build(crop, weather, now)
		return self.to_read(crop.id, recommendation, now)

	async def forecast(
		self,
		user_id: str,
		crop_id: uuid.UUID,
		request: ForecastRequest,
		now: datetime | None = None,
	) -> ForecastRead:
		crop = await CropService(self.db).get_crop(user_id, crop_id)
		now = now or local_now(self.settings.local_timezone)
		snapshots = [day.to_snapshot(now.hour) for day in request.days]
		items = forecast_irrigation(
			self._crop_input(crop),
			get_soil_profile(crop.soil_class),
			snapshots,
			crop.area_m2,
			now.date(),
		)
		return ForecastRead(
			crop_id=crop.id,
			generated_at=now,
			items=[ForecastDayRead(day=item.day, volume_per_area=item.volume_per_area) for item in items],
		)

	@classmethod
	def build(cls, crop: Crop, weather: WeatherSnapshotIn, now: datetime) -> Recommendation:
		"""Run the generator with a single ``now`` for both stage and moment."""
		recommendation = generate_recommendation(
			cls._crop_input(crop),
			get_soil_profile(crop.soil_class),
			weather.to_snapshot(now.hour),
			crop.area_m2,
			now.date(),
		)
		if recommendation.volume_per_area <= 0:
			raise NonPositiveVolumeError(
				f"computed volume for {recommendation.crop} is {recommendation.volume_per_area} L/m²; "
				"check temperature range and radiation"
			)
		logger.info(
			"recommendation_generated",
			crop=recommendation.crop,
			stage=recommendation.stage.value,
			volume_per_area=recommendation.volume_per_area,
			constraint=recommendation.constraint is not None,
		)
		return recommendation

	@staticmethod
	def to_read(crop_id: uuid.UUID, recommendation: Recommendation, now: datetime) -> RecommendationRead:
		return RecommendationRead(
			crop_id=crop_id,
			crop=recommendation.crop,
			soil=recommendation.soil,
			volume_per_area=recommendation.volume_per_area,
			area=recommendation.area,
			total_volume=recommendation.total_volume,
			frequency=recommendation.frequency,
			moment=recommendation.moment,
			time_window=recommendation.time_window,
			constraint=recommendation.constraint,
			message=recommendation.message,
			generated_at=now,
			debug=RecommendationDebug(
				stage=recommendation.stage,
				kc=recommendation.kc,
				et0=recommendation.et0,
				etc=recommendation.etc,
			),
		)

	@staticmethod
	def _crop_input(crop: Crop) -> CropInput:
		return CropInput(name=str(crop.name), planting_date=crop.planting_date)
