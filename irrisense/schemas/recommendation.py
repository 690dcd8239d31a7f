"""Pydantic schemas for recommendation and forecast endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from irrisense.engine.recommendation import WeatherSnapshot
from irrisense.models.enums import GrowthStageEnum, MomentEnum


class WeatherSnapshotIn(BaseModel):
	tmax: float
	tmin: float
	radiation: float = Field(ge=0, description="Shortwave radiation sum, MJ/m²/day")
	humidity: float = Field(ge=0, le=100)
	hour: int | None = Field(default=None, ge=0, le=23)
	raining: bool = False
	rain_forecast: bool = False
	current_temperature: float | None = None
	tomorrow_max_temperature: float | None = None
	wind_speed: float | None = Field(default=None, ge=0)
	next_rain_hours: list[str] = Field(default_factory=list)

	def to_snapshot(self, default_hour: int) -> WeatherSnapshot:
		"""Engine value object; ``default_hour`` is the caller's local hour."""
		return WeatherSnapshot(
			tmax=self.tmax,
			tmin=self.tmin,
			radiation=self.radiation,
			humidity=self.humidity,
			hour=self.hour if self.hour is not None else default_hour,
			raining=self.raining,
			rain_forecast=self.rain_forecast,
			current_temperature=self.current_temperature,
			tomorrow_max_temperature=self.tomorrow_max_temperature,
			wind_speed=self.wind_speed,
			next_rain_hours=tuple(self.next_rain_hours),
		)


class ForecastRequest(BaseModel):
	days: list[WeatherSnapshotIn] = Field(min_length=1, max_length=16)


class RecommendationDebug(BaseModel):
	stage: GrowthStageEnum
	kc: float
	et0: float
	etc: float


class RecommendationRead(BaseModel):
	crop_id: uuid.UUID
	crop: str
	soil: str
	volume_per_area: float
	area: float
	total_volume: float
	frequency: str
	moment: MomentEnum
	time_window: str
	constraint: str | None = None
	message: str
	generated_at: datetime
	debug: RecommendationDebug


class ForecastDayRead(BaseModel):
	day: date
	volume_per_area: float


class ForecastRead(BaseModel):
	crop_id: uuid.UUID
	generated_at: datetime
	items: list[ForecastDayRead] = Field(default_factory=list)
