"""Pydantic schemas for the irrigation event log."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from irrisense.models.enums import CropNameEnum


class IrrigationLogIn(BaseModel):
	volume_l_m2: float = Field(gt=0)
	total_volume_l: float = Field(ge=0)
	completed: bool = True


class IrrigationEventRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	user_id: str
	crop_name: CropNameEnum
	timestamp: datetime
	volume_l_m2: float
	total_volume_l: float
	completed: bool


class IrrigationTodayRead(BaseModel):
	crop_id: uuid.UUID
	crop_name: CropNameEnum
	irrigated_today: bool


class IrrigationHistoryRead(BaseModel):
	days: int
	items: list[IrrigationEventRead] = Field(default_factory=list)


class IrrigationEfficiencyRead(BaseModel):
	efficiency: float = Field(ge=0, le=1)
	crops: int
	irrigations: int


class IrrigationFeedbackIn(BaseModel):
	day: date
	volume_l_m2: float = Field(ge=0)
	is_good: bool


class IrrigationFeedbackRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	user_id: str
	crop_name: CropNameEnum
	day: date
	volume_l_m2: float
	is_good: bool
