"""Pydantic request/response schemas for crop configuration."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from irrisense.engine.tables import normalize_crop_name, normalize_soil_class
from irrisense.models.enums import CropNameEnum, SoilClassEnum


class CropCreate(BaseModel):
	name: CropNameEnum
	soil_class: SoilClassEnum
	planting_date: date
	area_m2: float = Field(gt=0)

	@field_validator("name", mode="before")
	@classmethod
	def _normalize_name(cls, value: object) -> object:
		return normalize_crop_name(value) if isinstance(value, str) else value

	@field_validator("soil_class", mode="before")
	@classmethod
	def _normalize_soil(cls, value: object) -> object:
		return normalize_soil_class(value) if isinstance(value, str) else value


class CropUpdate(BaseModel):
	soil_class: SoilClassEnum | None = None
	planting_date: date | None = None
	area_m2: float | None = Field(default=None, gt=0)

	@field_validator("soil_class", mode="before")
	@classmethod
	def _normalize_soil(cls, value: object) -> object:
		return normalize_soil_class(value) if isinstance(value, str) else value


class CropRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	user_id: str
	name: CropNameEnum
	soil_class: SoilClassEnum
	planting_date: date
	area_m2: float
	created_at: datetime
	updated_at: datetime


class CropListRead(BaseModel):
	items: list[CropRead]
