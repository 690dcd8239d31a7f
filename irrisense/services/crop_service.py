"""Per-user crop configuration CRUD."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from irrisense.models.crops import Crop
from irrisense.schemas.crops import CropCreate, CropUpdate


class CropService:
	"""Crops are only touched by explicit add / update / delete calls."""

	def __init__(self, db: AsyncSession):
		self.db = db

	async def create_crop(self, user_id: str, payload: CropCreate) -> Crop:
		crop = Crop(
			user_id=user_id,
			name=payload.name,
			soil_class=payload.soil_class,
			planting_date=payload.planting_date,
			area_m2=payload.area_m2,
		)
		self.db.add(crop)
		await self.db.flush()
		await self.db.refresh(crop)
		return crop

	async def list_crops(self, user_id: str) -> list[Crop]:
		stmt = (
			select(Crop)
			.where(Crop.user_id == user_id)
			.order_by(Crop.created_at.desc())
		)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def get_crop(self, user_id: str, crop_id: uuid.UUID) -> Crop:
		row = await self.db.execute(
			select(Crop).where(Crop.id == crop_id, Crop.user_id == user_id)
		)
		crop = row.scalar_one_or_none()
		if crop is None:
			raise LookupError(f"Crop {crop_id} not found")
		return crop

	async def update_crop(self, user_id: str, crop_id: uuid.UUID, payload: CropUpdate) -> Crop:
		crop = await self.get_crop(user_id, crop_id)
		changes = payload.model_dump(exclude_unset=True, exclude_none=True)
		if not changes:
			raise ValueError("no crop fields to update")
		for key, value in changes.items():
			setattr(crop, key, value)
		await self.db.flush()
		await self.db.refresh(crop)
		return crop

	async def delete_crop(self, user_id: str, crop_id: uuid.UUID) -> None:
		crop = await self.get_crop(user_id, crop_id)
		await self.db.delete(crop)
		await self.db.flush()
