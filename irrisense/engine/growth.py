"""Growth-stage classification from planting date."""

from __future__ import annotations

from datetime import date

from irrisense.models.enums import GrowthStageEnum

# Inclusive upper bounds in days since planting; anything beyond is late.
STAGE_BOUNDARIES: tuple[tuple[int, GrowthStageEnum], ...] = (
	(20, GrowthStageEnum.initial),
	(40, GrowthStageEnum.development),
	(70, GrowthStageEnum.flowering),
)


def days_since_planting(planting_date: date, today: date) -> int:
	return (today - planting_date).days


def classify_growth_stage(planting_date: date, today: date) -> GrowthStageEnum:
	"""Map a planting date to its stage as of ``today``.

	Future planting dates (negative day counts) fall in the first bucket.
	"""
	days = days_since_planting(planting_date, today)
	for upper_bound, stage in STAGE_BOUNDARIES:
		if days <= upper_bound:
			return stage
	return GrowthStageEnum.late
