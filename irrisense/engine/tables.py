"""Static agronomic reference data: crop coefficients and soil profiles.

Both tables are seed data.  Adding a crop or a soil class is a data change
here; the generator only ever goes through ``get_kc`` / ``get_soil_profile``,
which fall back to documented defaults instead of raising.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass

import structlog

from irrisense.engine.errors import InvalidFieldError, UnknownCropError
from irrisense.models.enums import CropNameEnum, GrowthStageEnum, SoilClassEnum

logger = structlog.get_logger("irrisense.engine")

DEFAULT_KC = 0.8


@dataclass(frozen=True, slots=True)
class SoilProfile:
	name: str
	retention_capacity: float  # mm/m, informational
	irrigation_interval_days: int


KC_TABLE: dict[str, dict[str, float]] = {
	CropNameEnum.tomato: {
		GrowthStageEnum.initial: 0.45,
		GrowthStageEnum.development: 0.75,
		GrowthStageEnum.flowering: 1.15,
		GrowthStageEnum.late: 0.80,
	},
	CropNameEnum.maize: {
		GrowthStageEnum.initial: 0.50,
		GrowthStageEnum.development: 0.80,
		GrowthStageEnum.flowering: 1.15,
		GrowthStageEnum.late: 0.85,
	},
	CropNameEnum.lettuce: {
		GrowthStageEnum.initial: 0.60,
		GrowthStageEnum.development: 0.80,
		GrowthStageEnum.flowering: 0.90,
		GrowthStageEnum.late: 0.75,
	},
	CropNameEnum.onion: {
		GrowthStageEnum.initial: 0.50,
		GrowthStageEnum.development: 0.70,
		GrowthStageEnum.flowering: 1.00,
		GrowthStageEnum.late: 0.75,
	},
	CropNameEnum.chili_pepper: {
		GrowthStageEnum.initial: 0.35,
		GrowthStageEnum.development: 0.70,
		GrowthStageEnum.flowering: 1.05,
		GrowthStageEnum.late: 0.90,
	},
	CropNameEnum.eggplant: {
		GrowthStageEnum.initial: 0.45,
		GrowthStageEnum.development: 0.75,
		GrowthStageEnum.flowering: 1.15,
		GrowthStageEnum.late: 0.80,
	},
	CropNameEnum.carrot: {
		GrowthStageEnum.initial: 0.40,
		GrowthStageEnum.development: 0.75,
		GrowthStageEnum.flowering: 1.05,
		GrowthStageEnum.late: 0.90,
	},
	CropNameEnum.bean: {
		GrowthStageEnum.initial: 0.40,
		GrowthStageEnum.development: 0.70,
		GrowthStageEnum.flowering: 1.10,
		GrowthStageEnum.late: 0.30,
	},
}

SOIL_PROFILES: dict[str, SoilProfile] = {
	SoilClassEnum.sandy: SoilProfile(SoilClassEnum.sandy.value, 40.0, 2),
	SoilClassEnum.clay: SoilProfile(SoilClassEnum.clay.value, 80.0, 4),
	SoilClassEnum.loamy: SoilProfile(SoilClassEnum.loamy.value, 60.0, 3),
	SoilClassEnum.ferruginous: SoilProfile(SoilClassEnum.ferruginous.value, 55.0, 3),
	SoilClassEnum.alluvial: SoilProfile(SoilClassEnum.alluvial.value, 65.0, 3),
}

DEFAULT_RETENTION_CAPACITY = 60.0
DEFAULT_IRRIGATION_INTERVAL_DAYS = 3

# Farmers enter names in French or English; keys are accent-free, lowercase.
CROP_ALIASES: dict[str, CropNameEnum] = {
	"tomato": CropNameEnum.tomato,
	"tomate": CropNameEnum.tomato,
	"lettuce": CropNameEnum.lettuce,
	"laitue": CropNameEnum.lettuce,
	"maize": CropNameEnum.maize,
	"corn": CropNameEnum.maize,
	"mais": CropNameEnum.maize,
	"onion": CropNameEnum.onion,
	"oignon": CropNameEnum.onion,
	"chili_pepper": CropNameEnum.chili_pepper,
	"chili": CropNameEnum.chili_pepper,
	"pepper": CropNameEnum.chili_pepper,
	"piment": CropNameEnum.chili_pepper,
	"eggplant": CropNameEnum.eggplant,
	"aubergine": CropNameEnum.eggplant,
	"carrot": CropNameEnum.carrot,
	"carotte": CropNameEnum.carrot,
	"bean": CropNameEnum.bean,
	"haricot": CropNameEnum.bean,
}

SOIL_ALIASES: dict[str, SoilClassEnum] = {
	"sandy": SoilClassEnum.sandy,
	"sablonneux": SoilClassEnum.sandy,
	"clay": SoilClassEnum.clay,
	"argileux": SoilClassEnum.clay,
	"loamy": SoilClassEnum.loamy,
	"loam": SoilClassEnum.loamy,
	"limoneux": SoilClassEnum.loamy,
	"ferruginous": SoilClassEnum.ferruginous,
	"ferrugineux": SoilClassEnum.ferruginous,
	"alluvial": SoilClassEnum.alluvial,
}


def _fold(name: str) -> str:
	decomposed = unicodedata.normalize("NFKD", name.strip().lower())
	stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
	return "_".join(stripped.replace("-", " ").split())


def normalize_crop_name(name: str) -> CropNameEnum:
	"""Resolve free-form crop input; unknown names are a validation error."""
	crop = CROP_ALIASES.get(_fold(name))
	if crop is None:
		raise UnknownCropError(name)
	return crop


def normalize_soil_class(name: str) -> SoilClassEnum:
	soil = SOIL_ALIASES.get(_fold(name))
	if soil is None:
		raise InvalidFieldError("soil_name", f"unrecognized soil class {name!r}")
	return soil


def get_kc(crop: str | None, stage: str | None) -> float:
	"""Kc for a crop/stage pair, ``DEFAULT_KC`` when the pair is unknown."""
	if not crop or not stage:
		logger.warning("kc_fallback", crop=crop, stage=stage, kc=DEFAULT_KC)
		return DEFAULT_KC
	stages = KC_TABLE.get(CROP_ALIASES.get(_fold(crop), _fold(crop)))
	kc = stages.get(stage) if stages is not None else None
	if kc is None:
		logger.warning("kc_fallback", crop=crop, stage=stage, kc=DEFAULT_KC)
		return DEFAULT_KC
	return kc


def get_soil_profile(soil: str | None) -> SoilProfile:
	"""Profile for a soil class; unknown classes get the loam-like default."""
	profile = SOIL_PROFILES.get(SOIL_ALIASES.get(_fold(soil or ""), ""))
	if profile is None:
		logger.warning("soil_profile_fallback", soil=soil)
		return SoilProfile(
			name=soil or "unknown",
			retention_capacity=DEFAULT_RETENTION_CAPACITY,
			irrigation_interval_days=DEFAULT_IRRIGATION_INTERVAL_DAYS,
		)
	return profile
