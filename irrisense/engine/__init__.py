"""Pure irrigation recommendation engine (no I/O, no clock reads)."""

from irrisense.engine.alerts import WeatherAlert, classify_weather_alert
from irrisense.engine.dedup import (
	WEATHER_ALERT_DISCRIMINATOR,
	ActionRecord,
	DayWindow,
	day_window,
	has_completed_today,
)
from irrisense.engine.errors import (
	InvalidFieldError,
	MissingFieldError,
	RecommendationInputError,
	UnknownCropError,
	WeatherValidationError,
)
from irrisense.engine.et0 import hargreaves_et0
from irrisense.engine.growth import classify_growth_stage
from irrisense.engine.recommendation import (
	CropInput,
	ForecastDay,
	Recommendation,
	WeatherSnapshot,
	forecast_irrigation,
	generate_recommendation,
)
from irrisense.engine.tables import (
	DEFAULT_KC,
	SoilProfile,
	get_kc,
	get_soil_profile,
	normalize_crop_name,
	normalize_soil_class,
)

__all__ = [
	"DEFAULT_KC",
	"WEATHER_ALERT_DISCRIMINATOR",
	"ActionRecord",
	"CropInput",
	"DayWindow",
	"ForecastDay",
	"InvalidFieldError",
	"MissingFieldError",
	"Recommendation",
	"RecommendationInputError",
	"SoilProfile",
	"UnknownCropError",
	"WeatherAlert",
	"WeatherSnapshot",
	"WeatherValidationError",
	"classify_growth_stage",
	"classify_weather_alert",
	"day_window",
	"forecast_irrigation",
	"generate_recommendation",
	"get_kc",
	"get_soil_profile",
	"hargreaves_et0",
	"has_completed_today",
	"normalize_crop_name",
	"normalize_soil_class",
]
