"""Daily irrigation recommendation generator.

Composes growth stage, crop coefficient, soil interval and Hargreaves ET0
into a watering volume, then applies the weather constraints.  Constraint
precedence is part of the contract and must stay in this order:

    1. humidity > 80 %
    2. raining now (message depends on morning / evening)
    3. rain forecast today, evaluated in the evening
    4. Tmax > 38 °C

When a constraint fires its text replaces the volume message; the numeric
fields are still computed and returned.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TypeVar

from irrisense.engine.errors import InvalidFieldError, MissingFieldError, RecommendationInputError
from irrisense.engine.et0 import hargreaves_et0
from irrisense.engine.growth import classify_growth_stage
from irrisense.engine.tables import SoilProfile, get_kc
from irrisense.models.enums import GrowthStageEnum, MomentEnum

HIGH_HUMIDITY_PCT = 80.0
EXTREME_HEAT_C = 38.0
MORNING_CUTOFF_HOUR = 12
FORECAST_DAYS = 7

T = TypeVar("T")

TIME_WINDOWS: dict[MomentEnum, str] = {
	MomentEnum.morning: "06:00-08:00",
	MomentEnum.evening: "17:00-19:00",
}

MSG_HIGH_HUMIDITY = "High humidity. No irrigation recommended."
MSG_RAIN_MORNING = "It is raining this morning. Wait until this evening to see how it develops."
MSG_RAIN_EVENING = "It is raining this evening. The rain is enough for today."
MSG_RAIN_FORECAST_EVENING = "Rain expected this evening. Irrigate in the morning if not already done."
MSG_EXTREME_HEAT = "Extreme heat. Irrigate early in the morning or late in the evening."


@dataclass(frozen=True, slots=True)
class CropInput:
	name: str | None
	planting_date: date | None


@dataclass(frozen=True, slots=True)
class WeatherSnapshot:
	"""Point-in-time weather readings, supplied fresh on every call."""

	tmax: float | None
	tmin: float | None
	radiation: float | None
	humidity: float | None
	hour: int | None
	raining: bool = False
	rain_forecast: bool = False
	current_temperature: float | None = None
	tomorrow_max_temperature: float | None = None
	wind_speed: float | None = None
	next_rain_hours: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class Recommendation:
	crop: str
	soil: str
	volume_per_area: float  # L/m²
	area: float  # m²
	total_volume: float  # L
	frequency: str
	moment: MomentEnum
	time_window: str
	constraint: str | None
	message: str
	stage: GrowthStageEnum
	kc: float
	et0: float
	etc: float


@dataclass(frozen=True, slots=True)
class ForecastDay:
	day: date
	volume_per_area: float


@dataclass(frozen=True, slots=True)
class _CheckedInputs:
	"""Inputs after presence and range checks; nothing here is optional."""

	crop_name: str
	planting_date: date
	tmax: float
	tmin: float
	radiation: float
	hour: int
	area: float


def _require(value: T | None, name: str) -> T:
	if value is None or (isinstance(value, str) and not value.strip()):
		raise MissingFieldError(name)
	return value


def _validate_inputs(
	crop: CropInput,
	soil: SoilProfile,
	weather: WeatherSnapshot,
	area: float | None,
) -> _CheckedInputs:
	crop_name = _require(crop.name, "crop_name")
	planting_date = _require(crop.planting_date, "planting_date")
	_require(soil.name, "soil_name")
	interval = _require(soil.irrigation_interval_days, "soil_interval")
	_require(soil.retention_capacity, "soil_retention")
	tmax = _require(weather.tmax, "tmax")
	tmin = _require(weather.tmin, "tmin")
	humidity = _require(weather.humidity, "humidity")
	radiation = _require(weather.radiation, "radiation")
	hour = _require(weather.hour, "hour")
	checked_area = _require(area, "area")

	if checked_area <= 0:
		raise InvalidFieldError("area", f"must be greater than zero, got {checked_area}")
	if interval < 1:
		raise InvalidFieldError("soil_interval", "must be at least one day")
	if not 0 <= hour <= 23:
		raise InvalidFieldError("hour", f"must be within 0-23, got {hour}")
	if not 0 <= humidity <= 100:
		raise InvalidFieldError("humidity", f"must be within 0-100, got {humidity}")

	return _CheckedInputs(
		crop_name=crop_name,
		planting_date=planting_date,
		tmax=tmax,
		tmin=tmin,
		radiation=radiation,
		hour=hour,
		area=checked_area,
	)


def moment_for_hour(hour: int) -> MomentEnum:
	return MomentEnum.morning if hour < MORNING_CUTOFF_HOUR else MomentEnum.evening


def weather_constraint(weather: WeatherSnapshot, moment: MomentEnum) -> str | None:
	"""First matching weather constraint, or None when irrigation is normal."""
	if weather.humidity is not None and weather.humidity > HIGH_HUMIDITY_PCT:
		return MSG_HIGH_HUMIDITY
	if weather.raining:
		return MSG_RAIN_MORNING if moment == MomentEnum.morning else MSG_RAIN_EVENING
	if weather.rain_forecast and moment == MomentEnum.evening:
		return MSG_RAIN_FORECAST_EVENING
	if weather.tmax is not None and weather.tmax > EXTREME_HEAT_C:
		return MSG_EXTREME_HEAT
	return None


def frequency_label(interval_days: int) -> str:
	return f"{interval_days} day(s)"


def generate_recommendation(
	crop: CropInput,
	soil: SoilProfile,
	weather: WeatherSnapshot,
	area: float | None,
	today: date,
) -> Recommendation:
	"""Compute the watering instruction for ``today``.

	Pure: the only notion of time is ``today`` (growth stage) and
	``weather.hour`` (morning / evening), both supplied by the caller.
	Raises a ``RecommendationInputError`` subclass naming the bad field.
	"""
	checked = _validate_inputs(crop, soil, weather, area)

	moment = moment_for_hour(checked.hour)
	stage = classify_growth_stage(checked.planting_date, today)
	kc = get_kc(checked.crop_name, stage)

	et0 = hargreaves_et0(checked.tmax, checked.tmin, checked.radiation)
	etc = et0 * kc

	volume = etc * soil.irrigation_interval_days
	total = volume * checked.area

	constraint = weather_constraint(weather, moment)
	frequency = frequency_label(soil.irrigation_interval_days)

	if constraint is not None:
		message = constraint
	else:
		message = (
			f"Apply {volume:.1f} L/m² ({total:.0f} L total) every {frequency} "
			f"for {checked.crop_name} ({stage.value}) on {soil.name} soil."
		)

	return Recommendation(
		crop=checked.crop_name,
		soil=soil.name,
		volume_per_area=round(volume, 1),
		area=checked.area,
		total_volume=round(total, 0),
		frequency=frequency,
		moment=moment,
		time_window=TIME_WINDOWS[moment],
		constraint=constraint,
		message=message,
		stage=stage,
		kc=kc,
		et0=et0,
		etc=round(etc, 3),
	)


def forecast_irrigation(
	crop: CropInput,
	soil: SoilProfile,
	forecast: Sequence[WeatherSnapshot],
	area: float | None,
	today: date,
	days: int = FORECAST_DAYS,
) -> list[ForecastDay]:
	"""Volume per area for each of the next ``days`` days.

	Day ``i`` uses ``forecast[i]``; once the forecast runs out the last
	snapshot is reused.
	"""
	if not forecast:
		raise RecommendationInputError("forecast", "weather forecast is empty")

	result: list[ForecastDay] = []
	for offset in range(days):
		day = today + timedelta(days=offset)
		snapshot = forecast[min(offset, len(forecast) - 1)]
		recommendation = generate_recommendation(crop, soil, snapshot, area, day)
		result.append(ForecastDay(day=day, volume_per_area=recommendation.volume_per_area))
	return result
