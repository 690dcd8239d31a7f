"""Weather alert classification.

At most one alert per evaluation; the first matching threshold wins and the
order below mirrors the recommendation constraint precedence.
"""

from __future__ import annotations

from dataclasses import dataclass

from irrisense.engine.recommendation import WeatherSnapshot
from irrisense.models.enums import AlertKindEnum

HEAT_ALERT_C = 32.0
HUMIDITY_ALERT_PCT = 85.0
WIND_ALERT_KMH = 30.0


@dataclass(frozen=True, slots=True)
class WeatherAlert:
	kind: AlertKindEnum
	message: str


def _exceeds(value: float | None, threshold: float) -> bool:
	return value is not None and value > threshold


def classify_weather_alert(weather: WeatherSnapshot, location: str) -> WeatherAlert | None:
	if weather.raining or weather.rain_forecast or len(weather.next_rain_hours) > 0:
		return WeatherAlert(
			kind=AlertKindEnum.rain,
			message=f"Rain expected this afternoon in {location}. Postpone the evening watering.",
		)

	if _exceeds(weather.current_temperature, HEAT_ALERT_C) or _exceeds(
		weather.tomorrow_max_temperature, HEAT_ALERT_C
	):
		return WeatherAlert(
			kind=AlertKindEnum.heat,
			message="Heat wave detected! Water early in the morning to limit evaporation.",
		)

	if _exceeds(weather.humidity, HUMIDITY_ALERT_PCT):
		return WeatherAlert(
			kind=AlertKindEnum.humidity,
			message="Humidity above 85% expected. Reduce the amount of water.",
		)

	wind_speed = weather.wind_speed
	if wind_speed is not None and wind_speed > WIND_ALERT_KMH:
		return WeatherAlert(
			kind=AlertKindEnum.wind,
			message=f"Strong wind ({round(wind_speed)} km/h). Protect fragile crops.",
		)

	return None
