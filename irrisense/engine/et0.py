"""Reference evapotranspiration (Hargreaves)."""

from __future__ import annotations

import math

from irrisense.engine.errors import WeatherValidationError

HARGREAVES_COEFFICIENT = 0.0023
HARGREAVES_TEMPERATURE_OFFSET = 17.8


def hargreaves_et0(tmax: float, tmin: float, radiation: float) -> float:
	"""ET0 in mm/day, rounded to 2 decimals.

	ET0 = 0.0023 × (Tmean + 17.8) × √(Tmax − Tmin) × Ra, with ``radiation``
	the daily shortwave radiation sum (MJ/m²/day) supplied by the caller.
	"""
	if tmax < tmin:
		raise WeatherValidationError("tmax", f"tmax ({tmax}) is lower than tmin ({tmin})")
	if radiation < 0:
		raise WeatherValidationError("radiation", f"radiation must be >= 0, got {radiation}")

	tmean = (tmax + tmin) / 2
	et0 = (
		HARGREAVES_COEFFICIENT
		* (tmean + HARGREAVES_TEMPERATURE_OFFSET)
		* math.sqrt(tmax - tmin)
		* radiation
	)
	# Hargreaves goes negative below a mean of -17.8 °C; no demand there.
	return round(max(et0, 0.0), 2)
