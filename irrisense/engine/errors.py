"""Validation errors raised by the recommendation engine.

Every error here is a ``ValueError`` so the HTTP edge maps it to a 400
without special-casing; ``field`` names the offending input.
"""

from __future__ import annotations


class RecommendationInputError(ValueError):
	"""A required input is missing or outside its domain."""

	def __init__(self, field: str, message: str) -> None:
		super().__init__(message)
		self.field = field


class MissingFieldError(RecommendationInputError):
	def __init__(self, field: str) -> None:
		super().__init__(field, f"missing required field: {field}")


class InvalidFieldError(RecommendationInputError):
	def __init__(self, field: str, reason: str) -> None:
		super().__init__(field, f"invalid field {field}: {reason}")


class WeatherValidationError(InvalidFieldError):
	"""Weather readings that make the Hargreaves equation undefined."""


class UnknownCropError(InvalidFieldError):
	def __init__(self, name: str) -> None:
		super().__init__("crop_name", f"unrecognized crop name {name!r}")
		self.name = name
