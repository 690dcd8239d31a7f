"""Pydantic schemas for notification preferences and dispatch outcomes."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from irrisense.models.enums import AlertKindEnum, NotificationKindEnum
from irrisense.schemas.recommendation import WeatherSnapshotIn


class NotificationSettings(BaseModel):
	daily: bool = True
	weather: bool = True
	irrigation: bool = True


class WeatherAlertRequest(BaseModel):
	location: str = Field(min_length=1, max_length=255)
	weather: WeatherSnapshotIn


class AlertRead(BaseModel):
	kind: AlertKindEnum
	message: str


class Notification(BaseModel):
	"""Payload handed to the dispatcher; delivery is someone else's job."""

	user_id: str
	kind: NotificationKindEnum
	title: str
	body: str
	deliver_at: datetime
	discriminator: str


class WeatherAlertOutcome(BaseModel):
	alert: AlertRead | None = None
	dispatched: bool = False
	suppressed_reason: str | None = None


class DailyPlanOutcome(BaseModel):
	scheduled: list[Notification] = Field(default_factory=list)
	suppressed: list[str] = Field(default_factory=list)


class NotificationCancel(BaseModel):
	"""Withdraws not-yet-delivered notifications for one discriminator and day."""

	user_id: str
	kind: NotificationKindEnum
	discriminator: str
	day: date
