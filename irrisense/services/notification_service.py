"""Notification planning gated by the once-per-day guard.

The service decides *whether* and *when* a notification goes out and what
it says; delivery is delegated to a ``NotificationDispatcher``.  Every
dispatch is followed by an explicit write to the notification log, which is
what the guard reads on the next call; a failed send gives its daily claim
back so a retry can go through.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from irrisense.config import get_settings
from irrisense.engine.alerts import classify_weather_alert
from irrisense.engine.dedup import WEATHER_ALERT_DISCRIMINATOR
from irrisense.engine.recommendation import Recommendation
from irrisense.models.enums import NotificationKindEnum
from irrisense.models.events import NotificationEvent, NotificationPreference
from irrisense.schemas.notifications import (
	AlertRead,
	DailyPlanOutcome,
	Notification,
	NotificationSettings,
	WeatherAlertOutcome,
)
from irrisense.schemas.recommendation import WeatherSnapshotIn
from irrisense.services.dispatch import NotificationDispatcher
from irrisense.services.event_log_service import DailyActionGuard

logger = structlog.get_logger("irrisense.notifications")

TITLES: dict[NotificationKindEnum, str] = {
	NotificationKindEnum.daily_recommendation: "Today's irrigation advice",
	NotificationKindEnum.irrigation_reminder: "Irrigation reminder",
	NotificationKindEnum.weather_alert: "Weather alert",
}


class NotificationService:
	def __init__(
		self,
		db: AsyncSession,
		dispatcher: NotificationDispatcher,
		guard: DailyActionGuard,
	):
		self.db = db
		self.dispatcher = dispatcher
		self.guard = guard
		self.settings = get_settings()

	async def get_preferences(self, user_id: str) -> NotificationSettings:
		row = await self._preference_row(user_id)
		if row is None:
			return NotificationSettings()
		return NotificationSettings(daily=row.daily, weather=row.weather, irrigation=row.irrigation)

	async def update_preferences(self, user_id: str, payload: NotificationSettings) -> NotificationSettings:
		row = await self._preference_row(user_id)
		if row is None:
			row = NotificationPreference(user_id=user_id)
			self.db.add(row)
		row.daily = payload.daily
		row.weather = payload.weather
		row.irrigation = payload.irrigation
		await self.db.flush()
		return payload

	async def check_and_send_weather_alert(
		self,
		user_id: str,
		weather: WeatherSnapshotIn,
		location: str,
		now: datetime | None = None,
	) -> WeatherAlertOutcome:
		"""Classify the snapshot and dispatch at most one weather alert per day."""
		now = now or self.guard.now()
		preferences = await self.get_preferences(user_id)
		if not preferences.weather:
			return WeatherAlertOutcome(suppressed_reason="weather_notifications_disabled")

		alert = classify_weather_alert(weather.to_snapshot(now.hour), location)
		if alert is None:
			return WeatherAlertOutcome()

		alert_read = AlertRead(kind=alert.kind, message=alert.message)
		kind = NotificationKindEnum.weather_alert
		if await self.guard.notified_today(user_id, kind, WEATHER_ALERT_DISCRIMINATOR, now):
			logger.info("weather_alert_suppressed", alert=alert.kind.value)
			return WeatherAlertOutcome(alert=alert_read, suppressed_reason="already_alerted_today")
		if not await self.guard.claim(user_id, kind.value, WEATHER_ALERT_DISCRIMINATOR, now):
			return WeatherAlertOutcome(alert=alert_read, suppressed_reason="already_alerted_today")

		notification = self._notification(user_id, kind, WEATHER_ALERT_DISCRIMINATOR, alert.message, now)
		await self._send_claimed([notification], now)
		return WeatherAlertOutcome(alert=alert_read, dispatched=True)

	async def plan_daily(
		self,
		user_id: str,
		crop_name: str,
		recommendation: Recommendation,
		now: datetime | None = None,
	) -> DailyPlanOutcome:
		"""Schedule today's advice and the two follow-up irrigation reminders."""
		now = now or self.guard.now()
		preferences = await self.get_preferences(user_id)
		outcome = DailyPlanOutcome()

		if preferences.daily:
			await self.schedule_daily(user_id, crop_name, recommendation, now, outcome)
		else:
			outcome.suppressed.append("daily_notifications_disabled")

		if preferences.irrigation:
			await self.schedule_irrigation_reminders(user_id, crop_name, now, outcome)
		else:
			outcome.suppressed.append("irrigation_reminders_disabled")

		return outcome

	async def schedule_daily(
		self,
		user_id: str,
		crop_name: str,
		recommendation: Recommendation,
		now: datetime,
		outcome: DailyPlanOutcome,
	) -> None:
		if await self._already_sent(user_id, NotificationKindEnum.daily_recommendation, crop_name, now):
			outcome.suppressed.append("daily_already_scheduled")
			return
		notification = self._notification(
			user_id,
			NotificationKindEnum.daily_recommendation,
			crop_name,
			f"{crop_name}: {recommendation.message}",
			self._daily_slot(now),
		)
		await self._send_claimed([notification], now)
		outcome.scheduled.append(notification)

	async def schedule_irrigation_reminders(
		self,
		user_id: str,
		crop_name: str,
		now: datetime,
		outcome: DailyPlanOutcome,
	) -> None:
		"""Two nudges after ``now``; none at all once the crop was watered today.

		Reminders already handed to the worker are withdrawn by
		``EventLogService.log_irrigation`` when the watering is logged.
		"""
		if await self.guard.irrigated_today(user_id, crop_name, now):
			outcome.suppressed.append("irrigated_today")
			return
		if await self._already_sent(user_id, NotificationKindEnum.irrigation_reminder, crop_name, now):
			outcome.suppressed.append("reminders_already_scheduled")
			return

		body = f"Have you watered your {crop_name} today? Log it once it is done."
		reminders = [
			self._notification(
				user_id,
				NotificationKindEnum.irrigation_reminder,
				crop_name,
				body,
				now + timedelta(minutes=delay),
			)
			for delay in (
				self.settings.first_reminder_delay_minutes,
				self.settings.second_reminder_delay_minutes,
			)
		]
		await self._send_claimed(reminders, now)
		outcome.scheduled.extend(reminders)

	async def _already_sent(
		self,
		user_id: str,
		kind: NotificationKindEnum,
		discriminator: str,
		now: datetime,
	) -> bool:
		if await self.guard.notified_today(user_id, kind, discriminator, now):
			return True
		return not await self.guard.claim(user_id, kind.value, discriminator, now)

	def _daily_slot(self, now: datetime) -> datetime:
		"""Today's configured hour, or right away once it has passed."""
		slot = datetime.combine(
			now.date(),
			time(hour=self.settings.daily_notification_hour),
			tzinfo=now.tzinfo,
		)
		return slot if slot > now else now

	@staticmethod
	def _notification(
		user_id: str,
		kind: NotificationKindEnum,
		discriminator: str,
		body: str,
		deliver_at: datetime,
	) -> Notification:
		return Notification(
			user_id=user_id,
			kind=kind,
			title=TITLES[kind],
			body=body,
			deliver_at=deliver_at,
			discriminator=discriminator,
		)

	async def _send_claimed(self, notifications: list[Notification], now: datetime) -> None:
		"""Send under an already granted claim; give the claim back on failure.

		All notifications share one (user, kind, discriminator).
		"""
		first = notifications[0]
		try:
			for notification in notifications:
				await self._send(notification, now)
			await self.db.commit()
		except Exception:
			await self.db.rollback()
			await self.guard.release(first.user_id, first.kind.value, first.discriminator, now)
			logger.warning("notification_send_failed", kind=first.kind.value, discriminator=first.discriminator)
			raise

	async def _send(self, notification: Notification, now: datetime) -> None:
		await self.dispatcher.dispatch(notification)
		await self._mark_sent(notification, now)
		logger.info(
			"notification_dispatched",
			kind=notification.kind.value,
			discriminator=notification.discriminator,
			deliver_at=notification.deliver_at.isoformat(),
		)

	async def _mark_sent(self, notification: Notification, now: datetime) -> None:
		self.db.add(
			NotificationEvent(
				user_id=notification.user_id,
				kind=notification.kind,
				discriminator=notification.discriminator,
				sent_at=now,
				message=notification.body[:1024],
			)
		)
		await self.db.flush()

	async def _preference_row(self, user_id: str) -> NotificationPreference | None:
		row = await self.db.execute(
			select(NotificationPreference).where(NotificationPreference.user_id == user_id)
		)
		return row.scalar_one_or_none()
