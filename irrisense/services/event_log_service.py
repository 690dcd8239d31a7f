"""Irrigation event log and the once-per-calendar-day action guard.

The guard answers "has this already happened today?" with a day-bounded
range query on (user_id, timestamp) followed by an in-memory equality
filter.  Check-then-write is not atomic on its own; when Redis is available
``DailyActionGuard.claim`` adds a ``SET NX`` on the (user, kind,
discriminator, day) key so concurrent writers cannot both proceed.  A claim
whose write fails is released, so the log stays the only record of what
happened today.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timedelta

import structlog
from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from irrisense.config import get_settings
from irrisense.engine.dedup import (
	ActionRecord,
	DayWindow,
	day_window,
	has_completed_today,
	local_now,
)
from irrisense.engine.growth import days_since_planting
from irrisense.models.crops import Crop
from irrisense.models.enums import CropNameEnum, NotificationKindEnum
from irrisense.models.events import IrrigationEvent, NotificationEvent, RecommendationFeedback
from irrisense.schemas.irrigation import IrrigationEfficiencyRead, IrrigationFeedbackIn, IrrigationLogIn
from irrisense.schemas.notifications import NotificationCancel
from irrisense.services.dispatch import NotificationDispatcher

logger = structlog.get_logger("irrisense.events")

IRRIGATION_KIND = "irrigation"

# Expected waterings per week when scoring how closely a user follows advice.
EXPECTED_IRRIGATIONS_PER_WEEK: dict[CropNameEnum, int] = {
	CropNameEnum.tomato: 3,
	CropNameEnum.lettuce: 2,
	CropNameEnum.maize: 2,
}
DEFAULT_IRRIGATIONS_PER_WEEK = 2


class AlreadyDoneTodayError(Exception):
	"""The action was already recorded for this user / discriminator today."""

	def __init__(self, kind: str, discriminator: str) -> None:
		super().__init__(f"{kind} already recorded today for {discriminator}")
		self.kind = kind
		self.discriminator = discriminator


class DailyActionGuard:
	"""Read-only daily dedup queries plus the optional Redis claim."""

	def __init__(self, db: AsyncSession, redis_client: Redis | None = None):
		self.db = db
		self.redis_client = redis_client
		self.settings = get_settings()

	def now(self) -> datetime:
		return local_now(self.settings.local_timezone)

	async def irrigated_today(
		self,
		user_id: str,
		crop_name: str,
		now: datetime | None = None,
	) -> bool:
		window = day_window(now or self.now())
		records = await self._irrigation_records(user_id, window)
		return has_completed_today(records, str(crop_name), window)

	async def notified_today(
		self,
		user_id: str,
		kind: NotificationKindEnum,
		discriminator: str,
		now: datetime | None = None,
	) -> bool:
		window = day_window(now or self.now())
		records = await self._notification_records(user_id, kind, window)
		return has_completed_today(records, discriminator, window)

	async def claim(
		self,
		user_id: str,
		kind: str,
		discriminator: str,
		now: datetime | None = None,
	) -> bool:
		"""Atomically reserve today's slot; always granted without Redis.

		A granted claim must be followed by the log write or by ``release``.
		"""
		if self.redis_client is None:
			return True
		key = self._claim_key(user_id, kind, discriminator, now or self.now())
		acquired = await self.redis_client.set(
			key,
			"1",
			nx=True,
			ex=self.settings.daily_claim_ttl_seconds,
		)
		if not acquired:
			logger.info("daily_claim_rejected", kind=kind, discriminator=discriminator)
		return bool(acquired)

	async def release(
		self,
		user_id: str,
		kind: str,
		discriminator: str,
		now: datetime | None = None,
	) -> None:
		"""Drop a claim whose log write never happened."""
		if self.redis_client is None:
			return
		await self.redis_client.delete(self._claim_key(user_id, kind, discriminator, now or self.now()))
		logger.warning("daily_claim_released", kind=kind, discriminator=discriminator)

	@staticmethod
	def _claim_key(user_id: str, kind: str, discriminator: str, now: datetime) -> str:
		day = day_window(now).start.date().isoformat()
		return f"daily:{user_id}:{kind}:{discriminator}:{day}"

	async def _irrigation_records(self, user_id: str, window: DayWindow) -> list[ActionRecord]:
		stmt = select(IrrigationEvent).where(
			IrrigationEvent.user_id == user_id,
			IrrigationEvent.timestamp >= window.start,
			IrrigationEvent.timestamp < window.end,
		)
		rows = await self.db.execute(stmt)
		return [
			ActionRecord(
				discriminator=str(event.crop_name),
				timestamp=event.timestamp,
				completed=event.completed,
			)
			for event in rows.scalars().all()
		]

	async def _notification_records(
		self,
		user_id: str,
		kind: NotificationKindEnum,
		window: DayWindow,
	) -> list[ActionRecord]:
		stmt = select(NotificationEvent).where(
			NotificationEvent.user_id == user_id,
			NotificationEvent.sent_at >= window.start,
			NotificationEvent.sent_at < window.end,
		)
		rows = await self.db.execute(stmt)
		return [
			ActionRecord(discriminator=event.discriminator, timestamp=event.sent_at)
			for event in rows.scalars().all()
			if event.kind == kind
		]


class EventLogService:
	"""Append-only irrigation log: record, history, efficiency, feedback."""

	def __init__(
		self,
		db: AsyncSession,
		redis_client: Redis | None = None,
		dispatcher: NotificationDispatcher | None = None,
	):
		self.db = db
		self.guard = DailyActionGuard(db, redis_client)
		self.dispatcher = dispatcher

	async def log_irrigation(
		self,
		user_id: str,
		crop_name: CropNameEnum,
		payload: IrrigationLogIn,
		now: datetime | None = None,
	) -> IrrigationEvent:
		"""Record a watering; a second completed one for the crop today is refused.

		The event is committed before returning so the log, not the Redis
		claim, is what later checks see.  A completed watering also withdraws
		the crop's pending reminders for today.
		"""
		now = now or self.guard.now()
		discriminator = str(crop_name)
		if payload.completed:
			if await self.guard.irrigated_today(user_id, discriminator, now):
				raise AlreadyDoneTodayError(IRRIGATION_KIND, discriminator)
			if not await self.guard.claim(user_id, IRRIGATION_KIND, discriminator, now):
				raise AlreadyDoneTodayError(IRRIGATION_KIND, discriminator)

		event = IrrigationEvent(
			user_id=user_id,
			crop_name=crop_name,
			timestamp=now,
			volume_l_m2=payload.volume_l_m2,
			total_volume_l=payload.total_volume_l,
			completed=payload.completed,
		)
		try:
			self.db.add(event)
			await self.db.flush()
			await self.db.refresh(event)
			await self.db.commit()
		except Exception:
			await self.db.rollback()
			if payload.completed:
				await self.guard.release(user_id, IRRIGATION_KIND, discriminator, now)
			raise

		logger.info(
			"irrigation_logged",
			crop=discriminator,
			volume_l_m2=payload.volume_l_m2,
			completed=payload.completed,
		)
		if payload.completed and self.dispatcher is not None:
			await self.dispatcher.cancel(
				NotificationCancel(
					user_id=user_id,
					kind=NotificationKindEnum.irrigation_reminder,
					discriminator=discriminator,
					day=now.date(),
				)
			)
		return event

	async def add_feedback(
		self,
		user_id: str,
		crop_name: CropNameEnum,
		payload: IrrigationFeedbackIn,
	) -> RecommendationFeedback:
		"""Append the farmer's verdict on one day's advice; never deduplicated."""
		feedback = RecommendationFeedback(
			user_id=user_id,
			crop_name=crop_name,
			day=payload.day,
			volume_l_m2=payload.volume_l_m2,
			is_good=payload.is_good,
		)
		self.db.add(feedback)
		await self.db.flush()
		await self.db.refresh(feedback)
		logger.info("irrigation_feedback_recorded", crop=str(crop_name), is_good=payload.is_good)
		return feedback

	async def history(
		self,
		user_id: str,
		days: int = 30,
		now: datetime | None = None,
	) -> list[IrrigationEvent]:
		since = (now or self.guard.now()) - timedelta(days=days)
		stmt = (
			select(IrrigationEvent)
			.where(IrrigationEvent.user_id == user_id, IrrigationEvent.timestamp >= since)
			.order_by(IrrigationEvent.timestamp.desc())
		)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def efficiency(
		self,
		user_id: str,
		crops: Sequence[Crop],
		now: datetime | None = None,
	) -> IrrigationEfficiencyRead:
		now = now or self.guard.now()
		events = await self.history(user_id, days=30, now=now)
		score = self.efficiency_score(crops, events, now)
		return IrrigationEfficiencyRead(efficiency=score, crops=len(crops), irrigations=len(events))

	@staticmethod
	def efficiency_score(
		crops: Sequence[Crop],
		events: Sequence[IrrigationEvent],
		now: datetime,
	) -> float:
		"""Mean over crops of min(logged / expected, 1); 0 without data."""
		if not crops or not events:
			return 0.0

		per_crop = Counter(str(event.crop_name) for event in events)
		total = 0.0
		counted = 0
		for crop in crops:
			days = days_since_planting(crop.planting_date, now.date())
			per_week = EXPECTED_IRRIGATIONS_PER_WEEK.get(crop.name, DEFAULT_IRRIGATIONS_PER_WEEK)
			expected = max(math.floor(days / 7 * per_week), 0)
			if expected > 0:
				total += min(per_crop.get(str(crop.name), 0) / expected, 1.0)
				counted += 1
		return total / counted if counted else 0.0
