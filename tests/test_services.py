from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from conftest import TEST_TZ, TEST_USER, FakeAsyncSession, FakeRedis, make_crop, scalars_result

from irrisense.engine.recommendation import MSG_HIGH_HUMIDITY
from irrisense.models.enums import CropNameEnum, MomentEnum, NotificationKindEnum
from irrisense.models.events import IrrigationEvent, NotificationEvent, NotificationPreference, RecommendationFeedback
from irrisense.schemas.irrigation import IrrigationFeedbackIn, IrrigationLogIn
from irrisense.schemas.notifications import DailyPlanOutcome, Notification, NotificationCancel, NotificationSettings
from irrisense.schemas.recommendation import ForecastRequest, WeatherSnapshotIn
from irrisense.services.crop_service import CropService
from irrisense.services.event_log_service import AlreadyDoneTodayError, DailyActionGuard, EventLogService
from irrisense.services.dispatch import RedisNotificationDispatcher
from irrisense.services.notification_service import NotificationService
from irrisense.services.recommendation_service import NonPositiveVolumeError, RecommendationService

CLEAR = WeatherSnapshotIn(tmax=32.0, tmin=26.0, radiation=20.0, humidity=65.0)


class RecordingDispatcher:
	def __init__(self, failures: int = 0) -> None:
		self.sent: list[Notification] = []
		self.cancelled: list[NotificationCancel] = []
		self.failures = failures

	async def dispatch(self, notification: Notification) -> None:
		if self.failures > 0:
			self.failures -= 1
			raise ConnectionError("push gateway unavailable")
		self.sent.append(notification)

	async def cancel(self, cancellation: NotificationCancel) -> None:
		self.cancelled.append(cancellation)


def _irrigation(crop: CropNameEnum, timestamp: datetime, completed: bool = True) -> SimpleNamespace:
	return SimpleNamespace(crop_name=crop, timestamp=timestamp, completed=completed)


def _results(*batches: list[Any]) -> list[Any]:
	return [scalars_result(rows) for rows in batches]


# ── Daily guard ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_guard_sees_morning_irrigation_in_the_evening() -> None:
	session = FakeAsyncSession()
	morning = datetime(2026, 3, 1, 9, 0, tzinfo=TEST_TZ)
	session.execute.return_value = scalars_result([_irrigation(CropNameEnum.tomato, morning)])
	guard = DailyActionGuard(session)

	evening = morning.replace(hour=17)
	assert await guard.irrigated_today(TEST_USER, "tomato", evening) is True
	assert await guard.irrigated_today(TEST_USER, "maize", evening) is False


@pytest.mark.asyncio
async def test_guard_claim_is_granted_once_per_day(fake_redis: FakeRedis, local_morning: datetime) -> None:
	guard = DailyActionGuard(FakeAsyncSession(), fake_redis)

	assert await guard.claim(TEST_USER, "irrigation", "tomato", local_morning) is True
	assert await guard.claim(TEST_USER, "irrigation", "tomato", local_morning.replace(hour=18)) is False
	assert await guard.claim(TEST_USER, "irrigation", "tomato", local_morning + timedelta(days=1)) is True
	assert f"daily:{TEST_USER}:irrigation:tomato:2026-03-01" in fake_redis.store


@pytest.mark.asyncio
async def test_guard_claim_without_redis_always_granted(local_morning: datetime) -> None:
	guard = DailyActionGuard(FakeAsyncSession())
	assert await guard.claim(TEST_USER, "irrigation", "tomato", local_morning) is True


# ── Irrigation log ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_log_irrigation_records_event(local_morning: datetime) -> None:
	session = FakeAsyncSession()
	session.execute.return_value = scalars_result([])
	service = EventLogService(session)

	event = await service.log_irrigation(
		TEST_USER,
		CropNameEnum.tomato,
		IrrigationLogIn(volume_l_m2=11.9, total_volume_l=593.0),
		now=local_morning,
	)

	assert isinstance(event, IrrigationEvent)
	assert event.timestamp == local_morning
	assert session.added == [event]
	session.flush.assert_awaited()


@pytest.mark.asyncio
async def test_second_irrigation_same_day_is_refused(local_morning: datetime) -> None:
	session = FakeAsyncSession()
	session.execute.return_value = scalars_result([_irrigation(CropNameEnum.tomato, local_morning)])
	service = EventLogService(session)

	with pytest.raises(AlreadyDoneTodayError) as exc_info:
		await service.log_irrigation(
			TEST_USER,
			CropNameEnum.tomato,
			IrrigationLogIn(volume_l_m2=5.0, total_volume_l=250.0),
			now=local_morning.replace(hour=18),
		)
	assert exc_info.value.discriminator == "tomato"
	assert session.added == []


@pytest.mark.asyncio
async def test_concurrent_second_irrigation_loses_the_claim(fake_redis: FakeRedis, local_morning: datetime) -> None:
	session = FakeAsyncSession()
	session.execute.return_value = scalars_result([])
	service = EventLogService(session, fake_redis)
	payload = IrrigationLogIn(volume_l_m2=5.0, total_volume_l=250.0)

	await service.log_irrigation(TEST_USER, CropNameEnum.tomato, payload, now=local_morning)
	with pytest.raises(AlreadyDoneTodayError):
		await service.log_irrigation(TEST_USER, CropNameEnum.tomato, payload, now=local_morning)


@pytest.mark.asyncio
async def test_incomplete_irrigation_skips_the_guard(local_morning: datetime) -> None:
	session = FakeAsyncSession()
	service = EventLogService(session)

	await service.log_irrigation(
		TEST_USER,
		CropNameEnum.maize,
		IrrigationLogIn(volume_l_m2=3.0, total_volume_l=30.0, completed=False),
		now=local_morning,
	)
	session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_failed_write_gives_the_claim_back(fake_redis: FakeRedis, local_morning: datetime) -> None:
	session = FakeAsyncSession()
	session.execute.return_value = scalars_result([])
	session.flush.side_effect = [RuntimeError("db down"), None]
	service = EventLogService(session, fake_redis)
	payload = IrrigationLogIn(volume_l_m2=5.0, total_volume_l=250.0)
	key = f"daily:{TEST_USER}:irrigation:tomato:2026-03-01"

	with pytest.raises(RuntimeError):
		await service.log_irrigation(TEST_USER, CropNameEnum.tomato, payload, now=local_morning)
	assert key not in fake_redis.store
	session.rollback.assert_awaited()

	event = await service.log_irrigation(TEST_USER, CropNameEnum.tomato, payload, now=local_morning)
	assert event.crop_name == CropNameEnum.tomato
	assert key in fake_redis.store
	session.commit.assert_awaited()


@pytest.mark.asyncio
async def test_logged_irrigation_withdraws_todays_reminders(local_morning: datetime) -> None:
	session = FakeAsyncSession()
	session.execute.return_value = scalars_result([])
	dispatcher = RecordingDispatcher()
	service = EventLogService(session, dispatcher=dispatcher)

	await service.log_irrigation(
		TEST_USER,
		CropNameEnum.tomato,
		IrrigationLogIn(volume_l_m2=5.0, total_volume_l=250.0),
		now=local_morning,
	)

	assert dispatcher.cancelled == [
		NotificationCancel(
			user_id=TEST_USER,
			kind=NotificationKindEnum.irrigation_reminder,
			discriminator="tomato",
			day=local_morning.date(),
		)
	]


@pytest.mark.asyncio
async def test_incomplete_irrigation_keeps_reminders(local_morning: datetime) -> None:
	dispatcher = RecordingDispatcher()
	service = EventLogService(FakeAsyncSession(), dispatcher=dispatcher)

	await service.log_irrigation(
		TEST_USER,
		CropNameEnum.tomato,
		IrrigationLogIn(volume_l_m2=2.0, total_volume_l=100.0, completed=False),
		now=local_morning,
	)

	assert dispatcher.cancelled == []


@pytest.mark.asyncio
async def test_refused_irrigation_cancels_nothing(local_morning: datetime) -> None:
	session = FakeAsyncSession()
	session.execute.return_value = scalars_result([_irrigation(CropNameEnum.tomato, local_morning)])
	dispatcher = RecordingDispatcher()
	service = EventLogService(session, dispatcher=dispatcher)

	with pytest.raises(AlreadyDoneTodayError):
		await service.log_irrigation(
			TEST_USER,
			CropNameEnum.tomato,
			IrrigationLogIn(volume_l_m2=5.0, total_volume_l=250.0),
			now=local_morning.replace(hour=17),
		)
	assert dispatcher.cancelled == []


def test_efficiency_score_caps_each_crop_at_one(local_morning: datetime) -> None:
	planted = local_morning.date() - timedelta(days=14)
	crops = [
		make_crop(name=CropNameEnum.tomato, planting_date=planted),
		make_crop(name=CropNameEnum.lettuce, planting_date=planted),
	]
	events = [_irrigation(CropNameEnum.tomato, local_morning)] * 3 + [
		_irrigation(CropNameEnum.lettuce, local_morning)
	] * 9

	# tomato 3/6, lettuce capped at 1
	assert EventLogService.efficiency_score(crops, events, local_morning) == pytest.approx(0.75)


def test_efficiency_score_without_data(local_morning: datetime) -> None:
	young = make_crop(planting_date=local_morning.date() - timedelta(days=2))
	assert EventLogService.efficiency_score([], [], local_morning) == 0.0
	assert EventLogService.efficiency_score([young], [_irrigation(CropNameEnum.tomato, local_morning)], local_morning) == 0.0


# ── Feedback ────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_add_feedback_appends_a_row(local_morning: datetime) -> None:
	session = FakeAsyncSession()
	service = EventLogService(session)
	payload = IrrigationFeedbackIn(day=local_morning.date(), volume_l_m2=11.9, is_good=False)

	first = await service.add_feedback(TEST_USER, CropNameEnum.tomato, payload)
	second = await service.add_feedback(TEST_USER, CropNameEnum.tomato, payload.model_copy(update={"is_good": True}))

	assert isinstance(first, RecommendationFeedback)
	assert first.day == local_morning.date()
	assert first.is_good is False and second.is_good is True
	assert session.added == [first, second]
	session.execute.assert_not_awaited()


# ── Recommendations ─────────────────────────────────────────────────────────


def test_build_uses_one_now_for_stage_and_moment(local_morning: datetime) -> None:
	crop = make_crop(planting_date=local_morning.date() - timedelta(days=30))
	rec = RecommendationService.build(crop, CLEAR, local_morning)

	assert rec.moment == MomentEnum.morning
	assert rec.kc == 0.75
	assert rec.volume_per_area > 0


def test_build_rejects_zero_volume(local_morning: datetime) -> None:
	crop = make_crop()
	weather = CLEAR.model_copy(update={"radiation": 0.0})
	with pytest.raises(NonPositiveVolumeError):
		RecommendationService.build(crop, weather, local_morning)


def test_build_still_rejects_zero_volume_under_a_constraint(local_morning: datetime) -> None:
	weather = CLEAR.model_copy(update={"radiation": 0.0, "humidity": 95.0})
	with pytest.raises(NonPositiveVolumeError):
		RecommendationService.build(make_crop(), weather, local_morning)


@pytest.mark.asyncio
async def test_recommend_returns_constraint_message(monkeypatch: pytest.MonkeyPatch, local_morning: datetime) -> None:
	crop = make_crop(planting_date=local_morning.date() - timedelta(days=30))
	monkeypatch.setattr(CropService, "get_crop", AsyncMock(return_value=crop))

	read = await RecommendationService(FakeAsyncSession()).recommend(
		TEST_USER,
		crop.id,
		CLEAR.model_copy(update={"humidity": 90.0}),
		now=local_morning,
	)

	assert read.crop_id == crop.id
	assert read.message == MSG_HIGH_HUMIDITY
	assert read.debug.et0 == pytest.approx(5.27)


@pytest.mark.asyncio
async def test_forecast_returns_seven_days(monkeypatch: pytest.MonkeyPatch, local_morning: datetime) -> None:
	crop = make_crop()
	monkeypatch.setattr(CropService, "get_crop", AsyncMock(return_value=crop))

	read = await RecommendationService(FakeAsyncSession()).forecast(
		TEST_USER,
		crop.id,
		ForecastRequest(days=[CLEAR]),
		now=local_morning,
	)

	assert len(read.items) == 7
	assert read.items[0].day == local_morning.date()


# ── Notifications ───────────────────────────────────────────────────────────


def _notification_service(session: FakeAsyncSession, redis: FakeRedis | None = None) -> tuple[NotificationService, RecordingDispatcher]:
	dispatcher = RecordingDispatcher()
	return NotificationService(session, dispatcher, DailyActionGuard(session, redis)), dispatcher


@pytest.mark.asyncio
async def test_weather_alert_sent_once_per_day(fake_redis: FakeRedis, local_morning: datetime) -> None:
	session = FakeAsyncSession()
	session.execute.return_value = scalars_result([])
	service, dispatcher = _notification_service(session, fake_redis)
	weather = CLEAR.model_copy(update={"rain_forecast": True})

	first = await service.check_and_send_weather_alert(TEST_USER, weather, "Cotonou", now=local_morning)
	second = await service.check_and_send_weather_alert(TEST_USER, weather, "Cotonou", now=local_morning.replace(hour=15))

	assert first.dispatched is True
	assert first.alert is not None and "Cotonou" in first.alert.message
	assert second.dispatched is False
	assert second.suppressed_reason == "already_alerted_today"
	assert len(dispatcher.sent) == 1
	assert isinstance(session.added[0], NotificationEvent)
	assert session.added[0].discriminator == "weather-alert"


@pytest.mark.asyncio
async def test_weather_alert_suppressed_by_logged_alert(local_morning: datetime) -> None:
	session = FakeAsyncSession()
	logged = SimpleNamespace(
		kind=NotificationKindEnum.weather_alert,
		discriminator="weather-alert",
		sent_at=local_morning.replace(hour=7),
	)
	session.execute.side_effect = _results([], [logged])
	service, dispatcher = _notification_service(session)

	outcome = await service.check_and_send_weather_alert(
		TEST_USER,
		CLEAR.model_copy(update={"wind_speed": 40.0}),
		"Parakou",
		now=local_morning,
	)

	assert outcome.suppressed_reason == "already_alerted_today"
	assert dispatcher.sent == []


@pytest.mark.asyncio
async def test_weather_alert_respects_preferences(local_morning: datetime) -> None:
	session = FakeAsyncSession()
	session.execute.return_value = scalars_result(
		[SimpleNamespace(daily=True, weather=False, irrigation=True)]
	)
	service, dispatcher = _notification_service(session)

	outcome = await service.check_and_send_weather_alert(
		TEST_USER,
		CLEAR.model_copy(update={"raining": True}),
		"Cotonou",
		now=local_morning,
	)

	assert outcome.suppressed_reason == "weather_notifications_disabled"
	assert dispatcher.sent == []


@pytest.mark.asyncio
async def test_no_alert_for_calm_weather(local_morning: datetime) -> None:
	session = FakeAsyncSession()
	session.execute.return_value = scalars_result([])
	service, dispatcher = _notification_service(session)

	outcome = await service.check_and_send_weather_alert(TEST_USER, CLEAR, "Cotonou", now=local_morning)

	assert outcome.alert is None
	assert outcome.dispatched is False
	assert dispatcher.sent == []


@pytest.mark.asyncio
async def test_plan_daily_schedules_advice_and_two_reminders(local_morning: datetime) -> None:
	session = FakeAsyncSession()
	session.execute.side_effect = _results([], [], [], [])
	service, dispatcher = _notification_service(session)
	crop = make_crop(planting_date=local_morning.date() - timedelta(days=30))
	recommendation = RecommendationService.build(crop, CLEAR, local_morning)

	outcome = await service.plan_daily(TEST_USER, "tomato", recommendation, now=local_morning)

	kinds = [item.kind for item in outcome.scheduled]
	assert kinds == [
		NotificationKindEnum.daily_recommendation,
		NotificationKindEnum.irrigation_reminder,
		NotificationKindEnum.irrigation_reminder,
	]
	# 08:00 slot already passed at 09:00
	assert outcome.scheduled[0].deliver_at == local_morning
	assert outcome.scheduled[1].deliver_at == local_morning + timedelta(minutes=60)
	assert outcome.scheduled[2].deliver_at == local_morning + timedelta(minutes=360)
	assert outcome.suppressed == []
	assert len(dispatcher.sent) == 3
	assert len(session.added) == 3


@pytest.mark.asyncio
async def test_plan_daily_before_the_slot_waits_for_it() -> None:
	early = datetime(2026, 3, 1, 6, 15, tzinfo=TEST_TZ)
	session = FakeAsyncSession()
	session.execute.side_effect = _results([], [], [], [])
	service, _ = _notification_service(session)
	recommendation = RecommendationService.build(make_crop(), CLEAR, early)

	outcome = await service.plan_daily(TEST_USER, "tomato", recommendation, now=early)

	assert outcome.scheduled[0].deliver_at == early.replace(hour=8, minute=0)


@pytest.mark.asyncio
async def test_plan_daily_skips_reminders_once_irrigated(local_morning: datetime) -> None:
	session = FakeAsyncSession()
	watered = _irrigation(CropNameEnum.tomato, local_morning.replace(hour=7))
	session.execute.side_effect = _results([], [], [watered])
	service, dispatcher = _notification_service(session)
	recommendation = RecommendationService.build(make_crop(), CLEAR, local_morning)

	outcome = await service.plan_daily(TEST_USER, "tomato", recommendation, now=local_morning)

	assert [item.kind for item in outcome.scheduled] == [NotificationKindEnum.daily_recommendation]
	assert outcome.suppressed == ["irrigated_today"]
	assert len(dispatcher.sent) == 1


@pytest.mark.asyncio
async def test_plan_daily_is_idempotent_within_a_day(fake_redis: FakeRedis, local_morning: datetime) -> None:
	session = FakeAsyncSession()
	session.execute.return_value = scalars_result([])
	service, dispatcher = _notification_service(session, fake_redis)
	recommendation = RecommendationService.build(make_crop(), CLEAR, local_morning)

	await service.plan_daily(TEST_USER, "tomato", recommendation, now=local_morning)
	again = await service.plan_daily(TEST_USER, "tomato", recommendation, now=local_morning.replace(hour=13))

	assert again.scheduled == []
	assert again.suppressed == ["daily_already_scheduled", "reminders_already_scheduled"]
	assert len(dispatcher.sent) == 3


@pytest.mark.asyncio
async def test_update_preferences_creates_row() -> None:
	session = FakeAsyncSession()
	session.execute.return_value = scalars_result([])
	service, _ = _notification_service(session)

	result = await service.update_preferences(TEST_USER, NotificationSettings(daily=False))

	assert result.daily is False
	row = session.added[0]
	assert isinstance(row, NotificationPreference)
	assert row.user_id == TEST_USER
	assert row.daily is False and row.weather is True


@pytest.mark.asyncio
async def test_redis_dispatcher_publishes_on_user_channel(fake_redis: FakeRedis, local_morning: datetime) -> None:
	dispatcher = RedisNotificationDispatcher(fake_redis)
	await dispatcher.dispatch(
		Notification(
			user_id=TEST_USER,
			kind=NotificationKindEnum.weather_alert,
			title="Weather alert",
			body="Strong wind (40 km/h). Protect fragile crops.",
			deliver_at=local_morning,
			discriminator="weather-alert",
		)
	)

	channel, payload = fake_redis.publish.await_args.args
	assert channel == f"user:{TEST_USER}:notifications"
	assert '"kind": "weather_alert"' in payload
	assert '"event_type": "schedule"' in payload


@pytest.mark.asyncio
async def test_redis_dispatcher_publishes_reminder_cancel(fake_redis: FakeRedis, local_morning: datetime) -> None:
	dispatcher = RedisNotificationDispatcher(fake_redis)
	await dispatcher.cancel(
		NotificationCancel(
			user_id=TEST_USER,
			kind=NotificationKindEnum.irrigation_reminder,
			discriminator="tomato",
			day=local_morning.date(),
		)
	)

	channel, payload = fake_redis.publish.await_args.args
	assert channel == f"user:{TEST_USER}:notifications"
	assert '"event_type": "cancel"' in payload
	assert '"discriminator": "tomato"' in payload
	assert '"day": "2026-03-01"' in payload


@pytest.mark.asyncio
async def test_failed_alert_send_can_be_retried(fake_redis: FakeRedis, local_morning: datetime) -> None:
	session = FakeAsyncSession()
	session.execute.return_value = scalars_result([])
	dispatcher = RecordingDispatcher(failures=1)
	service = NotificationService(session, dispatcher, DailyActionGuard(session, fake_redis))
	weather = CLEAR.model_copy(update={"raining": True})

	with pytest.raises(ConnectionError):
		await service.check_and_send_weather_alert(TEST_USER, weather, "Cotonou", now=local_morning)
	assert f"daily:{TEST_USER}:weather_alert:weather-alert:2026-03-01" not in fake_redis.store
	assert session.added == []

	retry = await service.check_and_send_weather_alert(TEST_USER, weather, "Cotonou", now=local_morning)
	assert retry.dispatched is True
	assert len(dispatcher.sent) == 1


@pytest.mark.asyncio
async def test_failed_reminder_send_can_be_retried(fake_redis: FakeRedis, local_morning: datetime) -> None:
	session = FakeAsyncSession()
	session.execute.return_value = scalars_result([])
	dispatcher = RecordingDispatcher(failures=1)
	service = NotificationService(session, dispatcher, DailyActionGuard(session, fake_redis))
	outcome = DailyPlanOutcome()

	with pytest.raises(ConnectionError):
		await service.schedule_irrigation_reminders(TEST_USER, "tomato", local_morning, outcome)
	assert f"daily:{TEST_USER}:irrigation_reminder:tomato:2026-03-01" not in fake_redis.store
	assert outcome.scheduled == []
	session.rollback.assert_awaited()

	await service.schedule_irrigation_reminders(TEST_USER, "tomato", local_morning, outcome)
	assert [item.kind for item in outcome.scheduled] == [NotificationKindEnum.irrigation_reminder] * 2
	assert len(dispatcher.sent) == 2
