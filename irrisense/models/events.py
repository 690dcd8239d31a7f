"""Append-only action logs queried by the once-per-day guard.

Both logs carry a composite index on (user_id, timestamp): the guard always
runs a day-bounded range query for one user, then filters the handful of
rows in memory by crop / discriminator.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from irrisense.models.base import Base, EventLogMixin, TimestampMixin
from irrisense.models.enums import CropNameEnum, NotificationKindEnum


class IrrigationEvent(Base, EventLogMixin):
    """A watering the user reported for one crop."""

    __tablename__ = "irrigation_events"
    __table_args__ = (
        Index("ix_irrigation_events_user_ts", "user_id", "timestamp"),
    )

    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    crop_name: Mapped[CropNameEnum] = mapped_column(
        Enum(
            CropNameEnum,
            name="crop_name",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    volume_l_m2: Mapped[float] = mapped_column(Float, nullable=False)
    total_volume_l: Mapped[float] = mapped_column(Float, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return (
            f"<IrrigationEvent id={self.id} user={self.user_id!r} "
            f"crop={self.crop_name} ts={self.timestamp}>"
        )


class NotificationEvent(Base, EventLogMixin):
    """A notification handed to the dispatcher (weather alert, reminder...)."""

    __tablename__ = "notification_events"
    __table_args__ = (
        Index("ix_notification_events_user_ts", "user_id", "sent_at"),
    )

    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    kind: Mapped[NotificationKindEnum] = mapped_column(
        Enum(
            NotificationKindEnum,
            name="notification_kind",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    # crop name, or "weather-alert" for user-wide alerts
    discriminator: Mapped[str] = mapped_column(String(64), nullable=False)
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    message: Mapped[str] = mapped_column(String(1024), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<NotificationEvent id={self.id} user={self.user_id!r} "
            f"kind={self.kind} discriminator={self.discriminator!r}>"
        )


class NotificationPreference(Base, TimestampMixin):
    """Per-user opt-in flags; a missing row means everything is enabled."""

    __tablename__ = "notification_preferences"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    daily: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    weather: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    irrigation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return (
            f"<NotificationPreference user={self.user_id!r} daily={self.daily} "
            f"weather={self.weather} irrigation={self.irrigation}>"
        )


class RecommendationFeedback(Base, EventLogMixin):
    """A farmer's verdict on one day's advice for a crop; append-only."""

    __tablename__ = "recommendation_feedback"
    __table_args__ = (
        Index("ix_recommendation_feedback_user_day", "user_id", "day"),
    )

    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    crop_name: Mapped[CropNameEnum] = mapped_column(
        Enum(
            CropNameEnum,
            name="crop_name",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    day: Mapped[date] = mapped_column(Date, nullable=False)
    volume_l_m2: Mapped[float] = mapped_column(Float, nullable=False)
    is_good: Mapped[bool] = mapped_column(Boolean, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<RecommendationFeedback id={self.id} user={self.user_id!r} "
            f"crop={self.crop_name} day={self.day} good={self.is_good}>"
        )
