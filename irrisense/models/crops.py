"""Crop ORM model: a user's configured planting.

Rows are only created, updated or deleted by explicit user actions; the
recommendation engine reads them and never mutates them.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Enum, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from irrisense.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from irrisense.models.enums import CropNameEnum, SoilClassEnum


class Crop(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A crop planted by a user: species, soil class, planting date, area."""

    __tablename__ = "crops"
    __table_args__ = (Index("ix_crops_user_id", "user_id"),)

    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[CropNameEnum] = mapped_column(
        Enum(
            CropNameEnum,
            name="crop_name",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    soil_class: Mapped[SoilClassEnum] = mapped_column(
        Enum(
            SoilClassEnum,
            name="soil_class",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    planting_date: Mapped[date] = mapped_column(Date, nullable=False)
    area_m2: Mapped[float] = mapped_column(Float, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Crop id={self.id} user={self.user_id!r} "
            f"name={self.name} soil={self.soil_class}>"
        )
