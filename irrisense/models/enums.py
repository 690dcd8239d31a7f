"""Domain enum types shared by the engine, ORM models and schemas.

Each StrEnum that types a database column maps 1:1 to a PostgreSQL
CREATE TYPE ... AS ENUM.  These are separate from the StrEnum in
irrisense/config.py; config enums validate settings, these type the domain.
"""

from enum import StrEnum

# ── Crop & soil reference enums ─────────────────────────────────────────────


class CropNameEnum(StrEnum):
    """Crops with seeded coefficient data."""

    tomato = "tomato"
    lettuce = "lettuce"
    maize = "maize"
    onion = "onion"
    chili_pepper = "chili_pepper"
    eggplant = "eggplant"
    carrot = "carrot"
    bean = "bean"


class SoilClassEnum(StrEnum):
    """Soil texture classes with a retention / interval profile."""

    sandy = "sandy"
    clay = "clay"
    loamy = "loamy"
    ferruginous = "ferruginous"
    alluvial = "alluvial"


# ── Engine enums (never persisted) ──────────────────────────────────────────


class GrowthStageEnum(StrEnum):
    """Coarse phenological bucket derived from days since planting."""

    initial = "initial"
    development = "development"
    flowering = "flowering"
    late = "late"


class MomentEnum(StrEnum):
    """Half of the day a recommendation is evaluated in."""

    morning = "morning"
    evening = "evening"


class AlertKindEnum(StrEnum):
    """Weather alert categories, in evaluation order."""

    rain = "rain"
    heat = "heat"
    humidity = "humidity"
    wind = "wind"


# ── Event log enums ─────────────────────────────────────────────────────────


class NotificationKindEnum(StrEnum):
    """Kinds of user notification gated by the daily dedup guard."""

    daily_recommendation = "daily_recommendation"
    irrigation_reminder = "irrigation_reminder"
    weather_alert = "weather_alert"
