"""ORM model registry — importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from irrisense.models import Crop, IrrigationEvent, ...
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from irrisense.models.base import (
    Base,
    EventLogMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

# ── User crops ──────────────────────────────────────────────────────────────
from irrisense.models.crops import Crop

# ── Enums ───────────────────────────────────────────────────────────────────
from irrisense.models.enums import (
    AlertKindEnum,
    CropNameEnum,
    GrowthStageEnum,
    MomentEnum,
    NotificationKindEnum,
    SoilClassEnum,
)

# ── Event logs ──────────────────────────────────────────────────────────────
from irrisense.models.events import (
    IrrigationEvent,
    NotificationEvent,
    NotificationPreference,
    RecommendationFeedback,
)

__all__ = [
    "AlertKindEnum",
    # Base & mixins
    "Base",
    # Crops
    "Crop",
    # Enums
    "CropNameEnum",
    "EventLogMixin",
    "GrowthStageEnum",
    # Event logs
    "IrrigationEvent",
    "MomentEnum",
    "NotificationEvent",
    "NotificationKindEnum",
    "NotificationPreference",
    "RecommendationFeedback",
    "SoilClassEnum",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
]
