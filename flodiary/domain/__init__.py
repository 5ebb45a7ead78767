from .records import (
    AppMetadata,
    AppMetadataUpdate,
    Cycle,
    CycleCreate,
    CycleUpdate,
    DailyEntry,
    DailyEntryCreate,
    DailyEntryUpdate,
    Flow,
    NextPeriod,
    PredictionModel,
    PredictionModelUpdate,
    Predictions,
    PredictionsUpdate,
    Stats,
)
from .stats import calculate_stats
from .user import ProfileUpdate, User

__all__ = [
    "AppMetadata",
    "AppMetadataUpdate",
    "Cycle",
    "CycleCreate",
    "CycleUpdate",
    "DailyEntry",
    "DailyEntryCreate",
    "DailyEntryUpdate",
    "Flow",
    "NextPeriod",
    "PredictionModel",
    "PredictionModelUpdate",
    "Predictions",
    "PredictionsUpdate",
    "ProfileUpdate",
    "Stats",
    "User",
    "calculate_stats",
]
