"""Embedded records owned by the user aggregate.

Everything here is a pydantic model. Field names are snake_case in Python
and camelCase on the wire and in the stored document.
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, ClassVar, Optional, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..utils import as_utc, generate_id, utc_now

MIN_CYCLE_LENGTH = 15
MAX_CYCLE_LENGTH = 60
MIN_PERIOD_LENGTH = 1
MAX_PERIOD_LENGTH = 15

DEFAULT_CYCLE_LENGTH = 28
DEFAULT_PERIOD_LENGTH = 4

UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]
CycleLength = Annotated[int, Field(ge=MIN_CYCLE_LENGTH, le=MAX_CYCLE_LENGTH)]
PeriodLength = Annotated[int, Field(ge=MIN_PERIOD_LENGTH, le=MAX_PERIOD_LENGTH)]
Confidence = Annotated[float, Field(ge=0, le=100)]


class DomainModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        str_strip_whitespace=True,
    )


class PartialUpdate(DomainModel):
    """Input structure for partial updates; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    # fields where an explicit null clears the stored value
    clearable: ClassVar[Tuple[str, ...]] = ()

    def provided(self) -> dict:
        data = self.model_dump(exclude_unset=True)
        return {name: value for name, value in data.items() if value is not None or name in self.clearable}


class Flow(str, Enum):
    NONE = "none"
    SPOTTING = "spotting"
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class Cycle(DomainModel):
    id: str = Field(default_factory=generate_id)
    start_date: UtcDatetime
    end_date: UtcDatetime
    cycle_length: CycleLength
    period_length: PeriodLength
    predicted: bool = False
    confidence: Confidence = 100
    is_deleted: bool = False
    created_at: UtcDatetime = Field(default_factory=utc_now)
    updated_at: UtcDatetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "Cycle":
        if self.end_date < self.start_date:
            raise ValueError("endDate cannot be before startDate")
        return self


class CycleCreate(PartialUpdate):
    start_date: UtcDatetime
    end_date: UtcDatetime
    cycle_length: CycleLength
    period_length: PeriodLength
    predicted: bool = False
    confidence: Confidence = 100


class CycleUpdate(PartialUpdate):
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    cycle_length: Optional[CycleLength] = None
    period_length: Optional[PeriodLength] = None
    predicted: Optional[bool] = None
    confidence: Optional[Confidence] = None


class DailyEntry(DomainModel):
    id: str = Field(default_factory=generate_id)
    date: UtcDatetime
    flow: Flow
    # Reference only: the cycle may be soft-deleted or missing
    cycle_id: Optional[str] = None
    is_deleted: bool = False
    created_at: UtcDatetime = Field(default_factory=utc_now)
    updated_at: UtcDatetime = Field(default_factory=utc_now)


class DailyEntryCreate(PartialUpdate):
    date: UtcDatetime
    flow: Flow
    cycle_id: Optional[str] = None


class DailyEntryUpdate(PartialUpdate):
    clearable: ClassVar[Tuple[str, ...]] = ("cycle_id",)

    date: Optional[UtcDatetime] = None
    flow: Optional[Flow] = None
    cycle_id: Optional[str] = None


class Stats(DomainModel):
    model_config = ConfigDict(frozen=True)

    total_cycles: int = 0
    avg_cycle_length: float = float(DEFAULT_CYCLE_LENGTH)
    avg_period_length: float = float(DEFAULT_PERIOD_LENGTH)
    min_cycle_length: int = DEFAULT_CYCLE_LENGTH
    max_cycle_length: int = DEFAULT_CYCLE_LENGTH
    first_cycle_date: Optional[UtcDatetime] = None
    last_cycle_date: Optional[UtcDatetime] = None


class NextPeriod(DomainModel):
    start: Optional[UtcDatetime] = None
    end: Optional[UtcDatetime] = None
    confidence: Optional[float] = None


class PredictionModel(DomainModel):
    type: str = "linear_regression"
    r2_score: Optional[float] = None
    mae: Optional[float] = None
    accuracy: Optional[float] = None
    last_trained: Optional[UtcDatetime] = None
    data_points: int = 0


class Predictions(DomainModel):
    next_period: NextPeriod = Field(default_factory=NextPeriod)
    model: PredictionModel = Field(default_factory=PredictionModel)


class PredictionModelUpdate(PartialUpdate):
    type: Optional[str] = None
    r2_score: Optional[float] = None
    mae: Optional[float] = None
    accuracy: Optional[float] = None
    data_points: Optional[int] = None


class PredictionsUpdate(PartialUpdate):
    next_period: Optional[NextPeriod] = None
    model: Optional[PredictionModelUpdate] = None


class AppMetadata(DomainModel):
    last_sync: UtcDatetime = Field(default_factory=utc_now)
    setup_completed: bool = False
    onboarding_completed: bool = False


class AppMetadataUpdate(PartialUpdate):
    setup_completed: Optional[bool] = None
    onboarding_completed: Optional[bool] = None
