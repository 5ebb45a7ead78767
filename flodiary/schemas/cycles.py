from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from ..domain.records import NextPeriod, PredictionModelUpdate, PredictionsUpdate
from .common import ApiModel


class CycleCreateRequest(ApiModel):
    model_config = ConfigDict(extra="forbid")

    start_date: datetime = Field(..., description="First day of the period")
    end_date: datetime = Field(..., description="Last day of the period")
    cycle_length: Optional[int] = Field(None, description="Inferred from the previous cycle when omitted")
    period_length: Optional[int] = Field(None, description="Inferred from the dates when omitted")
    predicted: bool = False
    confidence: float = 100


class PredictionsRequest(ApiModel):
    """Prediction snapshot produced by the client-side model."""

    model_config = ConfigDict(extra="forbid")

    next_period: NextPeriod = Field(..., description="Next period prediction is required")
    model: Optional[PredictionModelUpdate] = None

    def to_update(self) -> PredictionsUpdate:
        return PredictionsUpdate(next_period=self.next_period, model=self.model)
