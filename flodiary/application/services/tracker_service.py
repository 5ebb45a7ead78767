import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Tuple, Union

from ...domain.records import (
    DEFAULT_CYCLE_LENGTH,
    AppMetadata,
    AppMetadataUpdate,
    Cycle,
    CycleUpdate,
    DailyEntry,
    DailyEntryCreate,
    DailyEntryUpdate,
    PredictionModelUpdate,
    Predictions,
    PredictionsUpdate,
    Stats,
)
from ...domain.user import User
from ...exceptions import NotFound
from ...utils import as_utc
from ..ports.user_repo import UserRepository

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def _days_between(start: datetime, end: datetime) -> int:
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


@dataclass
class TrackerService:
    """Cycle, daily entry and prediction use cases for one loaded user.

    Each call mutates the aggregate in memory and issues a single save.
    """
    user_repo: UserRepository

    # ---- cycles ----------------------------------------------------------

    def infer_cycle_length(self, user: User, start_date: datetime) -> int:
        """Days since the most recent earlier cycle start, 28 for a first cycle."""
        for cycle in user.get_cycles():
            if cycle.start_date < start_date:
                return _days_between(cycle.start_date, start_date)
        return DEFAULT_CYCLE_LENGTH

    async def add_cycle(self, user: User, start_date: datetime, end_date: datetime,
                        cycle_length: Optional[int] = None, period_length: Optional[int] = None,
                        predicted: bool = False, confidence: float = 100) -> Tuple[Cycle, Stats]:
        start_date, end_date = as_utc(start_date), as_utc(end_date)
        if not period_length:
            period_length = _days_between(start_date, end_date) + 1
        if not cycle_length:
            cycle_length = self.infer_cycle_length(user, start_date)

        cycle = user.add_cycle({
            "start_date": start_date,
            "end_date": end_date,
            "cycle_length": cycle_length,
            "period_length": period_length,
            "predicted": predicted,
            "confidence": confidence,
        })
        await self.user_repo.save(user)
        logger.info(f"User {user.id} added cycle {cycle.id}")
        return cycle, user.stats

    def list_cycles(self, user: User, include_deleted: bool = False) -> List[Cycle]:
        return user.get_cycles(include_deleted=include_deleted)

    def get_cycle(self, user: User, cycle_id: str) -> Cycle:
        cycle = user.get_cycle(cycle_id)
        if cycle.is_deleted:
            raise NotFound("Cycle")
        return cycle

    async def update_cycle(self, user: User, cycle_id: str, changes: Union[CycleUpdate, Mapping[str, Any]]) -> Tuple[Cycle, Stats]:
        cycle = user.update_cycle(cycle_id, changes)
        await self.user_repo.save(user)
        return cycle, user.stats

    async def delete_cycle(self, user: User, cycle_id: str) -> Tuple[Cycle, Stats]:
        cycle = user.delete_cycle(cycle_id)
        await self.user_repo.save(user)
        logger.info(f"User {user.id} deleted cycle {cycle_id}")
        return cycle, user.stats

    async def refresh_stats(self, user: User) -> Stats:
        stats = user.update_stats()
        await self.user_repo.save(user)
        return stats

    # ---- daily entries ---------------------------------------------------

    async def add_daily_entry(self, user: User, data: Union[DailyEntryCreate, Mapping[str, Any]]) -> DailyEntry:
        entry = user.add_daily_entry(data)
        await self.user_repo.save(user)
        return entry

    def list_daily_entries(self, user: User, start_date: Union[datetime, date, None] = None,
                           end_date: Union[datetime, date, None] = None,
                           include_deleted: bool = False) -> List[DailyEntry]:
        return user.get_daily_entries(include_deleted=include_deleted, start_date=start_date, end_date=end_date)

    def get_daily_entry(self, user: User, entry_id: str) -> DailyEntry:
        entry = user.get_daily_entry(entry_id)
        if entry.is_deleted:
            raise NotFound("Daily entry")
        return entry

    async def update_daily_entry(self, user: User, entry_id: str, changes: Union[DailyEntryUpdate, Mapping[str, Any]]) -> DailyEntry:
        entry = user.update_daily_entry(entry_id, changes)
        await self.user_repo.save(user)
        return entry

    async def delete_daily_entry(self, user: User, entry_id: str) -> DailyEntry:
        entry = user.delete_daily_entry(entry_id)
        await self.user_repo.save(user)
        return entry

    # ---- predictions and metadata ----------------------------------------

    async def update_predictions(self, user: User, update: PredictionsUpdate) -> Predictions:
        if update.model is not None and update.model.data_points is None:
            model = PredictionModelUpdate(**update.model.provided(), data_points=len(user.active_cycles()))
            update = PredictionsUpdate(next_period=update.next_period, model=model)
        predictions = user.update_predictions(update)
        await self.user_repo.save(user)
        return predictions

    async def update_app_metadata(self, user: User, payload: Union[AppMetadataUpdate, Mapping[str, Any]]) -> AppMetadata:
        metadata = user.update_app_metadata(payload)
        await self.user_repo.save(user)
        return metadata
