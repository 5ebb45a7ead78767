"""The user aggregate.

One ``User`` is one stored document: the profile plus every cycle and
daily entry the user has ever recorded. Children are never removed, only
flagged with ``is_deleted``, so positions in ``cycles``/``daily_entries``
are stable and the id -> position indexes below never need rebuilding
after construction.
"""
import functools
from datetime import date, datetime, time, timezone
from operator import attrgetter
from typing import Annotated, Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, Field, PrivateAttr, StringConstraints, ValidationError, computed_field

from ..exceptions import NotFound, validation_failed_from
from ..utils import as_utc, generate_id, utc_now
from .records import (
    AppMetadata,
    AppMetadataUpdate,
    Cycle,
    CycleCreate,
    CycleUpdate,
    DailyEntry,
    DailyEntryCreate,
    DailyEntryUpdate,
    DomainModel,
    PartialUpdate,
    Predictions,
    PredictionsUpdate,
    Stats,
    UtcDatetime,
)
from .stats import calculate_stats

NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
UsernameStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, to_lower=True, min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_]+$"),
]
EmailStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, to_lower=True, max_length=254, pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$"),
]

M = TypeVar("M", bound=BaseModel)
DateBound = Union[datetime, date, None]


def _validated(model: Type[M], data: Any) -> M:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise validation_failed_from(exc) from exc


def _range_bound(value: DateBound, end: bool = False) -> Optional[datetime]:
    # A bare date covers the whole day, so an end bound of 2025-01-05
    # includes entries logged during the 5th.
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    return datetime.combine(value, time.max if end else time.min, tzinfo=timezone.utc)


def cycle_mutation(method):
    """Mark an aggregate method as changing cycle data.

    The post-mutation hook runs after the method returns, so stats can
    never go stale when a new cycle operation is added.
    """
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        result = method(self, *args, **kwargs)
        self._after_cycles_changed()
        return result
    return wrapper


class ProfileUpdate(PartialUpdate):
    first_name: Optional[NameStr] = None
    last_name: Optional[NameStr] = None
    username: Optional[UsernameStr] = None
    email: Optional[EmailStr] = None


class User(DomainModel):
    id: str = Field(default_factory=generate_id)
    first_name: NameStr
    last_name: NameStr
    username: UsernameStr
    email: EmailStr
    password_hash: str = Field(default="", exclude=True, repr=False)
    is_active: bool = True
    last_login_at: Optional[UtcDatetime] = None
    created_at: UtcDatetime = Field(default_factory=utc_now)
    updated_at: UtcDatetime = Field(default_factory=utc_now)

    cycles: List[Cycle] = Field(default_factory=list)
    daily_entries: List[DailyEntry] = Field(default_factory=list)
    stats: Stats = Field(default_factory=Stats)
    predictions: Predictions = Field(default_factory=Predictions)
    app_metadata: AppMetadata = Field(default_factory=AppMetadata)

    _cycle_index: Dict[str, int] = PrivateAttr(default_factory=dict)
    _entry_index: Dict[str, int] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        self._cycle_index = {cycle.id: i for i, cycle in enumerate(self.cycles)}
        self._entry_index = {entry.id: i for i, entry in enumerate(self.daily_entries)}

    @computed_field(alias="fullName")
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    # ---- documents -------------------------------------------------------

    @classmethod
    def from_document(cls, document: Mapping[str, Any], password_hash: str = "") -> "User":
        return cls.model_validate({**document, "password_hash": password_hash})

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready camelCase representation. ``password_hash`` is never included."""
        return self.model_dump(mode="json", by_alias=True)

    def check_invariants(self) -> None:
        """Re-validate the whole document, including children edited in place."""
        _validated(type(self), {**self.model_dump(), "password_hash": self.password_hash})

    # ---- profile ---------------------------------------------------------

    def update_profile(self, changes: Union[ProfileUpdate, Mapping[str, Any]]) -> None:
        for name, value in _validated(ProfileUpdate, changes).provided().items():
            setattr(self, name, value)

    def set_password_hash(self, password_hash: str) -> None:
        self.password_hash = password_hash

    def mark_logged_in(self) -> None:
        self.last_login_at = utc_now()

    # ---- cycles ----------------------------------------------------------

    def _cycle_position(self, cycle_id: str) -> int:
        try:
            return self._cycle_index[cycle_id]
        except KeyError:
            raise NotFound("Cycle") from None

    def _after_cycles_changed(self) -> None:
        self.update_stats()

    @cycle_mutation
    def add_cycle(self, data: Union[CycleCreate, Mapping[str, Any]]) -> Cycle:
        payload = _validated(CycleCreate, data)
        now = utc_now()
        cycle = _validated(Cycle, {**payload.model_dump(), "created_at": now, "updated_at": now})
        self._cycle_index[cycle.id] = len(self.cycles)
        self.cycles.append(cycle)
        return cycle

    @cycle_mutation
    def update_cycle(self, cycle_id: str, changes: Union[CycleUpdate, Mapping[str, Any]]) -> Cycle:
        position = self._cycle_position(cycle_id)
        patch = _validated(CycleUpdate, changes).provided()
        current = self.cycles[position]
        updated = _validated(Cycle, {**current.model_dump(), **patch, "updated_at": utc_now()})
        self.cycles[position] = updated
        return updated

    @cycle_mutation
    def delete_cycle(self, cycle_id: str) -> Cycle:
        cycle = self.cycles[self._cycle_position(cycle_id)]
        cycle.is_deleted = True
        cycle.updated_at = utc_now()
        return cycle

    def get_cycle(self, cycle_id: str) -> Cycle:
        return self.cycles[self._cycle_position(cycle_id)]

    def get_cycles(self, include_deleted: bool = False) -> List[Cycle]:
        cycles = self.cycles if include_deleted else [c for c in self.cycles if not c.is_deleted]
        # sorted() stays stable with reverse=True, ties keep insertion order
        return sorted(cycles, key=attrgetter("start_date"), reverse=True)

    def active_cycles(self) -> List[Cycle]:
        return [c for c in self.cycles if not c.is_deleted]

    # ---- daily entries ---------------------------------------------------

    def _entry_position(self, entry_id: str) -> int:
        try:
            return self._entry_index[entry_id]
        except KeyError:
            raise NotFound("Daily entry") from None

    def add_daily_entry(self, data: Union[DailyEntryCreate, Mapping[str, Any]]) -> DailyEntry:
        payload = _validated(DailyEntryCreate, data)
        now = utc_now()
        entry = _validated(DailyEntry, {**payload.model_dump(), "created_at": now, "updated_at": now})
        self._entry_index[entry.id] = len(self.daily_entries)
        self.daily_entries.append(entry)
        return entry

    def update_daily_entry(self, entry_id: str, changes: Union[DailyEntryUpdate, Mapping[str, Any]]) -> DailyEntry:
        position = self._entry_position(entry_id)
        patch = _validated(DailyEntryUpdate, changes).provided()
        current = self.daily_entries[position]
        updated = _validated(DailyEntry, {**current.model_dump(), **patch, "updated_at": utc_now()})
        self.daily_entries[position] = updated
        return updated

    def delete_daily_entry(self, entry_id: str) -> DailyEntry:
        entry = self.daily_entries[self._entry_position(entry_id)]
        entry.is_deleted = True
        entry.updated_at = utc_now()
        return entry

    def get_daily_entry(self, entry_id: str) -> DailyEntry:
        return self.daily_entries[self._entry_position(entry_id)]

    def get_daily_entries(self, include_deleted: bool = False, start_date: DateBound = None,
                          end_date: DateBound = None) -> List[DailyEntry]:
        start = _range_bound(start_date)
        end = _range_bound(end_date, end=True)
        entries = [
            e for e in self.daily_entries
            if (start is None or e.date >= start) and (end is None or e.date <= end)
        ]
        if not include_deleted:
            entries = [e for e in entries if not e.is_deleted]
        return sorted(entries, key=attrgetter("date"), reverse=True)

    # ---- derived and externally supplied state ---------------------------

    def update_stats(self) -> Stats:
        self.stats = calculate_stats(self.cycles)
        return self.stats

    def update_predictions(self, payload: Union[PredictionsUpdate, Mapping[str, Any]]) -> Predictions:
        update = _validated(PredictionsUpdate, payload)
        merged = self.predictions.model_dump()
        if update.next_period is not None:
            merged["next_period"] = update.next_period.model_dump()
        if update.model is not None:
            merged["model"].update(update.model.provided())
        merged["model"]["last_trained"] = utc_now()
        self.predictions = Predictions.model_validate(merged)
        return self.predictions

    def update_app_metadata(self, payload: Union[AppMetadataUpdate, Mapping[str, Any]]) -> AppMetadata:
        update = _validated(AppMetadataUpdate, payload)
        merged = {**self.app_metadata.model_dump(), **update.provided(), "last_sync": utc_now()}
        self.app_metadata = AppMetadata.model_validate(merged)
        return self.app_metadata
