from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List

from .records import DEFAULT_CYCLE_LENGTH, DEFAULT_PERIOD_LENGTH, Cycle, Stats


def calculate_stats(cycles: Iterable[Cycle]) -> Stats:
    """Derive summary statistics from the non-deleted cycles.

    Pure: the caller decides where the result is stored. Lengths that are
    missing or zero are left out of the averages instead of counting as 0.
    """
    active = [cycle for cycle in cycles if not cycle.is_deleted]
    if not active:
        return Stats()

    cycle_lengths = [c.cycle_length for c in active if c.cycle_length]
    period_lengths = [c.period_length for c in active if c.period_length]
    start_dates = [c.start_date for c in active if c.start_date]

    return Stats(
        total_cycles=len(active),
        avg_cycle_length=_rounded_mean(cycle_lengths, DEFAULT_CYCLE_LENGTH),
        avg_period_length=_rounded_mean(period_lengths, DEFAULT_PERIOD_LENGTH),
        min_cycle_length=min(cycle_lengths) if cycle_lengths else DEFAULT_CYCLE_LENGTH,
        max_cycle_length=max(cycle_lengths) if cycle_lengths else DEFAULT_CYCLE_LENGTH,
        first_cycle_date=min(start_dates) if start_dates else None,
        last_cycle_date=max(start_dates) if start_dates else None,
    )


def _rounded_mean(values: List[int], default: int) -> float:
    if not values:
        return float(default)
    mean = Decimal(sum(values)) / Decimal(len(values))
    # half-up, so 28.25 becomes 28.3 rather than banker's 28.2
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
