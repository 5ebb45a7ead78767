from datetime import datetime, timezone

from flodiary.domain.records import Cycle, Stats
from flodiary.domain.stats import calculate_stats


def make_cycle(day: int, cycle_length: int = 28, period_length: int = 5, deleted: bool = False, month: int = 1) -> Cycle:
    start = datetime(2025, month, day, tzinfo=timezone.utc)
    return Cycle(
        start_date=start,
        end_date=start.replace(day=day + period_length - 1),
        cycle_length=cycle_length,
        period_length=period_length,
        is_deleted=deleted,
    )


def test_no_cycles_gives_defaults():
    stats = calculate_stats([])
    assert stats == Stats()
    assert stats.total_cycles == 0
    assert stats.avg_cycle_length == 28.0
    assert stats.avg_period_length == 4.0
    assert stats.min_cycle_length == 28
    assert stats.max_cycle_length == 28
    assert stats.first_cycle_date is None
    assert stats.last_cycle_date is None


def test_single_cycle():
    cycle = make_cycle(1)
    stats = calculate_stats([cycle])
    assert stats.total_cycles == 1
    assert stats.avg_cycle_length == 28.0
    assert stats.avg_period_length == 5.0
    assert stats.min_cycle_length == stats.max_cycle_length == 28
    assert stats.first_cycle_date == cycle.start_date
    assert stats.last_cycle_date == cycle.start_date


def test_two_cycles_average_and_range():
    first = make_cycle(1, cycle_length=28)
    second = make_cycle(2, cycle_length=30, month=2)
    stats = calculate_stats([first, second])
    assert stats.total_cycles == 2
    assert stats.avg_cycle_length == 29.0
    assert stats.min_cycle_length == 28
    assert stats.max_cycle_length == 30
    assert stats.first_cycle_date == first.start_date
    assert stats.last_cycle_date == second.start_date


def test_deleted_cycles_are_ignored():
    stats = calculate_stats([make_cycle(1, cycle_length=28), make_cycle(2, cycle_length=40, deleted=True, month=2)])
    assert stats.total_cycles == 1
    assert stats.max_cycle_length == 28


def test_only_deleted_cycles_gives_defaults():
    assert calculate_stats([make_cycle(1, deleted=True)]) == Stats()


def test_means_round_half_up_to_one_decimal():
    cycles = [
        make_cycle(1, cycle_length=28, period_length=5),
        make_cycle(1, cycle_length=29, period_length=4, month=2),
        make_cycle(1, cycle_length=28, period_length=4, month=3),
        make_cycle(1, cycle_length=28, period_length=4, month=4),
    ]
    stats = calculate_stats(cycles)
    # 113 / 4 = 28.25
    assert stats.avg_cycle_length == 28.3
    # 17 / 4 = 4.25
    assert stats.avg_period_length == 4.3


def test_repeating_mean_rounds_to_one_decimal():
    cycles = [
        make_cycle(1, cycle_length=28),
        make_cycle(1, cycle_length=28, month=2),
        make_cycle(1, cycle_length=29, month=3),
    ]
    assert calculate_stats(cycles).avg_cycle_length == 28.3
