from datetime import date, datetime, timedelta, timezone

import pytest

from flodiary.domain.records import Flow
from flodiary.domain.user import User
from flodiary.exceptions import NotFound, ValidationFailed


def utc(year, month, day, hour=0):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def cycle_data(start, cycle_length=28, period_length=5):
    return {
        "start_date": start,
        "end_date": start + timedelta(days=period_length - 1),
        "cycle_length": cycle_length,
        "period_length": period_length,
    }


def test_add_cycle_refreshes_stats(user):
    cycle = user.add_cycle(cycle_data(utc(2025, 1, 1)))
    assert user.get_cycle(cycle.id) == cycle
    assert user.stats.total_cycles == 1
    assert user.stats.avg_cycle_length == 28.0
    assert user.stats.avg_period_length == 5.0

    user.add_cycle(cycle_data(utc(2025, 1, 29), cycle_length=30))
    assert user.stats.total_cycles == 2
    assert user.stats.avg_cycle_length == 29.0
    assert user.stats.min_cycle_length == 28
    assert user.stats.max_cycle_length == 30


def test_add_cycle_rejects_out_of_range_length(user):
    with pytest.raises(ValidationFailed):
        user.add_cycle(cycle_data(utc(2025, 1, 1), cycle_length=10))
    assert user.cycles == []
    assert user.stats.total_cycles == 0


def test_add_cycle_rejects_end_before_start(user):
    with pytest.raises(ValidationFailed):
        user.add_cycle({
            "start_date": utc(2025, 1, 5),
            "end_date": utc(2025, 1, 1),
            "cycle_length": 28,
            "period_length": 5,
        })
    assert user.cycles == []


def test_naive_datetimes_are_taken_as_utc(user):
    cycle = user.add_cycle(cycle_data(datetime(2025, 1, 1)))
    assert cycle.start_date == utc(2025, 1, 1)
    assert cycle.start_date.tzinfo is not None


def test_delete_cycle_is_soft_and_idempotent(user):
    first = user.add_cycle(cycle_data(utc(2025, 1, 1)))
    user.add_cycle(cycle_data(utc(2025, 1, 29), cycle_length=30))

    user.delete_cycle(first.id)
    assert user.stats.total_cycles == 1
    assert user.stats.avg_cycle_length == 30.0

    user.delete_cycle(first.id)
    assert user.stats.total_cycles == 1
    assert first.id not in [c.id for c in user.get_cycles()]
    assert first.id in [c.id for c in user.get_cycles(include_deleted=True)]
    assert user.get_cycle(first.id).is_deleted is True


def test_unknown_ids_raise_not_found(user):
    with pytest.raises(NotFound):
        user.get_cycle("missing")
    with pytest.raises(NotFound):
        user.update_cycle("missing", {"cycle_length": 30})
    with pytest.raises(NotFound):
        user.delete_cycle("missing")
    with pytest.raises(NotFound):
        user.get_daily_entry("missing")
    with pytest.raises(NotFound):
        user.delete_daily_entry("missing")


def test_update_cycle_merges_fields_and_refreshes_stats(user):
    cycle = user.add_cycle(cycle_data(utc(2025, 1, 1)))
    updated = user.update_cycle(cycle.id, {"cycle_length": 32})
    assert updated.cycle_length == 32
    assert updated.period_length == 5
    assert updated.start_date == cycle.start_date
    assert updated.updated_at >= cycle.updated_at
    assert user.get_cycle(cycle.id).cycle_length == 32
    assert user.stats.avg_cycle_length == 32.0


def test_failed_update_leaves_cycle_unchanged(user):
    cycle = user.add_cycle(cycle_data(utc(2025, 1, 1)))
    with pytest.raises(ValidationFailed):
        user.update_cycle(cycle.id, {"end_date": utc(2024, 12, 1)})
    with pytest.raises(ValidationFailed):
        user.update_cycle(cycle.id, {"period_length": 20})
    with pytest.raises(ValidationFailed):
        user.update_cycle(cycle.id, {"is_deleted": True})
    assert user.get_cycle(cycle.id) == cycle


def test_cycles_are_listed_newest_first_with_stable_ties(user):
    older = user.add_cycle(cycle_data(utc(2025, 1, 1)))
    newer = user.add_cycle(cycle_data(utc(2025, 2, 1)))
    tie_a = user.add_cycle(cycle_data(utc(2025, 3, 1)))
    tie_b = user.add_cycle(cycle_data(utc(2025, 3, 1), cycle_length=29))
    assert [c.id for c in user.get_cycles()] == [tie_a.id, tie_b.id, newer.id, older.id]


def test_update_deleted_cycle_keeps_it_out_of_stats(user):
    kept = user.add_cycle(cycle_data(utc(2025, 1, 1), cycle_length=30))
    removed = user.add_cycle(cycle_data(utc(2025, 1, 31)))
    user.delete_cycle(removed.id)

    updated = user.update_cycle(removed.id, {"cycle_length": 40})
    assert updated.cycle_length == 40
    assert updated.is_deleted is True
    assert user.stats.total_cycles == 1
    assert user.stats.avg_cycle_length == 30.0
    assert [c.id for c in user.get_cycles()] == [kept.id]


def test_daily_entries_with_equal_dates_keep_insertion_order(user):
    first = user.add_daily_entry({"date": utc(2025, 1, 3), "flow": "light"})
    second = user.add_daily_entry({"date": utc(2025, 1, 3), "flow": "heavy"})
    older = user.add_daily_entry({"date": utc(2025, 1, 1), "flow": "medium"})
    assert [e.id for e in user.get_daily_entries()] == [first.id, second.id, older.id]


def test_daily_entries_filter_by_range_and_deleted(user):
    first = user.add_daily_entry({"date": utc(2025, 1, 1), "flow": "light"})
    third = user.add_daily_entry({"date": utc(2025, 1, 3), "flow": "heavy"})
    fifth = user.add_daily_entry({"date": utc(2025, 1, 5, hour=18), "flow": Flow.MEDIUM})

    in_range = user.get_daily_entries(start_date=date(2025, 1, 2), end_date=date(2025, 1, 5))
    assert [e.id for e in in_range] == [fifth.id, third.id]

    user.delete_daily_entry(third.id)
    assert [e.id for e in user.get_daily_entries()] == [fifth.id, first.id]
    assert [e.id for e in user.get_daily_entries(include_deleted=True)] == [fifth.id, third.id, first.id]


def test_daily_entry_rejects_unknown_flow(user):
    with pytest.raises(ValidationFailed):
        user.add_daily_entry({"date": utc(2025, 1, 1), "flow": "torrential"})
    assert user.daily_entries == []


def test_daily_entry_may_reference_any_cycle_id(user):
    entry = user.add_daily_entry({"date": utc(2025, 1, 1), "flow": "spotting", "cycle_id": "not-a-cycle"})
    assert entry.cycle_id == "not-a-cycle"


def test_update_daily_entry(user):
    entry = user.add_daily_entry({"date": utc(2025, 1, 1), "flow": "light"})
    updated = user.update_daily_entry(entry.id, {"flow": "heavy"})
    assert updated.flow == Flow.HEAVY
    assert updated.date == entry.date
    assert user.get_daily_entry(entry.id).flow == Flow.HEAVY


def test_update_daily_entry_can_clear_cycle_reference(user):
    entry = user.add_daily_entry({"date": utc(2025, 1, 1), "flow": "light", "cycle_id": "cycle-1"})
    updated = user.update_daily_entry(entry.id, {"flow": "heavy"})
    assert updated.cycle_id == "cycle-1"

    cleared = user.update_daily_entry(entry.id, {"cycle_id": None})
    assert cleared.cycle_id is None
    assert cleared.flow == Flow.HEAVY

    # null for a required field still means "leave unchanged"
    unchanged = user.update_daily_entry(entry.id, {"flow": None})
    assert unchanged.flow == Flow.HEAVY


def test_update_predictions_merges_model_and_stamps_training_time(user):
    user.update_predictions({
        "next_period": {"start": utc(2025, 2, 1), "end": utc(2025, 2, 5), "confidence": 80},
        "model": {"r2_score": 0.8, "mae": 1.5},
    })
    first_trained = user.predictions.model.last_trained
    assert first_trained is not None

    predictions = user.update_predictions({"next_period": {"start": utc(2025, 3, 1)}})
    assert predictions.next_period.start == utc(2025, 3, 1)
    assert predictions.next_period.end is None
    assert predictions.model.r2_score == 0.8
    assert predictions.model.mae == 1.5
    assert predictions.model.type == "linear_regression"
    assert predictions.model.last_trained >= first_trained


def test_update_app_metadata_merges_flags(user):
    before = user.app_metadata.last_sync
    user.update_app_metadata({"setup_completed": True})
    metadata = user.update_app_metadata({"onboarding_completed": True})
    assert metadata.setup_completed is True
    assert metadata.onboarding_completed is True
    assert metadata.last_sync >= before


def test_to_dict_is_camel_case_and_omits_password_hash(user):
    user.set_password_hash("$2b$04$hash")
    document = user.to_dict()
    assert "passwordHash" not in document
    assert "password_hash" not in document
    assert document["fullName"] == "Jane Doe"
    assert document["firstName"] == "Jane"
    assert document["stats"]["totalCycles"] == 0
    assert document["appMetadata"]["setupCompleted"] is False


def test_document_round_trip_keeps_children_addressable(user):
    cycle = user.add_cycle(cycle_data(utc(2025, 1, 1)))
    entry = user.add_daily_entry({"date": utc(2025, 1, 2), "flow": "medium", "cycle_id": cycle.id})
    user.delete_daily_entry(entry.id)

    reloaded = User.from_document(user.to_dict(), password_hash="stored")
    assert reloaded.password_hash == "stored"
    assert reloaded.get_cycle(cycle.id) == cycle
    assert reloaded.get_daily_entry(entry.id).is_deleted is True
    assert reloaded.stats == user.stats

    added = reloaded.add_cycle(cycle_data(utc(2025, 1, 29)))
    assert reloaded.get_cycle(added.id) == added


def test_profile_fields_are_normalized():
    user = User(first_name="  Jane ", last_name="Doe", username="Jane_Doe", email="Jane@Example.COM")
    assert user.first_name == "Jane"
    assert user.username == "jane_doe"
    assert user.email == "jane@example.com"


def test_update_profile_validates(user):
    user.update_profile({"last_name": "Smith", "email": "SMITH@example.com"})
    assert user.last_name == "Smith"
    assert user.email == "smith@example.com"
    with pytest.raises(ValidationFailed):
        user.update_profile({"username": "no spaces allowed"})
    with pytest.raises(ValidationFailed):
        user.update_profile({"email": "not-an-email"})
    assert user.username == "jane_doe"
