"""Tests for daily_affirmations.core.preferences — the preference model."""

import pytest

from daily_affirmations.core.preferences import (
    PreferenceService,
    effective_times,
    normalize_times,
)
from daily_affirmations.data.models import (
    MAX_DAILY_NOTIFICATIONS,
    Frequency,
    NotificationPreference,
    TimeOfDay,
)


# ---------------------------------------------------------------------------
# normalize_times
# ---------------------------------------------------------------------------


class TestNormalizeTimes:
    def test_sorts_and_deduplicates(self):
        result = normalize_times(["21:00", "08:00", "12:30", "08:00"], enabled=True)
        assert result == [TimeOfDay(8, 0), TimeOfDay(12, 30), TimeOfDay(21, 0)]

    def test_accepts_mixed_inputs(self):
        result = normalize_times([TimeOfDay(9, 0), "09:00", "7:45"], enabled=True)
        assert result == [TimeOfDay(7, 45), TimeOfDay(9, 0)]

    def test_caps_at_max(self):
        raw = [f"{h:02d}:00" for h in range(6, 14)]
        result = normalize_times(raw, enabled=True)
        assert len(result) == MAX_DAILY_NOTIFICATIONS
        assert result == [TimeOfDay(h, 0) for h in range(6, 11)]

    def test_cap_applies_after_dedup(self):
        raw = ["06:00", "06:00", "07:00", "08:00", "09:00", "10:00"]
        assert len(normalize_times(raw, enabled=True)) == 5

    def test_empty_enabled_falls_back_to_legacy(self):
        assert normalize_times([], True, TimeOfDay(6, 15)) == [TimeOfDay(6, 15)]

    def test_empty_enabled_without_legacy_uses_eight(self):
        assert normalize_times([], True, None) == [TimeOfDay(8, 0)]

    def test_empty_disabled_stays_empty(self):
        assert normalize_times([], False, TimeOfDay(6, 15)) == []

    def test_malformed_time_raises(self):
        with pytest.raises(ValueError):
            normalize_times(["noon"], enabled=True)


class TestEffectiveTimes:
    def test_disabled_has_no_times(self):
        pref = NotificationPreference(enabled=False, times=[TimeOfDay(9, 0)])
        assert effective_times(pref) == []

    def test_enabled_with_no_times_uses_legacy(self):
        pref = NotificationPreference(times=[], legacy_time=TimeOfDay(7, 15))
        assert effective_times(pref) == [TimeOfDay(7, 15)]


# ---------------------------------------------------------------------------
# PreferenceService
# ---------------------------------------------------------------------------


class TestPreferenceServiceLoad:
    def test_first_load_creates_default(self, preference_db):
        service = PreferenceService(preference_db)
        pref = service.load()
        assert pref.enabled is True
        assert pref.frequency is Frequency.DAILY
        assert pref.times == [TimeOfDay(8, 0)]
        assert preference_db.load() is not None

    def test_load_returns_existing(self, preference_db):
        service = PreferenceService(preference_db)
        service.update(True, "weekly", ["10:00"])
        assert service.load().frequency is Frequency.WEEKLY


class TestPreferenceServiceUpdate:
    def test_update_persists_normalized_times(self, preference_db):
        service = PreferenceService(preference_db)
        service.update(True, Frequency.WEEKDAYS, ["18:00", "07:00", "18:00"])
        pref = preference_db.load()
        assert pref.frequency is Frequency.WEEKDAYS
        assert pref.times == [TimeOfDay(7, 0), TimeOfDay(18, 0)]

    def test_update_empty_times_falls_back_to_legacy(self, preference_db):
        service = PreferenceService(preference_db)
        service.load()  # default carries legacy 08:00
        pref = service.update(True, "daily", [])
        assert pref.times == [TimeOfDay(8, 0)]

    def test_update_empty_times_without_legacy_uses_default(self, preference_db):
        preference_db.save(NotificationPreference(times=[TimeOfDay(9, 0)], legacy_time=None))
        service = PreferenceService(preference_db)
        pref = service.update(True, "daily", [])
        assert pref.times == [TimeOfDay(8, 0)]

    def test_update_disabled_keeps_empty_times(self, preference_db):
        service = PreferenceService(preference_db)
        pref = service.update(False, "daily", [])
        assert pref.enabled is False
        assert preference_db.load().times == []

    def test_update_caps_times(self, preference_db):
        service = PreferenceService(preference_db)
        service.update(True, "daily", [f"{h:02d}:00" for h in range(7, 15)])
        assert len(preference_db.load().times) == MAX_DAILY_NOTIFICATIONS

    def test_update_unknown_frequency_raises(self, preference_db):
        service = PreferenceService(preference_db)
        with pytest.raises(ValueError, match="Unknown frequency"):
            service.update(True, "hourly", ["08:00"])
        assert preference_db.load() is None

    def test_update_keeps_legacy_time(self, preference_db):
        preference_db.save(NotificationPreference(times=[], legacy_time=TimeOfDay(6, 0)))
        service = PreferenceService(preference_db)
        pref = service.update(True, "daily", ["09:00"])
        assert pref.legacy_time == TimeOfDay(6, 0)
