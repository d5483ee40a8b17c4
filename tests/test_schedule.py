from datetime import datetime

import pytest
from pydantic import ValidationError

from api.helpers.schedule_converter import calculate_next_run_at, get_next_run_time, schedule_to_cron
from api.schemas.automation import AutomationSchedule, AutomationSchedulePatch


class TestAutomationSchedule:
    def test_shorthand_string_expands_to_daily(self):
        schedule = AutomationSchedule.model_validate("daily")
        assert schedule.frequency.value == "daily"
        assert schedule.time_of_day == "02:00"
        assert schedule.timezone == "Australia/Sydney"

    def test_weekly_defaults_to_monday(self):
        schedule = AutomationSchedule.model_validate({"frequency": "weekly", "timeOfDay": "09:30"})
        assert schedule.day_of_week == 1
        assert schedule.to_cron() == "30 9 * * 1"
        assert schedule.human_readable() == "Every Monday at 09:30"

    def test_monthly_ignores_day_of_week(self):
        schedule = AutomationSchedule.model_validate({"frequency": "Monthly", "dayOfMonth": 31, "dayOfWeek": 3})
        assert schedule.day_of_week is None
        assert schedule.to_cron() == "0 2 31 * *"
        assert schedule.human_readable() == "Monthly on the 31st at 02:00"

    def test_single_digit_hour_is_padded(self):
        assert AutomationSchedule.model_validate({"frequency": "daily", "timeOfDay": "7:05"}).time_of_day == "07:05"

    @pytest.mark.parametrize(
        "payload",
        [
            {"frequency": "hourly"},
            {"frequency": "daily", "timeOfDay": "25:00"},
            {"frequency": "daily", "timezone": "Mars/Olympus"},
            {"frequency": "weekly", "dayOfWeek": 7},
        ],
    )
    def test_invalid_schedules_rejected(self, payload):
        with pytest.raises(ValidationError):
            AutomationSchedule.model_validate(payload)

    def test_storage_uses_camel_case(self):
        stored = AutomationSchedule.model_validate({"frequency": "weekly", "day_of_week": 5}).to_storage()
        assert stored == {"frequency": "weekly", "timeOfDay": "02:00", "timezone": "Australia/Sydney", "dayOfWeek": 5}

    def test_patch_merges_over_stored_schedule(self):
        stored = {"frequency": "daily", "timeOfDay": "02:00", "timezone": "UTC"}
        merged = AutomationSchedulePatch.model_validate({"timeOfDay": "06:15"}).merge_into(stored)
        assert merged.time_of_day == "06:15"
        assert merged.timezone == "UTC"


class TestNextRun:
    def test_daily_in_sydney_converts_to_utc(self):
        # 23:00 local on Jan 10 (AEDT, UTC+11)
        now = datetime(2026, 1, 10, 12, 0)
        schedule = {"frequency": "daily", "timeOfDay": "02:00", "timezone": "Australia/Sydney"}
        assert calculate_next_run_at(schedule, now=now) == datetime(2026, 1, 10, 15, 0)

    def test_future_previous_slot_is_the_reference(self):
        now = datetime(2026, 1, 10, 12, 0)
        previous = datetime(2026, 1, 12, 15, 0)
        schedule = {"frequency": "daily", "timeOfDay": "02:00", "timezone": "Australia/Sydney"}
        assert calculate_next_run_at(schedule, previous=previous, now=now) == datetime(2026, 1, 13, 15, 0)

    def test_past_previous_slot_does_not_pull_back(self):
        now = datetime(2026, 1, 10, 12, 0)
        schedule = {"frequency": "daily", "timeOfDay": "02:00", "timezone": "UTC"}
        result = calculate_next_run_at(schedule, previous=datetime(2025, 12, 1, 2, 0), now=now)
        assert result == datetime(2026, 1, 11, 2, 0)

    def test_result_is_strictly_after_now(self):
        now = datetime(2026, 1, 10, 2, 0)
        schedule = {"frequency": "daily", "timeOfDay": "02:00", "timezone": "UTC"}
        assert calculate_next_run_at(schedule, now=now) == datetime(2026, 1, 11, 2, 0)

    def test_weekly(self):
        # 2026-01-07 is a Wednesday
        schedule = {"frequency": "weekly", "dayOfWeek": 1, "timeOfDay": "09:30", "timezone": "UTC"}
        assert calculate_next_run_at(schedule, now=datetime(2026, 1, 7)) == datetime(2026, 1, 12, 9, 30)

    def test_monthly_skips_short_months(self):
        schedule = {"frequency": "monthly", "dayOfMonth": 31, "timeOfDay": "06:00", "timezone": "UTC"}
        assert calculate_next_run_at(schedule, now=datetime(2026, 2, 1)) == datetime(2026, 3, 31, 6, 0)

    def test_invalid_schedule_raises(self):
        with pytest.raises(ValidationError):
            calculate_next_run_at({"frequency": "yearly"})

    def test_schedule_to_cron(self):
        cron, description = schedule_to_cron({"frequency": "daily", "timeOfDay": "18:45", "timezone": "UTC"})
        assert cron == "45 18 * * *"
        assert description == "Daily at 18:45"

    def test_get_next_run_time_returns_naive_utc(self):
        result = get_next_run_time("0 9 * * *", "Europe/London", after=datetime(2026, 7, 1, 12, 0))
        # BST is UTC+1
        assert result == datetime(2026, 7, 2, 8, 0)
        assert result.tzinfo is None
