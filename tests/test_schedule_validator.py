"""Unit tests for schedule definition validation."""

from datetime import date, time

import pytest

from medcabinet.errors import ScheduleValidationError
from medcabinet.schemas.rules import (
    CountTargetEnd,
    ExplicitTimesRule,
    IntervalRule,
    ManualEnd,
    Weekday,
    WeekdaysRule,
    WindowRule,
)
from medcabinet.schemas.schedule import ScheduleDefinition
from medcabinet.services.schedule_validator import ScheduleValidator


def test_empty_weekdays_is_an_error():
    result = ScheduleValidator.validate_day_rule(WeekdaysRule(weekdays=[]))

    assert result["valid"] is False
    assert result["errors"][0]["code"] == "empty_weekdays"


def test_duplicate_weekdays_only_warn():
    result = ScheduleValidator.validate_day_rule(WeekdaysRule(weekdays=[Weekday.MO, Weekday.MO]))

    assert result["valid"] is True
    assert result["warnings"] == ["Duplicate weekdays are ignored"]


def test_non_positive_interval_step_is_an_error():
    result = ScheduleValidator.validate_day_rule(IntervalRule(step=-1, unit="week"))

    assert result["errors"][0]["code"] == "invalid_interval_step"
    assert result["errors"][0]["field"] == "days.step"


def test_window_step_must_be_positive():
    result = ScheduleValidator.validate_time_rule(WindowRule(start=time(8, 0), end=time(20, 0), step_hours=0))

    assert result["valid"] is False
    assert [e["code"] for e in result["errors"]] == ["invalid_window_step"]


def test_explicit_times_must_not_be_empty():
    result = ScheduleValidator.validate_time_rule(ExplicitTimesRule(times=[]))

    assert [e["code"] for e in result["errors"]] == ["empty_times"]


def test_definition_collects_every_failing_part():
    definition = ScheduleDefinition(
        start_date=date(2030, 1, 10),
        days=WeekdaysRule(weekdays=[]),
        times=ExplicitTimesRule(times=[]),
        end=ManualEnd(end_date=date(2030, 1, 1)),
    )

    result = ScheduleValidator.validate_definition(definition)

    assert result["valid"] is False
    assert [e["code"] for e in result["errors"]] == ["empty_weekdays", "empty_times", "end_before_start"]


def test_chosen_end_date_before_start_is_an_error():
    definition = ScheduleDefinition(
        start_date=date(2030, 1, 10),
        days=IntervalRule(step=1, unit="day"),
        times=ExplicitTimesRule(times=[time(9, 0)]),
        end=CountTargetEnd(count=3),
        end_date=date(2030, 1, 9),
    )

    result = ScheduleValidator.validate_end_condition(definition)

    assert result["errors"][0]["field"] == "end_date"


def test_ensure_valid_raises_first_error_with_all_errors_attached():
    definition = ScheduleDefinition(
        start_date=date(2030, 1, 1),
        days=IntervalRule(step=0, unit="day"),
        times=ExplicitTimesRule(times=[]),
        end=CountTargetEnd(count=5),
    )

    with pytest.raises(ScheduleValidationError) as exc_info:
        ScheduleValidator.ensure_valid(definition)

    error = exc_info.value
    assert error.code == "invalid_interval_step"
    assert len(error.details["errors"]) == 2
    assert error.to_dict()["field"] == "days.step"
