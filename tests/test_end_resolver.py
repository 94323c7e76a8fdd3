"""Unit tests for resolving schedule end conditions."""

from datetime import date, time

import pytest

from medcabinet.errors import ScheduleValidationError
from medcabinet.schemas.rules import (
    CountTargetEnd,
    EndMode,
    ExpiryLinkedEnd,
    ExplicitTimesRule,
    IntervalRule,
    ManualEnd,
    Weekday,
    WeekdaysRule,
)
from medcabinet.schemas.schedule import ScheduleDefinition, ScheduleWarning, StockSnapshot
from medcabinet.services.end_resolver import ScheduleEndResolver

TODAY = date(2030, 1, 1)
TWICE_DAILY = ExplicitTimesRule(times=[time(8, 0), time(20, 0)])
DAILY = IntervalRule(step=1, unit="day")


def _definition(end, days=DAILY, times=TWICE_DAILY, start=date(2030, 1, 1), end_date=None):
    return ScheduleDefinition(start_date=start, days=days, times=times, end=end, end_date=end_date)


@pytest.fixture
def resolver():
    return ScheduleEndResolver(horizon_years=100)


class TestCountTarget:
    def test_stock_bounds_intakes_and_days(self, resolver):
        resolved = resolver.resolve(
            _definition(CountTargetEnd()),
            stock=StockSnapshot(total_units=30, units_per_intake=2),
            today=TODAY,
        )

        assert resolved.required_count == 15
        assert len(resolved.intake_days) == 8
        assert resolved.end_date == date(2030, 1, 8)
        assert resolved.active_end_mode == EndMode.COUNT
        assert resolved.end_mode_count is None
        assert resolved.warnings == []

    def test_target_above_stock_is_clamped_with_warning(self, resolver):
        resolved = resolver.resolve(
            _definition(CountTargetEnd(count=40)),
            stock=StockSnapshot(total_units=30, units_per_intake=2),
            today=TODAY,
        )

        assert resolved.required_count == 15
        assert resolved.end_mode_count == 40
        assert ScheduleWarning.COUNT_CLAMPED in resolved.warnings

    def test_target_below_stock_is_kept(self, resolver):
        resolved = resolver.resolve(
            _definition(CountTargetEnd(count=5)),
            stock=StockSnapshot(total_units=30, units_per_intake=2),
            today=TODAY,
        )

        assert resolved.required_count == 5
        assert resolved.intake_days == [date(2030, 1, 1), date(2030, 1, 2), date(2030, 1, 3)]
        assert resolved.warnings == []

    def test_untracked_stock_uses_target(self, resolver):
        resolved = resolver.resolve(_definition(CountTargetEnd(count=4)), today=TODAY)

        assert resolved.required_count == 4
        assert resolved.intake_days == [date(2030, 1, 1), date(2030, 1, 2)]
        assert resolved.end_date == date(2030, 1, 2)

    def test_untracked_stock_without_target_is_rejected(self, resolver):
        with pytest.raises(ScheduleValidationError) as exc_info:
            resolver.resolve(_definition(CountTargetEnd()), stock=StockSnapshot(total_units=30), today=TODAY)

        assert exc_info.value.code == ScheduleValidationError.COUNT_TARGET_REQUIRED

    def test_chosen_end_date_bounds_the_count(self, resolver):
        definition = _definition(CountTargetEnd(), times=ExplicitTimesRule(times=[time(9, 0)]), end_date=date(2030, 1, 5))
        resolved = resolver.resolve(
            definition,
            stock=StockSnapshot(total_units=100, units_per_intake=1),
            today=TODAY,
        )

        assert resolved.required_count == 5
        assert resolved.end_date == date(2030, 1, 5)
        assert ScheduleWarning.COUNT_CLAMPED not in resolved.warnings

    def test_stock_below_one_dose_gives_empty_schedule(self, resolver):
        resolved = resolver.resolve(
            _definition(CountTargetEnd(count=3)),
            stock=StockSnapshot(total_units=1, units_per_intake=2),
            today=TODAY,
        )

        assert resolved.required_count == 0
        assert resolved.intake_days == []
        assert resolved.end_date is None
        assert ScheduleWarning.STOCK_INSUFFICIENT in resolved.warnings

    def test_non_positive_target_is_rejected(self, resolver):
        with pytest.raises(ScheduleValidationError) as exc_info:
            resolver.resolve(_definition(CountTargetEnd(count=0)), today=TODAY)

        assert exc_info.value.code == ScheduleValidationError.INVALID_COUNT_TARGET

    def test_count_past_horizon_is_rejected(self, resolver):
        definition = _definition(
            CountTargetEnd(count=200),
            days=IntervalRule(step=1, unit="year"),
            times=ExplicitTimesRule(times=[time(9, 0)]),
        )

        with pytest.raises(ScheduleValidationError) as exc_info:
            resolver.resolve(definition, today=TODAY)

        assert exc_info.value.code == ScheduleValidationError.HORIZON_EXCEEDED


class TestManualEnd:
    def test_range_is_not_capped_by_stock(self, resolver):
        definition = _definition(
            ManualEnd(end_date=date(2030, 1, 14)),
            days=WeekdaysRule(weekdays=[Weekday.MO, Weekday.TH]),
        )
        resolved = resolver.resolve(
            definition,
            stock=StockSnapshot(total_units=4, units_per_intake=1),
            today=TODAY,
        )

        # 2030-01-01 is a Tuesday
        assert resolved.intake_days == [date(2030, 1, 3), date(2030, 1, 7), date(2030, 1, 10), date(2030, 1, 14)]
        assert resolved.required_count == 8
        assert resolved.end_date == date(2030, 1, 14)
        assert resolved.active_end_mode == EndMode.MANUAL
        assert resolved.warnings == [ScheduleWarning.STOCK_INSUFFICIENT]

    def test_end_before_start_is_rejected(self, resolver):
        with pytest.raises(ScheduleValidationError) as exc_info:
            resolver.resolve(_definition(ManualEnd(end_date=date(2029, 12, 31))), today=TODAY)

        assert exc_info.value.code == ScheduleValidationError.END_BEFORE_START
        assert exc_info.value.field == "end.end_date"

    def test_end_after_expiry_warns(self, resolver):
        resolved = resolver.resolve(
            _definition(ManualEnd(end_date=date(2030, 2, 1))),
            expiry_date=date(2030, 1, 15),
            today=TODAY,
        )

        assert ScheduleWarning.ENDS_AFTER_EXPIRY in resolved.warnings

    def test_end_past_horizon_is_rejected(self, resolver):
        with pytest.raises(ScheduleValidationError) as exc_info:
            resolver.resolve(_definition(ManualEnd(end_date=date(2131, 1, 1))), today=TODAY)

        assert exc_info.value.code == ScheduleValidationError.HORIZON_EXCEEDED

    def test_end_on_horizon_is_accepted(self, resolver):
        definition = _definition(
            ManualEnd(end_date=date(2130, 12, 31)),
            days=IntervalRule(step=1, unit="year"),
        )
        resolved = resolver.resolve(definition, today=TODAY)

        assert len(resolved.intake_days) == 101


class TestExpiryLinkedEnd:
    def test_ends_on_expiry_date(self, resolver):
        resolved = resolver.resolve(
            _definition(ExpiryLinkedEnd()),
            expiry_date=date(2030, 1, 10),
            today=TODAY,
        )

        assert resolved.active_end_mode == EndMode.EXPIRY
        assert resolved.end_date == date(2030, 1, 10)
        assert resolved.required_count == 20
        assert resolved.warnings == []

    def test_missing_expiry_falls_back_to_chosen_end_date(self, resolver):
        resolved = resolver.resolve(
            _definition(ExpiryLinkedEnd(), end_date=date(2030, 1, 3)),
            today=TODAY,
        )

        assert resolved.active_end_mode == EndMode.MANUAL
        assert resolved.end_date == date(2030, 1, 3)
        assert resolved.warnings == [ScheduleWarning.EXPIRY_MISSING]

    def test_missing_expiry_and_end_date_is_rejected(self, resolver):
        with pytest.raises(ScheduleValidationError) as exc_info:
            resolver.resolve(_definition(ExpiryLinkedEnd()), today=TODAY)

        assert exc_info.value.code == ScheduleValidationError.EXPIRY_MISSING

    def test_expiry_before_start_is_rejected(self, resolver):
        with pytest.raises(ScheduleValidationError) as exc_info:
            resolver.resolve(_definition(ExpiryLinkedEnd()), expiry_date=date(2029, 6, 1), today=TODAY)

        assert exc_info.value.code == ScheduleValidationError.END_BEFORE_START


def test_resolution_does_not_mutate_definition(resolver):
    definition = _definition(CountTargetEnd(count=7), end_date=date(2030, 3, 1))
    before = definition.model_dump()

    resolver.resolve(definition, stock=StockSnapshot(total_units=30, units_per_intake=2), today=TODAY)

    assert definition.model_dump() == before


def test_invalid_time_rule_is_reported_before_resolution(resolver):
    definition = _definition(ManualEnd(end_date=date(2030, 1, 3)), times=ExplicitTimesRule(times=[]))

    with pytest.raises(ScheduleValidationError) as exc_info:
        resolver.resolve(definition, today=TODAY)

    assert exc_info.value.code == ScheduleValidationError.EMPTY_TIMES
