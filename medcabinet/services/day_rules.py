"""Day Rule Resolver."""
import calendar
from datetime import date, timedelta
from typing import Iterator, List, Optional, Union

from medcabinet.errors import ScheduleValidationError
from medcabinet.schemas.rules import IntervalRule, WeekdaysRule


def add_interval(day: date, step: int, unit: str) -> date:
    """
    Add `step` units to a date.

    Days and weeks have a fixed length. Months and years are calendar-aware:
    the day of month is clamped to the length of the target month, so
    Jan 31 + 1 month is Feb 28 (or 29).
    """
    if unit == "day":
        return day + timedelta(days=step)
    if unit == "week":
        return day + timedelta(weeks=step)

    if unit == "month":
        month_index = day.month - 1 + step
        next_year = day.year + month_index // 12
        next_month = month_index % 12 + 1
    elif unit == "year":
        next_year = day.year + step
        next_month = day.month
    else:
        raise ValueError(f"Unsupported interval unit: {unit}")

    # Handle months with different number of days
    max_day = calendar.monthrange(next_year, next_month)[1]
    return day.replace(year=next_year, month=next_month, day=min(day.day, max_day))


def _horizon_error(horizon: Optional[date]) -> ScheduleValidationError:
    return ScheduleValidationError(
        code=ScheduleValidationError.HORIZON_EXCEEDED,
        message="Schedule would end too far in the future",
        field="end",
        details={"horizon": horizon.isoformat() if horizon else None},
    )


class DayRuleResolver:
    """Turn a day-selection rule into an ordered list of calendar days."""

    @staticmethod
    def _candidates(rule: Union[WeekdaysRule, IntervalRule], start: date) -> Iterator[date]:
        if isinstance(rule, WeekdaysRule):
            wanted = {weekday.iso_index for weekday in rule.weekdays}
            if not wanted:
                return
            current = start
            while True:
                if current.weekday() in wanted:
                    yield current
                current += timedelta(days=1)
        else:
            if rule.step <= 0:
                return
            current = start
            while True:
                yield current
                current = add_interval(current, rule.step, rule.unit)

    @staticmethod
    def resolve_by_range(
        rule: Union[WeekdaysRule, IntervalRule],
        start: date,
        end: date,
    ) -> List[date]:
        """
        Resolve every matching day in [start, end].

        Args:
            rule: Day selection rule
            start: First candidate day
            end: Last candidate day, inclusive

        Returns:
            Ascending list of unique days
        """
        days: List[date] = []
        try:
            for day in DayRuleResolver._candidates(rule, start):
                if day > end:
                    break
                days.append(day)
        except (OverflowError, ValueError):
            # Stepping past date.max; everything representable is already collected
            pass
        return days

    @staticmethod
    def resolve_by_count(
        rule: Union[WeekdaysRule, IntervalRule],
        start: date,
        count: int,
        horizon: Optional[date] = None,
    ) -> List[date]:
        """
        Resolve the first `count` matching days from start.

        Args:
            rule: Day selection rule
            start: First candidate day
            count: Number of days wanted
            horizon: Optional last acceptable day

        Returns:
            Exactly `count` days, or fewer only for a degenerate rule

        Raises:
            ScheduleValidationError: If the days run past the horizon
        """
        days: List[date] = []
        if count <= 0:
            return days

        try:
            for day in DayRuleResolver._candidates(rule, start):
                if horizon is not None and day > horizon:
                    raise _horizon_error(horizon)
                days.append(day)
                if len(days) >= count:
                    break
        except (OverflowError, ValueError) as e:
            raise _horizon_error(horizon) from e
        return days
