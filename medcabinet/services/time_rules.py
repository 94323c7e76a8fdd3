"""Time Rule Resolver."""
from datetime import time
from typing import List, Union

from medcabinet.schemas.rules import ExplicitTimesRule, WindowRule

SECONDS_PER_DAY = 24 * 60 * 60
MINUTES_PER_DAY = 24 * 60


def _seconds_of_day(value: time) -> int:
    return value.hour * 3600 + value.minute * 60


def _to_minute(value: time) -> time:
    return value.replace(second=0, microsecond=0)


class TimeRuleResolver:
    """Turn a time-selection rule into an ordered list of times of day."""

    @staticmethod
    def resolve(rule: Union[ExplicitTimesRule, WindowRule]) -> List[time]:
        """
        Resolve the intake times of one day.

        Explicit times come back sorted. Window times keep their generation
        order, so a window wrapping past midnight lists 22:00 before 02:00.
        Duplicates are removed and times are reduced to minute precision.
        A non-positive window step yields an empty list.
        """
        if isinstance(rule, ExplicitTimesRule):
            return sorted({_to_minute(value) for value in rule.times})

        step_seconds = round(rule.step_hours * 3600) if rule.step_hours > 0 else 0
        if step_seconds <= 0:
            return []

        start_seconds = _seconds_of_day(rule.start)
        end_seconds = _seconds_of_day(rule.end)
        if end_seconds <= start_seconds:
            end_seconds += SECONDS_PER_DAY

        times: List[time] = []
        seen = set()
        current = start_seconds
        while current <= end_seconds:
            minute_of_day = (current // 60) % MINUTES_PER_DAY
            value = time(minute_of_day // 60, minute_of_day % 60)
            if value not in seen:
                seen.add(value)
                times.append(value)
            current += step_seconds
        return times
