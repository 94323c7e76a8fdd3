"""Schedule Validator."""
from typing import Dict, Any, Union

from medcabinet.errors import ScheduleValidationError
from medcabinet.schemas.rules import (
    CountTargetEnd,
    ExplicitTimesRule,
    IntervalRule,
    ManualEnd,
    WeekdaysRule,
    WindowRule,
)
from medcabinet.schemas.schedule import ScheduleDefinition
from medcabinet.services.time_rules import TimeRuleResolver


def _new_result() -> Dict[str, Any]:
    return {
        "valid": True,
        "errors": [],
        "warnings": []
    }


def _fail(result: Dict[str, Any], code: str, field: str, message: str) -> Dict[str, Any]:
    result["valid"] = False
    result["errors"].append({"code": code, "field": field, "message": message})
    return result


class ScheduleValidator:
    """Reject schedule definitions that cannot be resolved."""

    @staticmethod
    def validate_day_rule(rule: Union[WeekdaysRule, IntervalRule]) -> Dict[str, Any]:
        """
        Validate a day selection rule.

        Args:
            rule: Weekdays or interval rule

        Returns:
            Dict with validation result
        """
        result = _new_result()

        if isinstance(rule, WeekdaysRule):
            if not rule.weekdays:
                return _fail(result, ScheduleValidationError.EMPTY_WEEKDAYS, "days.weekdays",
                             "Select at least one weekday")
            if len(set(rule.weekdays)) != len(rule.weekdays):
                result["warnings"].append("Duplicate weekdays are ignored")
            return result

        if rule.step <= 0:
            return _fail(result, ScheduleValidationError.INVALID_INTERVAL_STEP, "days.step",
                         f"Interval step must be positive, got {rule.step}")

        return result

    @staticmethod
    def validate_time_rule(rule: Union[ExplicitTimesRule, WindowRule]) -> Dict[str, Any]:
        """
        Validate a time selection rule.

        Args:
            rule: Explicit times or time window rule

        Returns:
            Dict with validation result
        """
        result = _new_result()

        if isinstance(rule, WindowRule):
            if rule.step_hours <= 0:
                return _fail(result, ScheduleValidationError.INVALID_WINDOW_STEP, "times.step_hours",
                             f"Window step must be positive, got {rule.step_hours}")
        elif len(set(rule.times)) != len(rule.times):
            result["warnings"].append("Duplicate intake times are ignored")

        if not TimeRuleResolver.resolve(rule):
            return _fail(result, ScheduleValidationError.EMPTY_TIMES, "times",
                         "Select at least one intake time")

        return result

    @staticmethod
    def validate_end_condition(definition: ScheduleDefinition) -> Dict[str, Any]:
        """
        Validate the end condition against the start date.

        Args:
            definition: Schedule definition

        Returns:
            Dict with validation result
        """
        result = _new_result()
        end = definition.end

        if isinstance(end, ManualEnd) and end.end_date < definition.start_date:
            return _fail(result, ScheduleValidationError.END_BEFORE_START, "end.end_date",
                         "End date is before the start date")

        if isinstance(end, CountTargetEnd) and end.count is not None and end.count <= 0:
            return _fail(result, ScheduleValidationError.INVALID_COUNT_TARGET, "end.count",
                         f"Intake count must be positive, got {end.count}")

        if definition.end_date is not None and definition.end_date < definition.start_date:
            return _fail(result, ScheduleValidationError.END_BEFORE_START, "end_date",
                         "End date is before the start date")

        return result

    @staticmethod
    def validate_definition(definition: ScheduleDefinition) -> Dict[str, Any]:
        """
        Validate a whole schedule definition.

        Args:
            definition: Schedule definition

        Returns:
            Dict with validation result, errors of every failing part
        """
        result = _new_result()
        for partial in (
            ScheduleValidator.validate_day_rule(definition.days),
            ScheduleValidator.validate_time_rule(definition.times),
            ScheduleValidator.validate_end_condition(definition),
        ):
            if not partial["valid"]:
                result["valid"] = False
            result["errors"].extend(partial["errors"])
            result["warnings"].extend(partial["warnings"])
        return result

    @staticmethod
    def ensure_valid(definition: ScheduleDefinition) -> None:
        """
        Raise the first validation error of a definition.

        Raises:
            ScheduleValidationError: If the definition is invalid
        """
        result = ScheduleValidator.validate_definition(definition)
        if not result["valid"]:
            first = result["errors"][0]
            raise ScheduleValidationError(
                code=first["code"],
                message=first["message"],
                field=first["field"],
                details={"errors": result["errors"]},
            )
