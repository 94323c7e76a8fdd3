"""
Schedule End Resolver

Combines the day rule, time rule and stock projections under one of three end
conditions and produces a ResolvedSchedule:

- manual: intake days up to a chosen end date
- expiry: intake days up to the medicine's expiry date
- count: as many intakes as the target count and the remaining stock allow
"""

import logging
import math
from datetime import date, time
from typing import List, Optional

from medcabinet import config
from medcabinet.errors import ScheduleValidationError
from medcabinet.schemas.rules import CountTargetEnd, EndMode, ExpiryLinkedEnd, ManualEnd
from medcabinet.schemas.schedule import (
    ResolvedSchedule,
    ScheduleDefinition,
    ScheduleWarning,
    StockSnapshot,
)
from medcabinet.services.day_rules import DayRuleResolver
from medcabinet.services.schedule_validator import ScheduleValidator
from medcabinet.services.stock import StockProjector
from medcabinet.services.time_rules import TimeRuleResolver
from medcabinet.utils.metrics import metrics_collector

logger = logging.getLogger(__name__)


class ScheduleEndResolver:
    """Resolve a schedule definition into concrete intake days."""

    def __init__(self, horizon_years: int = config.HORIZON_YEARS):
        self.horizon_years = horizon_years

    def horizon_for(self, today: date) -> date:
        """Last acceptable end date: Dec 31 of today's year plus the horizon."""
        return date(today.year + self.horizon_years, 12, 31)

    @metrics_collector.time_operation("schedule_resolve_seconds")
    def resolve(
        self,
        definition: ScheduleDefinition,
        stock: Optional[StockSnapshot] = None,
        expiry_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> ResolvedSchedule:
        """
        Resolve a definition against a stock snapshot.

        Args:
            definition: Schedule definition, never mutated
            stock: Remaining stock; defaults to untracked stock
            expiry_date: Medicine expiry date, if known
            today: Reference day for the sanity horizon

        Returns:
            A new ResolvedSchedule

        Raises:
            ScheduleValidationError: If the definition cannot be resolved
        """
        try:
            ScheduleValidator.ensure_valid(definition)
            resolved = self._resolve(
                definition,
                stock or StockSnapshot(),
                expiry_date,
                today or date.today(),
            )
        except ScheduleValidationError as e:
            metrics_collector.validation_error()
            logger.info(f"Rejected schedule definition: {e.code} ({e.field})")
            raise

        metrics_collector.schedule_resolved()
        return resolved

    def _resolve(
        self,
        definition: ScheduleDefinition,
        stock: StockSnapshot,
        expiry_date: Optional[date],
        today: date,
    ) -> ResolvedSchedule:
        times = TimeRuleResolver.resolve(definition.times)
        horizon = self.horizon_for(today)
        end = definition.end

        if isinstance(end, ManualEnd):
            resolved = self._resolve_by_range(definition, end.end_date, times, EndMode.MANUAL, stock, horizon)
        elif isinstance(end, ExpiryLinkedEnd):
            resolved = self._resolve_by_expiry(definition, times, stock, expiry_date, horizon)
        elif isinstance(end, CountTargetEnd):
            resolved = self._resolve_by_count(definition, end, times, stock, horizon)
        else:
            raise ValueError(f"Unsupported end condition: {end!r}")

        if expiry_date is not None and resolved.end_date is not None and resolved.end_date > expiry_date:
            resolved.warnings.append(ScheduleWarning.ENDS_AFTER_EXPIRY)

        return resolved

    def _check_horizon(self, end_date: date, horizon: date) -> None:
        if end_date > horizon:
            raise ScheduleValidationError(
                code=ScheduleValidationError.HORIZON_EXCEEDED,
                message="Schedule would end too far in the future",
                field="end",
                details={"end_date": end_date.isoformat(), "horizon": horizon.isoformat()},
            )

    def _resolve_by_range(
        self,
        definition: ScheduleDefinition,
        end_date: date,
        times: List[time],
        mode: EndMode,
        stock: StockSnapshot,
        horizon: date,
    ) -> ResolvedSchedule:
        self._check_horizon(end_date, horizon)

        days = DayRuleResolver.resolve_by_range(definition.days, definition.start_date, end_date)
        required = len(days) * len(times)

        warnings: List[ScheduleWarning] = []
        # Ranges are never capped by stock; the caller only warns
        if StockProjector.tracks(stock) and required > StockProjector.max_intakes(stock):
            warnings.append(ScheduleWarning.STOCK_INSUFFICIENT)

        return ResolvedSchedule(
            intake_days=days,
            times_of_day=times,
            required_count=required,
            end_date=end_date,
            active_end_mode=mode,
            warnings=warnings,
        )

    def _resolve_by_expiry(
        self,
        definition: ScheduleDefinition,
        times: List[time],
        stock: StockSnapshot,
        expiry_date: Optional[date],
        horizon: date,
    ) -> ResolvedSchedule:
        if expiry_date is not None:
            if expiry_date < definition.start_date:
                raise ScheduleValidationError(
                    code=ScheduleValidationError.END_BEFORE_START,
                    message="Medicine expires before the schedule starts",
                    field="expiry_date",
                )
            return self._resolve_by_range(definition, expiry_date, times, EndMode.EXPIRY, stock, horizon)

        if definition.end_date is None:
            raise ScheduleValidationError(
                code=ScheduleValidationError.EXPIRY_MISSING,
                message="Medicine has no expiry date",
                field="end",
            )

        logger.info("No expiry date known, falling back to the chosen end date")
        resolved = self._resolve_by_range(definition, definition.end_date, times, EndMode.MANUAL, stock, horizon)
        resolved.warnings.append(ScheduleWarning.EXPIRY_MISSING)
        return resolved

    def _resolve_by_count(
        self,
        definition: ScheduleDefinition,
        end: CountTargetEnd,
        times: List[time],
        stock: StockSnapshot,
        horizon: date,
    ) -> ResolvedSchedule:
        target = end.count
        times_per_day = len(times)
        warnings: List[ScheduleWarning] = []

        if StockProjector.tracks(stock):
            possible = StockProjector.max_intakes(stock)
            wanted = target if target is not None else possible

            if definition.end_date is not None:
                # Recomputing inside an already chosen window
                self._check_horizon(definition.end_date, horizon)
                available = DayRuleResolver.resolve_by_range(
                    definition.days, definition.start_date, definition.end_date
                )
                final = min(wanted, possible, len(available) * times_per_day)
                days = available[:math.ceil(final / times_per_day)]
            else:
                final = min(wanted, possible)
                days = DayRuleResolver.resolve_by_count(
                    definition.days, definition.start_date, math.ceil(final / times_per_day), horizon
                )

            if target is not None and target > final:
                warnings.append(ScheduleWarning.COUNT_CLAMPED)
            if final == 0:
                warnings.append(ScheduleWarning.STOCK_INSUFFICIENT)
        else:
            if target is None:
                raise ScheduleValidationError(
                    code=ScheduleValidationError.COUNT_TARGET_REQUIRED,
                    message="Enter the number of intakes; the stock does not limit this schedule",
                    field="end.count",
                )
            final = target
            days = DayRuleResolver.resolve_by_count(
                definition.days, definition.start_date, math.ceil(final / times_per_day), horizon
            )

        end_date = days[-1] if days else None
        if end_date is not None:
            self._check_horizon(end_date, horizon)

        return ResolvedSchedule(
            intake_days=days,
            times_of_day=times,
            required_count=final,
            end_date=end_date,
            active_end_mode=EndMode.COUNT,
            end_mode_count=target,
            warnings=warnings,
        )
