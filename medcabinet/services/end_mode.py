"""
End Mode Reconciler

Keeps the active end condition consistent while the user scrolls the end-date
picker. A raw date change is matched against the expiry and count candidate
dates; programmatic pushes into the picker open a settle window during which
raw changes do not switch the mode, and a manual pick stays sticky briefly so
the picker's own settle jitter is not re-derived into another mode.
"""

import logging
import time
from datetime import date
from enum import Enum
from typing import Callable, Optional

from medcabinet import config
from medcabinet.errors import EndModeUnavailableError
from medcabinet.schemas.rules import EndMode
from medcabinet.schemas.schedule import ResolvedSchedule

logger = logging.getLogger(__name__)


class ReconcilerState(str, Enum):
    IDLE = "idle"
    SUPPRESSED = "suppressed"  # a programmatic date push is settling


class EndModeReconciler:
    """Session-scoped end-mode state machine for one editing session."""

    def __init__(
        self,
        active_mode: EndMode = EndMode.MANUAL,
        expiry_date: Optional[date] = None,
        count_date: Optional[date] = None,
        settle_window: float = config.SETTLE_WINDOW_SECONDS,
        sticky_window: float = config.MANUAL_STICKY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.active_mode = active_mode
        self.expiry_date = expiry_date
        self.count_date = count_date
        self.current_date: Optional[date] = None
        self.settle_window = settle_window
        self.sticky_window = sticky_window
        self._clock = clock
        self._suppressed_until: Optional[float] = None
        self._sticky_until: Optional[float] = None

    @classmethod
    def from_resolved(
        cls,
        resolved: Optional[ResolvedSchedule],
        expiry_date: Optional[date] = None,
        **kwargs,
    ) -> "EndModeReconciler":
        """Restore a session from a previously saved schedule."""
        if resolved is None:
            return cls(expiry_date=expiry_date, **kwargs)

        count_date = resolved.intake_days[-1] if (
            resolved.active_end_mode == EndMode.COUNT and resolved.intake_days
        ) else None
        reconciler = cls(
            active_mode=resolved.active_end_mode,
            expiry_date=expiry_date,
            count_date=count_date,
            **kwargs,
        )
        reconciler.current_date = resolved.end_date
        return reconciler

    @property
    def state(self) -> ReconcilerState:
        if self._suppressed_until is not None and self._clock() < self._suppressed_until:
            return ReconcilerState.SUPPRESSED
        return ReconcilerState.IDLE

    def _manual_is_sticky(self) -> bool:
        return (
            self.active_mode == EndMode.MANUAL
            and self._sticky_until is not None
            and self._clock() < self._sticky_until
        )

    def _derive_mode(self, day: date) -> EndMode:
        # The current mode wins while its own candidate still matches
        if self.active_mode == EndMode.EXPIRY and self.expiry_date == day:
            return EndMode.EXPIRY
        if self.active_mode == EndMode.COUNT and self.count_date == day:
            return EndMode.COUNT

        if self.expiry_date is not None and self.expiry_date == day:
            return EndMode.EXPIRY
        if self.count_date is not None and self.count_date == day:
            return EndMode.COUNT
        return EndMode.MANUAL

    def on_date_changed(self, day: date) -> EndMode:
        """
        Handle a raw end-date change from the picker.

        The value is always recorded; the mode only changes while idle and
        outside the sticky window of a manual pick.

        Returns:
            The active end mode after the change
        """
        self.current_date = day

        if self.state == ReconcilerState.SUPPRESSED:
            return self.active_mode
        if self._manual_is_sticky():
            return self.active_mode

        self._sticky_until = None
        derived = self._derive_mode(day)
        if derived != self.active_mode:
            logger.debug(f"End mode {self.active_mode.value} -> {derived.value} for {day.isoformat()}")
            self.active_mode = derived
        return self.active_mode

    def push_computed(self, mode: EndMode, day: date) -> date:
        """
        Record a computed end date about to be pushed into the picker.

        Enters the suppressed state for the settle window.

        Returns:
            The date the caller should push into the picker
        """
        if mode == EndMode.MANUAL:
            raise ValueError("Only computed end modes can be pushed")

        if mode == EndMode.COUNT:
            self.count_date = day
        else:
            self.expiry_date = day

        self.active_mode = mode
        self.current_date = day
        self._sticky_until = None
        self._suppressed_until = self._clock() + self.settle_window
        return day

    def apply_resolved(self, resolved: ResolvedSchedule) -> Optional[date]:
        """Adopt the end of a freshly resolved schedule; returns the date to show."""
        if resolved.end_date is None:
            if resolved.active_end_mode == EndMode.COUNT:
                self.count_date = None
            return None

        if resolved.active_end_mode == EndMode.MANUAL:
            self.active_mode = EndMode.MANUAL
            self.current_date = resolved.end_date
            return resolved.end_date

        return self.push_computed(resolved.active_end_mode, resolved.end_date)

    def select_mode(self, mode: EndMode) -> Optional[date]:
        """
        Handle an explicit end-mode pick by the user.

        Returns:
            The date to push into the picker, if the mode implies one

        Raises:
            EndModeUnavailableError: If expiry mode is picked without an expiry date
        """
        self._suppressed_until = None

        if mode == EndMode.MANUAL:
            self.active_mode = EndMode.MANUAL
            self.count_date = None
            self._sticky_until = self._clock() + self.sticky_window
            return None

        self._sticky_until = None

        if mode == EndMode.EXPIRY:
            if self.expiry_date is None:
                raise EndModeUnavailableError(mode.value, "Medicine has no expiry date")
            return self.push_computed(EndMode.EXPIRY, self.expiry_date)

        if self.count_date is not None:
            return self.push_computed(EndMode.COUNT, self.count_date)
        self.active_mode = EndMode.COUNT
        return None
