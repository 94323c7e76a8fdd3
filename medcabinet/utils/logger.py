"""
JSON loggers for reminder and schedule events.

Each record is one JSON object carrying the message, the emitting component
and any keyword fields (intake ids, schedule ids, counts) passed by the caller.
"""

import json
import logging
import sys
from datetime import datetime, timezone


class StructuredLogger:
    """Logger whose records are JSON payloads built from keyword fields."""

    def __init__(self, name: str, level: int = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            self.logger.addHandler(handler)

    def payload(self, level: int, message: str, **fields) -> dict:
        """Build the JSON object logged for one event."""
        data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": logging.getLevelName(level),
            "message": message,
            "component": self.logger.name,
        }
        data.update(fields)
        return data

    def _log(self, level: int, message: str, exc_info: bool = False, **fields):
        if self.logger.isEnabledFor(level):
            # Dates and times inside payloads are rendered with str()
            self.logger.log(level, json.dumps(self.payload(level, message, **fields), default=str), exc_info=exc_info)

    def info(self, message: str, **fields):
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields):
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields):
        self._log(logging.ERROR, message, **fields)

    def exception(self, message: str, **fields):
        """Log an error with the active traceback attached."""
        self._log(logging.ERROR, message, exc_info=True, **fields)


reminder_logger = StructuredLogger("medcabinet.reminders")
schedule_logger = StructuredLogger("medcabinet.schedules")
