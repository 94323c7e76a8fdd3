"""Stock Projector."""
import math
from typing import Optional

from medcabinet.schemas.schedule import StockSnapshot

# Returned by max_intakes when stock does not cap the schedule
UNBOUNDED = None


class StockProjector:
    """Compute how many intakes the remaining stock can afford."""

    @staticmethod
    def max_intakes(stock: StockSnapshot) -> Optional[int]:
        """Return floor(total_units / units_per_intake), or UNBOUNDED when the dose is not counted."""
        if not stock.units_per_intake or stock.units_per_intake <= 0:
            return UNBOUNDED
        return int(math.floor(stock.total_units / stock.units_per_intake))

    @staticmethod
    def tracks(stock: StockSnapshot) -> bool:
        """Whether stock caps the schedule: both a per-intake dose and a positive stock are known."""
        return bool(stock.units_per_intake and stock.units_per_intake > 0 and stock.total_units > 0)
