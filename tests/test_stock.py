"""Unit tests for stock projection."""

from medcabinet.schemas.schedule import StockSnapshot
from medcabinet.services.stock import UNBOUNDED, StockProjector


def test_max_intakes_floors_the_ratio():
    assert StockProjector.max_intakes(StockSnapshot(total_units=30, units_per_intake=2)) == 15
    assert StockProjector.max_intakes(StockSnapshot(total_units=7, units_per_intake=2)) == 3
    assert StockProjector.max_intakes(StockSnapshot(total_units=1, units_per_intake=0.25)) == 4


def test_missing_or_zero_dose_is_unbounded():
    assert StockProjector.max_intakes(StockSnapshot(total_units=30)) is UNBOUNDED
    assert StockProjector.max_intakes(StockSnapshot(total_units=30, units_per_intake=0)) is UNBOUNDED


def test_tracks_requires_dose_and_positive_stock():
    assert StockProjector.tracks(StockSnapshot(total_units=30, units_per_intake=2)) is True
    assert StockProjector.tracks(StockSnapshot(total_units=0, units_per_intake=2)) is False
    assert StockProjector.tracks(StockSnapshot(total_units=30, units_per_intake=None)) is False
