"""Range search and aggregation over sorted numeric columns."""

from .aggregation import AggregationDataProvider, RangeBucket
from .interval import DELTA, IntervalRangeSearch

__all__ = ["DELTA", "AggregationDataProvider", "IntervalRangeSearch", "RangeBucket"]
