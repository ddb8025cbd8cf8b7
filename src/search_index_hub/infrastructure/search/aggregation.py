"""
Range aggregation data provider.

Supplies the histogram engine with bucket width, summary statistics,
per-bucket counts and an interval search over the same value column.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import Connection, Integer, Select, case, cast, func, select

from search_index_hub.config.settings import get_settings
from search_index_hub.utils.logging import get_logger

from .interval import IntervalRangeSearch

logger = get_logger(__name__)


def floor_to_int(expression):
    """
    Integer floor of a numeric SQL expression.

    CAST truncates on SQLite but rounds on PostgreSQL; stepping down whenever
    the cast lands above the value gives the floor on both.
    """
    truncated = cast(expression, Integer)
    return case((truncated > expression, truncated - 1), else_=truncated)


@dataclass(frozen=True)
class RangeBucket:
    """One histogram bucket covering ``[from_, to)``."""

    from_: float
    to: float
    count: int

    def as_dict(self) -> Dict[str, Any]:
        return {"from": self.from_, "to": self.to, "count": self.count}


class AggregationDataProvider:
    """
    Histogram data for a numeric column.

    Bucket indexes are 1-based: a value ``v`` falls into bucket
    ``int(v / range) + 1``, which covers ``[(index - 1) * range, index * range)``.
    Intended for non-negative domains such as prices.

    Attributes:
        select: Base SELECT whose first column holds the values.
        connection: SQLAlchemy Connection. Caller owns transaction lifecycle.
        range_step: Bucket width returned by ``get_range``.
    """

    def __init__(
        self,
        select: Select,
        connection: Connection,
        range_step: Optional[float] = None,
    ) -> None:
        self.select = select
        self.connection = connection
        self.range_step = (
            float(range_step) if range_step is not None else get_settings().aggregation_range_step
        )
        if self.range_step <= 0:
            raise ValueError(f"range_step must be > 0, got {self.range_step}")

    def _value_column(self):
        subquery = self.select.order_by(None).subquery()
        return subquery, list(subquery.c)[0]

    def get_range(self) -> float:
        return self.range_step

    def get_aggregations(self) -> Dict[str, float]:
        """
        Count, min, max and sample standard deviation of the value column.

        Standard deviation is derived from the sum and the sum of squares and
        is 0 for fewer than two values.
        """
        subquery, value = self._value_column()
        stmt = select(
            func.count(value),
            func.min(value),
            func.max(value),
            func.sum(value),
            func.sum(value * value),
        ).select_from(subquery)
        count, minimum, maximum, total, total_squares = self.connection.execute(stmt).one()

        count = int(count or 0)
        std = 0.0
        if count > 1:
            total = float(total)
            variance = (float(total_squares) - total * total / count) / (count - 1)
            std = math.sqrt(max(variance, 0.0))

        return {
            "count": count,
            "min": float(minimum) if minimum is not None else 0.0,
            "max": float(maximum) if maximum is not None else 0.0,
            "std": std,
        }

    def get_interval(self) -> IntervalRangeSearch:
        return IntervalRangeSearch(self.select, self.connection)

    def get_aggregation(self, range_: Optional[float] = None) -> Dict[int, int]:
        """
        Value counts per bucket index.

        Args:
            range_: Bucket width, defaults to ``get_range()``

        Returns:
            Bucket index -> number of values, ascending by index
        """
        range_ = float(range_) if range_ is not None else self.range_step
        if range_ <= 0:
            raise ValueError(f"range must be > 0, got {range_}")

        subquery, value = self._value_column()
        bucket = (floor_to_int(value / range_) + 1).label("bucket")
        stmt = (
            select(bucket, func.count().label("count"))
            .select_from(subquery)
            .where(value.is_not(None))
            .group_by(bucket)
            .order_by(bucket)
        )
        aggregation = {int(index): int(count) for index, count in self.connection.execute(stmt)}

        logger.debug("aggregation.buckets_loaded", range=range_, buckets=len(aggregation))
        return aggregation

    @staticmethod
    def prepare_data(range_: float, db_ranges: Mapping[int, int]) -> List[RangeBucket]:
        """Turn ``{bucket_index: count}`` into ordered ``RangeBucket`` objects."""
        return [
            RangeBucket(from_=(index - 1) * range_, to=index * range_, count=count)
            for index, count in sorted(db_ranges.items())
        ]
