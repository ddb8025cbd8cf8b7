"""
Interval range search over a sorted numeric column.

Used by range aggregation to walk outward from a known value and fetch a
batch of neighbouring sorted values. Each lookup issues one COUNT query to
derive an offset, then a single bounded fetch, instead of scanning the whole
sorted set.
"""

from typing import Any, List, Literal, Optional, Union

from sqlalchemy import Connection, Select, func, select

from search_index_hub.utils.logging import get_logger

logger = get_logger(__name__)

# Tolerance applied to every bound so float noise never double-counts a boundary row
DELTA = 0.005


class IntervalRangeSearch:
    """
    Sorted-value lookups around a data point.

    The value column is the first column selected by ``select``. Every
    lookup derives a new statement from it, so one instance can serve
    concurrent aggregation requests.

    Attributes:
        select: Base SELECT whose first column holds the values.
        connection: SQLAlchemy Connection. Caller owns transaction lifecycle.

    Example:
        >>> stmt = select(prices.c.price).where(prices.c.store_id == 1)
        >>> with engine.connect() as conn:
        ...     search = IntervalRangeSearch(stmt, conn)
        ...     search.load(limit=2, offset=1)
        [2.0, 3.0]
    """

    def __init__(self, select: Select, connection: Connection) -> None:
        if len(select.selected_columns) == 0:
            raise ValueError("Interval select must name a value column")
        self.select = select
        self.connection = connection

    @property
    def value(self) -> Any:
        return self.select.selected_columns[0]

    def load(
        self,
        limit: Optional[int],
        offset: Optional[int] = None,
        lower: Optional[float] = None,
        upper: Optional[float] = None,
    ) -> List[float]:
        """
        Values in ``[lower - DELTA, upper - DELTA)`` sorted ascending.

        NULL values are excluded before ``limit`` and ``offset`` apply.

        Args:
            limit: Maximum number of values, None for no limit
            offset: Number of sorted values to skip
            lower: Inclusive lower bound (optional)
            upper: Exclusive upper bound (optional)
        """
        stmt = self._bounded(self.select, lower=lower, upper=upper)
        stmt = self._page(stmt.order_by(None).order_by(self.value.asc()), limit, offset)
        return self._fetch_values(stmt)

    def load_previous(
        self,
        data: float,
        index: int,
        lower: Optional[float] = None,
    ) -> Union[List[float], Literal[False]]:
        """
        Up to ``index`` values closest below ``data``, ascending.

        Only values strictly less than ``data - DELTA`` (and not below
        ``lower - DELTA`` when given) qualify.

        Returns:
            The values, or False when no value lies below ``data``
        """
        stmt = self._bounded(self.select, lower=lower).where(self.value < data - DELTA)

        count = self._count(stmt)
        if not count:
            return False

        limit = min(index, count)
        page = self._page(stmt.order_by(None).order_by(self.value.asc()), limit, count - limit)
        values = self._fetch_values(page)

        logger.debug(
            "interval.previous_loaded", data=data, index=index, count=count, loaded=len(values)
        )
        return values

    def load_next(
        self,
        data: float,
        right_index: int,
        upper: Optional[float] = None,
    ) -> Union[List[float], Literal[False]]:
        """
        Up to ``right_index`` values closest above ``data``, ascending.

        Only values strictly greater than ``data + DELTA`` (and below
        ``upper - DELTA`` when given) qualify. Rows are fetched in descending
        order and reversed.

        Returns:
            The values, or False when no value lies above ``data``
        """
        stmt = self._bounded(self.select, upper=upper).where(self.value > data + DELTA)

        count = self._count(stmt)
        if not count:
            return False

        limit = min(right_index, count)
        page = self._page(stmt.order_by(None).order_by(self.value.desc()), limit, count - limit)
        values = list(reversed(self._fetch_values(page)))

        logger.debug(
            "interval.next_loaded",
            data=data,
            right_index=right_index,
            count=count,
            loaded=len(values),
        )
        return values

    # --- Statement helpers ----------------------------------------------------
    def _bounded(
        self,
        stmt: Select,
        lower: Optional[float] = None,
        upper: Optional[float] = None,
    ) -> Select:
        stmt = stmt.where(self.value.is_not(None))
        if lower is not None:
            stmt = stmt.where(self.value >= lower - DELTA)
        if upper is not None:
            stmt = stmt.where(self.value < upper - DELTA)
        return stmt

    @staticmethod
    def _page(stmt: Select, limit: Optional[int], offset: Optional[int]) -> Select:
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        return stmt

    def _count(self, stmt: Select) -> int:
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        return int(self.connection.execute(count_stmt).scalar_one())

    def _fetch_values(self, stmt: Select) -> List[float]:
        return [
            float(value)
            for value in self.connection.execute(stmt).scalars()
            if value is not None
        ]
