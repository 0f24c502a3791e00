"""Query criteria for generic repository lookups (no dependency on ORM).

Criteria name columns as strings; the repository resolves them against its
model and rejects unknown names. Builder methods return self so conditions
chain: QueryCriteria().eq("target_id", 7).lt("id", 120).desc("id").limit(20).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Operator(str, Enum):
    """Comparison operators supported in criteria conditions."""

    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    IN = "in"


@dataclass(frozen=True)
class Condition:
    """One column comparison (column op value)."""

    column: str
    op: Operator
    value: Any


@dataclass(frozen=True)
class OrderBy:
    """Ordering on one column."""

    column: str
    descending: bool = False


@dataclass
class QueryCriteria:
    """Filter, ordering, and paging for find/find_one/find_page/count.

    Conditions are AND-ed. count() ignores ordering and paging.
    """

    conditions: list[Condition] = field(default_factory=list)
    orders: list[OrderBy] = field(default_factory=list)
    limit_value: int | None = None
    offset_value: int = 0

    def where(self, column: str, op: Operator, value: Any) -> QueryCriteria:
        self.conditions.append(Condition(column, op, value))
        return self

    def eq(self, column: str, value: Any) -> QueryCriteria:
        return self.where(column, Operator.EQ, value)

    def ne(self, column: str, value: Any) -> QueryCriteria:
        return self.where(column, Operator.NE, value)

    def lt(self, column: str, value: Any) -> QueryCriteria:
        return self.where(column, Operator.LT, value)

    def lte(self, column: str, value: Any) -> QueryCriteria:
        return self.where(column, Operator.LTE, value)

    def gt(self, column: str, value: Any) -> QueryCriteria:
        return self.where(column, Operator.GT, value)

    def gte(self, column: str, value: Any) -> QueryCriteria:
        return self.where(column, Operator.GTE, value)

    def in_(self, column: str, values: Any) -> QueryCriteria:
        return self.where(column, Operator.IN, list(values))

    def asc(self, column: str) -> QueryCriteria:
        self.orders.append(OrderBy(column, descending=False))
        return self

    def desc(self, column: str) -> QueryCriteria:
        self.orders.append(OrderBy(column, descending=True))
        return self

    def limit(self, limit: int) -> QueryCriteria:
        self.limit_value = limit
        return self

    def offset(self, offset: int) -> QueryCriteria:
        self.offset_value = max(0, offset)
        return self

    def page(self, page: int, limit: int) -> QueryCriteria:
        """Set limit and offset for a 1-based page number."""
        page = max(1, page)
        self.limit_value = limit
        self.offset_value = (page - 1) * limit
        return self


@dataclass(frozen=True)
class Paging:
    """Offset paging metadata returned by find_page."""

    page: int
    limit: int
    total: int

    @property
    def has_more(self) -> bool:
        return self.page * self.limit < self.total
