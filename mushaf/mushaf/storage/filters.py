"""
Composable query predicates.

Read paths describe what they want as a list of ``Filter(column, operator,
value)`` constraints; ``FilterSet.to_sql`` turns that into a parameterised
WHERE clause. Column names are checked against a whitelist, so nothing from
callers is ever spliced into SQL text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from mushaf.exceptions import ValidationError


class Operator(str, Enum):
    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    CONTAINS = "contains"
    IN = "in"
    IS_NULL = "is_null"
    NOT_NULL = "not_null"


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user text is matched literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class Filter:
    """A single ``column <operator> value`` constraint."""

    column: str
    operator: Operator
    value: Any = None

    def to_sql(self) -> tuple[str, list[Any]]:
        op = self.operator
        if op is Operator.IS_NULL:
            return f"{self.column} IS NULL", []
        if op is Operator.NOT_NULL:
            return f"{self.column} IS NOT NULL", []
        if op is Operator.CONTAINS:
            return f"{self.column} LIKE ? ESCAPE '\\'", [f"%{escape_like(str(self.value))}%"]
        if op is Operator.IN:
            values = list(self.value)
            if not values:
                # Empty IN-list matches nothing
                return "0", []
            placeholders = ", ".join("?" for _ in values)
            return f"{self.column} IN ({placeholders})", values
        return f"{self.column} {op.value} ?", [self.value]


@dataclass
class FilterSet:
    """
    Ordered conjunction of filters over a fixed set of allowed columns.

    Example:
        >>> fs = FilterSet(allowed={"t.source_id", "a.surah_id"})
        >>> fs.where("a.surah_id", Operator.EQ, 1).where("t.source_id", Operator.EQ, 3).to_sql()
        ('a.surah_id = ? AND t.source_id = ?', [1, 3])
    """

    allowed: frozenset[str] | set[str]
    filters: list[Filter] = field(default_factory=list)

    def where(self, column: str, operator: Operator | str, value: Any = None) -> "FilterSet":
        if column not in self.allowed:
            raise ValidationError(f"Filtering on '{column}' is not supported")
        try:
            operator = Operator(operator)
        except ValueError as e:
            raise ValidationError(f"Unknown filter operator {operator!r}") from e
        self.filters.append(Filter(column, operator, value))
        return self

    def where_if(self, value: Any, column: str, operator: Operator | str = Operator.EQ) -> "FilterSet":
        """Add ``column <operator> value`` only when value is not None."""
        if value is not None:
            self.where(column, operator, value)
        return self

    def extend(self, filters: Iterable[Filter]) -> "FilterSet":
        for f in filters:
            self.where(f.column, f.operator, f.value)
        return self

    def __len__(self) -> int:
        return len(self.filters)

    def to_sql(self) -> tuple[str, list[Any]]:
        """Return ``(clause, params)``; an empty set yields ``("1", [])``."""
        if not self.filters:
            return "1", []
        clauses, params = [], []
        for f in self.filters:
            clause, values = f.to_sql()
            clauses.append(clause)
            params.extend(values)
        return " AND ".join(clauses), params
