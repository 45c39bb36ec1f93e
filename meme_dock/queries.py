"""Backend-neutral document queries.

Clients filter listings with strings of the form ``"field,operator,value"``.
They are parsed into :class:`Filter` objects which the storage adapters turn
into Appwrite queries or evaluate in memory.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Operator(str, Enum):
    """Supported filter operators, keyed by their query-string name."""

    EQUAL = "equal"
    NOT_EQUAL = "notEqual"
    GREATER = "greater"
    GREATER_EQUAL = "greaterEqual"
    LESSER = "lesser"
    LESSER_EQUAL = "lesserEqual"
    SEARCH = "search"
    CONTAINS = "contains"


def _comparable(value: Any) -> Any:
    """Turn ISO timestamps into datetimes so they compare chronologically."""
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


@dataclass(frozen=True)
class Filter:
    """A single field condition."""

    field: str
    operator: Operator
    value: Any

    def matches(self, document: dict[str, Any]) -> bool:
        """Evaluate the condition against a document."""
        actual = document.get(self.field)

        match self.operator:
            case Operator.EQUAL:
                if isinstance(self.value, list | tuple):
                    return actual in self.value
                return actual == self.value or str(actual) == str(self.value)
            case Operator.NOT_EQUAL:
                return not (actual == self.value or str(actual) == str(self.value))
            case Operator.SEARCH:
                return actual is not None and str(self.value).lower() in str(actual).lower()
            case Operator.CONTAINS:
                if isinstance(actual, list):
                    return self.value in actual
                return actual is not None and str(self.value) in str(actual)

        if actual is None:
            return False
        left, right = _comparable(actual), _comparable(self.value)
        try:
            match self.operator:
                case Operator.GREATER:
                    return left > right
                case Operator.GREATER_EQUAL:
                    return left >= right
                case Operator.LESSER:
                    return left < right
                case Operator.LESSER_EQUAL:
                    return left <= right
        except TypeError:
            return False
        return False


@dataclass
class DocumentQuery:
    """Filters, ordering and pagination for a document listing."""

    filters: list[Filter] = field(default_factory=list)
    order_by: str | None = None
    descending: bool = False
    limit: int | None = None
    offset: int | None = None


def parse_query_string(query: str) -> Filter | None:
    """Parse ``"field,operator,value"`` into a Filter.

    Returns None when the field or operator is missing or the operator is
    unknown. Commas after the operator belong to the value.
    """
    parts = query.split(",", 2)
    if len(parts) < 2:
        return None

    name, operator = parts[0].strip(), parts[1].strip()
    if not name or not operator:
        return None

    try:
        op = Operator(operator)
    except ValueError:
        return None

    value = parts[2] if len(parts) == 3 else ""
    return Filter(field=name, operator=op, value=value)


def parse_query_strings(queries: list[str] | None) -> list[Filter]:
    """Parse many query strings, dropping the ones that do not parse."""
    return [parsed for q in queries or [] if (parsed := parse_query_string(q)) is not None]
