"""
Generic filter -> sort -> paginate pipeline over in-memory records.

Each entity kind describes itself with an EntityQuery: which filter keys have
their own predicate, which keys are free-text, how logical sort keys map onto
stored fields and which fields need a custom sort key. Adding a filterable
field is a table entry, not a new branch.
"""
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from dashboard.schemas.query import QueryMeta, QueryRequest, QueryResult, SortSpec
from dashboard.services.billing_calendar import DASH, ENDED, parse_date

FilterFn = Callable[[Mapping, Any], bool]
SortKeyFn = Callable[[Mapping], Any]


@dataclass(frozen=True)
class EntityQuery:
    """Filter/sort rules for one entity kind"""
    name: str
    search_key: Optional[str] = None
    search_fields: Tuple[str, ...] = ()
    text_fields: FrozenSet[str] = frozenset()
    filters: Dict[str, FilterFn] = field(default_factory=dict)
    sort_aliases: Dict[str, str] = field(default_factory=dict)
    sort_keys: Dict[str, SortKeyFn] = field(default_factory=dict)

    def resolve_sort_field(self, name: str) -> str:
        return self.sort_aliases.get(name, name)


GENERIC = EntityQuery(name="generic")


def get_field(record: Any, path: str) -> Any:
    """Read a value by dot path ("contact.email"); anything missing gives None."""
    value = record
    for key in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(key)
        else:
            value = getattr(value, key, None)
    return value


def contains(haystack: Any, needle: Any) -> bool:
    """Case-insensitive substring test; lists are searched as a comma-joined string."""
    if haystack is None:
        return False
    if isinstance(haystack, (list, tuple)):
        haystack = ",".join(str(item) for item in haystack)
    return str(needle).lower() in str(haystack).lower()


def _matches(record: Mapping, key: str, value: Any, rules: EntityQuery) -> bool:
    predicate = rules.filters.get(key)
    if predicate is not None:
        return predicate(record, value)
    if rules.search_key and key == rules.search_key:
        return any(contains(get_field(record, path), value) for path in rules.search_fields)
    if key in rules.text_fields:
        return contains(get_field(record, key), value)
    return get_field(record, key) == value


def apply_filters(records: Iterable[Mapping], filters: Dict[str, Any], rules: EntityQuery = GENERIC) -> List[Mapping]:
    """AND together every filter whose value is truthy; falsy values mean "no filter"."""
    result = list(records)
    for key, value in (filters or {}).items():
        if not value:
            continue
        result = [record for record in result if _matches(record, key, value, rules)]
    return result


# --- Sort keys ---

def generic_sort_key(value: Any) -> Tuple[int, Any]:
    """Total order over mixed raw values; missing values compare as ""."""
    if value is None:
        return (1, "")
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, (int, float)):
        return (0, value)
    if isinstance(value, str):
        return (1, value)
    if isinstance(value, date):
        return (1, value.isoformat())
    if isinstance(value, (list, tuple)):
        return (1, ",".join(str(item) for item in value))
    return (2, str(value))


def date_sort_key(path: str) -> SortKeyFn:
    """Valid dates in calendar order, missing or malformed dates after them."""
    def key(record: Mapping):
        parsed = parse_date(get_field(record, path))
        if parsed.ok:
            return (0, parsed.value.toordinal())
        return (1, 0)
    return key


def billing_value_sort_key(compute: Callable[[Mapping], str]) -> SortKeyFn:
    """Order computed billing values: real dates < "—" < "Ended"."""
    def key(record: Mapping):
        value = compute(record)
        if value == ENDED:
            return (2, "")
        if value == DASH:
            return (1, "")
        return (0, value)
    return key


def sort_records(records: Sequence[Mapping], sort: Optional[SortSpec], rules: EntityQuery = GENERIC) -> List[Mapping]:
    """Stable sort; descending order reverses the whole ordering, ties keep input order."""
    if sort is None:
        return list(records)
    field_name = rules.resolve_sort_field(sort.field)
    key_fn = rules.sort_keys.get(field_name)
    if key_fn is None:
        key_fn = lambda record: generic_sort_key(get_field(record, field_name))
    return sorted(records, key=key_fn, reverse=sort.descending)


def paginate(records: Sequence[Any], page: int, limit: int) -> QueryResult:
    total = len(records)
    if limit <= 0:
        return QueryResult(data=[], meta=QueryMeta(total=total, page=page, limit=limit, total_pages=0))

    total_pages = math.ceil(total / limit)
    if page < 1:
        data = []
    else:
        start = (page - 1) * limit
        data = list(records[start:start + limit])
    return QueryResult(data=data, meta=QueryMeta(total=total, page=page, limit=limit, total_pages=total_pages))


def query(records: Iterable[Mapping], request: QueryRequest, rules: EntityQuery = GENERIC) -> QueryResult:
    """Filter, sort and paginate records without touching the input collection."""
    filtered = apply_filters(records, request.filters, rules)
    ordered = sort_records(filtered, request.sort, rules)
    return paginate(ordered, request.page, request.limit)
