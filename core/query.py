# core/query.py
"""
Client query parameters -> typed query descriptor.

List endpoints accept free-form parameters such as::

    ?filter[time][gte]=5&sort=-date,activity&fields=date,time&page=2&limit=20
    ?time[lt]=30&valid=true
    ?time.gte=5

``QueryTranslator`` turns them into a ``QueryDescriptor`` made of
``FilterClause`` objects (field + operator + coerced value), an ordering,
a projection and pagination. Field names are only ever taken from the
per-entity whitelist (``FieldSpec`` mapping), and operators only from the
``Operator`` enum; client strings are never spliced into lookups.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from django.db.models import Q, QuerySet
from django.utils.dateparse import parse_date, parse_datetime

from .exceptions import MalformedQuery

logger = logging.getLogger("collab.query")


RESERVED_PARAMS = frozenset({"sort", "limit", "fields", "page"})

# Never exposed through a projection, whatever the client asks for
INTERNAL_FIELDS = frozenset({"version"})

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
DEFAULT_SORT = ("-id",)

# filter[field], filter[field][op], field, field[op], field.op
_KEY_RE = re.compile(
    r"^(?:filter\[(?P<wrapped>[A-Za-z0-9_]+)\]|(?P<bare>[A-Za-z0-9_]+))"
    r"(?:\[(?P<bracket_op>[A-Za-z]+)\]|\.(?P<dotted_op>[A-Za-z]+))?$"
)


class Operator(str, Enum):
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"


COMPARISON_TOKENS = {op.value: op for op in Operator if op is not Operator.EQ}


# ---- Value coercion ------------------------------------------------------


def as_text(value: str) -> str:
    return value


def as_int(value: str) -> int:
    return int(value)


def as_float(value: str) -> float:
    return float(value)


def as_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes"):
        return True
    if lowered in ("0", "false", "no"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def as_date(value: str) -> date:
    parsed = parse_date(value.strip())
    if parsed is None:
        raise ValueError(f"not a date: {value!r}")
    return parsed


def as_datetime(value: str) -> datetime:
    value = value.strip()
    parsed = parse_datetime(value)
    if parsed is None:
        day = parse_date(value)
        if day is None:
            raise ValueError(f"not a datetime: {value!r}")
        parsed = datetime(day.year, day.month, day.day)
    return parsed


@dataclass(frozen=True)
class FieldSpec:
    """
    One client-visible field of an entity.

    ``lookup`` is the ORM path the field maps to, ``cast`` turns the raw
    string into a comparable value. ``many`` marks lookups that cross a
    multi-valued relation (results must be de-duplicated).
    """
    lookup: str
    cast: Callable[[str], Any] = as_text
    filterable: bool = True
    sortable: bool = True
    many: bool = False


# ---- Descriptor ----------------------------------------------------------


@dataclass(frozen=True)
class FilterClause:
    field: str
    operator: Operator
    value: Any
    lookup: str

    def to_q(self) -> Q:
        if self.operator is Operator.EQ:
            return Q(**{self.lookup: self.value})
        if self.operator is Operator.NE:
            return ~Q(**{self.lookup: self.value})
        return Q(**{f"{self.lookup}__{self.operator.value}": self.value})


@dataclass(frozen=True)
class QueryDescriptor:
    filters: Tuple[FilterClause, ...] = ()
    sort: Tuple[str, ...] = DEFAULT_SORT
    projection: Optional[Tuple[str, ...]] = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    distinct: bool = False

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def filter(self) -> Q:
        combined = Q()
        for clause in self.filters:
            combined &= clause.to_q()
        return combined

    def apply(self, queryset: QuerySet) -> QuerySet:
        """Filter and order ``queryset``; pagination is left to ``paginate``."""
        queryset = queryset.filter(self.filter).order_by(*self.sort)
        if self.distinct:
            queryset = queryset.distinct()
        return queryset

    def paginate(self, queryset: QuerySet) -> QuerySet:
        return queryset[self.skip:self.skip + self.limit]


# ---- Translator ----------------------------------------------------------


def _positive_int(raw, default: int) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


@dataclass
class QueryTranslator:
    """
    Stateless translator bound to one entity's field whitelist.

    ``reserved`` lists extra parameter names an endpoint consumes itself
    (for example ``public`` on the project list); they are skipped like the
    standard ``sort``/``limit``/``fields``/``page`` keys.
    """
    fields: Mapping[str, FieldSpec]
    reserved: Iterable[str] = ()
    default_sort: Tuple[str, ...] = DEFAULT_SORT
    default_limit: int = DEFAULT_LIMIT
    max_limit: int = MAX_LIMIT
    _skip: frozenset = field(init=False, repr=False)

    def __post_init__(self):
        self._skip = RESERVED_PARAMS | frozenset(self.reserved)

    def translate(self, params: Mapping[str, Any]) -> QueryDescriptor:
        filters = []
        for key, raw in params.items():
            if key in self._skip:
                continue
            filters.append(self._clause(key, raw))

        limit = min(_positive_int(params.get("limit"), self.default_limit), self.max_limit)
        logger.debug(f"Translated query params {sorted(params.keys())} into {len(filters)} clause(s)")
        return QueryDescriptor(
            filters=tuple(filters),
            sort=self._sort(params.get("sort")),
            projection=self._projection(params.get("fields")),
            page=_positive_int(params.get("page"), DEFAULT_PAGE),
            limit=limit,
            distinct=any(self.fields[c.field].many for c in filters),
        )

    def _spec(self, name: str, purpose: str) -> FieldSpec:
        spec = self.fields.get(name)
        if spec is None or not getattr(spec, purpose):
            raise MalformedQuery(f"Unknown or unsupported field '{name}'.")
        return spec

    def _clause(self, key: str, raw) -> FilterClause:
        match = _KEY_RE.match(key)
        if match is None:
            raise MalformedQuery(f"Cannot parse filter parameter '{key}'.")

        name = match.group("wrapped") or match.group("bare")
        token = match.group("bracket_op") or match.group("dotted_op")
        spec = self._spec(name, "filterable")

        if token is None:
            operator = Operator.EQ
        elif token in COMPARISON_TOKENS:
            operator = COMPARISON_TOKENS[token]
        else:
            raise MalformedQuery(f"Unsupported operator '{token}' on field '{name}'.")

        if isinstance(raw, (list, tuple)):
            raw = raw[-1] if raw else ""
        if not isinstance(raw, str):
            raise MalformedQuery(f"Value for '{key}' must be a plain string.")

        try:
            value = spec.cast(raw)
        except (TypeError, ValueError):
            raise MalformedQuery(f"Invalid value for '{name}': {raw!r}.")

        return FilterClause(field=name, operator=operator, value=value, lookup=spec.lookup)

    def _sort(self, raw) -> Tuple[str, ...]:
        if not raw:
            return self.default_sort
        ordering = []
        for part in str(raw).split(","):
            part = part.strip()
            if not part:
                continue
            descending = part.startswith("-")
            name = part.lstrip("-")
            spec = self._spec(name, "sortable")
            ordering.append(f"-{spec.lookup}" if descending else spec.lookup)
        return tuple(ordering) or self.default_sort

    def _projection(self, raw) -> Optional[Tuple[str, ...]]:
        if not raw:
            return None
        selected = ["id"]
        for part in str(raw).split(","):
            name = part.strip()
            if not name or name in INTERNAL_FIELDS or name in selected:
                continue
            if name not in self.fields:
                raise MalformedQuery(f"Unknown field '{name}' in projection.")
            selected.append(name)
        return tuple(selected)


def translate(params: Mapping[str, Any], fields: Dict[str, FieldSpec], **options) -> QueryDescriptor:
    """Shortcut for one-off translations."""
    return QueryTranslator(fields=fields, **options).translate(params)


def translator_for(fields: Dict[str, FieldSpec], **options) -> QueryTranslator:
    """Translator using the page-size limits from settings."""
    from django.conf import settings

    options.setdefault("default_limit", getattr(settings, "QUERY_DEFAULT_LIMIT", DEFAULT_LIMIT))
    options.setdefault("max_limit", getattr(settings, "QUERY_MAX_LIMIT", MAX_LIMIT))
    return QueryTranslator(fields=fields, **options)
