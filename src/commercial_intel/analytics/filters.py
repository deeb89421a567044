"""Filter engine: typed filter criteria and a pure AND-conjunction predicate.

Loosely shaped filter input (scalars, lists, empty lists, ``None``, date
strings) is converted exactly once, at the boundary, by
:meth:`FilterCriteria.from_raw`.  Past that point every field is either the
``ANY`` sentinel or a :class:`OneOf` membership set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Union

from commercial_intel.analytics.dates import parse_day
from commercial_intel.analytics.records import record_day

DATE_KEYS = ("start", "end")


class _AnyValue:
    """Sentinel: the field is not constrained."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def admits(self, value: Any) -> bool:
        return True

    def __repr__(self) -> str:
        return "ANY"


ANY = _AnyValue()


@dataclass(frozen=True)
class OneOf:
    """The field value must be a member of ``values``."""

    values: frozenset[str]

    def admits(self, value: Any) -> bool:
        return value in self.values


Constraint = Union[_AnyValue, OneOf]


def _as_constraint(value: Any) -> Constraint:
    if value is None:
        return ANY
    if isinstance(value, (OneOf, _AnyValue)):
        return value
    if isinstance(value, str):
        return OneOf(frozenset([value])) if value else ANY
    if isinstance(value, Iterable):
        members = frozenset(str(v) for v in value if v is not None and v != "")
        return OneOf(members) if members else ANY
    return OneOf(frozenset([str(value)]))


def _as_day(value: Any) -> date | None:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return parse_day(value)


@dataclass(frozen=True)
class FilterCriteria:
    """Optional inclusive date bounds plus per-field membership constraints.

    Fields absent from ``fields`` are unconstrained.  ``fields`` never holds
    ``ANY``; use :meth:`constraint` to read a field uniformly.
    """

    start: date | None = None
    end: date | None = None
    fields: Mapping[str, OneOf] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | None) -> FilterCriteria:
        """Build criteria from a loosely typed mapping.

        ``{"region": ["North"], "rep": "ANA", "start": "2025-01-01"}`` →
        region ∈ {North}, rep ∈ {ANA}, start 2025-01-01.  Empty lists,
        empty strings and ``None`` mean "no constraint".
        """
        if not raw:
            return cls()
        fields: dict[str, OneOf] = {}
        for name, value in raw.items():
            if name in DATE_KEYS:
                continue
            constraint = _as_constraint(value)
            if isinstance(constraint, OneOf):
                fields[name] = constraint
        return cls(
            start=_as_day(raw.get("start")),
            end=_as_day(raw.get("end")),
            fields=fields,
        )

    def constraint(self, name: str) -> Constraint:
        return self.fields.get(name, ANY)

    def constrains(self, name: str) -> bool:
        if name in DATE_KEYS:
            return getattr(self, name) is not None
        return name in self.fields

    @property
    def has_date_bounds(self) -> bool:
        return self.start is not None or self.end is not None

    @property
    def is_empty(self) -> bool:
        return not self.fields and not self.has_date_bounds

    def with_field(self, name: str, values: Iterable[str] | str | None) -> FilterCriteria:
        constraint = _as_constraint(values)
        fields = {k: v for k, v in self.fields.items() if k != name}
        if isinstance(constraint, OneOf):
            fields[name] = constraint
        return FilterCriteria(self.start, self.end, fields)

    def without(self, name: str) -> FilterCriteria:
        if name == "start":
            return FilterCriteria(None, self.end, dict(self.fields))
        if name == "end":
            return FilterCriteria(self.start, None, dict(self.fields))
        return FilterCriteria(
            self.start, self.end, {k: v for k, v in self.fields.items() if k != name}
        )

    def merged(self, other: FilterCriteria) -> FilterCriteria:
        """Overlay *other* on top of this criteria; *other* wins per field."""
        fields = dict(self.fields)
        fields.update(other.fields)
        return FilterCriteria(
            start=other.start if other.start is not None else self.start,
            end=other.end if other.end is not None else self.end,
            fields=fields,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly form, the inverse of :meth:`from_raw`."""
        out: dict[str, Any] = {}
        if self.start is not None:
            out["start"] = self.start.isoformat()
        if self.end is not None:
            out["end"] = self.end.isoformat()
        for name in sorted(self.fields):
            out[name] = sorted(self.fields[name].values)
        return out


def matches(record: Any, criteria: FilterCriteria | None) -> bool:
    """True when *record* satisfies every active criterion.

    A record whose own date does not parse is rejected as soon as any date
    bound is present, and admitted when there is none.
    """
    if criteria is None:
        return True

    if criteria.has_date_bounds:
        day = record_day(record)
        if day is None:
            return False
        if criteria.start is not None and day < criteria.start:
            return False
        if criteria.end is not None and day > criteria.end:
            return False

    for name, constraint in criteria.fields.items():
        if not constraint.admits(getattr(record, name, None)):
            return False
    return True


def apply_filters(records: Iterable[Any], criteria: FilterCriteria | None) -> list:
    """Records matching *criteria*, in their original order."""
    return [r for r in records if matches(r, criteria)]


def extract_unique(records: Iterable[Any], field_name: str) -> list[str]:
    """Sorted distinct non-empty values of a field (filter option lists)."""
    values = {getattr(r, field_name, None) for r in records}
    return sorted(str(v) for v in values if v)
