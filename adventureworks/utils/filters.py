from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from marshmallow import Schema, ValidationError


@dataclass(frozen=True)
class FieldFilter:
    """A single ``field == value`` condition on a mapped column."""

    field: str
    value: Any

    def clause(self, model_cls):
        return getattr(model_cls, self.field) == self.value


@dataclass
class FilterSet:
    """
    Equality filters taken from a query string.

    Keys are matched case-insensitively against the allow-list; keys outside
    it are kept in ``rejected`` and never reach the query. Values are
    converted by the schema field of the same name, without its validators,
    so they bind with the column's python type.
    """

    filters: List[FieldFilter] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)

    @classmethod
    def from_query(
        cls,
        query: Mapping[str, Any],
        allowed: Iterable[str],
        schema: Optional[Schema] = None,
    ) -> "FilterSet":
        lookup = {name.lower(): name for name in allowed}
        filters: List[FieldFilter] = []
        rejected: List[str] = []
        errors: Dict[str, List[str]] = {}
        seen = set()

        for key, raw in query.items():
            name = lookup.get(key.strip().lower())
            if name is None:
                rejected.append(key)
                continue
            if name in seen:
                continue
            seen.add(name)
            try:
                value = cls._coerce(schema, name, raw)
            except ValidationError as exc:
                errors[key] = exc.messages if isinstance(exc.messages, list) else [str(exc.messages)]
                continue
            filters.append(FieldFilter(name, value))

        if errors:
            raise ValidationError(errors)
        return cls(filters=filters, rejected=rejected)

    @staticmethod
    def _coerce(schema: Optional[Schema], name: str, raw: Any) -> Any:
        if schema is None:
            return raw
        schema_field = schema.fields.get(name)
        if schema_field is None:
            return raw
        if raw in ("", None) and schema_field.allow_none:
            return None
        # Type conversion only; validators do not apply to filter values
        coercer = copy.copy(schema_field)
        coercer.validators = []
        return coercer.deserialize(raw)

    @property
    def is_empty(self) -> bool:
        return not self.filters

    @property
    def pairs(self) -> List[Tuple[str, Any]]:
        return [(f.field, f.value) for f in self.filters]

    def clauses(self, model_cls) -> Sequence[Any]:
        return [f.clause(model_cls) for f in self.filters]

    def __len__(self) -> int:
        return len(self.filters)
