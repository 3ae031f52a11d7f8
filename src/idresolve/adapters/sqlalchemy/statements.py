"""Parameterised statement building.

Values never enter the SQL text: every value is bound under a structured, index-derived
name (``entity_0_duration_1_identifier_2_type``) and passed to the driver out of band.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from sqlalchemy import text

from idresolve.domain.model import ensure_utc

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from sqlalchemy.sql.elements import TextClause

_PARAM_NAME: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_TIMESTAMP_SUFFIX: Final[str] = "Z"

type ParamValue = str | int | bool | None


def format_timestamp(value: datetime | None) -> str | None:
    """Encode as fixed-width UTC ISO-8601, e.g. ``2020-01-01T00:00:00.000000Z``."""

    if value is None:
        return None
    naive = ensure_utc(value).replace(tzinfo=None)
    return naive.isoformat(timespec="microseconds") + _TIMESTAMP_SUFFIX


def parse_timestamp(value: str) -> datetime:
    if not value.endswith(_TIMESTAMP_SUFFIX):
        raise ValueError(f"Not a UTC timestamp: {value!r}")
    return datetime.fromisoformat(value[: -len(_TIMESTAMP_SUFFIX)]).replace(tzinfo=UTC)


def active_predicate(link: str, as_of: str) -> str:
    """SQL form of the half-open activeness rule for a link alias.

    A NULL ``as_of`` means "current": only links without an end match.
    """

    return (
        f"(({as_of} IS NULL AND {link}.valid_until IS NULL) OR "
        f"({link}.valid_from <= {as_of} AND "
        f"({link}.valid_until IS NULL OR {as_of} < {link}.valid_until)))"
    )


@dataclass(frozen=True, slots=True)
class Statement:
    """A SQL template plus the values bound to its named parameters."""

    template: str
    params: Mapping[str, ParamValue]

    def clause(self) -> TextClause:
        return text(self.template)

    def render_debug(self) -> str:
        return render_debug(self.template, self.params)


class QueryBuilder:
    """Accumulate a statement template while binding values under unique names."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self.params: dict[str, ParamValue] = {}

    def write(self, sql: str) -> QueryBuilder:
        self._parts.append(sql)
        return self

    def bind(self, name: str, value: ParamValue) -> str:
        """Bind ``value`` under ``name`` and return its placeholder.

        Binding a name again is allowed only with the same value.
        """

        if not _PARAM_NAME.match(name):
            raise ValueError(f"Invalid parameter name: {name!r}")
        if name in self.params and self.params[name] != value:
            raise ValueError(f"Parameter {name!r} already bound to a different value")
        self.params[name] = value
        return f":{name}"

    def values_row(self, *bindings: tuple[str, ParamValue]) -> str:
        """Bind several values and return them as a ``(:a, :b, ...)`` row."""

        return "(" + ", ".join(self.bind(name, value) for name, value in bindings) + ")"

    def __str__(self) -> str:
        return "".join(self._parts)

    def build(self) -> Statement:
        return Statement(template=str(self), params=dict(self.params))


@dataclass(slots=True)
class StatementBatch:
    """Ordered statements executed in one transaction.

    A parameter name used by more than one statement must bind the same value, so the
    batch has a single consistent parameter namespace.
    """

    statements: list[Statement] = field(default_factory=list["Statement"])
    _namespace: dict[str, ParamValue] = field(default_factory=dict, init=False, repr=False)

    def add(self, statement: Statement) -> None:
        for name, value in statement.params.items():
            if name in self._namespace and self._namespace[name] != value:
                raise ValueError(f"Parameter {name!r} bound to conflicting values in one batch")
            self._namespace[name] = value
        self.statements.append(statement)

    def extend(self, statements: Iterable[Statement]) -> None:
        for statement in statements:
            self.add(statement)

    @property
    def params(self) -> Mapping[str, ParamValue]:
        return dict(self._namespace)

    def __iter__(self) -> Iterator[Statement]:
        return iter(self.statements)

    def __len__(self) -> int:
        return len(self.statements)

    def render_debug(self) -> str:
        return ";\n".join(statement.render_debug() for statement in self.statements)


def render_debug(template: str, params: Mapping[str, object]) -> str:
    """Substitute literal values for placeholders, for logging and EXPLAIN only.

    Never execute the output. Names are replaced longest first so that ``:a_1`` does
    not clobber ``:a_10``. List-valued parameters do not render as valid SQL.
    """

    rendered = template
    for name in sorted(params, key=len, reverse=True):
        rendered = rendered.replace(f":{name}", _literal(params[name]))
    lines = [line.strip() for line in rendered.replace("\t", "").splitlines()]
    return "\n".join(line for line in lines if line)


def _literal(value: object) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


__all__ = [
    "ParamValue",
    "QueryBuilder",
    "Statement",
    "StatementBatch",
    "active_predicate",
    "format_timestamp",
    "parse_timestamp",
    "render_debug",
]
