"""Conditional field visibility.

Fields may declare ``visible_all`` and/or ``visible_any`` conditions: space
separated comparisons such as ``NETWORK_METHOD==static`` or
``BOOT_TIMEOUT>=1``. Conditions are parsed once when the field is declared
so malformed expressions fail loudly, and evaluated against the live
values every time visibility is queried.
"""

from __future__ import annotations

import operator
import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from nixwizard.lib.errors import ConfigurationError

__all__ = [
    "Comparison",
    "VisibilityCondition",
    "parse_expression",
    "parse_condition",
    "is_visible",
]

Lookup = Callable[[str], str]

EXPRESSION_PATTERN = re.compile(r"([A-Z_][A-Z0-9_]*)(==|!=|<=|>=|<|>)(.*)")
_INTEGER = re.compile(r"-?[0-9]+")

_OPERATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    ">": operator.gt,
    "<=": operator.le,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class Comparison:
    """``field op literal``."""

    field: str
    op: str
    literal: str

    def evaluate(self, lookup: Lookup) -> bool:
        current = lookup(self.field)
        if self.op in ("==", "!="):
            return _OPERATORS[self.op](current, self.literal)
        # Ordering is numeric only when both sides are integers
        if _INTEGER.fullmatch(current) and _INTEGER.fullmatch(self.literal):
            return _OPERATORS[self.op](int(current), int(self.literal))
        return _OPERATORS[self.op](current, self.literal)

    def __str__(self) -> str:
        return f"{self.field}{self.op}{self.literal}"


@dataclass(frozen=True)
class VisibilityCondition:
    """Every ``all_of`` comparison and at least one ``any_of`` comparison must hold.

    An empty ``any_of`` list places no constraint.
    """

    all_of: Tuple[Comparison, ...] = ()
    any_of: Tuple[Comparison, ...] = ()

    def evaluate(self, lookup: Lookup) -> bool:
        if not all(c.evaluate(lookup) for c in self.all_of):
            return False
        if self.any_of and not any(c.evaluate(lookup) for c in self.any_of):
            return False
        return True

    def referenced_fields(self) -> Tuple[str, ...]:
        return tuple(c.field for c in self.all_of + self.any_of)


def parse_expression(expression: str, *, field: Optional[str] = None) -> Comparison:
    """Parse a single ``IDENT op literal`` expression.

    Raises:
        ConfigurationError: If the expression does not match the grammar
    """
    match = EXPRESSION_PATTERN.fullmatch(expression)
    if match is None:
        raise ConfigurationError(
            f"Invalid visibility expression: {expression}",
            field=field,
            value=expression,
            suggestion="Use FIELD==value, FIELD!=value, FIELD<n, FIELD>n, FIELD<=n or FIELD>=n",
        )
    return Comparison(*match.groups())


def parse_condition(
    visible_all: Optional[str] = None,
    visible_any: Optional[str] = None,
    *,
    field: Optional[str] = None,
) -> Optional[VisibilityCondition]:
    """Parse space separated expression lists, returning None when both are empty."""
    all_of = tuple(
        parse_expression(expr, field=field) for expr in (visible_all or "").split()
    )
    any_of = tuple(
        parse_expression(expr, field=field) for expr in (visible_any or "").split()
    )
    if not all_of and not any_of:
        return None
    return VisibilityCondition(all_of=all_of, any_of=any_of)


def is_visible(condition: Optional[VisibilityCondition], lookup: Lookup) -> bool:
    """Evaluate ``condition`` against current values; no condition means visible."""
    if condition is None:
        return True
    return condition.evaluate(lookup)
