"""Condition expressions for conditional contexts.

Catalog entries gate extra contexts on small expressions over the query
parameters, for example::

    complexity === 'critical' || domain_focus.includes('security')

Grammar:

    expr  := conj ("||" conj)*
    conj  := atom ("&&" atom)*
    atom  := FIELD ".includes(" STRING ")"
           | FIELD "===" STRING
           | FIELD "===" ("true" | "false")

``||`` binds loosest. Anything else parses into ``Unsupported`` which always
evaluates to False.
"""

import re
from dataclasses import dataclass
from typing import Any, Union

import structlog

logger = structlog.get_logger()

_INCLUDES = re.compile(r"^(\w+)\.includes\(\s*['\"]([^'\"]+)['\"]\s*\)$")
_EQUALS = re.compile(r"^(\w+)\s*===\s*['\"]([^'\"]+)['\"]$")
_EQUALS_BOOL = re.compile(r"^(\w+)\s*===\s*(true|false)$")


@dataclass(frozen=True)
class Equals:
    field: str
    value: str | bool

    def evaluate(self, env: dict[str, Any]) -> bool:
        return env.get(self.field) == self.value


@dataclass(frozen=True)
class Includes:
    field: str
    value: str

    def evaluate(self, env: dict[str, Any]) -> bool:
        items = env.get(self.field)
        return isinstance(items, list | tuple) and self.value in items


@dataclass(frozen=True)
class And:
    terms: tuple["Condition", ...]

    def evaluate(self, env: dict[str, Any]) -> bool:
        return all(term.evaluate(env) for term in self.terms)


@dataclass(frozen=True)
class Or:
    terms: tuple["Condition", ...]

    def evaluate(self, env: dict[str, Any]) -> bool:
        return any(term.evaluate(env) for term in self.terms)


@dataclass(frozen=True)
class Unsupported:
    source: str

    def evaluate(self, env: dict[str, Any]) -> bool:
        return False


Condition = Union[Equals, Includes, And, Or, Unsupported]


def _parse_atom(text: str) -> Condition:
    text = text.strip()
    match = _INCLUDES.match(text)
    if match:
        return Includes(field=match.group(1), value=match.group(2))
    match = _EQUALS.match(text)
    if match:
        return Equals(field=match.group(1), value=match.group(2))
    match = _EQUALS_BOOL.match(text)
    if match:
        return Equals(field=match.group(1), value=match.group(2) == "true")
    return Unsupported(source=text)


def _parse_conjunction(text: str) -> Condition:
    parts = [_parse_atom(part) for part in text.split("&&")]
    if len(parts) == 1:
        return parts[0]
    if any(isinstance(part, Unsupported) for part in parts):
        return Unsupported(source=text.strip())
    return And(terms=tuple(parts))


def parse_condition(source: str) -> Condition:
    """Parse a condition string into an expression tree.

    Args:
        source: Condition text from the catalog

    Returns:
        Parsed condition. Unparseable input yields ``Unsupported`` and a
        warning is logged.
    """
    parts = [_parse_conjunction(part) for part in source.split("||")]
    if any(isinstance(part, Unsupported) for part in parts):
        logger.warning("condition.unsupported", condition=source)
        return Unsupported(source=source)
    if len(parts) == 1:
        return parts[0]
    return Or(terms=tuple(parts))


def evaluate_condition(condition: Condition, env: dict[str, Any]) -> bool:
    """Evaluate a parsed condition. Never raises."""
    try:
        return condition.evaluate(env)
    except Exception as e:  # noqa: BLE001
        logger.warning("condition.evaluation_failed", error=str(e))
        return False
