"""Expression evaluator for ${...} interpolation.

Attribute values in data pipeline markup may embed references to
datasets, e.g. "http://example.com/${user.id}/photos". A string is
parsed once into an immutable Expression made of literal segments and
variable references; evaluating it walks each reference through the
data context.

    expr = parse_expression("Hello ${viewer.name.givenName}!")
    evaluate(expr, context)     # -> "Hello Jane!"

A reference standing alone ("${viewer}") evaluates to the native value,
so whole objects, lists and numbers can be bound to a field.
"""

import functools
import logging
import math
import re
from collections.abc import Mapping, Sequence
from typing import Any, NamedTuple, Optional, Tuple, Union

logger = logging.getLogger(__name__)

VARIABLE_RE = re.compile(r"\$\{([^}]*)\}")

# "a.b[0].c" -> ["a", "b", "0", "c"]
PATH_STEP_RE = re.compile(r"[^.\[\]\s]+")


class Literal(NamedTuple):
    """Plain text segment."""
    text: str


class Variable(NamedTuple):
    """A ${...} reference, split into path steps."""
    source: str
    path: Tuple[str, ...]


Segment = Union[Literal, Variable]


class Expression:
    """Parsed template string. Immutable; build with parse_expression()."""

    __slots__ = ("_source", "_segments")

    def __init__(self, source: str, segments: Tuple[Segment, ...]):
        self._source = source
        self._segments = segments

    @property
    def source(self) -> str:
        return self._source

    @property
    def segments(self) -> Tuple[Segment, ...]:
        return self._segments

    @property
    def is_single_variable(self) -> bool:
        return len(self._segments) == 1 and isinstance(self._segments[0], Variable)

    @property
    def needed_keys(self) -> frozenset:
        """Dataset names this expression reads (first step of each reference)."""
        return frozenset(
            seg.path[0] for seg in self._segments
            if isinstance(seg, Variable) and seg.path
        )

    def __eq__(self, other):
        if not isinstance(other, Expression):
            return NotImplemented
        return self._segments == other._segments

    def __hash__(self):
        return hash(self._segments)

    def __repr__(self) -> str:
        return f"<Expression {self._source!r}>"


@functools.lru_cache(maxsize=512)
def parse_expression(raw: str) -> Optional[Expression]:
    """Parse a template string.

    Returns None when the string holds no ${...} reference, meaning the
    caller should use the raw string as-is.
    """
    if not raw:
        return None

    segments = []
    pos = 0
    for match in VARIABLE_RE.finditer(raw):
        if match.start() > pos:
            segments.append(_literal(raw[pos:match.start()]))
        token = match.group(1).strip()
        segments.append(Variable(token, tuple(PATH_STEP_RE.findall(token))))
        pos = match.end()

    if not segments:
        return None

    if pos < len(raw):
        segments.append(_literal(raw[pos:]))

    return Expression(raw, tuple(segments))


def _literal(text: str) -> Literal:
    # Literal text is flattened onto one line
    return Literal(text.replace("\n", " "))


def lookup(context, path: Tuple[str, ...]) -> Any:
    """Resolve a dotted path against the data context. Missing -> None."""
    if not path:
        return None

    value = context.get_data_set(path[0])
    for step in path[1:]:
        if value is None:
            return None
        value = _step(value, step)
    return value


def _step(value: Any, step: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(step)
    if isinstance(value, Sequence) and not isinstance(value, str):
        try:
            index = int(step)
        except ValueError:
            return None
        if index < 0 or index >= len(value):
            return None
        return value[index]
    # Only public data attributes are reachable from markup
    if step.startswith("_"):
        return None
    attr = getattr(value, step, None)
    return None if callable(attr) else attr


def evaluate(expression: Expression, context) -> Any:
    """Evaluate an Expression against a DataContext."""
    if expression.is_single_variable:
        return lookup(context, expression.segments[0].path)

    parts = []
    for seg in expression.segments:
        if isinstance(seg, Literal):
            parts.append(seg.text)
            continue
        value = string_value(lookup(context, seg.path))
        if value is None:
            logger.debug("Unresolved reference ${%s}", seg.source)
            continue
        parts.append(_text(value))
    return "".join(parts)


def string_value(value: Any) -> Any:
    """Stringify lists and numbers; everything else is returned unchanged."""
    if isinstance(value, (list, tuple)):
        return ",".join(_join_item(item) for item in value)
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return value


def _join_item(item: Any) -> str:
    item = string_value(item)
    if item is None:
        return ""
    return _text(item)


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value if isinstance(value, str) else str(value)


def render(raw: str, context) -> Any:
    """Render a template string: literals pass through, expressions evaluate."""
    expression = parse_expression(raw)
    if expression is None:
        return raw
    return evaluate(expression, context)
