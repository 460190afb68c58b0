"""Request descriptors.

A RequestDescriptor wraps one request element, e.g.

    <os:PeopleRequest key="friends" userId="${ViewParams.owner}" groupId="@friends"/>

Attribute values are parsed once: plain strings become Literal, strings
with ${...} references become Expression. Before a handler runs, the
pipeline calls resolve() and each Expression is replaced by a
Resolved value evaluated against the data context. Handlers read
parameters through get_attribute().
"""

from typing import Any, Dict, NamedTuple, Optional, Union

from core.expressions import Expression, Literal, evaluate, parse_expression


class Resolved(NamedTuple):
    """Attribute value produced by evaluating an Expression."""
    value: Any


AttributeValue = Union[Literal, Resolved]


class RequestDescriptor:
    """One pending data request: tag, dataset key and attributes."""

    def __init__(self, tag_name: str, key: str, attributes: Dict[str, str]):
        self.tag_name = tag_name
        self.prefix, _, self.local_name = tag_name.rpartition(":")
        self.key = key
        self.attributes: Dict[str, Union[Literal, Expression]] = {}
        for name, value in attributes.items():
            if not value:
                continue
            expression = parse_expression(value)
            self.attributes[name] = expression if expression is not None else Literal(value)
        self._resolved: Optional[Dict[str, AttributeValue]] = None
        self.executed = False
        # Set while a ready listener is registered for this descriptor
        self.waiting = False

    @property
    def needed_keys(self) -> frozenset:
        """Datasets referenced by any attribute."""
        keys = set()
        for value in self.attributes.values():
            if isinstance(value, Expression):
                keys |= value.needed_keys
        return frozenset(keys)

    @property
    def resolved(self) -> bool:
        return self._resolved is not None

    def resolve(self, context) -> Dict[str, AttributeValue]:
        """Evaluate expression attributes against the data context."""
        resolved: Dict[str, AttributeValue] = {}
        for name, value in self.attributes.items():
            if isinstance(value, Expression):
                resolved[name] = Resolved(evaluate(value, context))
            else:
                resolved[name] = value
        self._resolved = resolved
        return resolved

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def get_attribute(self, name: str, default: Any = None) -> Any:
        """Effective attribute value.

        After resolve() this is the literal text or the evaluated value;
        before it, the attribute's source text.
        """
        if self._resolved is not None:
            value = self._resolved.get(name)
            if value is None:
                return default
            return value.text if isinstance(value, Literal) else value.value

        value = self.attributes.get(name)
        if value is None:
            return default
        return value.text if isinstance(value, Literal) else value.source

    def __repr__(self) -> str:
        state = "executed" if self.executed else "pending"
        return f"<RequestDescriptor {self.tag_name} key={self.key!r} {state}>"
