"""Layered, immutable parameter scopes.

A scope is a persistent linked list of layers. Pushing a layer returns a new
scope that shares every layer below it, so one base scope can be the parent
of many independent children (one per catalog reference, one per variant)
without copying and without ever being mutated.

    scope = ParameterScope.empty()
    scope = scope.push_declarations(template_declarations)   # defaults
    scope = scope.push_layer({"EgoSpeed": "30"}, label="variant 3")
    scope.require("EgoSpeed")  # "30"
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from ..errors import DuplicateParameterDeclarationError, ParameterNotFoundError
from ..values import ExpressionEvaluator, OSType, resolve_text
from .schema import ParameterDeclaration


@dataclass(frozen=True)
class ScopeLayer:
    """One layer of parameter values, with the declarations that introduced them."""

    label: str
    values: Mapping[str, str]
    declarations: Mapping[str, ParameterDeclaration] = field(
        default_factory=lambda: MappingProxyType({})
    )


class ParameterScope:
    """Maps parameter names to string values; the most recent layer wins."""

    __slots__ = ("_layer", "_parent")

    def __init__(self, layer: ScopeLayer | None = None, parent: "ParameterScope | None" = None):
        self._layer = layer
        self._parent = parent

    @classmethod
    def empty(cls) -> "ParameterScope":
        return cls()

    @classmethod
    def from_mapping(cls, values: Mapping[str, str], label: str = "values") -> "ParameterScope":
        return cls.empty().push_layer(values, label=label)

    # Building

    def push_layer(
        self,
        values: Mapping[str, str] | Iterable[tuple[str, str]],
        label: str = "overrides",
    ) -> "ParameterScope":
        """Return a new scope with `values` shadowing this one.

        Values for declared parameters are checked against the declaration.

        Raises:
            TypeMismatchError: If a value does not parse as the declared type
            ConstraintViolationError: If a value breaks the declared constraints
        """
        values = dict(values)
        for name, text in values.items():
            declaration = self.declaration(name)
            if declaration is not None:
                declaration.check(text)
        return ParameterScope(ScopeLayer(label, MappingProxyType(values)), self)

    def push_declarations(
        self,
        declarations: Iterable[ParameterDeclaration],
        label: str = "declarations",
        evaluator: ExpressionEvaluator | None = None,
    ) -> "ParameterScope":
        """Return a new scope holding the defaults of `declarations`.

        Defaults may refer to parameters below this layer or declared earlier
        in the same list (`value="$EgoSpeed"`); they are resolved in order.

        Raises:
            DuplicateParameterDeclarationError: If a name is declared twice in
                the list, or re-declared with a different type than below
            ParameterNotFoundError: If a default refers to an unknown parameter
        """
        declared: dict[str, ParameterDeclaration] = {}
        resolved: dict[str, str] = {}
        # Sees the layer while it is being filled; never handed out
        partial = ParameterScope(ScopeLayer(label, resolved, declared), self)

        for declaration in declarations:
            name = declaration.name
            if name in declared:
                raise DuplicateParameterDeclarationError(name, f"declared twice in {label}")
            existing = self.declaration(name)
            if existing is not None and existing.parameter_type != declaration.parameter_type:
                raise DuplicateParameterDeclarationError(
                    name,
                    f"declared as {existing.parameter_type} and as {declaration.parameter_type}",
                )
            text = resolve_text(declaration.default, partial, evaluator)
            declaration.check(text)
            declared[name] = declaration
            resolved[name] = text

        layer = ScopeLayer(label, MappingProxyType(dict(resolved)), MappingProxyType(dict(declared)))
        return ParameterScope(layer, self)

    # Lookup

    def _chain(self) -> Iterator[ScopeLayer]:
        """Layers, most recent first."""
        scope = self
        while scope is not None:
            if scope._layer is not None:
                yield scope._layer
            scope = scope._parent

    def lookup(self, name: str) -> str | None:
        for layer in self._chain():
            if name in layer.values:
                return layer.values[name]
        return None

    def require(self, name: str) -> str:
        """Look a parameter up, failing instead of defaulting."""
        value = self.lookup(name)
        if value is None:
            raise ParameterNotFoundError(name, available=list(self.names()))
        return value

    def declaration(self, name: str) -> ParameterDeclaration | None:
        for layer in self._chain():
            if name in layer.declarations:
                return layer.declarations[name]
        return None

    def declared_type(self, name: str) -> OSType | None:
        declaration = self.declaration(name)
        return declaration.ostype if declaration else None

    def names(self) -> set[str]:
        return {name for layer in self._chain() for name in layer.values}

    def flatten(self) -> dict[str, str]:
        """Effective value of every parameter in scope."""
        result: dict[str, str] = {}
        for layer in self.layers:
            result.update(layer.values)
        return result

    @property
    def layers(self) -> tuple[ScopeLayer, ...]:
        """Layers, bottom first."""
        return tuple(reversed(list(self._chain())))

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterScope):
            return NotImplemented
        mine = [dict(layer.values) for layer in self.layers]
        theirs = [dict(layer.values) for layer in other.layers]
        return mine == theirs

    __hash__ = None

    def __repr__(self) -> str:
        labels = " > ".join(layer.label for layer in self.layers) or "empty"
        return f"ParameterScope({labels})"
