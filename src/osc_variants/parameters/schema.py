"""Schema definitions for scenario parameters."""

from dataclasses import dataclass

from ..errors import ConstraintViolationError, DocumentError
from ..values import OS_TYPES, STRING, OSType, ValueExpr, parse_typed, parse_value

# Comparison rules allowed in a ValueConstraint
CONSTRAINT_RULES = {
    "equalTo": lambda a, b: a == b,
    "notEqualTo": lambda a, b: a != b,
    "greaterThan": lambda a, b: a > b,
    "lessThan": lambda a, b: a < b,
    "greaterOrEqual": lambda a, b: a >= b,
    "lessOrEqual": lambda a, b: a <= b,
}


@dataclass(frozen=True)
class ValueConstraint:
    """A single rule a parameter value must satisfy, e.g. greaterThan 0."""

    rule: str
    value: str

    def __post_init__(self):
        if self.rule not in CONSTRAINT_RULES:
            raise DocumentError(f"Unknown constraint rule: {self.rule}")

    def is_satisfied(self, value, ostype: OSType) -> bool:
        bound = parse_typed(f"constraint {self.rule}", self.value, ostype)
        return CONSTRAINT_RULES[self.rule](value, bound)

    def __str__(self) -> str:
        return f"{self.rule} {self.value}"


@dataclass(frozen=True)
class ValueConstraintGroup:
    """Constraints that must all hold together."""

    constraints: tuple[ValueConstraint, ...]

    def is_satisfied(self, value, ostype: OSType) -> bool:
        return all(c.is_satisfied(value, ostype) for c in self.constraints)

    def __str__(self) -> str:
        return " and ".join(str(c) for c in self.constraints)


@dataclass(frozen=True)
class ParameterDeclaration:
    """A named, typed, defaulted parameter.

    Example XML:
    ```xml
    <ParameterDeclaration name="EgoSpeed" parameterType="double" value="13.9">
      <ConstraintGroup>
        <ValueConstraint rule="greaterThan" value="0"/>
      </ConstraintGroup>
    </ParameterDeclaration>
    ```
    """

    name: str
    parameter_type: str  # "double", "int", "string", ...
    value: str  # default, may itself be a $reference
    constraint_groups: tuple[ValueConstraintGroup, ...] = ()

    def __post_init__(self):
        if self.parameter_type not in OS_TYPES:
            raise DocumentError(
                f"Parameter '{self.name}' has unknown parameterType '{self.parameter_type}'"
            )

    @property
    def ostype(self) -> OSType:
        return OS_TYPES[self.parameter_type]

    @property
    def default(self) -> ValueExpr:
        return parse_value(self.value, self.ostype)

    def check(self, text: str) -> None:
        """Validate a value for this parameter.

        Raises:
            TypeMismatchError: If the text does not parse as the declared type
            ConstraintViolationError: If no constraint group is satisfied
        """
        value = parse_typed(self.name, text, self.ostype)
        if not self.constraint_groups:
            return
        if any(g.is_satisfied(value, self.ostype) for g in self.constraint_groups):
            return
        raise ConstraintViolationError(
            self.name, text, [str(g) for g in self.constraint_groups]
        )


@dataclass(frozen=True)
class ParameterAssignment:
    """Sets a parameter for a catalog reference or a value set."""

    parameter_ref: str
    value: ValueExpr

    @classmethod
    def of(cls, parameter_ref: str, value: str) -> "ParameterAssignment":
        return cls(parameter_ref, parse_value(value, STRING))
