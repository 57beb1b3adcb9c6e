"""Parameter handling for scenario resolution.

Parameters are declared in ParameterDeclarations blocks:
  <ParameterDeclaration name="EgoSpeed" parameterType="double" value="13.9"/>

And referenced from any attribute by name:
  <AbsoluteTargetSpeed value="$EgoSpeed"/>
"""

from .loader import (
    apply_effective_values,
    build_scope,
    extract_scenario_parameters,
    load_parameter_overrides,
    read_assignments,
    read_declarations,
    substitute_values,
)
from .schema import (
    ParameterAssignment,
    ParameterDeclaration,
    ValueConstraint,
    ValueConstraintGroup,
)
from .scope import ParameterScope, ScopeLayer

__all__ = [
    "ParameterScope",
    "ScopeLayer",
    "ParameterDeclaration",
    "ParameterAssignment",
    "ValueConstraint",
    "ValueConstraintGroup",
    "read_declarations",
    "read_assignments",
    "build_scope",
    "substitute_values",
    "apply_effective_values",
    "extract_scenario_parameters",
    "load_parameter_overrides",
]
