"""Reading parameter declarations and assignments out of documents.

Supports:
- ParameterDeclarations blocks of scenarios and catalog entries, including
  ConstraintGroup / ValueConstraint children
- ParameterAssignments of catalog references and value sets
- YAML parameter override files:

    # overrides.yaml
    EgoSpeed: 30
    Road: ./roads/straight.xodr
"""

from pathlib import Path
from typing import Iterable, Union

import yaml

from ..document import Element, iter_value_sites
from ..errors import DocumentError
from ..values import STRING, ExpressionEvaluator, Literal, parse_value, resolve_text
from .schema import (
    ParameterAssignment,
    ParameterDeclaration,
    ValueConstraint,
    ValueConstraintGroup,
)
from .scope import ParameterScope


def _read_constraint_groups(node: Element) -> tuple[ValueConstraintGroup, ...]:
    groups = []
    for group in node.findall("ConstraintGroup"):
        constraints = tuple(
            ValueConstraint(rule=c.get("rule", ""), value=c.get("value", ""))
            for c in group.findall("ValueConstraint")
        )
        if not constraints:
            raise DocumentError(
                f"ConstraintGroup of parameter '{node.get('name')}' has no ValueConstraint"
            )
        groups.append(ValueConstraintGroup(constraints))
    return tuple(groups)


def read_declarations(element: Element) -> list[ParameterDeclaration]:
    """Declarations of the ParameterDeclarations child of `element`, in order."""
    block = element.find("ParameterDeclarations")
    if block is None:
        return []

    declarations = []
    for node in block.findall("ParameterDeclaration"):
        name = node.get("name")
        if not name:
            raise DocumentError(f"ParameterDeclaration without a name in <{element.tag}>")
        declarations.append(
            ParameterDeclaration(
                name=name,
                parameter_type=node.get("parameterType", "string"),
                value=node.get("value", ""),
                constraint_groups=_read_constraint_groups(node),
            )
        )
    return declarations


def read_assignments(element: Element) -> list[ParameterAssignment]:
    """ParameterAssignment children of `element`, or of its ParameterAssignments child."""
    block = element.find("ParameterAssignments")
    nodes = (block if block is not None else element).findall("ParameterAssignment")

    assignments = []
    for node in nodes:
        ref = node.get("parameterRef")
        if not ref:
            raise DocumentError(f"ParameterAssignment without parameterRef in <{element.tag}>")
        assignments.append(ParameterAssignment(ref, parse_value(node.get("value", ""), STRING)))
    return assignments


def extract_scenario_parameters(declarations: Iterable[ParameterDeclaration]) -> dict[str, str]:
    """Declared default of every parameter, by name.

    Defaults are reported as written (a `$reference` default stays a
    reference); later declarations of the same name win.
    """
    return {d.name: d.value for d in declarations}


def build_scope(
    declarations: Iterable[ParameterDeclaration],
    base: ParameterScope | None = None,
    label: str = "declarations",
    evaluator: ExpressionEvaluator | None = None,
) -> ParameterScope:
    """Push the resolved defaults of `declarations` onto `base`."""
    base = base if base is not None else ParameterScope.empty()
    return base.push_declarations(declarations, label=label, evaluator=evaluator)


def substitute_values(
    root: Element,
    scope: ParameterScope,
    evaluator: ExpressionEvaluator | None = None,
) -> int:
    """Replace every parameter reference and expression below `root` with its value.

    Literals are left untouched, so their text survives unchanged.

    Returns:
        Number of attributes rewritten
    """
    count = 0
    for site in iter_value_sites(root):
        if isinstance(site.value, Literal):
            continue
        site.replace(resolve_text(site.value, scope, evaluator))
        count += 1
    return count


def apply_effective_values(element: Element, scope: ParameterScope) -> None:
    """Rewrite the declarations of `element` with the values in effect."""
    block = element.find("ParameterDeclarations")
    if block is None:
        return
    for node in block.findall("ParameterDeclaration"):
        value = scope.lookup(node.get("name", ""))
        if value is not None:
            node.attributes["value"] = value


def _override_text(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def load_parameter_overrides(path: Union[str, Path]) -> dict[str, str]:
    """Load a flat YAML mapping of parameter name to value.

    Raises:
        DocumentError: If the file is missing or is not a flat mapping
    """
    path = Path(path)
    if not path.is_file():
        raise DocumentError(f"Parameter override file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DocumentError(f"{path}: expected a mapping of parameter names to values")

    overrides = {}
    for name, value in data.items():
        if isinstance(value, (dict, list)) or value is None:
            raise DocumentError(f"{path}: parameter '{name}' must have a scalar value")
        overrides[str(name)] = _override_text(value)
    return overrides
