"""Tests for parameter scopes, declarations and override files."""

import pytest

from osc_variants.document import iter_value_sites, parse_xml
from osc_variants.errors import (
    ConstraintViolationError,
    DocumentError,
    DuplicateParameterDeclarationError,
    ParameterNotFoundError,
    TypeMismatchError,
)
from osc_variants.parameters import (
    ParameterDeclaration,
    ParameterScope,
    ValueConstraint,
    ValueConstraintGroup,
    apply_effective_values,
    build_scope,
    extract_scenario_parameters,
    load_parameter_overrides,
    read_assignments,
    read_declarations,
    substitute_values,
)
from osc_variants.values import DOUBLE, Expression, Parameter


def declaration(name, parameter_type="double", value="0", groups=()):
    return ParameterDeclaration(name, parameter_type, value, groups)


class TestParameterScope:
    def test_most_recent_layer_wins(self):
        scope = ParameterScope.from_mapping({"a": "1", "b": "2"}).push_layer({"a": "3"})
        assert scope.require("a") == "3"
        assert scope.require("b") == "2"

    def test_push_does_not_mutate_parent(self):
        base = ParameterScope.from_mapping({"a": "1"})
        child = base.push_layer({"a": "2"})
        assert base.require("a") == "1"
        assert child.require("a") == "2"

    def test_siblings_are_independent(self):
        base = ParameterScope.from_mapping({"a": "1"})
        left = base.push_layer({"a": "left"})
        right = base.push_layer({"a": "right"})
        assert (left.require("a"), right.require("a")) == ("left", "right")

    def test_lookup_and_require(self):
        scope = ParameterScope.from_mapping({"a": "1"})
        assert scope.lookup("missing") is None
        with pytest.raises(ParameterNotFoundError):
            scope.require("missing")

    def test_layers_bottom_first(self):
        scope = ParameterScope.empty().push_layer({"a": "1"}, "first").push_layer({}, "second")
        assert [layer.label for layer in scope.layers] == ["first", "second"]

    def test_flatten(self):
        scope = ParameterScope.from_mapping({"a": "1", "b": "2"}).push_layer({"b": "3"})
        assert scope.flatten() == {"a": "1", "b": "3"}

    def test_contains(self):
        scope = ParameterScope.from_mapping({"a": "1"})
        assert "a" in scope
        assert "b" not in scope

    def test_equality_by_values(self):
        assert ParameterScope.from_mapping({"a": "1"}) == ParameterScope.from_mapping({"a": "1"})
        assert ParameterScope.from_mapping({"a": "1"}) != ParameterScope.from_mapping({"a": "2"})


class TestDeclarations:
    def test_defaults_are_pushed(self):
        scope = ParameterScope.empty().push_declarations([declaration("Speed", value="13.9")])
        assert scope.require("Speed") == "13.9"
        assert scope.declared_type("Speed") is DOUBLE

    def test_default_may_reference_earlier_parameter(self):
        scope = ParameterScope.empty().push_declarations(
            [declaration("A", value="5"), declaration("B", value="$A")]
        )
        assert scope.require("B") == "5"

    def test_default_referencing_unknown_parameter(self):
        with pytest.raises(ParameterNotFoundError):
            ParameterScope.empty().push_declarations([declaration("B", value="$A")])

    def test_same_name_twice_in_one_list(self):
        with pytest.raises(DuplicateParameterDeclarationError) as exc_info:
            ParameterScope.empty().push_declarations([declaration("A"), declaration("A")])
        assert exc_info.value.name == "A"

    def test_incompatible_redeclaration_in_lower_layer(self):
        scope = ParameterScope.empty().push_declarations([declaration("A")])
        with pytest.raises(DuplicateParameterDeclarationError):
            scope.push_declarations([declaration("A", "string", "x")])

    def test_compatible_redeclaration_shadows(self):
        scope = ParameterScope.empty().push_declarations([declaration("A", value="1")])
        scope = scope.push_declarations([declaration("A", value="2")])
        assert scope.require("A") == "2"

    def test_default_of_wrong_type(self):
        with pytest.raises(TypeMismatchError):
            ParameterScope.empty().push_declarations(
                [declaration("A", "string", "fast"), declaration("B", "int", "$A")]
            )

    def test_values_pushed_over_declarations_are_checked(self):
        scope = ParameterScope.empty().push_declarations([declaration("A", "int", "1")])
        with pytest.raises(TypeMismatchError):
            scope.push_layer({"A": "fast"})

    def test_unknown_parameter_type(self):
        with pytest.raises(DocumentError):
            declaration("A", "float")


class TestConstraints:
    def test_constraint_groups(self):
        positive = ValueConstraintGroup((ValueConstraint("greaterThan", "0"),))
        decl = declaration("Speed", value="10", groups=(positive,))
        decl.check("5")
        with pytest.raises(ConstraintViolationError) as exc_info:
            decl.check("-1")
        assert exc_info.value.name == "Speed"

    def test_any_group_may_hold(self):
        low = ValueConstraintGroup((ValueConstraint("lessThan", "10"),))
        exact = ValueConstraintGroup((ValueConstraint("equalTo", "100"),))
        decl = declaration("Speed", groups=(low, exact))
        decl.check("5")
        decl.check("100")
        with pytest.raises(ConstraintViolationError):
            decl.check("50")

    def test_unknown_rule(self):
        with pytest.raises(DocumentError):
            ValueConstraint("between", "1")


class TestReadingDocuments:
    DOC = """
    <Vehicle name="car">
      <ParameterDeclarations>
        <ParameterDeclaration name="MaxSpeed" parameterType="double" value="70">
          <ConstraintGroup>
            <ValueConstraint rule="lessOrEqual" value="100"/>
          </ConstraintGroup>
        </ParameterDeclaration>
        <ParameterDeclaration name="Color" parameterType="string" value="white"/>
      </ParameterDeclarations>
      <Performance maxSpeed="$MaxSpeed" maxAcceleration="${MaxSpeed}"/>
      <Properties>
        <Property name="color" value="$Color"/>
      </Properties>
    </Vehicle>
    """

    def test_read_declarations(self):
        declarations = read_declarations(parse_xml(self.DOC))
        assert [d.name for d in declarations] == ["MaxSpeed", "Color"]
        assert len(declarations[0].constraint_groups) == 1

    def test_extract_scenario_parameters(self):
        declarations = read_declarations(parse_xml(self.DOC))
        assert extract_scenario_parameters(declarations) == {"MaxSpeed": "70", "Color": "white"}

    def test_read_assignments(self):
        element = parse_xml(
            """
            <CatalogReference catalogName="C" entryName="e">
              <ParameterAssignments>
                <ParameterAssignment parameterRef="MaxSpeed" value="$Fast"/>
              </ParameterAssignments>
            </CatalogReference>
            """
        )
        (assignment,) = read_assignments(element)
        assert assignment.parameter_ref == "MaxSpeed"
        assert assignment.value == Parameter("Fast")

    def test_substitute_values(self):
        root = parse_xml(self.DOC)
        scope = build_scope(read_declarations(root))
        assert substitute_values(root, scope) == 3
        assert root.find("Performance").get("maxSpeed") == "70"
        assert root.find("Performance").get("maxAcceleration") == "70"
        assert root.find("Properties").find("Property").get("value") == "white"

    def test_substitution_skips_declarations(self):
        root = parse_xml(self.DOC)
        scope = build_scope(read_declarations(root)).push_layer({"MaxSpeed": "90"})
        substitute_values(root, scope)
        block = root.find("ParameterDeclarations")
        assert block.findall("ParameterDeclaration")[0].get("value") == "70"

        apply_effective_values(root, scope)
        assert block.findall("ParameterDeclaration")[0].get("value") == "90"

    def test_expression_value_is_kept_distinct(self):
        root = parse_xml('<Performance maxSpeed="${a * 2}"/>')
        (site,) = iter_value_sites(root)
        assert site.value == Expression("${a * 2}", DOUBLE)


class TestParameterOverrides:
    def test_load_yaml_overrides(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text("EgoSpeed: 30\nRoad: ./road.xodr\nEnabled: true\n")
        assert load_parameter_overrides(path) == {
            "EgoSpeed": "30",
            "Road": "./road.xodr",
            "Enabled": "true",
        }

    def test_empty_file(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text("")
        assert load_parameter_overrides(path) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentError):
            load_parameter_overrides(tmp_path / "missing.yaml")

    def test_nested_values_rejected(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text("EgoSpeed:\n  value: 30\n")
        with pytest.raises(DocumentError):
            load_parameter_overrides(path)
