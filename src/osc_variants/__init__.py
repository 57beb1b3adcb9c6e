"""OpenSCENARIO parameter, catalog and variant resolution.

Turns a parameterized scenario (or a parameter value distribution over one)
into concrete scenarios: parameter references substituted, catalog
references replaced by their entries, one document per variant.

Example usage:
    from osc_variants import EngineConfig, load_config, resolve_document

    config = load_config("engine.yaml")
    scenarios = resolve_document("cut_in_variation.xosc", config=config)
    print(len(scenarios))  # number of variants

    for scenario in scenarios:
        print(scenario.label, dict(scenario.parameters))
"""

__version__ = "0.1.0"

from .catalogs import (
    CatalogCache,
    CatalogKind,
    CatalogLocations,
    CatalogReference,
    CatalogResolver,
    ResolvedCatalogEntry,
)

from .config import EngineConfig, load_config

from .distributions import (
    DistributionExpander,
    DistributionSpec,
    Variant,
    parse_distribution,
)

from .document import Element, parse_file, parse_xml, to_xml

from .engine import ResolvedDocument, extract_scenario_parameters, resolve_document

from .errors import (
    CatalogFileParseError,
    CatalogNotConfiguredError,
    CatalogTypeMismatchError,
    ConstraintViolationError,
    DocumentError,
    DuplicateParameterDeclarationError,
    EmptyDistributionError,
    EngineError,
    EntryNotFoundError,
    InvalidDistributionError,
    InvalidRangeError,
    MaxCatalogDepthExceededError,
    ParameterNotFoundError,
    TypeMismatchError,
    UnevaluatedExpressionError,
)

from .parameters import ParameterDeclaration, ParameterScope, load_parameter_overrides

from .values import (
    Expression,
    Literal,
    Parameter,
    parse_value,
    resolve_value,
    serialize_value,
)

__all__ = [
    # Engine
    "resolve_document",
    "ResolvedDocument",
    "extract_scenario_parameters",
    "EngineConfig",
    "load_config",
    # Values
    "Literal",
    "Parameter",
    "Expression",
    "parse_value",
    "serialize_value",
    "resolve_value",
    # Parameters
    "ParameterScope",
    "ParameterDeclaration",
    "load_parameter_overrides",
    # Distributions
    "DistributionSpec",
    "DistributionExpander",
    "Variant",
    "parse_distribution",
    # Catalogs
    "CatalogKind",
    "CatalogLocations",
    "CatalogCache",
    "CatalogReference",
    "CatalogResolver",
    "ResolvedCatalogEntry",
    # Documents
    "Element",
    "parse_xml",
    "parse_file",
    "to_xml",
    # Errors
    "EngineError",
    "DocumentError",
    "ParameterNotFoundError",
    "TypeMismatchError",
    "UnevaluatedExpressionError",
    "DuplicateParameterDeclarationError",
    "ConstraintViolationError",
    "EmptyDistributionError",
    "InvalidRangeError",
    "InvalidDistributionError",
    "CatalogNotConfiguredError",
    "EntryNotFoundError",
    "CatalogTypeMismatchError",
    "MaxCatalogDepthExceededError",
    "CatalogFileParseError",
]
