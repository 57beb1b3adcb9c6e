"""Resolution engine: from a scenario or distribution file to concrete scenarios.

Example:
    from osc_variants import EngineConfig, resolve_document

    config = EngineConfig(random_seed=7, max_workers=4)
    for scenario in resolve_document("cut_in_variation.xosc", config=config):
        print(scenario.label, scenario.parameters["EgoSpeed"])
        xml = scenario.to_xml()

A plain scenario yields one document. A ParameterValueDistribution yields one
document per variant of its ScenarioFile template, in expansion order.
"""

import logging
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Union

from .catalogs import CatalogCache, CatalogLocations, CatalogResolver, ResolvedCatalogEntry
from .config import EngineConfig
from .distributions import DistributionExpander, Variant, find_distribution, parse_distribution
from .document import Element, parse_file, to_xml
from .errors import DocumentError
from .parameters import (
    ParameterDeclaration,
    ParameterScope,
    apply_effective_values,
    read_declarations,
)
from .parameters import extract_scenario_parameters as _declared_defaults
from .values import ExpressionEvaluator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedDocument:
    """A concrete scenario: no parameter references or catalog references left."""

    index: int
    parameters: Mapping[str, str]
    root: Element
    label: str = "scenario"
    catalog_entries: tuple[ResolvedCatalogEntry, ...] = field(default=(), repr=False)

    def to_xml(self, pretty: bool = True) -> str:
        return to_xml(self.root, pretty=pretty)


def _load(doc: Union[Element, str, Path], base_path: Path | None) -> tuple[Element, Path | None]:
    if isinstance(doc, Element):
        return doc, base_path
    path = Path(doc)
    return parse_file(path), base_path if base_path is not None else path.parent


def extract_scenario_parameters(
    doc: Union[Element, str, Path, Iterable[ParameterDeclaration]],
) -> dict[str, str]:
    """Declared parameters of a scenario with their default values.

    Accepts a scenario tree, a path to one, or declarations already read.
    """
    if isinstance(doc, (Element, str, Path)):
        root, _ = _load(doc, None)
        return _declared_defaults(read_declarations(root))
    return _declared_defaults(doc)


class ScenarioResolver:
    """Resolves one scenario template, once per variant."""

    def __init__(
        self,
        template: Element,
        base_path: Path | None,
        config: EngineConfig,
        locations: CatalogLocations | None = None,
        evaluator: ExpressionEvaluator | None = None,
        cache: CatalogCache | None = None,
    ):
        self.template = template
        self.base_path = base_path
        self.config = config
        self.evaluator = evaluator
        self.declarations = read_declarations(template)

        scope = ParameterScope.empty().push_declarations(
            self.declarations, label="scenario declarations", evaluator=evaluator
        )
        overrides = config.overrides()
        declared = {d.name for d in self.declarations}
        for name in overrides:
            if name not in declared:
                warnings.warn(f"Parameter override '{name}' is not declared by the scenario")
        if overrides:
            scope = scope.push_layer(overrides, label="overrides")
        self.base_scope = scope

        registry = locations if locations is not None else CatalogLocations()
        self.locations = registry.merge(config.locations())
        self.cache = cache if cache is not None else CatalogCache()

    def catalog_resolver(self, scope: ParameterScope) -> CatalogResolver:
        """Resolver over the catalog locations in effect under `scope`.

        Directory paths may name parameters, so each variant reads the
        document's CatalogLocations again. The cache is shared, keeping every
        directory parsed at most once.
        """
        # Relative directories stay relative; the resolver anchors them at base_path
        registry = self.locations.merge(
            CatalogLocations.from_document(self.template, None, scope, self.evaluator)
        )
        return CatalogResolver(
            registry,
            cache=self.cache,
            max_depth=self.config.max_catalog_depth,
            evaluator=self.evaluator,
        )

    def resolve(self, variant: Variant | None = None) -> ResolvedDocument:
        if variant is None:
            index, label, scope = 0, "scenario", self.base_scope
        else:
            index, label, scope = variant.index, variant.label, variant.scope(self.base_scope)

        root = self.template.copy()
        entries = self.catalog_resolver(scope).resolve_tree(root, scope, self.base_path)
        apply_effective_values(root, scope)
        logger.debug("Resolved %s (%d catalog references)", label, len(entries))

        return ResolvedDocument(
            index=index,
            parameters=MappingProxyType(scope.flatten()),
            root=root,
            label=label,
            catalog_entries=tuple(entries),
        )


def resolve_document(
    doc: Union[Element, str, Path],
    locations: CatalogLocations | None = None,
    base_path: Path | None = None,
    *,
    config: EngineConfig | None = None,
    evaluator: ExpressionEvaluator | None = None,
    cache: CatalogCache | None = None,
) -> list[ResolvedDocument]:
    """Resolve a scenario, or every variant of a parameter value distribution.

    Args:
        doc: Parsed document tree, or path to an .xosc file
        locations: Catalog locations, searched before configured ones and
            the document's own CatalogLocations
        base_path: Directory relative paths are taken from; defaults to the
            configured base path, then the document's directory
        config: Engine configuration
        evaluator: Optional expression evaluator
        cache: Catalog cache to share between calls

    Returns:
        Resolved documents in expansion order; one for a plain scenario

    Raises:
        EngineError: Any failure; no partial results are returned
    """
    config = config if config is not None else EngineConfig()
    if base_path is None:
        base_path = config.base_path
    root, base_path = _load(doc, base_path)
    cache = cache if cache is not None else CatalogCache()

    node = find_distribution(root)
    if node is None:
        scenario = ScenarioResolver(root, base_path, config, locations, evaluator, cache)
        return [scenario.resolve()]

    spec = parse_distribution(node)
    if not spec.scenario_file:
        raise DocumentError("ParameterValueDistribution has no ScenarioFile")
    template_path = Path(spec.scenario_file)
    if base_path is not None and not template_path.is_absolute():
        template_path = base_path / template_path
    template = parse_file(template_path)

    scenario = ScenarioResolver(
        template, template_path.parent, config, locations, evaluator, cache
    )
    variants = DistributionExpander(
        spec, declarations=scenario.declarations, seed=config.random_seed
    ).expand()
    logger.info("Resolving %d variants of %s", len(variants), template_path)

    if config.max_workers > 1 and len(variants) > 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
            return list(pool.map(scenario.resolve, variants))
    return [scenario.resolve(variant) for variant in variants]
