"""Resolves CatalogReferences into parameterized copies of catalog entries.

Example:
    resolver = CatalogResolver(locations)
    entry = resolver.resolve(
        CatalogReference("VehicleCatalog", "car_white", assignments=()),
        caller_scope=scope,
    )
    entry.element  # <Vehicle name="car_white"> with parameters substituted

Each entry is resolved in its own scope: the caller's scope, then the
entry's declared defaults, then the reference's assignments. Nested
references inside the entry are resolved the same way, one level deeper.
"""

import logging
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from ..document import Element, iter_declaring_elements, iter_reference_sites
from ..errors import (
    CatalogNotConfiguredError,
    CatalogTypeMismatchError,
    DocumentError,
    EntryNotFoundError,
    MaxCatalogDepthExceededError,
)
from ..parameters import (
    ParameterAssignment,
    ParameterScope,
    apply_effective_values,
    read_assignments,
    read_declarations,
    substitute_values,
)
from ..values import STRING, ExpressionEvaluator, parse_value, resolve_text
from .cache import CatalogCache
from .loader import CatalogIndex, CatalogLoader
from .locations import CatalogKind, CatalogLocations

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 16

_ENTITIES = frozenset({CatalogKind.VEHICLE, CatalogKind.PEDESTRIAN, CatalogKind.MISC_OBJECT})

# Entry kinds allowed under each parent tag of a CatalogReference
SITE_KINDS: dict[str, frozenset[CatalogKind]] = {
    "ScenarioObject": _ENTITIES,
    "EntityObject": _ENTITIES,
    "ObjectController": frozenset({CatalogKind.CONTROLLER}),
    "AssignControllerAction": frozenset({CatalogKind.CONTROLLER}),
    "EnvironmentAction": frozenset({CatalogKind.ENVIRONMENT}),
    "AssignRouteAction": frozenset({CatalogKind.ROUTE}),
    "FollowTrajectoryAction": frozenset({CatalogKind.TRAJECTORY}),
    "TrajectoryRef": frozenset({CatalogKind.TRAJECTORY}),
    "ManeuverGroup": frozenset({CatalogKind.MANEUVER}),
}


@dataclass(frozen=True)
class CatalogReference:
    """A reference to a catalog entry, with parameter assignments.

    Example XML:
    ```xml
    <CatalogReference catalogName="VehicleCatalog" entryName="car_white">
      <ParameterAssignments>
        <ParameterAssignment parameterRef="MaxSpeed" value="$EgoMaxSpeed"/>
      </ParameterAssignments>
    </CatalogReference>
    ```
    """

    catalog_name: str
    entry_name: str
    assignments: tuple[ParameterAssignment, ...] = ()

    @classmethod
    def from_element(cls, element: Element) -> "CatalogReference":
        catalog_name = element.get("catalogName")
        entry_name = element.get("entryName")
        if not catalog_name or not entry_name:
            raise DocumentError("CatalogReference needs both catalogName and entryName")
        return cls(catalog_name, entry_name, tuple(read_assignments(element)))

    def __str__(self) -> str:
        return f"{self.catalog_name}/{self.entry_name}"


@dataclass(frozen=True)
class ResolvedCatalogEntry:
    """A catalog entry copied out of its catalog with parameters substituted."""

    kind: CatalogKind
    catalog_name: str
    entry_name: str
    element: Element
    source_path: Path
    parameter_substitutions: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )
    nested: tuple["ResolvedCatalogEntry", ...] = ()


class CatalogResolver:
    """Resolves catalog references against a set of catalog locations.

    The cache may be shared between resolvers and threads; everything else a
    resolution touches is local to the call.
    """

    def __init__(
        self,
        locations: CatalogLocations,
        cache: CatalogCache | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        evaluator: ExpressionEvaluator | None = None,
        loader: CatalogLoader | None = None,
    ):
        """Initialize resolver.

        Args:
            locations: Directories to search for catalogs
            cache: Shared cache of parsed directories (a private one if None)
            max_depth: Deepest allowed chain of nested references
            evaluator: Optional expression evaluator
            loader: Catalog file loader
        """
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        self.locations = locations
        self.cache = cache if cache is not None else CatalogCache()
        self.max_depth = max_depth
        self.evaluator = evaluator
        self.loader = loader or CatalogLoader()

    def _directories(self, base_path: Path | None) -> list[Path]:
        directories = []
        for directory in self.locations.directories():
            if base_path is not None and not directory.is_absolute():
                directory = base_path / directory
            directories.append(directory)
        return directories

    def _name(self, raw: str, scope: ParameterScope) -> str:
        return resolve_text(parse_value(raw, STRING), scope, self.evaluator)

    def find_catalog(self, catalog_name: str, base_path: Path | None = None) -> CatalogIndex:
        """Index of the first configured directory holding `catalog_name`.

        Raises:
            CatalogNotConfiguredError: If no directory holds the catalog
        """
        directories = self._directories(base_path)
        for directory in directories:
            index = self.cache.get_or_load(directory, self.loader.load_directory)
            if index.has_catalog(catalog_name):
                return index
        raise CatalogNotConfiguredError(catalog_name, searched=directories)

    def resolve(
        self,
        reference: CatalogReference,
        caller_scope: ParameterScope,
        base_path: Path | None = None,
        site: str | None = None,
        depth: int = 0,
    ) -> ResolvedCatalogEntry:
        """Resolve one reference.

        Args:
            reference: The reference to resolve
            caller_scope: Scope of the document holding the reference
            base_path: Directory relative catalog locations are taken from
            site: Tag of the element holding the reference, which restricts
                the entry kinds allowed
            depth: Nesting level of this reference

        Raises:
            MaxCatalogDepthExceededError: If references nest deeper than max_depth
            CatalogNotConfiguredError: If no location holds the catalog
            EntryNotFoundError: If the catalog has no such entry
            CatalogTypeMismatchError: If the entry kind is not legal at `site`
            ParameterNotFoundError: If an assignment or the entry refers to an
                unknown parameter
        """
        if depth >= self.max_depth:
            raise MaxCatalogDepthExceededError(
                reference.catalog_name, reference.entry_name, self.max_depth
            )

        catalog_name = self._name(reference.catalog_name, caller_scope)
        entry_name = self._name(reference.entry_name, caller_scope)

        index = self.find_catalog(catalog_name, base_path)
        entry = index.entry(catalog_name, entry_name)
        if entry is None:
            raise EntryNotFoundError(catalog_name, entry_name)

        allowed = SITE_KINDS.get(site) if site else None
        if allowed is not None and entry.kind not in allowed:
            raise CatalogTypeMismatchError(
                catalog_name,
                entry_name,
                sorted(kind.value for kind in allowed),
                entry.kind.value,
            )

        label = f"{catalog_name}/{entry_name}"
        logger.debug("Resolving catalog reference %s at depth %d", label, depth)

        # Assignments are evaluated where the reference is written
        assigned = {
            a.parameter_ref: resolve_text(a.value, caller_scope, self.evaluator)
            for a in reference.assignments
        }

        declarations = read_declarations(entry.element)
        declared = {d.name for d in declarations}
        for name in assigned:
            if name not in declared:
                warnings.warn(
                    f"Catalog entry '{label}' does not declare parameter '{name}'; "
                    f"assignment ignored"
                )
        assigned = {name: text for name, text in assigned.items() if name in declared}

        scope = caller_scope.push_declarations(
            declarations, label=f"{label} declarations", evaluator=self.evaluator
        )
        if assigned:
            scope = scope.push_layer(assigned, label=f"{label} assignments")

        element = entry.element.copy()
        nested = self.resolve_tree(element, scope, base_path, depth=depth + 1)
        apply_effective_values(element, scope)
        element.resolved = True

        return ResolvedCatalogEntry(
            kind=entry.kind,
            catalog_name=catalog_name,
            entry_name=entry_name,
            element=element,
            source_path=entry.source_path,
            parameter_substitutions=MappingProxyType(
                {d.name: scope.require(d.name) for d in declarations}
            ),
            nested=tuple(nested),
        )

    def resolve_tree(
        self,
        root: Element,
        scope: ParameterScope,
        base_path: Path | None = None,
        depth: int = 0,
    ) -> list[ResolvedCatalogEntry]:
        """Substitute values below `root`, then splice in every catalog reference.

        Edits `root` in place; resolved entries replace their references and
        are not walked again. Inline elements with their own
        ParameterDeclarations are resolved first, in a scope of their own.
        """
        resolved = []
        for element in list(iter_declaring_elements(root)):
            inner = scope.push_declarations(
                read_declarations(element),
                label=f"<{element.tag}> declarations",
                evaluator=self.evaluator,
            )
            resolved.extend(self.resolve_tree(element, inner, base_path, depth))
            apply_effective_values(element, inner)
            element.resolved = True

        substitute_values(root, scope, self.evaluator)

        for site in list(iter_reference_sites(root)):
            reference = CatalogReference.from_element(site.element)
            entry = self.resolve(reference, scope, base_path, site=site.parent.tag, depth=depth)
            site.replace(entry.element)
            resolved.append(entry)
        return resolved
