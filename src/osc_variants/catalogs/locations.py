"""Catalog locations: which directories hold catalogs of which kind.

Example XML:
```xml
<CatalogLocations>
  <VehicleCatalog>
    <Directory path="$CatalogRoot/Vehicles"/>
  </VehicleCatalog>
</CatalogLocations>
```
"""

from enum import Enum
from pathlib import Path
from typing import Iterator

from ..document import Element
from ..errors import DocumentError
from ..parameters.scope import ParameterScope
from ..values import ExpressionEvaluator, STRING, parse_value, resolve_text


class CatalogKind(str, Enum):
    VEHICLE = "vehicle"
    CONTROLLER = "controller"
    PEDESTRIAN = "pedestrian"
    MISC_OBJECT = "misc_object"
    ENVIRONMENT = "environment"
    MANEUVER = "maneuver"
    TRAJECTORY = "trajectory"
    ROUTE = "route"

    @property
    def element_tag(self) -> str:
        """Tag of an entry of this kind inside a Catalog, e.g. MiscObject."""
        return ENTRY_TAGS[self]

    @property
    def location_tag(self) -> str:
        """Tag of this kind inside CatalogLocations, e.g. MiscObjectCatalog."""
        return f"{self.element_tag}Catalog"

    @classmethod
    def from_entry_tag(cls, tag: str) -> "CatalogKind | None":
        return _KINDS_BY_TAG.get(tag)


ENTRY_TAGS = {
    CatalogKind.VEHICLE: "Vehicle",
    CatalogKind.CONTROLLER: "Controller",
    CatalogKind.PEDESTRIAN: "Pedestrian",
    CatalogKind.MISC_OBJECT: "MiscObject",
    CatalogKind.ENVIRONMENT: "Environment",
    CatalogKind.MANEUVER: "Maneuver",
    CatalogKind.TRAJECTORY: "Trajectory",
    CatalogKind.ROUTE: "Route",
}

_KINDS_BY_TAG = {tag: kind for kind, tag in ENTRY_TAGS.items()}


class CatalogLocations:
    """Registry mapping catalog kinds to the directories that hold them.

    Example:
        locations = CatalogLocations()
        locations.register(CatalogKind.VEHICLE, Path("catalogs/vehicles"))
        locations.directories()  # [Path("catalogs/vehicles")]
    """

    def __init__(self):
        self._directories: dict[CatalogKind, list[Path]] = {}

    def register(self, kind: CatalogKind | str, directory: Path | str) -> None:
        """Register a directory for a catalog kind.

        Several directories may be registered per kind; they are searched in
        registration order.
        """
        kind = CatalogKind(kind)
        directory = Path(directory)
        directories = self._directories.setdefault(kind, [])
        if directory not in directories:
            directories.append(directory)

    def directories(self, kind: CatalogKind | str | None = None) -> list[Path]:
        """Registered directories of one kind, or of all kinds without duplicates."""
        if kind is not None:
            return list(self._directories.get(CatalogKind(kind), []))

        seen: list[Path] = []
        for directories in self._directories.values():
            for directory in directories:
                if directory not in seen:
                    seen.append(directory)
        return seen

    def merge(self, other: "CatalogLocations") -> "CatalogLocations":
        """New registry with this registry's directories first, then `other`'s."""
        merged = CatalogLocations()
        for registry in (self, other):
            for kind, directory in registry:
                merged.register(kind, directory)
        return merged

    def __iter__(self) -> Iterator[tuple[CatalogKind, Path]]:
        for kind, directories in self._directories.items():
            for directory in directories:
                yield kind, directory

    def __len__(self) -> int:
        return sum(len(d) for d in self._directories.values())

    def __repr__(self) -> str:
        kinds = ", ".join(f"{k.value}={len(d)}" for k, d in self._directories.items())
        return f"CatalogLocations({kinds})"

    @classmethod
    def from_document(
        cls,
        root: Element,
        base_path: Path | None = None,
        scope: ParameterScope | None = None,
        evaluator: ExpressionEvaluator | None = None,
    ) -> "CatalogLocations":
        """Read the CatalogLocations block of a scenario.

        Directory paths may be parameter references; they are resolved in
        `scope`, and relative paths are taken relative to `base_path`.

        Raises:
            DocumentError: If a Directory has no path
            ParameterNotFoundError: If a path refers to an unknown parameter
        """
        registry = cls()
        block = root if root.tag == "CatalogLocations" else root.find("CatalogLocations")
        if block is None:
            return registry

        scope = scope if scope is not None else ParameterScope.empty()
        for kind in CatalogKind:
            node = block.find(kind.location_tag)
            if node is None:
                continue
            directory = node.find("Directory")
            raw = directory.get("path") if directory is not None else None
            if not raw:
                raise DocumentError(f"<{kind.location_tag}> has no Directory path")

            path = Path(resolve_text(parse_value(raw, STRING), scope, evaluator))
            if base_path is not None and not path.is_absolute():
                path = base_path / path
            registry.register(kind, path)
        return registry
