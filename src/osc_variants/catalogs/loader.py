"""Loading catalog files from a directory.

A catalog file holds one Catalog element with its entries:

```xml
<OpenSCENARIO>
  <FileHeader .../>
  <Catalog name="VehicleCatalog">
    <Vehicle name="car_white" vehicleCategory="car">...</Vehicle>
  </Catalog>
</OpenSCENARIO>
```
"""

import logging
import warnings
from dataclasses import dataclass, field
from pathlib import Path

from lxml import etree

from ..document import Element, parse_xml
from ..errors import CatalogFileParseError
from .locations import CatalogKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    """One reusable definition inside a catalog."""

    kind: CatalogKind
    name: str
    element: Element
    source_path: Path


@dataclass
class CatalogIndex:
    """Entries of every catalog found in one directory, by catalog then entry name."""

    directory: Path
    catalogs: dict[str, dict[str, CatalogEntry]] = field(default_factory=dict)
    files: list[Path] = field(default_factory=list)

    def has_catalog(self, name: str) -> bool:
        return name in self.catalogs

    def entry(self, catalog: str, name: str) -> CatalogEntry | None:
        return self.catalogs.get(catalog, {}).get(name)

    def add(self, catalog: str, entry: CatalogEntry) -> None:
        entries = self.catalogs.setdefault(catalog, {})
        if entry.name in entries:
            warnings.warn(
                f"Catalog '{catalog}' defines '{entry.name}' twice; "
                f"keeping {entries[entry.name].source_path}, ignoring {entry.source_path}"
            )
            return
        entries[entry.name] = entry


class CatalogLoader:
    """Parses the catalog files of a directory into a CatalogIndex."""

    pattern = "*.xosc"

    def discover(self, directory: Path) -> list[Path]:
        """Catalog files of a directory, sorted by name. Missing directories have none."""
        directory = Path(directory)
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.glob(self.pattern) if p.is_file())

    def load_file(self, path: Path) -> tuple[str, list[CatalogEntry]] | None:
        """Catalog name and entries of one file, or None if it holds no Catalog.

        Raises:
            CatalogFileParseError: If the file is not well-formed XML
        """
        try:
            root = parse_xml(path.read_bytes())
        except etree.XMLSyntaxError as e:
            raise CatalogFileParseError(path, str(e)) from e
        except OSError as e:
            raise CatalogFileParseError(path, e.strerror or str(e)) from e

        catalog = root if root.tag == "Catalog" else root.find("Catalog")
        if catalog is None:
            logger.debug("No Catalog element in %s, skipping", path)
            return None

        name = catalog.get("name")
        if not name:
            raise CatalogFileParseError(path, "Catalog element has no name")

        entries = []
        for child in catalog.children:
            kind = CatalogKind.from_entry_tag(child.tag)
            if kind is None:
                continue
            entry_name = child.get("name")
            if not entry_name:
                raise CatalogFileParseError(path, f"<{child.tag}> entry has no name")
            entries.append(CatalogEntry(kind, entry_name, child, path))
        return name, entries

    def load_directory(self, directory: Path) -> CatalogIndex:
        index = CatalogIndex(directory=Path(directory))
        for path in self.discover(directory):
            loaded = self.load_file(path)
            if loaded is None:
                continue
            name, entries = loaded
            for entry in entries:
                index.add(name, entry)
            index.files.append(path)
            logger.debug("Parsed catalog '%s' from %s (%d entries)", name, path, len(entries))
        return index
