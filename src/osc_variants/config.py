"""Engine configuration.

Example config.yaml:

    base_path: scenarios
    catalog_locations:
      vehicle: [catalogs/vehicles]
      controller: catalogs/controllers
    max_catalog_depth: 16
    random_seed: 42
    max_workers: 4
    parameter_overrides:
      EgoSpeed: 30
    parameter_overrides_file: overrides.yaml

Relative paths are taken relative to the directory of the config file.
"""

from pathlib import Path
from typing import Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .catalogs import DEFAULT_MAX_DEPTH, CatalogKind, CatalogLocations
from .errors import DocumentError
from .parameters import load_parameter_overrides


class EngineConfig(BaseModel):
    """Settings shared by every resolution run."""

    model_config = ConfigDict(extra="forbid")

    catalog_locations: dict[CatalogKind, list[Path]] = {}
    base_path: Path | None = None
    max_catalog_depth: int = Field(DEFAULT_MAX_DEPTH, ge=1)
    random_seed: int | None = None
    max_workers: int = Field(1, ge=1)
    parameter_overrides: dict[str, str] = {}
    parameter_overrides_file: Path | None = None

    @field_validator("catalog_locations", mode="before")
    @classmethod
    def _single_directory(cls, value):
        if isinstance(value, dict):
            return {k: [v] if isinstance(v, (str, Path)) else v for k, v in value.items()}
        return value

    @field_validator("parameter_overrides", mode="before")
    @classmethod
    def _override_text(cls, value):
        if isinstance(value, dict):
            return {
                str(k): ("true" if v else "false") if isinstance(v, bool) else str(v)
                for k, v in value.items()
            }
        return value

    def locations(self) -> CatalogLocations:
        registry = CatalogLocations()
        for kind, directories in self.catalog_locations.items():
            for directory in directories:
                registry.register(kind, directory)
        return registry

    def overrides(self) -> dict[str, str]:
        """Override file values, then inline overrides on top."""
        overrides = {}
        if self.parameter_overrides_file is not None:
            overrides.update(load_parameter_overrides(self.parameter_overrides_file))
        overrides.update(self.parameter_overrides)
        return overrides

    def relative_to(self, directory: Path) -> "EngineConfig":
        """Copy with every relative path anchored at `directory`."""

        def anchor(path: Path | None) -> Path | None:
            if path is None or path.is_absolute():
                return path
            return directory / path

        return self.model_copy(
            update={
                "base_path": anchor(self.base_path),
                "parameter_overrides_file": anchor(self.parameter_overrides_file),
                "catalog_locations": {
                    kind: [anchor(d) for d in directories]
                    for kind, directories in self.catalog_locations.items()
                },
            }
        )


def load_config(path: Union[str, Path]) -> EngineConfig:
    """Load an EngineConfig from a YAML file.

    Raises:
        DocumentError: If the file is missing, not a mapping, or invalid
    """
    path = Path(path)
    if not path.is_file():
        raise DocumentError(f"Config file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise DocumentError(f"{path}: expected a mapping of settings")

    try:
        config = EngineConfig.model_validate(data)
    except ValidationError as e:
        raise DocumentError(f"{path}: invalid config: {e}") from e
    return config.relative_to(path.parent.resolve())
