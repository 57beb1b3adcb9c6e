"""Tests for EngineConfig and YAML config loading."""

from pathlib import Path

import pytest

from osc_variants import EngineConfig, load_config
from osc_variants.catalogs import CatalogKind
from osc_variants.errors import DocumentError


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig()
        assert config.max_catalog_depth == 16
        assert config.max_workers == 1
        assert config.random_seed is None
        assert config.overrides() == {}

    def test_depth_must_be_positive(self):
        with pytest.raises(ValueError):
            EngineConfig(max_catalog_depth=0)

    def test_workers_must_be_positive(self):
        with pytest.raises(ValueError):
            EngineConfig(max_workers=0)

    def test_unknown_setting_rejected(self):
        with pytest.raises(ValueError):
            EngineConfig(max_depth=3)

    def test_locations_registry(self, tmp_path):
        config = EngineConfig(catalog_locations={"vehicle": [tmp_path], "route": tmp_path / "r"})
        registry = config.locations()
        assert registry.directories(CatalogKind.VEHICLE) == [tmp_path]
        assert registry.directories(CatalogKind.ROUTE) == [tmp_path / "r"]

    def test_override_values_become_text(self):
        config = EngineConfig(parameter_overrides={"Speed": 30, "Enabled": True})
        assert config.parameter_overrides == {"Speed": "30", "Enabled": "true"}


class TestLoadConfig:
    def test_relative_paths_anchored_at_config_file(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text(
            "base_path: scenarios\n"
            "catalog_locations:\n"
            "  vehicle: [catalogs/vehicles]\n"
            "  controller: catalogs/controllers\n"
            "random_seed: 42\n"
            "max_workers: 4\n"
            "parameter_overrides:\n"
            "  EgoSpeed: 30\n"
        )
        config = load_config(path)
        root = tmp_path.resolve()
        assert config.base_path == root / "scenarios"
        assert config.catalog_locations[CatalogKind.VEHICLE] == [root / "catalogs" / "vehicles"]
        assert config.catalog_locations[CatalogKind.CONTROLLER] == [root / "catalogs" / "controllers"]
        assert config.random_seed == 42
        assert config.max_workers == 4
        assert config.overrides() == {"EgoSpeed": "30"}

    def test_absolute_paths_kept(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("base_path: /srv/scenarios\n")
        assert load_config(path).base_path == Path("/srv/scenarios")

    def test_override_file_under_inline_overrides(self, tmp_path):
        (tmp_path / "overrides.yaml").write_text("EgoSpeed: 20\nWeather: rain\n")
        path = tmp_path / "engine.yaml"
        path.write_text(
            "parameter_overrides_file: overrides.yaml\n"
            "parameter_overrides:\n"
            "  EgoSpeed: 30\n"
        )
        assert load_config(path).overrides() == {"EgoSpeed": "30", "Weather": "rain"}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("")
        assert load_config(path) == EngineConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentError):
            load_config(tmp_path / "missing.yaml")

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(DocumentError):
            load_config(path)

    def test_invalid_setting(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("max_catalog_depth: 0\n")
        with pytest.raises(DocumentError, match="max_catalog_depth"):
            load_config(path)
