"""Tests for config_loader module.

- AAA pattern (Arrange-Act-Assert)
- Descriptive test names: test_unit_scenario_expectedBehavior
- Test isolation (no shared mutable state)
"""

import pytest
import yaml

from schema_weaver.core.config_loader import (
    InferenceConfigDefaults,
    get_project_root,
    load_inference_config,
    load_logging_config,
)

INFERENCE_KEYS = (
    "NAME_SIMILARITY_GATE",
    "MIN_CONFIDENCE",
    "NAME_WEIGHT",
    "TYPE_WEIGHT",
    "OVERLAP_WEIGHT",
    "UNIQUENESS_WEIGHT",
)


@pytest.fixture(autouse=True)
def clear_inference_env(monkeypatch):
    for key in INFERENCE_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestConfigLoaderInference:
    """Test suite for inference configuration loading."""

    def test_load_inference_config_loads_from_yaml_file(self, tmp_path):
        # Arrange
        config_file = tmp_path / "inference.yaml"
        config_file.write_text(yaml.dump({"min_confidence": 0.7, "name_similarity_gate": 0.5}))

        # Act
        config = load_inference_config(config_path=config_file)

        # Assert
        assert config["min_confidence"] == 0.7
        assert config["name_similarity_gate"] == 0.5
        assert config["name_weight"] == 0.5

    def test_load_inference_config_missing_file_uses_defaults(self, tmp_path):
        config = load_inference_config(config_path=tmp_path / "missing.yaml")

        assert config == InferenceConfigDefaults().to_dict()

    def test_load_inference_config_default_location_matches_defaults(self):
        # Arrange / Act: shipped config/inference.yaml
        config = load_inference_config()

        # Assert
        assert config == InferenceConfigDefaults().to_dict()

    def test_load_inference_config_coerces_string_floats(self, tmp_path):
        config_file = tmp_path / "inference.yaml"
        config_file.write_text(yaml.dump({"type_weight": "0.25"}))

        config = load_inference_config(config_path=config_file)

        assert config["type_weight"] == 0.25

    def test_load_inference_config_critical_config_type_coercion_failure_raises_valueerror(self, tmp_path):
        # Arrange
        config_file = tmp_path / "inference.yaml"
        config_file.write_text(yaml.dump({"min_confidence": "high"}))

        # Act & Assert
        with pytest.raises(ValueError, match="Type coercion failed for critical config"):
            load_inference_config(config_path=config_file)

    def test_load_inference_config_bool_weight_raises_valueerror(self, tmp_path):
        config_file = tmp_path / "inference.yaml"
        config_file.write_text(yaml.dump({"name_weight": True}))

        with pytest.raises(ValueError, match="critical config"):
            load_inference_config(config_path=config_file)

    def test_load_inference_config_unknown_key_ignored(self, tmp_path):
        config_file = tmp_path / "inference.yaml"
        config_file.write_text(yaml.dump({"unrelated": 1}))

        config = load_inference_config(config_path=config_file)

        assert "unrelated" not in config

    def test_load_inference_config_invalid_yaml_raises_valueerror(self, tmp_path):
        config_file = tmp_path / "inference.yaml"
        config_file.write_text("min_confidence: [unclosed")

        with pytest.raises(ValueError, match="Invalid YAML"):
            load_inference_config(config_path=config_file)

    def test_load_inference_config_non_mapping_yaml_raises_valueerror(self, tmp_path):
        config_file = tmp_path / "inference.yaml"
        config_file.write_text("- 0.6\n- 0.55\n")

        with pytest.raises(ValueError, match="expected a mapping"):
            load_inference_config(config_path=config_file)


class TestConfigLoaderEnvOverrides:
    """Test suite for environment variable precedence."""

    def test_env_var_overrides_yaml_value(self, tmp_path, monkeypatch):
        # Arrange
        config_file = tmp_path / "inference.yaml"
        config_file.write_text(yaml.dump({"min_confidence": 0.7}))
        monkeypatch.setenv("MIN_CONFIDENCE", "0.9")

        # Act
        config = load_inference_config(config_path=config_file)

        # Assert
        assert config["min_confidence"] == 0.9

    def test_env_var_invalid_critical_value_raises_valueerror(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NAME_SIMILARITY_GATE", "loose")

        with pytest.raises(ValueError, match="NAME_SIMILARITY_GATE"):
            load_inference_config(config_path=tmp_path / "missing.yaml")


class TestConfigLoaderLogging:
    """Test suite for logging configuration loading."""

    def test_load_logging_config_merges_module_levels(self, tmp_path):
        # Arrange
        config_file = tmp_path / "logging.yaml"
        config_file.write_text(
            yaml.dump({"root_level": "DEBUG", "module_levels": {"schema_weaver.cli": "WARNING"}})
        )

        # Act
        config = load_logging_config(config_path=config_file)

        # Assert
        assert config["root_level"] == "DEBUG"
        assert config["module_levels"]["schema_weaver.cli"] == "WARNING"
        assert config["module_levels"]["schema_weaver.core.combined_output"] == "INFO"
        assert config["reduce_noise"] == {"urllib3": "WARNING"}

    def test_load_logging_config_missing_file_uses_defaults(self, tmp_path):
        config = load_logging_config(config_path=tmp_path / "missing.yaml")

        assert config["root_level"] == "INFO"


class TestProjectRoot:
    """Test suite for project root detection."""

    def test_get_project_root_contains_config_directory(self, project_root):
        root = get_project_root()

        assert root.resolve() == project_root.resolve()
        assert (root / "config" / "inference.yaml").is_file()
