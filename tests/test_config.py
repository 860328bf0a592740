"""
Tests for YAML configuration loading and validation.
"""

import sys
from pathlib import Path

import pytest
import yaml

# Add scripts directory to path for imports
scripts_dir = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(scripts_dir))

from deripper.config import (
    DEFAULT_CONFIG,
    get_nested,
    load_config,
    main,
    merge_config,
    validate_config,
)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_defaults(self):
        """No path gives a copy of the defaults."""
        config = load_config()
        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG

    def test_yaml_overrides_merge(self, temp_dir, sample_config_yaml):
        """YAML values override defaults key by key."""
        path = temp_dir / "derip.yaml"
        path.write_text(sample_config_yaml)

        config = load_config(str(path))

        assert config["search"]["evalue"] == pytest.approx(1e-5)
        assert config["search"]["blastn"] == "blastn"
        assert config["bias"]["min_depth"] == 5
        assert config["bias"]["min_ratio"] == 1.0
        assert config["output"]["line_width"] == 60
        assert config["output"]["suffix"] == ".deripped"

    def test_empty_file_gives_defaults(self, temp_dir):
        """Empty YAML file gives the defaults."""
        path = temp_dir / "empty.yaml"
        path.write_text("")
        assert load_config(str(path)) == DEFAULT_CONFIG

    def test_missing_file(self, temp_dir):
        """Missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(str(temp_dir / "nope.yaml"))

    def test_non_mapping(self, temp_dir):
        """Top-level YAML list raises YAMLError."""
        path = temp_dir / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(yaml.YAMLError):
            load_config(str(path))

    def test_defaults_not_mutated(self, temp_dir):
        """Changing a loaded config leaves the defaults intact."""
        config = load_config()
        config["bias"]["min_depth"] = 99
        assert DEFAULT_CONFIG["bias"]["min_depth"] == 10


class TestHelpers:
    """Tests for nested access and merging."""

    def test_get_nested(self):
        """Dot paths reach nested values or fall back to the default."""
        config = {"bias": {"min_depth": 10}}
        assert get_nested(config, "bias.min_depth") == 10
        assert get_nested(config, "bias.missing", "default") == "default"
        assert get_nested(config, "bias.min_depth.deeper") is None

    def test_merge_config(self):
        """Nested keys merge, new keys are added."""
        merged = merge_config({"a": {"b": 1, "c": 2}}, {"a": {"b": 3}, "d": 4})
        assert merged == {"a": {"b": 3, "c": 2}, "d": 4}


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_defaults_valid(self):
        """Built-in defaults pass validation."""
        is_valid, errors = validate_config(load_config())
        assert is_valid is True
        assert errors == []

    def test_bad_values(self):
        """Each invalid value yields its own error."""
        config = load_config()
        config["search"]["evalue"] = -1
        config["bias"]["min_depth"] = "deep"
        config["output"]["line_width"] = 0
        config["logging"]["level"] = "LOUD"

        is_valid, errors = validate_config(config)

        assert is_valid is False
        assert len(errors) == 4

    def test_missing_program(self):
        """Empty program name is reported."""
        config = load_config()
        config["search"]["blastn"] = ""
        is_valid, errors = validate_config(config)
        assert is_valid is False
        assert "search.blastn" in errors[0]


# ============================================================================
# Tests: Command Line
# ============================================================================


class TestConfigMain:
    """Tests for the config helper command."""

    @pytest.fixture
    def config_file(self, temp_dir, sample_config_yaml):
        path = temp_dir / "derip.yaml"
        path.write_text(sample_config_yaml)
        return path

    def run_main(self, monkeypatch, *args):
        monkeypatch.setattr(sys, "argv", ["config.py", *args])
        main()

    def test_get_value(self, monkeypatch, capsys, config_file):
        """--get prints a single value."""
        self.run_main(monkeypatch, str(config_file), "--get", "bias.min_depth")
        assert capsys.readouterr().out == "5\n"

    def test_get_default_value(self, monkeypatch, capsys, config_file):
        """--get falls back to built-in defaults for keys the file omits."""
        self.run_main(monkeypatch, str(config_file), "--get", "output.suffix")
        assert capsys.readouterr().out == ".deripped\n"

    def test_get_json(self, monkeypatch, capsys, config_file):
        """--json prints lists as JSON."""
        self.run_main(monkeypatch, str(config_file), "--get", "search.index_suffixes", "--json")
        assert capsys.readouterr().out == '[".nhr", ".nin", ".nsq"]\n'

    def test_get_missing_key(self, monkeypatch, capsys, config_file):
        """Unknown key exits with status 1."""
        with pytest.raises(SystemExit) as exc:
            self.run_main(monkeypatch, str(config_file), "--get", "bias.nope")
        assert exc.value.code == 1
        assert "Key not found: bias.nope" in capsys.readouterr().err

    def test_validate_ok(self, monkeypatch, capsys, config_file):
        """Valid config exits with status 0."""
        with pytest.raises(SystemExit) as exc:
            self.run_main(monkeypatch, str(config_file), "--validate")
        assert exc.value.code == 0
        assert "Configuration is valid!" in capsys.readouterr().out

    def test_validate_bad_config(self, monkeypatch, capsys, temp_dir):
        """Invalid config lists its errors and exits with status 1."""
        path = temp_dir / "bad.yaml"
        path.write_text("bias:\n  min_depth: -1\noutput:\n  line_width: 0\n")
        with pytest.raises(SystemExit) as exc:
            self.run_main(monkeypatch, str(path), "--validate")
        assert exc.value.code == 1
        err = capsys.readouterr().err
        assert "bias.min_depth must be >= 0" in err
        assert "output.line_width must be >= 1" in err

    def test_summary_by_default(self, monkeypatch, capsys, config_file):
        """Without flags a summary of the merged config is printed."""
        self.run_main(monkeypatch, str(config_file))
        out = capsys.readouterr().out
        assert "De-ripping Configuration Summary" in out
        assert "  Min Depth: 5" in out
        assert "  Line Width: 60" in out
        assert "  E-value: 1e-05" in out

    def test_missing_file(self, monkeypatch, capsys, temp_dir):
        """Missing config file exits with status 1."""
        with pytest.raises(SystemExit) as exc:
            self.run_main(monkeypatch, str(temp_dir / "nope.yaml"))
        assert exc.value.code == 1
        assert capsys.readouterr().err.startswith("Error:")

    def test_invalid_yaml(self, monkeypatch, capsys, temp_dir):
        """Unparseable YAML exits with status 1."""
        path = temp_dir / "broken.yaml"
        path.write_text("bias: [unclosed\n")
        with pytest.raises(SystemExit) as exc:
            self.run_main(monkeypatch, str(path))
        assert exc.value.code == 1
        assert "Error parsing YAML" in capsys.readouterr().err
