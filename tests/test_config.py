"""Tests for configuration loading."""

import pytest

from gitstamp.core.config import (
    DEFAULT_DATE_FORMAT,
    DEFAULT_DIRTY_FLAG,
    DEFAULT_PREFIXES,
    ConfigError,
    StampConfig,
    TagTieBreak,
    load_config,
)


class TestStampConfigDefaults:
    """Test default option values."""

    def test_defaults(self):
        """Test a default config matches the documented defaults."""
        config = StampConfig()

        assert config.date_format == DEFAULT_DATE_FORMAT
        assert config.dirty_flag == DEFAULT_DIRTY_FLAG == "-dirty"
        assert config.dirty_ignore_untracked is False
        assert config.abbrev_length == 7
        assert config.tag_tie_break == TagTieBreak.NEWEST
        assert config.describe_fallback is False
        assert config.prefixes == DEFAULT_PREFIXES
        assert config.suffix_enabled is True

    def test_config_is_frozen(self):
        """Test options cannot be changed after construction."""
        config = StampConfig()

        with pytest.raises(ValueError):
            config.dirty_flag = "x"

    def test_prefixes_are_cleaned(self):
        """Test trailing dots and duplicates are removed."""
        config = StampConfig(prefixes=["app.", "app", "git"])

        assert config.prefixes == ["app", "git"]

    def test_empty_prefix_rejected(self):
        """Test blank prefixes are invalid."""
        with pytest.raises(ValueError):
            StampConfig(prefixes=[" "])

    def test_abbrev_length_bounds(self):
        """Test abbrev_length must be within 4-40."""
        with pytest.raises(ValueError):
            StampConfig(abbrev_length=3)


class TestConfigFromYaml:
    """Test YAML parsing."""

    def test_camel_case_keys(self):
        """Test camelCase option names are accepted."""
        config = StampConfig.from_yaml(
            "dateFormat: '%d.%m.%Y'\ndirtyFlag: '+wip'\ndirtyIgnoreUntracked: true\n"
        )

        assert config.date_format == "%d.%m.%Y"
        assert config.dirty_flag == "+wip"
        assert config.dirty_ignore_untracked is True

    def test_snake_case_keys(self):
        """Test snake_case option names are accepted."""
        config = StampConfig.from_yaml("tag_tie_break: name\nprefixes: [build]\n")

        assert config.tag_tie_break == TagTieBreak.NAME
        assert config.prefixes == ["build"]

    def test_null_dirty_flag_disables_suffix(self):
        """Test YAML null is the documented way to disable suffixing."""
        config = StampConfig.from_yaml("dirtyFlag: null\n")

        assert config.dirty_flag is None
        assert config.suffix_enabled is False

    def test_string_null_is_a_real_suffix(self):
        """Test the quoted string 'null' is a literal suffix, not the sentinel."""
        config = StampConfig.from_yaml("dirtyFlag: 'null'\n")

        assert config.dirty_flag == "null"
        assert config.suffix_enabled is True

    def test_empty_document_gives_defaults(self):
        """Test an empty file is a default config."""
        assert StampConfig.from_yaml("") == StampConfig()

    def test_unknown_key_rejected(self):
        """Test typos in option names are reported."""
        with pytest.raises(ConfigError, match="dirtyFalg"):
            StampConfig.from_yaml("dirtyFalg: x\n")

    def test_non_mapping_rejected(self):
        """Test a list document is rejected."""
        with pytest.raises(ConfigError, match="mapping"):
            StampConfig.from_yaml("- a\n- b\n")

    def test_invalid_yaml(self):
        """Test syntax errors become ConfigError."""
        with pytest.raises(ConfigError, match="Invalid YAML"):
            StampConfig.from_yaml("a: [unclosed\n")


class TestLoadConfig:
    """Test loading from disk."""

    def test_no_path_gives_defaults(self):
        """Test load_config() without a path returns defaults."""
        assert load_config() == StampConfig()

    def test_load_file(self, tmp_path):
        """Test a config file is read and validated."""
        path = tmp_path / "gitstamp.yaml"
        path.write_text("abbrevLength: 10\ndescribeFallback: true\n")

        config = load_config(path)

        assert config.abbrev_length == 10
        assert config.describe_fallback is True

    def test_missing_file(self, tmp_path):
        """Test a missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(tmp_path / "missing.yaml")
