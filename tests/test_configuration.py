"""Tests for configuration module."""
import pytest

from digitnet.domain.errors import ConfigurationError
from digitnet.infrastructure.configuration import (
    TrainingConfiguration,
    parse_config_file,
)

LEGACY_CONFIG = """\\ digit classifier settings
learning_rate = 0.05
hidden_size = 32
num_epochs = 4
batch_size = 1

rel_path_train_images = data/train-images
rel_path_train_labels = data/train-labels
rel_path_test_images = data/test-images
rel_path_test_labels = data/test-labels
rel_path_log_file = logs/out.log
"""

TOML_CONFIG = """
[training]
learning_rate = 0.001
hidden_size = 64
epochs = 25
batch_size = 1
train_images = "data/train-images"
train_labels = "data/train-labels"
test_images = "data/test-images"
test_labels = "data/test-labels"
max_train_samples = 500
seed = 7
"""


def _base_values(**overrides):
    values = dict(
        learning_rate=0.01,
        hidden_size=16,
        epochs=2,
        batch_size=1,
        train_images="a",
        train_labels="b",
        test_images="c",
        test_labels="d",
    )
    values.update(overrides)
    return values


class TestParseConfigFile:
    """Tests for the key = value line parser."""

    def test_trims_keys_and_values(self):
        assert parse_config_file(["  hidden_size  =  128  \n"]) == {"hidden_size": "128"}

    def test_skips_backslash_comment_lines(self):
        assert parse_config_file(["\\ hidden_size = 5\n", "epochs = 2\n"]) == {"epochs": "2"}

    def test_ignores_lines_without_equals(self):
        assert parse_config_file(["just some text\n", "\n", "a=1\n"]) == {"a": "1"}

    def test_value_may_contain_equals(self):
        assert parse_config_file(["path = a=b\n"]) == {"path": "a=b"}

    def test_later_keys_override_earlier(self):
        assert parse_config_file(["a = 1\n", "a = 2\n"]) == {"a": "2"}


class TestTrainingConfiguration:
    """Tests for TrainingConfiguration class."""

    def test_values_are_coerced(self):
        config = TrainingConfiguration(**_base_values(learning_rate="0.5", hidden_size="8"))
        assert config.learning_rate == 0.5
        assert config.hidden_size == 8
        assert config.prediction_log == "predictions.log"
        assert config.seed is None

    def test_invalid_number_raises(self):
        with pytest.raises(ConfigurationError):
            TrainingConfiguration(**_base_values(hidden_size="many"))

    @pytest.mark.parametrize(
        "field, value",
        [("learning_rate", 0), ("hidden_size", -1), ("epochs", 0), ("batch_size", 0)],
    )
    def test_non_positive_values_raise(self, field, value):
        with pytest.raises(ConfigurationError):
            TrainingConfiguration(**_base_values(**{field: value}))

    @pytest.mark.parametrize("field", ["max_train_samples", "max_test_samples"])
    @pytest.mark.parametrize("value", [0, -3])
    def test_non_positive_sample_limits_raise(self, field, value):
        with pytest.raises(ConfigurationError, match=field):
            TrainingConfiguration(**_base_values(**{field: value}))

    def test_sample_limits_default_to_unlimited(self):
        config = TrainingConfiguration(**_base_values(max_train_samples="5"))
        assert config.max_train_samples == 5
        assert config.max_test_samples is None

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ConfigurationError, match="colour"):
            TrainingConfiguration.from_dict(_base_values(colour="blue"))

    def test_from_dict_rejects_missing_keys(self):
        values = _base_values()
        del values["train_labels"]
        with pytest.raises(ConfigurationError):
            TrainingConfiguration.from_dict(values)

    def test_load_from_toml(self, tmp_path):
        """Test loading configuration from TOML file."""
        config_file = tmp_path / "config.toml"
        config_file.write_text(TOML_CONFIG)

        config = TrainingConfiguration.load(str(config_file))

        assert config.learning_rate == 0.001
        assert config.hidden_size == 64
        assert config.epochs == 25
        assert config.train_images == "data/train-images"
        assert config.max_train_samples == 500
        assert config.max_test_samples is None
        assert config.seed == 7

    def test_load_malformed_toml(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text("[training\nepochs = ")
        with pytest.raises(ConfigurationError):
            TrainingConfiguration.load(str(config_file))

    def test_load_toml_without_training_table(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text("[other]\nepochs = 2\n")
        with pytest.raises(ConfigurationError):
            TrainingConfiguration.load(str(config_file))

    def test_load_legacy_format(self, tmp_path):
        """Test loading the key = value format."""
        config_file = tmp_path / "config.cfg"
        config_file.write_text(LEGACY_CONFIG)

        config = TrainingConfiguration.load(str(config_file))

        assert config.learning_rate == 0.05
        assert config.hidden_size == 32
        assert config.epochs == 4
        assert config.batch_size == 1
        assert config.train_images == "data/train-images"
        assert config.test_labels == "data/test-labels"
        assert config.prediction_log == "logs/out.log"

    def test_legacy_log_file_is_optional(self, tmp_path):
        config_file = tmp_path / "config.cfg"
        config_file.write_text(LEGACY_CONFIG.replace("rel_path_log_file = logs/out.log\n", ""))

        config = TrainingConfiguration.load(str(config_file))

        assert config.prediction_log == "predictions.log"

    def test_legacy_missing_key_raises(self, tmp_path):
        config_file = tmp_path / "config.cfg"
        config_file.write_text(LEGACY_CONFIG.replace("num_epochs = 4\n", ""))
        with pytest.raises(ConfigurationError, match="num_epochs"):
            TrainingConfiguration.load(str(config_file))

    def test_legacy_ignores_unknown_keys(self, tmp_path):
        config_file = tmp_path / "config.cfg"
        config_file.write_text(LEGACY_CONFIG + "colour = blue\n")
        assert TrainingConfiguration.load(str(config_file)).hidden_size == 32

    def test_legacy_invalid_value_raises(self, tmp_path):
        config_file = tmp_path / "config.cfg"
        config_file.write_text(LEGACY_CONFIG.replace("hidden_size = 32", "hidden_size = wide"))
        with pytest.raises(ConfigurationError):
            TrainingConfiguration.load(str(config_file))

    def test_load_missing_file(self):
        """Test that loading from missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            TrainingConfiguration.load("/nonexistent/path/config.toml")
