import os
import tomllib
from dataclasses import dataclass, fields
from typing import Iterable

from digitnet.domain.errors import ConfigurationError

# The classifier works on 28x28 images and 10 digit classes.
INPUT_SIZE = 784
OUTPUT_SIZE = 10

# Legacy "key = value" files use these names for the training settings.
LEGACY_KEYS = {
    "learning_rate": "learning_rate",
    "hidden_size": "hidden_size",
    "num_epochs": "epochs",
    "batch_size": "batch_size",
    "rel_path_train_images": "train_images",
    "rel_path_train_labels": "train_labels",
    "rel_path_test_images": "test_images",
    "rel_path_test_labels": "test_labels",
    "rel_path_log_file": "prediction_log",
}


def parse_config_file(lines: Iterable[str]) -> dict[str, str]:
    """
    Parse the legacy ``key = value`` configuration format.

    Empty lines and lines starting with a backslash are skipped, lines
    without ``=`` are ignored, and whitespace around keys and values is
    trimmed. Later occurrences of a key override earlier ones.

    Parameters
    ----------
    lines : Iterable[str]
        Lines of the configuration file.

    Returns
    -------
    dict[str, str]
        Raw key/value pairs.
    """
    config = {}
    for line in lines:
        if not line.strip() or line.startswith("\\"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        config[key.strip()] = value.strip()
    return config


@dataclass
class TrainingConfiguration:
    """Configuration for training and testing the digit classifier."""

    learning_rate: float
    hidden_size: int
    epochs: int
    batch_size: int
    train_images: str
    train_labels: str
    test_images: str
    test_labels: str
    prediction_log: str = "predictions.log"
    max_train_samples: int | None = None
    max_test_samples: int | None = None
    seed: int | None = None

    def __post_init__(self):
        """Validate and coerce field values.

        Raises
        ------
        ConfigurationError
            If a value has the wrong type or is out of range.
        """
        try:
            self.learning_rate = float(self.learning_rate)
            self.hidden_size = int(self.hidden_size)
            self.epochs = int(self.epochs)
            self.batch_size = int(self.batch_size)
            for name in ("max_train_samples", "max_test_samples", "seed"):
                value = getattr(self, name)
                if value is not None:
                    setattr(self, name, int(value))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e

        if self.learning_rate <= 0:
            raise ConfigurationError(f"learning_rate must be positive, got {self.learning_rate}")
        for name in ("hidden_size", "epochs", "batch_size"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("max_train_samples", "max_test_samples"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigurationError(f"{name} must be positive when set, got {value}")

    @classmethod
    def from_dict(cls, data: dict) -> "TrainingConfiguration":
        """
        Build a configuration from a mapping of field names to values.

        Raises
        ------
        ConfigurationError
            If a required field is missing or an unknown field is present.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        try:
            return cls(**data)
        except TypeError as e:
            raise ConfigurationError(f"Incomplete configuration: {e}") from e

    @classmethod
    def load(cls, config_path: str) -> "TrainingConfiguration":
        """
        Load training configuration from a file.

        Files ending in ``.toml`` must contain a "training" table. Any other
        file is read in the legacy ``key = value`` format.

        Parameters
        ----------
        config_path : str
            Filesystem path to the configuration file.

        Returns
        -------
        TrainingConfiguration
            Instance populated from the file.

        Raises
        ------
        FileNotFoundError
            If no file exists at `config_path`.
        ConfigurationError
            If the file is malformed or misses required settings.
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found at {config_path}")

        if config_path.endswith(".toml"):
            with open(config_path, "rb") as f:
                try:
                    data = tomllib.load(f)
                except tomllib.TOMLDecodeError as e:
                    raise ConfigurationError(f"Malformed TOML in {config_path}: {e}") from e
            return cls.from_dict(data.get("training", {}))

        with open(config_path, "r") as f:
            raw = parse_config_file(f)

        missing = [key for key in LEGACY_KEYS if key not in raw and key != "rel_path_log_file"]
        if missing:
            raise ConfigurationError(
                f"Missing required settings in {config_path}: {', '.join(missing)}"
            )
        return cls.from_dict({LEGACY_KEYS[key]: value for key, value in raw.items() if key in LEGACY_KEYS})
