"""Plain-text prediction log written while testing a network."""
import os

from digitnet.domain.interfaces.prediction_logger import PredictionLogger

LOG_HEADER = "Current batch: 0\n"


class FilePredictionLogger(PredictionLogger):
    """
    Appends one line per tested sample to a text file.

    The file is (re)created with a header line when the logger is built.

    Parameters
    ----------
    path : str
        Path of the log file. Missing parent directories are created.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        log_dir = os.path.dirname(path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        with open(path, "w") as f:
            f.write(LOG_HEADER)

    def log_prediction(self, prediction: int, label: int, sample_index: int) -> None:
        with open(self.path, "a") as f:
            f.write(f" - image {sample_index}: Prediction={prediction}. Label={label}\n")
