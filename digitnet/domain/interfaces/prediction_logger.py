from abc import ABC, abstractmethod


class PredictionLogger(ABC):
    """Abstract sink for per-sample test predictions."""

    @abstractmethod
    def log_prediction(self, prediction: int, label: int, sample_index: int) -> None:
        """
        Record the prediction made for one test sample.

        Parameters:
            prediction (int): Predicted class (arg-max of the network output).
            label (int): Actual class (arg-max of the one-hot target).
            sample_index (int): Index of the sample in the testing set.
        """
        pass
