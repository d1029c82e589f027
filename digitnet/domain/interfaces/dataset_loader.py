from abc import ABC, abstractmethod
from digitnet.domain.entities.dataset import Dataset


class DatasetLoader(ABC):
    """Abstract interface for dataset loading."""

    @abstractmethod
    def load(self, images_path: str, labels_path: str, max_samples: int | None = None) -> Dataset:
        """
        Load an image/label file pair and return it as a Dataset.

        Parameters:
            images_path (str): Path to the file holding the images.
            labels_path (str): Path to the file holding the matching labels.
            max_samples (int | None): Maximum number of samples to include; if None, include all available samples.

        Returns:
            Dataset: Fully materialized dataset of (normalized image vector, one-hot target) pairs.
        """
        pass
