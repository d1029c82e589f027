from digitnet.domain.interfaces.dataset_loader import DatasetLoader
from digitnet.infrastructure.datasets import load_dataset
from digitnet.domain.entities.dataset import Dataset


class MNISTDatasetLoader(DatasetLoader):
    """Concrete implementation for loading IDX (MNIST) datasets."""

    def load(self, images_path: str, labels_path: str, max_samples: int | None = None) -> Dataset:
        """
        Load the specified IDX image/label pair and return it as a Dataset.

        Parameters:
            images_path (str): Path to the IDX image file.
            labels_path (str): Path to the IDX label file.
            max_samples (int | None): Maximum number of samples to load; None to load all available samples.

        Returns:
            Dataset: Loaded dataset of normalized image vectors and one-hot targets.
        """
        return load_dataset(images_path, labels_path, max_samples)
