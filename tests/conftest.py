"""Pytest configuration and shared fixtures."""
import numpy as np
import pytest
from fixtures.idx_files import write_idx_images, write_idx_labels


@pytest.fixture
def idx_files(tmp_path):
    """
    Write a tiny MNIST-like dataset (28x28 images) to IDX files.

    Returns:
        dict: Paths keyed by "train_images", "train_labels", "test_images"
            and "test_labels". The training set holds 6 images labelled
            0..5, the testing set 3 images labelled 1, 2, 3.
    """
    rng = np.random.default_rng(0)
    paths = {
        "train_images": str(tmp_path / "train-images-idx3-ubyte"),
        "train_labels": str(tmp_path / "train-labels-idx1-ubyte"),
        "test_images": str(tmp_path / "t10k-images-idx3-ubyte"),
        "test_labels": str(tmp_path / "t10k-labels-idx1-ubyte"),
    }
    write_idx_images(paths["train_images"], rng.integers(0, 256, size=(6, 28, 28)))
    write_idx_labels(paths["train_labels"], [0, 1, 2, 3, 4, 5])
    write_idx_images(paths["test_images"], rng.integers(0, 256, size=(3, 28, 28)))
    write_idx_labels(paths["test_labels"], [1, 2, 3])
    return paths


@pytest.fixture
def two_class_samples():
    """
    Provide a two-sample, two-class synthetic dataset.

    Returns:
        list[tuple[np.ndarray, np.ndarray]]: (input, one-hot target) pairs.
    """
    return [
        (np.array([1.0, 0.0]), np.array([1.0, 0.0])),
        (np.array([0.0, 1.0]), np.array([0.0, 1.0])),
    ]
