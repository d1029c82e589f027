"""Dataset loading - IDX (MNIST) file reader.
Decodes the big-endian IDX image and label files and adapts them to the
Dataset entity.
"""
import logging

import numpy as np

from digitnet.domain.entities.dataset import Dataset
from digitnet.domain.entities.matvec import Matrix, Vector
from digitnet.domain.entities.tensor import Tensor, write_tensor_to_file
from digitnet.domain.errors import ParseError

logger = logging.getLogger(__name__)

IMAGE_MAGIC_NUMBER = 0x803
LABEL_MAGIC_NUMBER = 0x801
IMAGE_HEADER_SIZE = 16
LABEL_HEADER_SIZE = 8
NUM_CLASSES = 10


def _read_header(raw: bytes, words: int, path: str) -> list[int]:
    if len(raw) < 4 * words:
        raise ParseError(f"Truncated IDX header in {path}: {len(raw)} bytes")
    return np.frombuffer(raw, dtype=">u4", count=words).tolist()


def _limit(count: int, max_samples: int | None) -> int:
    return count if max_samples is None else min(count, max_samples)


def get_item_count(path: str) -> int:
    """
    Return the number of items declared in an IDX label file header.

    Raises
    ------
    ParseError
        If the header is truncated or the magic number is wrong.
    """
    with open(path, "rb") as f:
        raw = f.read(LABEL_HEADER_SIZE)
    magic, count = _read_header(raw, 2, path)
    if magic != LABEL_MAGIC_NUMBER:
        raise ParseError(f"Not an IDX label file: {path} (magic {magic:#x})")
    return count


def read_idx_images(path: str, max_samples: int | None = None) -> tuple[np.ndarray, int, int]:
    """
    Read raw pixel data from an IDX image file.

    Parameters
    ----------
    path : str
        Path to the image file.
    max_samples : int | None
        Read at most this many images; None reads all of them.

    Returns
    -------
    tuple[np.ndarray, int, int]
        ``(pixels, rows, cols)`` where ``pixels`` is a uint8 array of shape
        (n, rows * cols).

    Raises
    ------
    ParseError
        If the magic number is wrong or the file is truncated.
    """
    with open(path, "rb") as f:
        raw = f.read()

    magic, count, rows, cols = _read_header(raw, 4, path)
    if magic != IMAGE_MAGIC_NUMBER:
        raise ParseError(f"Not an IDX image file: {path} (magic {magic:#x})")

    count = _limit(count, max_samples)
    image_size = rows * cols
    needed = IMAGE_HEADER_SIZE + count * image_size
    if len(raw) < needed:
        raise ParseError(
            f"Truncated IDX image file {path}: expected {needed} bytes, got {len(raw)}"
        )

    pixels = np.frombuffer(raw, dtype=np.uint8, count=count * image_size, offset=IMAGE_HEADER_SIZE)
    return pixels.reshape(count, image_size), rows, cols


def read_idx_labels(path: str, max_samples: int | None = None) -> np.ndarray:
    """
    Read class labels from an IDX label file.

    Parameters
    ----------
    path : str
        Path to the label file.
    max_samples : int | None
        Read at most this many labels; None reads all of them.

    Returns
    -------
    np.ndarray
        uint8 array of labels.

    Raises
    ------
    ParseError
        If the magic number is wrong or the file is truncated.
    """
    with open(path, "rb") as f:
        raw = f.read()

    magic, count = _read_header(raw, 2, path)
    if magic != LABEL_MAGIC_NUMBER:
        raise ParseError(f"Not an IDX label file: {path} (magic {magic:#x})")

    count = _limit(count, max_samples)
    if len(raw) < LABEL_HEADER_SIZE + count:
        raise ParseError(
            f"Truncated IDX label file {path}: expected {LABEL_HEADER_SIZE + count} bytes, "
            f"got {len(raw)}"
        )
    return np.frombuffer(raw, dtype=np.uint8, count=count, offset=LABEL_HEADER_SIZE)


def normalize(pixels: np.ndarray) -> np.ndarray:
    """Scale uint8 intensities to float64 values in [0, 1]."""
    return np.asarray(pixels, dtype=np.float64) / 255.0


def one_hot(label: int, num_classes: int = NUM_CLASSES) -> np.ndarray:
    """
    Encode a class label as a one-hot float64 vector.

    Raises
    ------
    ParseError
        If `label` is not a valid class index.
    """
    if not 0 <= label < num_classes:
        raise ParseError(f"Label {label} outside of the {num_classes} known classes")
    target = np.zeros(num_classes)
    target[label] = 1.0
    return target


class MNISTDataset(Dataset):
    """In-memory dataset of normalized image vectors and one-hot targets."""

    def __init__(self, images: np.ndarray, targets: np.ndarray, image_shape: tuple[int, int]):
        if len(images) != len(targets):
            raise ValueError(
                f"Got {len(images)} images but {len(targets)} targets"
            )
        self._images = images
        self._targets = targets
        self._image_shape = image_shape

    def __len__(self) -> int:
        return len(self._images)

    def __getitem__(self, idx: int) -> tuple[np.ndarray, np.ndarray]:
        return self._images[idx], self._targets[idx]

    @property
    def image_shape(self) -> tuple[int, int]:
        return self._image_shape


def load_dataset(images_path: str, labels_path: str, max_samples: int | None = None) -> MNISTDataset:
    """
    Load an IDX image/label file pair.

    Args:
        images_path: Path to the IDX image file.
        labels_path: Path to the IDX label file.
        max_samples: Optional limit on the number of samples to load.

    Returns:
        An MNISTDataset with one sample per label.

    Raises:
        ParseError: If either file is malformed, or there are fewer images than labels.
    """
    labels = read_idx_labels(labels_path, max_samples)
    pixels, rows, cols = read_idx_images(images_path, max_samples)
    if len(pixels) < len(labels):
        raise ParseError(
            f"{images_path} holds {len(pixels)} images but {labels_path} holds {len(labels)} labels"
        )
    pixels = pixels[:len(labels)]

    images = normalize(pixels)
    targets = np.stack([one_hot(int(label)) for label in labels]) if len(labels) else np.zeros((0, NUM_CLASSES))
    logger.info(f"Loaded {len(labels)} samples of {rows}x{cols} pixels from {images_path}")
    return MNISTDataset(images, targets, (rows, cols))


def save_image_as_tensor(image: np.ndarray, rows: int, cols: int, path: str) -> None:
    """Write a flat image vector to `path` as a rows x cols tensor file."""
    image = np.asarray(image, dtype=np.float64).ravel()
    matrix = Matrix(rows, cols)
    for i in range(rows):
        for j in range(cols):
            matrix[i, j] = image[i * cols + j]
    write_tensor_to_file(matrix.tensor, path)


def save_label_as_tensor(target: np.ndarray, path: str) -> None:
    """Write a one-hot target vector to `path` as a rank-1 tensor file."""
    vector = Vector.from_tensor(Tensor.from_numpy(np.asarray(target, dtype=np.float64).ravel()))
    write_tensor_to_file(vector.tensor, path)
