"""
CLI entry point for exporting one IDX sample as tensor text files.

Usage:
    python export_tensors.py --images data/t10k-images-idx3-ubyte \
        --labels data/t10k-labels-idx1-ubyte --index 0 -o output/
"""
import argparse
import logging
import os
import sys

from digitnet.domain.errors import DigitNetError
from digitnet.infrastructure.datasets import (
    load_dataset,
    save_image_as_tensor,
    save_label_as_tensor,
)
from digitnet.infrastructure.logging import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Export an IDX image and its label as tensor text files."
    )
    parser.add_argument("--images", required=True, help="Path to the IDX image file")
    parser.add_argument("--labels", required=True, help="Path to the IDX label file")
    parser.add_argument(
        "--index",
        type=int,
        default=0,
        help="Index of the sample to export (default: 0)",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        default=".",
        help="Directory for the tensor files (default: current directory)",
    )
    return parser.parse_args(argv)


def export_sample(images: str, labels: str, index: int, output_dir: str) -> tuple[str, str]:
    """
    Write sample `index` as ``image_<index>.txt`` and ``label_<index>.txt``.

    Returns
    -------
    tuple[str, str]
        Paths of the image and label tensor files.

    Raises
    ------
    IndexError
        If the files hold no sample with that index.
    """
    if index < 0:
        raise IndexError(f"Sample index must be non-negative, got {index}")
    dataset = load_dataset(images, labels, max_samples=index + 1)
    if index >= len(dataset):
        raise IndexError(f"Sample {index} not found, {images} holds {len(dataset)} samples")

    os.makedirs(output_dir, exist_ok=True)
    image, target = dataset[index]
    rows, cols = dataset.image_shape

    image_path = os.path.join(output_dir, f"image_{index}.txt")
    label_path = os.path.join(output_dir, f"label_{index}.txt")
    save_image_as_tensor(image, rows, cols, image_path)
    save_label_as_tensor(target, label_path)
    logger.info(f"Exported sample {index} to {image_path} and {label_path}")
    return image_path, label_path


def main(argv=None) -> int:
    setup_logging()
    args = parse_args(argv)
    try:
        export_sample(args.images, args.labels, args.index, args.output_dir)
    except (DigitNetError, FileNotFoundError, IndexError) as e:
        logger.error(f"Aborting: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
