"""
CLI entry point for training and testing the digit classifier.

Usage with a TOML config file:
    python train_model.py -c config/train_mnist.toml

Usage with a legacy key = value config file and overrides:
    python train_model.py -c config/train_mnist.cfg --epochs 5 --seed 42
"""
import argparse
import dataclasses
import logging
import sys

from digitnet.domain.errors import DigitNetError
from digitnet.domain.use_cases.train_and_evaluate import TrainAndEvaluateModel, TrainingReport
from digitnet.infrastructure.configuration import (
    INPUT_SIZE,
    OUTPUT_SIZE,
    TrainingConfiguration,
)
from digitnet.infrastructure.loaders import MNISTDatasetLoader
from digitnet.infrastructure.logging import setup_logging
from digitnet.infrastructure.observability import ConsoleTracker, SilentTracker
from digitnet.infrastructure.prediction_log import FilePredictionLogger

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """
    Parse command-line arguments.

    Parameters
    ----------
    argv : list[str] | None
        Command-line arguments. If None, uses sys.argv.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Train the digit classifier on IDX (MNIST) files and test it."
    )
    parser.add_argument(
        "-c",
        "--config",
        required=True,
        help="Path to a TOML or legacy key = value configuration file",
    )
    parser.add_argument(
        "--epochs",
        type=int,
        default=None,
        help="Override the number of training epochs",
    )
    parser.add_argument(
        "--learning-rate",
        type=float,
        default=None,
        help="Override the learning rate",
    )
    parser.add_argument(
        "--hidden-size",
        type=int,
        default=None,
        help="Override the size of the hidden layer",
    )
    parser.add_argument(
        "--max-train-samples",
        type=int,
        default=None,
        help="Use at most this many training samples",
    )
    parser.add_argument(
        "--max-test-samples",
        type=int,
        default=None,
        help="Use at most this many testing samples",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for weight initialization",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Disable progress bars",
    )
    return parser.parse_args(argv)


def apply_overrides(config: TrainingConfiguration, args: argparse.Namespace) -> TrainingConfiguration:
    """Return a copy of `config` with every command-line override applied."""
    overrides = {
        name: getattr(args, name)
        for name in (
            "epochs",
            "learning_rate",
            "hidden_size",
            "max_train_samples",
            "max_test_samples",
            "seed",
        )
        if getattr(args, name) is not None
    }
    return dataclasses.replace(config, **overrides)


def run_training(config: TrainingConfiguration, quiet: bool = False) -> TrainingReport:
    """
    Train and test a network with the given configuration.

    Parameters
    ----------
    config : TrainingConfiguration
        Configuration for the run.
    quiet : bool, optional
        Use a SilentTracker instead of progress bars.

    Returns
    -------
    TrainingReport
        Per-epoch losses and test evaluation.
    """
    tracker = SilentTracker() if quiet else ConsoleTracker()
    use_case = TrainAndEvaluateModel(
        train_images=config.train_images,
        train_labels=config.train_labels,
        test_images=config.test_images,
        test_labels=config.test_labels,
        input_size=INPUT_SIZE,
        hidden_size=config.hidden_size,
        output_size=OUTPUT_SIZE,
        learning_rate=config.learning_rate,
        epochs=config.epochs,
        batch_size=config.batch_size,
        dataset_loader=MNISTDatasetLoader(),
        prediction_logger=FilePredictionLogger(config.prediction_log),
        tracker=tracker,
        max_train_samples=config.max_train_samples,
        max_test_samples=config.max_test_samples,
        seed=config.seed,
    )
    return use_case.run()


def main(argv=None) -> int:
    """
    Main entry point for training and testing.

    Parameters
    ----------
    argv : list[str] | None
        Command-line arguments. If None, uses sys.argv.

    Returns
    -------
    int
        Process exit code: 0 on success, 1 on a configuration or data error.
    """
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = apply_overrides(TrainingConfiguration.load(args.config), args)
        logger.info("Config loaded")
        report = run_training(config, quiet=args.quiet)
    except (DigitNetError, FileNotFoundError) as e:
        logger.error(f"Aborting: {e}")
        return 1

    logger.info(
        f"Finished after {report.epochs_run} epochs with "
        f"{report.evaluation.accuracy:.2f}% accuracy"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
