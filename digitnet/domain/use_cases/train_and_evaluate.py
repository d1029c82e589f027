"""
Train and Evaluate Model Use-Case.

This module provides a use-case for training the digit classifier on a
training set and measuring its accuracy on a testing set.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from digitnet.domain.entities.network import EvaluationResult, NeuralNetwork
from digitnet.domain.errors import ConfigurationError
from digitnet.domain.interfaces.dataset_loader import DatasetLoader
from digitnet.domain.interfaces.prediction_logger import PredictionLogger
from digitnet.domain.interfaces.training_tracker import TrainingTracker

logger = logging.getLogger(__name__)


@dataclass
class TrainingReport:
    """Result of a train-and-evaluate run."""

    epoch_losses: list[float]
    evaluation: EvaluationResult

    @property
    def epochs_run(self) -> int:
        return len(self.epoch_losses)


class TrainAndEvaluateModel:
    """
    Use-case for training the classifier and testing it.

    This use-case orchestrates the workflow of:
    1. Loading the training and testing sets (fully, before anything else)
    2. Building the network and configuring its layers
    3. Training the network
    4. Testing the network, logging every prediction

    Attributes
    ----------
    train_images, train_labels : str
        Paths of the training image and label files.
    test_images, test_labels : str
        Paths of the testing image and label files.
    input_size, hidden_size, output_size : int
        Layer sizes of the network.
    learning_rate : float
        Learning rate of the fully connected layers.
    epochs : int
        Maximum number of training epochs.
    batch_size : int
        Accepted for compatibility; parameters are updated after every sample.
    dataset_loader : DatasetLoader
        Component responsible for loading datasets.
    prediction_logger : PredictionLogger
        Sink for the per-sample test predictions.
    tracker : Optional[TrainingTracker]
        Observer of training progress.
    max_train_samples, max_test_samples : int | None
        Optional limits on the number of samples loaded.
    seed : int | None
        Seed for weight initialization.
    """

    def __init__(
        self,
        train_images: str,
        train_labels: str,
        test_images: str,
        test_labels: str,
        input_size: int,
        hidden_size: int,
        output_size: int,
        learning_rate: float,
        epochs: int,
        batch_size: int,
        dataset_loader: DatasetLoader,
        prediction_logger: PredictionLogger,
        tracker: Optional[TrainingTracker] = None,
        max_train_samples: int | None = None,
        max_test_samples: int | None = None,
        seed: int | None = None,
    ) -> None:
        self.train_images = train_images
        self.train_labels = train_labels
        self.test_images = test_images
        self.test_labels = test_labels
        self.input_size = input_size
        self.hidden_size = hidden_size
        self.output_size = output_size
        self.learning_rate = learning_rate
        self.epochs = epochs
        self.batch_size = batch_size
        self.dataset_loader = dataset_loader
        self.prediction_logger = prediction_logger
        self.tracker = tracker
        self.max_train_samples = max_train_samples
        self.max_test_samples = max_test_samples
        self.seed = seed

    def _check_image_shape(self, name: str, data) -> None:
        """Reject image files whose rows x cols differ from the input size."""
        image_shape = getattr(data, "image_shape", None)
        if image_shape is None:
            return
        rows, cols = image_shape
        if rows * cols != self.input_size:
            raise ConfigurationError(
                f"The {name} images are {rows}x{cols} pixels, "
                f"the network expects {self.input_size} input values"
            )

    def build_network(self, training_data, testing_data) -> NeuralNetwork:
        """Create the network and configure its layers."""
        network = NeuralNetwork(
            self.learning_rate,
            training_data,
            testing_data,
            tracker=self.tracker,
            seed=self.seed,
        )
        network.setup_layers(self.input_size, self.hidden_size, self.output_size)
        return network

    def run(self) -> TrainingReport:
        """
        Execute the load, train and test workflow.

        Returns
        -------
        TrainingReport
            Per-epoch tracked losses and the test evaluation.
        """
        logger.info(f"Loading training data from {self.train_images}...")
        training_data = self.dataset_loader.load(
            self.train_images,
            self.train_labels,
            self.max_train_samples,
        )
        logger.info(f"Loading testing data from {self.test_images}...")
        testing_data = self.dataset_loader.load(
            self.test_images,
            self.test_labels,
            self.max_test_samples,
        )
        logger.info(
            f"Loaded {len(training_data)} training and {len(testing_data)} testing samples."
        )

        for name, data in (("training", training_data), ("testing", testing_data)):
            self._check_image_shape(name, data)

        network = self.build_network(training_data, testing_data)

        if self.batch_size != 1:
            logger.info(
                f"batch_size={self.batch_size} is accepted but parameters are "
                f"updated after every sample."
            )

        logger.info(f"Training for up to {self.epochs} epochs...")
        epoch_losses = network.train(self.epochs, dataset_name=self.train_images)
        logger.info("Training completed.")

        logger.info("Testing network...")
        evaluation = network.test(self.prediction_logger)
        logger.info("Testing completed.")

        return TrainingReport(epoch_losses=epoch_losses, evaluation=evaluation)
