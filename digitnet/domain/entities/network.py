"""Sequential feed-forward network trained one sample at a time."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum

import numpy as np

from digitnet.domain.entities.dataset import Dataset
from digitnet.domain.entities.layers import FullyConnected, Layer, ReLU, SoftMax
from digitnet.domain.entities.loss import CrossEntropyLoss
from digitnet.domain.errors import ConfigurationError
from digitnet.domain.interfaces.prediction_logger import PredictionLogger
from digitnet.domain.interfaces.training_tracker import TrainingTracker

logger = logging.getLogger(__name__)

EARLY_STOPPING_THRESHOLD = 1e-4

Sample = tuple[np.ndarray, np.ndarray]


class NetworkState(Enum):
    """Lifecycle of a NeuralNetwork."""

    CONSTRUCTED = "constructed"
    LAYERS_CONFIGURED = "layers_configured"
    TRAINING = "training"
    TEST_READY = "test_ready"
    STOPPED = "stopped"


@dataclass
class EvaluationResult:
    """Outcome of testing a network on its testing set."""

    correct: int
    incorrect: int

    @property
    def total(self) -> int:
        return self.correct + self.incorrect

    @property
    def accuracy(self) -> float:
        """Percentage of correct predictions (0.0 when nothing was tested)."""
        if self.total == 0:
            return 0.0
        return self.correct / self.total * 100


def _materialize(dataset: Dataset) -> list[Sample]:
    samples = []
    for idx in range(len(dataset)):
        image, target = dataset[idx]
        samples.append((
            np.asarray(image, dtype=np.float64).ravel(),
            np.asarray(target, dtype=np.float64).ravel(),
        ))
    return samples


def _check_sample_sizes(
    samples: list[Sample], input_size: int, output_size: int, kind: str
) -> None:
    for index, (image, target) in enumerate(samples):
        if image.size != input_size:
            raise ConfigurationError(
                f"{kind.capitalize()} sample {index} has {image.size} input values, "
                f"the network expects {input_size}"
            )
        if target.size != output_size:
            raise ConfigurationError(
                f"{kind.capitalize()} sample {index} has a target of length {target.size}, "
                f"the network expects {output_size}"
            )


class NeuralNetwork:
    """
    Feed-forward classifier owning its layers, loss and sample collections.

    Call :meth:`setup_layers` once, then :meth:`train`, then :meth:`test`.
    Parameters are updated after every training sample; there is no
    mini-batch averaging.

    Attributes
    ----------
    learning_rate : float
        Step size handed to every FullyConnected layer.
    training_samples : list[tuple[np.ndarray, np.ndarray]]
        Training (input, one-hot target) pairs, in iteration order.
    testing_samples : list[tuple[np.ndarray, np.ndarray]]
        Testing (input, one-hot target) pairs.
    loss : CrossEntropyLoss
        Loss function providing ``forward`` and ``backward``.
    tracker : TrainingTracker | None
        Optional observer notified during training.
    loss_history : list[float]
        Losses recorded during the current epoch, cleared every epoch.
    state : NetworkState
        Current lifecycle state.
    """

    def __init__(
        self,
        learning_rate: float,
        training_data: Dataset,
        testing_data: Dataset,
        loss: CrossEntropyLoss | None = None,
        tracker: TrainingTracker | None = None,
        seed: int | None = None,
    ) -> None:
        """
        Initialize the network and materialize both datasets in memory.

        Parameters
        ----------
        learning_rate : float
            Learning rate of the FullyConnected layers.
        training_data : Dataset
            Samples used by :meth:`train`.
        testing_data : Dataset
            Samples used by :meth:`test`.
        loss : CrossEntropyLoss | None, optional
            Loss function. Defaults to :class:`CrossEntropyLoss`.
        tracker : TrainingTracker | None, optional
            Observer for training progress.
        seed : int | None, optional
            Seed for weight initialization; None draws fresh entropy.
        """
        self.learning_rate = learning_rate
        self.training_samples = _materialize(training_data)
        self.testing_samples = _materialize(testing_data)
        self.loss = loss if loss is not None else CrossEntropyLoss()
        self.tracker = tracker
        self.loss_history: list[float] = []
        self.state = NetworkState.CONSTRUCTED
        self._layers: list[Layer] = []
        self._rng = np.random.default_rng(seed)

    @property
    def layers(self) -> tuple[Layer, ...]:
        return tuple(self._layers)

    def setup_layers(self, input_size: int, hidden_size: int, output_size: int) -> None:
        """
        Build the layer stack FC(input->hidden), ReLU, FC(hidden->output), SoftMax.

        Raises
        ------
        RuntimeError
            If the layers have already been configured.
        ConfigurationError
            If a sample input or target length does not match the layer sizes.
        """
        if self.state is not NetworkState.CONSTRUCTED:
            raise RuntimeError("setup_layers() may only be called once")
        _check_sample_sizes(self.training_samples, input_size, output_size, "training")
        _check_sample_sizes(self.testing_samples, input_size, output_size, "testing")

        self._layers.append(
            FullyConnected(input_size, hidden_size, self.learning_rate, rng=self._rng)
        )
        self._layers.append(ReLU())
        self._layers.append(
            FullyConnected(hidden_size, output_size, self.learning_rate, rng=self._rng)
        )
        self._layers.append(SoftMax())

        self.state = NetworkState.LAYERS_CONFIGURED
        logger.info(f"Configured layers: {', '.join(repr(l) for l in self._layers)}")

    def forward_pass(self, input: np.ndarray) -> np.ndarray:
        """Thread `input` through every layer in order and return the output."""
        output = input
        for layer in self._layers:
            output = layer.forward(output)
        return output

    def backward_pass(self, gradient: np.ndarray) -> None:
        """Thread `gradient` through every layer in reverse order."""
        error = gradient
        for layer in reversed(self._layers):
            error = layer.backward(error)

    def _require_layers(self, operation: str) -> None:
        if self.state is NetworkState.CONSTRUCTED:
            raise RuntimeError(f"setup_layers() must be called before {operation}()")
        if self.state is NetworkState.TRAINING:
            raise RuntimeError(f"{operation}() called while training is in progress")

    def train(self, epochs: int, dataset_name: str | None = None) -> list[float]:
        """
        Run per-sample SGD over the training set for up to `epochs` epochs.

        The loss tracked for an epoch is the loss of the last sample processed
        in it. Training stops early the first time that value drops below
        ``EARLY_STOPPING_THRESHOLD``.

        Parameters
        ----------
        epochs : int
            Maximum number of epochs.
        dataset_name : str | None, optional
            Name reported to the tracker.

        Returns
        -------
        list[float]
            Tracked loss of every epoch that ran.

        Raises
        ------
        RuntimeError
            If the layers have not been configured.
        ConfigurationError
            If the training set is empty.
        """
        self._require_layers("train")
        if not self.training_samples:
            raise ConfigurationError("Cannot train on an empty training set")

        self.state = NetworkState.TRAINING
        # An aborted run leaves the layers usable but not trained to completion.
        final_state = NetworkState.LAYERS_CONFIGURED
        timer_start = time.perf_counter()
        if self.tracker is not None:
            self.tracker.on_training_start(
                epochs, len(self.training_samples), dataset_name=dataset_name
            )

        epoch_losses: list[float] = []
        stopped_early = False
        loss = float("nan")
        try:
            for epoch in range(epochs):
                self.loss_history.clear()
                if self.tracker is not None:
                    self.tracker.on_epoch_start(epoch)

                for index, (image, target) in enumerate(self.training_samples):
                    prediction = self.forward_pass(image)
                    loss = self.loss.forward(prediction, target)
                    error = self.loss.backward(prediction, target)
                    self.backward_pass(error)
                    if self.tracker is not None:
                        self.tracker.on_sample_end(epoch, index, loss)

                # Only the epoch's final sample loss is recorded.
                self.loss_history.append(loss)
                avg_loss = sum(self.loss_history) / len(self.loss_history)
                epoch_losses.append(avg_loss)

                logger.info(f"Epoch {epoch + 1}, Average Loss: {avg_loss}")
                if self.tracker is not None:
                    self.tracker.on_epoch_end(epoch, avg_loss)

                if avg_loss < EARLY_STOPPING_THRESHOLD:
                    logger.info(f"Early stopping at epoch {epoch + 1}")
                    stopped_early = True
                    break

            final_state = NetworkState.STOPPED if stopped_early else NetworkState.TEST_READY
        finally:
            self.state = final_state
            if self.tracker is not None:
                self.tracker.on_training_end()

        duration = time.perf_counter() - timer_start
        logger.info(f"Training took {duration:.2f} seconds.")
        return epoch_losses

    def test(self, prediction_logger: PredictionLogger) -> EvaluationResult:
        """
        Classify every testing sample and report the accuracy.

        The predicted label is the arg-max of the network output, the actual
        label the arg-max of the one-hot target. Every prediction is passed
        to `prediction_logger`.

        Parameters
        ----------
        prediction_logger : PredictionLogger
            Sink receiving ``(prediction, label, sample_index)`` per sample.

        Returns
        -------
        EvaluationResult
            Correct and incorrect counts.
        """
        self._require_layers("test")

        correct = 0
        incorrect = 0
        for index, (image, target) in enumerate(self.testing_samples):
            output = self.forward_pass(image)
            prediction = int(np.argmax(output))
            actual = int(np.argmax(target))

            prediction_logger.log_prediction(prediction, actual, index)

            if prediction == actual:
                correct += 1
            else:
                incorrect += 1

        result = EvaluationResult(correct=correct, incorrect=incorrect)
        logger.info(f"Correct: {correct}, Incorrect: {incorrect}")
        logger.info(f"Accuracy: {result.accuracy}%")
        return result
