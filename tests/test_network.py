"""Tests for the NeuralNetwork training and testing loop."""
import logging
from unittest.mock import MagicMock, call

import numpy as np
import pytest

from digitnet.domain.entities.layers import FullyConnected, ReLU, SoftMax
from digitnet.domain.entities.network import (
    EARLY_STOPPING_THRESHOLD,
    EvaluationResult,
    NetworkState,
    NeuralNetwork,
)
from digitnet.domain.errors import ConfigurationError
from digitnet.domain.interfaces.prediction_logger import PredictionLogger
from digitnet.domain.interfaces.training_tracker import TrainingTracker


class ScriptedLoss:
    """Loss stub returning a scripted sequence of values and zero gradients."""

    def __init__(self, values):
        self._values = iter(values)
        self.calls = 0

    def forward(self, prediction, target):
        self.calls += 1
        return next(self._values)

    def backward(self, prediction, target):
        return np.zeros_like(prediction)


def _network(samples, testing=None, **kwargs):
    network = NeuralNetwork(0.1, samples, testing if testing is not None else samples, **kwargs)
    network.setup_layers(2, 4, 2)
    return network


class TestEvaluationResult:
    """Tests for the accuracy summary."""

    def test_accuracy_is_percentage(self):
        result = EvaluationResult(correct=3, incorrect=1)
        assert result.total == 4
        assert result.accuracy == pytest.approx(75.0)

    def test_accuracy_of_empty_test_set_is_zero(self):
        assert EvaluationResult(correct=0, incorrect=0).accuracy == 0.0


class TestSetupLayers:
    """Tests for layer configuration and the lifecycle states."""

    def test_new_network_has_no_layers(self, two_class_samples):
        network = NeuralNetwork(0.1, two_class_samples, two_class_samples)
        assert network.state is NetworkState.CONSTRUCTED
        assert network.layers == ()

    def test_layer_order(self, two_class_samples):
        network = _network(two_class_samples)
        kinds = [type(layer) for layer in network.layers]
        assert kinds == [FullyConnected, ReLU, FullyConnected, SoftMax]
        assert network.state is NetworkState.LAYERS_CONFIGURED

    def test_layer_sizes(self, two_class_samples):
        network = NeuralNetwork(0.1, two_class_samples, two_class_samples)
        network.setup_layers(2, 5, 2)
        first, _, second, _ = network.layers
        assert first.weights.shape == (5, 2)
        assert second.weights.shape == (2, 5)
        assert first.learning_rate == 0.1

    def test_setup_twice_raises(self, two_class_samples):
        network = _network(two_class_samples)
        with pytest.raises(RuntimeError):
            network.setup_layers(2, 4, 2)

    def test_train_before_setup_raises(self, two_class_samples):
        network = NeuralNetwork(0.1, two_class_samples, two_class_samples)
        with pytest.raises(RuntimeError):
            network.train(1)

    def test_test_before_setup_raises(self, two_class_samples):
        network = NeuralNetwork(0.1, two_class_samples, two_class_samples)
        with pytest.raises(RuntimeError):
            network.test(MagicMock(spec=PredictionLogger))

    def test_input_length_mismatch_raises(self, two_class_samples):
        """Samples that do not fit the first layer are rejected before training."""
        network = NeuralNetwork(0.1, two_class_samples, two_class_samples)
        with pytest.raises(ConfigurationError, match="input values"):
            network.setup_layers(784, 4, 2)
        assert network.state is NetworkState.CONSTRUCTED
        assert network.layers == ()

    def test_target_length_mismatch_raises(self, two_class_samples):
        network = NeuralNetwork(0.1, two_class_samples, two_class_samples)
        with pytest.raises(ConfigurationError, match="target"):
            network.setup_layers(2, 4, 10)

    def test_testing_samples_are_checked(self, two_class_samples):
        testing = [(np.zeros(3), np.array([1.0, 0.0]))]
        network = NeuralNetwork(0.1, two_class_samples, testing)
        with pytest.raises(ConfigurationError, match="Testing sample 0"):
            network.setup_layers(2, 4, 2)

    def test_same_seed_gives_same_weights(self, two_class_samples):
        a = _network(two_class_samples, seed=11)
        b = _network(two_class_samples, seed=11)
        np.testing.assert_array_equal(a.layers[0].weights, b.layers[0].weights)
        np.testing.assert_array_equal(a.layers[2].weights, b.layers[2].weights)


class TestPasses:
    """Tests for forward_pass and backward_pass."""

    def test_forward_pass_output_is_distribution(self, two_class_samples):
        network = _network(two_class_samples, seed=0)
        output = network.forward_pass(np.array([1.0, 0.0]))
        assert output.shape == (2,)
        assert output.sum() == pytest.approx(1.0)

    def test_backward_pass_visits_layers_in_reverse(self, two_class_samples):
        network = _network(two_class_samples, seed=0)
        visited = []
        for position, layer in enumerate(network.layers):
            original = layer.backward

            def recording_backward(gradient, _original=original, _position=position):
                visited.append(_position)
                return _original(gradient)

            layer.backward = recording_backward

        network.forward_pass(np.array([1.0, 0.0]))
        network.backward_pass(np.array([0.1, -0.1]))

        assert visited == [3, 2, 1, 0]


class TestTrain:
    """Tests for per-sample SGD training."""

    def test_loss_decreases_on_separable_data(self, two_class_samples):
        network = NeuralNetwork(0.1, two_class_samples, two_class_samples, seed=3)
        network.setup_layers(2, 16, 2)

        losses = network.train(50)

        assert len(losses) >= 2
        assert losses[-1] < losses[0]
        assert network.state in (NetworkState.TEST_READY, NetworkState.STOPPED)

    def test_epoch_loss_is_last_sample_loss(self, two_class_samples):
        loss = ScriptedLoss([5.0, 0.5, 9.0, 0.25])
        network = _network(two_class_samples, loss=loss)

        losses = network.train(2)

        assert losses == [0.5, 0.25]
        assert network.loss_history == [0.25]
        assert loss.calls == 4

    def test_early_stopping_below_threshold(self, two_class_samples):
        loss = ScriptedLoss([1.0, 0.5, 1.0, 5e-5] + [1.0] * 100)
        network = _network(two_class_samples, loss=loss)

        losses = network.train(10)

        assert losses == [0.5, 5e-5]
        assert network.state is NetworkState.STOPPED

    def test_loss_equal_to_threshold_does_not_stop(self, two_class_samples):
        loss = ScriptedLoss([EARLY_STOPPING_THRESHOLD] * 6)
        network = _network(two_class_samples, loss=loss)

        losses = network.train(3)

        assert len(losses) == 3
        assert network.state is NetworkState.TEST_READY

    def test_empty_training_set_raises(self, two_class_samples):
        network = NeuralNetwork(0.1, [], two_class_samples)
        network.setup_layers(2, 4, 2)
        with pytest.raises(ConfigurationError):
            network.train(1)

    def test_failed_training_leaves_network_testable(self, two_class_samples):
        """An exception inside an epoch does not leave the network stuck in TRAINING."""
        tracker = MagicMock(spec=TrainingTracker)
        loss = MagicMock()
        loss.forward.side_effect = FloatingPointError("overflow")
        network = _network(two_class_samples, loss=loss, tracker=tracker)

        with pytest.raises(FloatingPointError):
            network.train(3)

        assert network.state is NetworkState.LAYERS_CONFIGURED
        tracker.on_training_end.assert_called_once()
        assert network.test(MagicMock(spec=PredictionLogger)).total == 2

    def test_zero_epochs_runs_nothing(self, two_class_samples):
        network = _network(two_class_samples)
        assert network.train(0) == []
        assert network.state is NetworkState.TEST_READY

    def test_tracker_is_notified(self, two_class_samples):
        tracker = MagicMock(spec=TrainingTracker)
        network = _network(two_class_samples, loss=ScriptedLoss([1.0] * 6), tracker=tracker)

        network.train(3, dataset_name="pairs")

        tracker.on_training_start.assert_called_once_with(3, 2, dataset_name="pairs")
        assert tracker.on_epoch_start.call_count == 3
        assert tracker.on_sample_end.call_count == 6
        tracker.on_sample_end.assert_any_call(2, 1, 1.0)
        assert tracker.on_epoch_end.call_args_list == [
            call(0, 1.0),
            call(1, 1.0),
            call(2, 1.0),
        ]
        tracker.on_training_end.assert_called_once()

    def test_tracker_is_closed_after_early_stop(self, two_class_samples):
        tracker = MagicMock(spec=TrainingTracker)
        network = _network(two_class_samples, loss=ScriptedLoss([0.0] * 2), tracker=tracker)

        network.train(5)

        assert tracker.on_epoch_end.call_count == 1
        tracker.on_training_end.assert_called_once()

    def test_logs_epoch_losses(self, two_class_samples, caplog):
        network = _network(two_class_samples, loss=ScriptedLoss([1.0, 0.5, 1.0, 0.0]))

        with caplog.at_level(logging.INFO, logger="digitnet.domain.entities.network"):
            network.train(5)

        assert "Epoch 1, Average Loss: 0.5" in caplog.text
        assert "Early stopping at epoch 2" in caplog.text
        assert "Training took" in caplog.text


class TestTest:
    """Tests for arg-max evaluation."""

    @pytest.fixture
    def testing_samples(self):
        return [
            (np.array([1.0, 0.0]), np.array([1.0, 0.0, 0.0])),
            (np.array([0.0, 1.0]), np.array([0.0, 1.0, 0.0])),
            (np.array([1.0, 1.0]), np.array([0.0, 1.0, 0.0])),
        ]

    def test_counts_and_logs_each_prediction(self, testing_samples):
        network = NeuralNetwork(0.1, testing_samples, testing_samples)
        network.setup_layers(2, 4, 3)
        network.forward_pass = MagicMock(side_effect=[
            np.array([0.8, 0.1, 0.1]),
            np.array([0.6, 0.3, 0.1]),
            np.array([0.2, 0.7, 0.1]),
        ])
        prediction_logger = MagicMock(spec=PredictionLogger)

        result = network.test(prediction_logger)

        assert result == EvaluationResult(correct=2, incorrect=1)
        assert prediction_logger.log_prediction.call_args_list == [
            call(0, 0, 0),
            call(0, 1, 1),
            call(1, 1, 2),
        ]

    def test_logs_accuracy(self, testing_samples, caplog):
        network = NeuralNetwork(0.1, testing_samples, testing_samples)
        network.setup_layers(2, 4, 3)
        network.forward_pass = MagicMock(return_value=np.array([0.1, 0.8, 0.1]))

        with caplog.at_level(logging.INFO, logger="digitnet.domain.entities.network"):
            network.test(MagicMock(spec=PredictionLogger))

        assert "Correct: 2, Incorrect: 1" in caplog.text
        assert "Accuracy: " in caplog.text

    def test_empty_testing_set(self, two_class_samples):
        network = NeuralNetwork(0.1, two_class_samples, [])
        network.setup_layers(2, 4, 2)
        prediction_logger = MagicMock(spec=PredictionLogger)

        result = network.test(prediction_logger)

        assert result.total == 0
        assert result.accuracy == 0.0
        prediction_logger.log_prediction.assert_not_called()

    def test_can_test_after_early_stop(self, two_class_samples):
        network = _network(two_class_samples, loss=ScriptedLoss([0.0] * 2))
        network.train(3)
        assert network.state is NetworkState.STOPPED

        result = network.test(MagicMock(spec=PredictionLogger))

        assert result.total == 2
