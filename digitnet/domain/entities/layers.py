"""Layer entities - forward inference and manual-gradient backward passes.

Each layer caches what its backward pass needs during ``forward``. A
``backward`` call consumes the gradient with respect to the layer's output
and returns the gradient with respect to its input; layers that own
parameters update them as part of that same call.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from digitnet.domain.errors import ConfigurationError


class Layer(ABC):
    """Abstract interface shared by every layer of the network."""

    @abstractmethod
    def forward(self, input: np.ndarray) -> np.ndarray:
        """
        Compute the layer output for one sample.

        Parameters
        ----------
        input : np.ndarray
            Input vector of the layer.

        Returns
        -------
        np.ndarray
            Output vector of the layer.
        """
        pass

    @abstractmethod
    def backward(self, gradient: np.ndarray) -> np.ndarray:
        """
        Propagate a gradient back through the layer.

        Must only be called after :meth:`forward` on the same sample.

        Parameters
        ----------
        gradient : np.ndarray
            Gradient of the loss with respect to this layer's output.

        Returns
        -------
        np.ndarray
            Gradient of the loss with respect to this layer's input.
        """
        pass

    @staticmethod
    def _require_cache(cache: np.ndarray | None, layer: str) -> np.ndarray:
        if cache is None:
            raise RuntimeError(f"{layer}.backward() called before forward()")
        return cache


class FullyConnected(Layer):
    """
    Affine layer ``y = W x + b`` trained by plain SGD.

    Weights use He initialization (zero-mean normal with standard deviation
    ``sqrt(2 / input_size)``); biases start at zero.

    Parameters
    ----------
    input_size : int
        Length of the input vector.
    output_size : int
        Length of the output vector.
    learning_rate : float
        Step size of the parameter update applied on every backward call.
    rng : np.random.Generator | None, optional
        Random generator used for initialization. A fresh unseeded generator
        is used when omitted.
    """

    def __init__(
        self,
        input_size: int,
        output_size: int,
        learning_rate: float,
        rng: np.random.Generator | None = None,
    ) -> None:
        if input_size <= 0 or output_size <= 0:
            raise ConfigurationError(
                f"Layer sizes must be positive, got {input_size} -> {output_size}"
            )
        if rng is None:
            rng = np.random.default_rng()

        self.input_size = input_size
        self.output_size = output_size
        self.learning_rate = learning_rate

        stddev = np.sqrt(2.0 / input_size)
        self.weights = rng.normal(0.0, stddev, size=(output_size, input_size))
        self.biases = np.zeros(output_size)
        self._input_cache: np.ndarray | None = None

    def set_parameters(self, weights, biases) -> None:
        """
        Replace weights and biases.

        Accepts numpy arrays or anything with a ``to_numpy()`` method, such
        as :class:`~digitnet.domain.entities.matvec.Matrix` and
        :class:`~digitnet.domain.entities.matvec.Vector`.

        Raises
        ------
        ConfigurationError
            If the shapes do not match the layer's sizes.
        """
        weights = np.array(
            weights.to_numpy() if hasattr(weights, "to_numpy") else weights,
            dtype=np.float64,
        )
        biases = np.array(
            biases.to_numpy() if hasattr(biases, "to_numpy") else biases,
            dtype=np.float64,
        )
        if weights.shape != (self.output_size, self.input_size):
            raise ConfigurationError(
                f"Expected weights of shape {(self.output_size, self.input_size)}, "
                f"got {weights.shape}"
            )
        if biases.shape != (self.output_size,):
            raise ConfigurationError(
                f"Expected biases of shape {(self.output_size,)}, got {biases.shape}"
            )
        self.weights = weights
        self.biases = biases

    def forward(self, input: np.ndarray) -> np.ndarray:
        self._input_cache = input
        return self.weights @ input + self.biases

    def backward(self, gradient: np.ndarray) -> np.ndarray:
        """
        Update ``W`` and ``b`` in place and return ``W^T g``.

        The returned input gradient is computed from the weights as they were
        before this call's update.
        """
        input = self._require_cache(self._input_cache, "FullyConnected")

        grad_input = self.weights.T @ gradient

        d_weights = np.outer(gradient, input)
        self.weights -= self.learning_rate * d_weights
        self.biases -= self.learning_rate * gradient

        return grad_input

    def __repr__(self) -> str:
        return (
            f"FullyConnected({self.input_size} -> {self.output_size}, "
            f"lr={self.learning_rate})"
        )


class ReLU(Layer):
    """Elementwise ``max(0, x)``."""

    def __init__(self) -> None:
        self._input_cache: np.ndarray | None = None

    def forward(self, input: np.ndarray) -> np.ndarray:
        self._input_cache = input
        return np.maximum(0.0, input)

    def backward(self, gradient: np.ndarray) -> np.ndarray:
        input = self._require_cache(self._input_cache, "ReLU")
        return gradient * (input > 0).astype(np.float64)

    def __repr__(self) -> str:
        return "ReLU()"


class SoftMax(Layer):
    """Normalizes a vector into a probability distribution."""

    def __init__(self) -> None:
        self._output_cache: np.ndarray | None = None

    def forward(self, input: np.ndarray) -> np.ndarray:
        # Shift by the maximum so exp() cannot overflow.
        exp = np.exp(input - np.max(input))
        self._output_cache = exp / exp.sum()
        return self._output_cache

    def backward(self, gradient: np.ndarray) -> np.ndarray:
        """Multiply the incoming gradient by the full softmax Jacobian."""
        p = self._require_cache(self._output_cache, "SoftMax")
        # J[i, j] = p_i (1 - p_j) if i == j else -p_i p_j
        jacobian = np.diag(p) - np.outer(p, p)
        return jacobian @ gradient

    def __repr__(self) -> str:
        return "SoftMax()"
