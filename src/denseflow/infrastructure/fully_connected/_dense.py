"""
Fully-connected (dense) layer.

`Dense` computes ``outputs = inputs @ weights + biases`` with weights stored
row-major as `(inputs_amount, outputs_amount)` and biases as
`(outputs_amount,)`.

Training protocol
-----------------
- The layer owns two optimizer instances, one for the weights and one for the
  biases, both cloned from the optimizer prototype given at construction.
- `prepare_step()` asks each optimizer for its pre-update adjustment. For
  Nesterov momentum this is the look-ahead point; the next forward pass runs
  with those *effective* parameters while the true parameters stay untouched.
- `backward()` averages parameter gradients over the batch, computes the input
  gradient with the weights that produced the cached outputs, then subtracts
  the optimizer updates from the true parameters in place. The arithmetic is
  delegated to the layer ops, so it runs on the compute device under
  ``use_gpu``.
- `clear_cache()` also drops a pending look-ahead point, so an interrupted
  step never leaves the layer evaluating at displaced parameters.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

import numpy as np

from .._layer import Layer
from ..optimizers._base import Optimizer
from ..optimizers._basic import BasicOptimizer
from ..utils.weight_initializer import WeightInitializer
from ...domain._optimizer import IOptimizer


class Dense(Layer):
    """
    Fully-connected layer.

    Parameters
    ----------
    inputs_amount : int
        Width of one input example.
    outputs_amount : int
        Width of one output example.
    optimizer : Optional[Optimizer], optional
        Optimizer prototype; cloned once per parameter buffer. Defaults to
        `BasicOptimizer()` (plain gradient descent).
    dtype : Any, optional
        ``np.float32`` (default) or ``np.float64``.
    weight_initializer : str, optional
        Registered initializer name for the weights. Defaults to
        ``"uniform"`` (``U(-1, 1)``).
    bias_initializer : str, optional
        Registered initializer name for the biases. Defaults to ``"uniform"``.
    rng : Optional[np.random.Generator], optional
        Random generator used for initialization, for reproducibility.

    Attributes
    ----------
    weights : np.ndarray
        `(inputs_amount, outputs_amount)` weight matrix.
    biases : np.ndarray
        `(outputs_amount,)` bias vector.
    weights_optimizer, biases_optimizer : Optimizer
        Per-parameter optimizer instances.
    """

    def __init__(
        self,
        inputs_amount: int,
        outputs_amount: int,
        optimizer: Optional[Optimizer] = None,
        *,
        dtype: Any = np.float32,
        weight_initializer: str = "uniform",
        bias_initializer: str = "uniform",
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        super().__init__(inputs_amount, outputs_amount, dtype=dtype)

        if rng is None:
            rng = np.random.default_rng()

        self.weights = np.empty((self.inputs_amount, self.outputs_amount), dtype=self.dtype)
        self.biases = np.empty((self.outputs_amount,), dtype=self.dtype)
        WeightInitializer(weight_initializer)(self.weights, rng)
        WeightInitializer(bias_initializer)(self.biases, rng)

        prototype = optimizer if optimizer is not None else BasicOptimizer()
        self.weights_optimizer = prototype.clone()
        self.biases_optimizer = prototype.clone()

        # Parameters the next forward pass runs with (look-ahead for Nesterov).
        self._effective_weights: Optional[np.ndarray] = None
        self._effective_biases: Optional[np.ndarray] = None
        # Weights that produced the cached outputs.
        self._forward_weights: Optional[np.ndarray] = None

    @classmethod
    def from_parameters(
        cls,
        weights: Any,
        biases: Any,
        optimizer: Optional[Optimizer] = None,
        *,
        dtype: Any = np.float32,
    ) -> "Dense":
        """
        Build a layer around explicit weights and biases.

        Raises
        ------
        ValueError
            If `weights` is not 2-D or `biases` does not match its columns.
        """
        w = np.asarray(weights)
        b = np.asarray(biases)
        if w.ndim != 2 or b.shape != (w.shape[1],):
            raise ValueError(
                f"expected weights (inputs, outputs) and biases (outputs,), "
                f"got {w.shape} and {b.shape}"
            )
        layer = cls(
            w.shape[0],
            w.shape[1],
            optimizer,
            dtype=dtype,
            weight_initializer="zeros",
            bias_initializer="zeros",
        )
        layer.weights[...] = w
        layer.biases[...] = b
        return layer

    def optimizers(self) -> Tuple[IOptimizer, ...]:
        return (self.weights_optimizer, self.biases_optimizer)

    def prepare_step(self) -> None:
        self._effective_weights = self.weights_optimizer.pre_update_adjustment(self.weights)
        self._effective_biases = self.biases_optimizer.pre_update_adjustment(self.biases)

    def _forward(self, batch: np.ndarray) -> np.ndarray:
        weights = self.weights if self._effective_weights is None else self._effective_weights
        biases = self.biases if self._effective_biases is None else self._effective_biases
        self._forward_weights = weights
        return self.ops.dense_forward(batch, weights, biases)

    def _backward(self, gradient: np.ndarray, learning_rate: float) -> np.ndarray:
        weights_gradient, biases_gradient, input_gradient = self.ops.dense_backward(
            self.last_inputs, gradient, self._forward_weights
        )

        self.weights -= self.weights_optimizer.compute_update(weights_gradient, learning_rate)
        self.biases -= self.biases_optimizer.compute_update(biases_gradient, learning_rate)
        return input_gradient

    def clear_cache(self) -> None:
        super().clear_cache()
        self._effective_weights = None
        self._effective_biases = None
        self._forward_weights = None

    def __repr__(self) -> str:
        return (
            f"Dense(inputs_amount={self.inputs_amount}, outputs_amount={self.outputs_amount}, "
            f"optimizer={self.weights_optimizer!r}, dtype={self.precision})"
        )
