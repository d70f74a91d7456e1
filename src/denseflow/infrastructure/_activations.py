"""
Activation layers.

Activations are stateless layers whose input and output widths are equal.
They hold no parameters and ignore the learning rate; `backward` only chains
the incoming gradient through the local derivative.

Implemented activations
-----------------------
- `TanH`    : ``y = tanh(x)``,            ``dx = g * (1 - y^2)``
- `Sigmoid` : ``y = 1 / (1 + exp(-x))``,  ``dx = g * y * (1 - y)``
- `ReLU`    : ``y = max(x, 0)``,          ``dx = g * (x > 0)``
- `SoftMax` : row-wise softmax,          ``dx = y * (g - sum(g * y))``
"""

from __future__ import annotations

import numpy as np

from ._layer import ActivationLayer


class TanH(ActivationLayer):
    """
    Hyperbolic tangent activation. Runs on the compute device when the layer
    ops are device ops.
    """

    def _forward(self, batch: np.ndarray) -> np.ndarray:
        return self.ops.tanh_forward(batch)

    def _backward(self, gradient: np.ndarray, learning_rate: float) -> np.ndarray:
        return self.ops.tanh_backward(self.last_outputs, gradient)


class Sigmoid(ActivationLayer):
    """
    Logistic sigmoid activation.

    The forward pass is evaluated in a numerically stable way for large
    negative inputs.
    """

    def _forward(self, batch: np.ndarray) -> np.ndarray:
        out = np.empty_like(batch)
        pos = batch >= 0
        out[pos] = 1 / (1 + np.exp(-batch[pos]))
        exp_x = np.exp(batch[~pos])
        out[~pos] = exp_x / (1 + exp_x)
        return out

    def _backward(self, gradient: np.ndarray, learning_rate: float) -> np.ndarray:
        y = self.last_outputs
        return gradient * y * (1 - y)


class ReLU(ActivationLayer):
    """
    Rectified linear unit. The derivative at exactly zero is taken as zero.
    """

    def _forward(self, batch: np.ndarray) -> np.ndarray:
        return np.maximum(batch, 0)

    def _backward(self, gradient: np.ndarray, learning_rate: float) -> np.ndarray:
        return gradient * (self.last_inputs > 0).astype(self.dtype)


class SoftMax(ActivationLayer):
    """
    Row-wise softmax activation.

    Each example is normalized independently; the row maximum is subtracted
    before exponentiation to avoid overflow. The backward pass applies the
    full Jacobian of each row:

        dx_j = y_j * (g_j - sum_k g_k * y_k)
    """

    def _forward(self, batch: np.ndarray) -> np.ndarray:
        shifted = batch - batch.max(axis=1, keepdims=True)
        exp = np.exp(shifted)
        return exp / exp.sum(axis=1, keepdims=True)

    def _backward(self, gradient: np.ndarray, learning_rate: float) -> np.ndarray:
        y = self.last_outputs
        dot = (gradient * y).sum(axis=1, keepdims=True)
        return y * (gradient - dot)
