"""
Loss functions for denseflow.

This module implements the loss functions a `Model` can be trained against.
Each loss satisfies the `ILossFunction` protocol and is side-effect free.

Currently implemented losses:
- MeanSquared             : mean of squared errors over outputs and samples
- CategoricalCrossEntropy : cross entropy of probability rows against
                            one-hot (or soft) targets

Design notes
------------
- Both methods accept a single example `(outputs,)` or a batch
  `(samples, outputs)`; `predicted` and `expected` must share the same shape.
- The loss is averaged over samples. The gradient is *per sample*: averaging
  over the batch happens once, in the parameter-gradient computation of the
  layers, so it is not applied twice.
"""

from __future__ import annotations

from typing import Any, Tuple

import numpy as np

from ._buffer import as_batch, check_same_shape
from ..domain._loss import ILossFunction


def _pair(predicted: Any, expected: Any, where: str) -> Tuple[np.ndarray, np.ndarray, bool]:
    """
    Normalize both operands to 2-D arrays of the predicted precision.

    Returns
    -------
    tuple[np.ndarray, np.ndarray, bool]
        `(predicted, expected, was_single_example)`.
    """
    p = np.asarray(predicted)
    dtype = p.dtype if p.dtype in (np.float32, np.float64) else np.float64
    p, single = as_batch(p, dtype)
    e, _ = as_batch(expected, dtype)
    check_same_shape(e, p, where)
    return p, e, single


class MeanSquared(ILossFunction):
    """
    Mean squared error.

    ``loss = sum((p - e)^2) / outputs / samples``

    ``gradient = 2 * (p - e) / outputs``
    """

    def compute_loss(self, predicted: Any, expected: Any) -> float:
        p, e, _ = _pair(predicted, expected, "MeanSquared.compute_loss expected")
        samples, outputs = p.shape
        diff = p - e
        return float((diff * diff).sum() / outputs / samples)

    def compute_loss_gradient(self, predicted: Any, expected: Any) -> np.ndarray:
        p, e, single = _pair(predicted, expected, "MeanSquared.compute_loss_gradient expected")
        outputs = p.shape[1]
        gradient = (p - e) * p.dtype.type(2.0 / outputs)
        return gradient[0] if single else gradient

    def __repr__(self) -> str:
        return "MeanSquared()"


class CategoricalCrossEntropy(ILossFunction):
    """
    Categorical cross entropy on probability outputs.

    ``loss = -sum(e * log(p)) / samples``

    ``gradient = -e / p``

    Parameters
    ----------
    epsilon : float, optional
        Probabilities are clipped to ``[epsilon, 1]`` before taking the log
        or dividing. Defaults to ``1e-7``.

    Notes
    -----
    Expects `predicted` rows to be probability distributions, typically the
    output of a `SoftMax` layer.
    """

    def __init__(self, epsilon: float = 1e-7) -> None:
        self.epsilon = float(epsilon)
        if not 0.0 < self.epsilon < 1.0:
            raise ValueError(f"epsilon must be in (0, 1), got {self.epsilon}")

    def compute_loss(self, predicted: Any, expected: Any) -> float:
        p, e, _ = _pair(predicted, expected, "CategoricalCrossEntropy.compute_loss expected")
        samples = p.shape[0]
        clipped = np.clip(p, self.epsilon, 1.0)
        return float(-(e * np.log(clipped)).sum() / samples)

    def compute_loss_gradient(self, predicted: Any, expected: Any) -> np.ndarray:
        p, e, single = _pair(
            predicted, expected, "CategoricalCrossEntropy.compute_loss_gradient expected"
        )
        clipped = np.clip(p, self.epsilon, 1.0)
        gradient = -e / clipped
        return gradient[0] if single else gradient

    def __repr__(self) -> str:
        return f"CategoricalCrossEntropy(epsilon={self.epsilon})"
