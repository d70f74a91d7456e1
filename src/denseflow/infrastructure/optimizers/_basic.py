"""
Plain gradient descent.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from ._base import Optimizer


class BasicOptimizer(Optimizer):
    """
    Plain gradient descent: ``update = gradient * learning_rate``.

    Holds no state; `reset_state()` is a no-op.
    """

    def compute_update(self, gradient: Any, learning_rate: float) -> np.ndarray:
        lr = self._check_learning_rate(learning_rate)
        flat, shape = self._flatten(gradient)
        return self._executor.plain_update(flat, lr).reshape(shape)
