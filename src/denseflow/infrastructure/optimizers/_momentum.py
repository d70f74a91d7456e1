"""
Momentum-based gradient descent.

This module provides `MomentumOptimizer` (classical momentum) and
`NesterovMomentumOptimizer` (Nesterov accelerated gradient). Both keep one
velocity buffer holding the previous update.

Update rule
-----------
For gradient ``g`` and previous update ``v``::

    update = g * learning_rate + v * momentum_gamma
    v <- update

Nesterov additionally evaluates the gradient at the look-ahead point::

    lookahead = parameters - v * momentum_gamma

With ``momentum_gamma == 0`` both rules reduce to plain gradient descent.
"""

from __future__ import annotations

from typing import Any, Dict

import numpy as np

from ._base import Optimizer


class MomentumOptimizer(Optimizer):
    """
    Gradient descent with classical momentum.

    Parameters
    ----------
    momentum_gamma : float
        Momentum coefficient. Must be non-negative. Defaults to 0.9.

    Raises
    ------
    ValueError
        If `momentum_gamma < 0`.
    """

    def __init__(self, momentum_gamma: float = 0.9) -> None:
        super().__init__()
        self.momentum_gamma = float(momentum_gamma)
        if not self.momentum_gamma >= 0.0:
            raise ValueError(f"momentum_gamma must be >= 0, got {self.momentum_gamma}")

    def get_config(self) -> Dict[str, Any]:
        return {"momentum_gamma": self.momentum_gamma}

    def compute_update(self, gradient: Any, learning_rate: float) -> np.ndarray:
        lr = self._check_learning_rate(learning_rate)
        flat, shape = self._flatten(gradient)
        velocity = self._velocity_for(flat, f"{type(self).__name__}.compute_update")
        update = self._executor.momentum_update(flat, velocity, self.momentum_gamma, lr)
        return update.reshape(shape)


class NesterovMomentumOptimizer(MomentumOptimizer):
    """
    Nesterov accelerated gradient.

    Same update as `MomentumOptimizer`, but `pre_update_adjustment()` returns
    the look-ahead point ``parameters - velocity * momentum_gamma`` so the
    owning layer evaluates its gradient there. The look-ahead is a new buffer;
    the parameters themselves are not displaced.
    """

    def pre_update_adjustment(self, parameters: Any) -> np.ndarray:
        flat, shape = self._flatten(parameters)
        velocity = self._velocity_for(
            flat, f"{type(self).__name__}.pre_update_adjustment"
        )
        adjusted = self._executor.lookahead(flat, velocity, self.momentum_gamma)
        return adjusted.reshape(shape)
