"""
Optimizer base class.

An optimizer instance shadows exactly one parameter buffer of one layer. It
converts gradients into updates (the layer subtracts them) and may keep a
velocity buffer of the same length. Layers receive an optimizer *prototype*
and call `clone()` once per parameter buffer, so two buffers never share
velocity memory.

Where the arithmetic runs is decided by the executor the optimizer currently
holds (see `_executors`); the model swaps executors at the start and end of
a device-backed training run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import numpy as np

from ._executors import HOST_EXECUTOR
from ._state import VelocityState
from ...domain._optimizer import IUpdateExecutor
from ...domain._precision import Precision


class Optimizer(ABC):
    """
    Base class for update rules.

    Notes
    -----
    - Velocity state is allocated lazily, sized after the first buffer the
      optimizer sees. Afterwards every gradient and parameter buffer must have
      that same length.
    - All buffers are processed flattened; results are reshaped back to the
      caller's shape.
    """

    def __init__(self) -> None:
        self._executor: IUpdateExecutor = HOST_EXECUTOR
        self._velocity: Optional[VelocityState] = None

    @abstractmethod
    def compute_update(self, gradient: Any, learning_rate: float) -> np.ndarray:
        """
        Convert a parameter gradient into an update buffer.

        Parameters
        ----------
        gradient : Any
            Gradient of the loss with respect to the shadowed parameters.
        learning_rate : float
            Positive step size.

        Returns
        -------
        np.ndarray
            Update with the shape of `gradient`.
        """
        raise NotImplementedError

    def pre_update_adjustment(self, parameters: Any) -> np.ndarray:
        """
        Return the parameters at which the next gradient is evaluated.

        The base rule evaluates gradients at the parameters themselves, so the
        input is returned unchanged.
        """
        return parameters

    def get_config(self) -> Dict[str, Any]:
        """Hyperparameters needed to build an equivalent fresh optimizer."""
        return {}

    def clone(self) -> "Optimizer":
        """
        Return a fresh optimizer with the same hyperparameters and no state.
        """
        return type(self)(**self.get_config())

    @property
    def executor(self) -> IUpdateExecutor:
        return self._executor

    def use_executor(self, executor: IUpdateExecutor) -> None:
        self._executor = executor

    @property
    def velocity(self) -> Optional[np.ndarray]:
        """
        Copy of the velocity buffer on the host, or None if never allocated.
        """
        if self._velocity is None:
            return None
        return self._velocity.host().copy()

    def reset_state(self) -> None:
        if self._velocity is not None:
            self._velocity.reset()

    def release_device_state(self) -> None:
        """
        Pull velocity back to the host and drop device buffers.
        """
        if self._velocity is not None:
            self._velocity.release_device()

    def _flatten(self, values: Any) -> Tuple[np.ndarray, Tuple[int, ...]]:
        arr = np.asarray(values)
        # raises TypeError for non-float buffers
        Precision.of(arr.dtype)
        return np.ascontiguousarray(arr).reshape(-1), arr.shape

    def _velocity_for(self, flat: np.ndarray, where: str) -> VelocityState:
        if self._velocity is None:
            self._velocity = VelocityState(flat.size, flat.dtype)
        else:
            self._velocity.check_compatible(flat, where)
        return self._velocity

    @staticmethod
    def _check_learning_rate(learning_rate: float) -> float:
        lr = float(learning_rate)
        if not lr > 0.0:
            raise ValueError(f"learning_rate must be > 0, got {learning_rate}")
        return lr

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self.get_config().items())
        return f"{type(self).__name__}({args})"
