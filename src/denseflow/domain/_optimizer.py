"""
Domain-level optimizer contracts for denseflow.

This module defines the `IOptimizer` protocol, which specifies the interface
every update rule (plain gradient descent, momentum, Nesterov momentum) must
offer to the layer that owns it, and the `IUpdateExecutor` protocol, which
describes the strategy object that performs the elementwise update arithmetic
either on the host or on a compute device.

Notes
-----
- Domain contracts are backend-agnostic and must not depend on NumPy or
  infrastructure implementations.
- An optimizer instance shadows exactly one parameter buffer. Layers own one
  optimizer per parameter buffer and subtract the returned update themselves.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .types._buffer import BufferLike


@runtime_checkable
class IOptimizer(Protocol):
    """
    Optimizer interface contract.

    Required methods
    ----------------
    - `compute_update()` converts a raw gradient into an update buffer.
    - `pre_update_adjustment()` returns the point at which the gradient of the
      next step should be evaluated (identity for non-lookahead rules).
    - `reset_state()` clears velocity memory.
    """

    def compute_update(self, gradient: BufferLike, learning_rate: float) -> BufferLike:
        """
        Convert a parameter gradient into an update.

        Parameters
        ----------
        gradient : BufferLike
            Gradient of the loss with respect to the shadowed parameter buffer.
        learning_rate : float
            Positive step size.

        Returns
        -------
        BufferLike
            Update with the length of `gradient`; the caller subtracts it from
            the parameter buffer.
        """
        ...

    def pre_update_adjustment(self, parameters: BufferLike) -> BufferLike:
        """
        Return the parameters at which the next gradient is evaluated.

        `parameters` is never modified. Optimizers without a look-ahead may
        return `parameters` itself; otherwise the result is a new buffer.
        """
        ...

    def reset_state(self) -> None:
        """
        Zero any velocity memory held by the optimizer.
        """
        ...


@runtime_checkable
class IUpdateExecutor(Protocol):
    """
    Strategy contract for executing optimizer arithmetic.

    Host and device executors implement the same elementwise formulas so the
    two paths cannot diverge numerically beyond floating-point rounding.
    The `velocity` argument is a velocity-state object owned by the optimizer;
    executors decide where (host or device) its authoritative copy lives.
    """

    name: str

    def plain_update(self, gradient: BufferLike, learning_rate: float) -> BufferLike:
        """`update[i] = gradient[i] * learning_rate`"""
        ...

    def momentum_update(
        self,
        gradient: BufferLike,
        velocity: object,
        momentum_gamma: float,
        learning_rate: float,
    ) -> BufferLike:
        """`update[i] = gradient[i]*learning_rate + velocity[i]*momentum_gamma; velocity[i] = update[i]`"""
        ...

    def lookahead(
        self, parameters: BufferLike, velocity: object, momentum_gamma: float
    ) -> BufferLike:
        """`out[i] = parameters[i] - velocity[i]*momentum_gamma` (new buffer)"""
        ...
