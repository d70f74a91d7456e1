"""
Loss function interface definitions.

A loss function is an external collaborator of the training loop: it turns a
batch of predictions and expected outputs into a scalar loss, and into the
gradient of that loss with respect to the predictions. Implementations must be
side-effect free.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .types._buffer import BufferLike


@runtime_checkable
class ILossFunction(Protocol):
    """
    Domain-level loss function contract.

    Notes
    -----
    - Both methods receive buffers of identical shape, either a single example
      `(outputs,)` or a batch `(samples, outputs)`.
    - The returned gradient has the same shape as `predicted`.
    """

    def compute_loss(self, predicted: BufferLike, expected: BufferLike) -> float:
        """
        Compute the scalar loss of `predicted` against `expected`.

        Parameters
        ----------
        predicted : BufferLike
            Model outputs.
        expected : BufferLike
            Expected outputs, same shape as `predicted`.

        Returns
        -------
        float
            Scalar loss value.
        """
        ...

    def compute_loss_gradient(
        self, predicted: BufferLike, expected: BufferLike
    ) -> BufferLike:
        """
        Compute the gradient of the loss with respect to `predicted`.

        Parameters
        ----------
        predicted : BufferLike
            Model outputs.
        expected : BufferLike
            Expected outputs, same shape as `predicted`.

        Returns
        -------
        BufferLike
            Gradient buffer with the shape of `predicted`.
        """
        ...
