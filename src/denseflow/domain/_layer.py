"""
Layer interface definitions.

This module defines the domain-level interface for network layers using
structural subtyping via `typing.Protocol`.

Any object that implements the required members is considered a valid layer,
independent of inheritance, enabling flexible composition and clean separation
between domain contracts and infrastructure implementations.
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol, runtime_checkable

from ._optimizer import IOptimizer
from .types._buffer import BufferLike


@runtime_checkable
class ILayer(Protocol):
    """
    Domain-level layer interface.

    A layer is the atomic composable unit of a model: it consumes inputs,
    produces outputs and, on demand, consumes the gradient of the loss with
    respect to its outputs to produce the gradient of the loss with respect to
    its inputs, updating its own parameters (if any) on the way.

    Notes
    -----
    - `backward` must follow a `forward` over the same batch, and layers of a
      model are back-propagated in strict reverse order.
    - This interface is safe to use with `isinstance` checks due to the
      `@runtime_checkable` decorator.
    """

    @property
    def inputs_amount(self) -> int:
        """Width of one input example."""
        ...

    @property
    def outputs_amount(self) -> int:
        """Width of one output example."""
        ...

    @property
    def dtype(self) -> Any:
        """Floating-point dtype of every buffer the layer holds or produces."""
        ...

    def forward(self, inputs: BufferLike) -> BufferLike:
        """
        Compute the outputs of the layer and cache what backward needs.

        Parameters
        ----------
        inputs : BufferLike
            A single example `(inputs_amount,)` or a batch
            `(samples, inputs_amount)`.

        Returns
        -------
        BufferLike
            Outputs with the same rank as `inputs`.
        """
        ...

    def backward(
        self, loss_to_output_gradient: BufferLike, learning_rate: float
    ) -> BufferLike:
        """
        Back-propagate a loss gradient through the layer.

        Parameters
        ----------
        loss_to_output_gradient : BufferLike
            Gradient of the loss with respect to the outputs of the last
            forward pass.
        learning_rate : float
            Step size forwarded to the optimizers owned by the layer.

        Returns
        -------
        BufferLike
            Gradient of the loss with respect to the inputs of the last
            forward pass.
        """
        ...

    def optimizers(self) -> Iterable[IOptimizer]:
        """
        Return the optimizer instances owned by the layer (one per parameter
        buffer, empty for stateless layers).
        """
        ...

    def clear_cache(self) -> None:
        """Drop any state cached by `forward` for the next `backward`."""
        ...
