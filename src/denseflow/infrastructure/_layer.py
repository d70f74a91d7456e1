"""
Infrastructure layer base class.

This module provides a concrete `Layer` implementation that satisfies the
domain-level `ILayer` protocol. It implements the conveniences shared by every
layer:

- input normalization (single example or batch) and width validation
- forward-state caching and the missing-forward check in `backward`
- incoming-gradient shape validation before any arithmetic
- optimizer traversal, executor and layer-ops selection
- `__call__` forwarding to `forward`

Subclasses implement `_forward(batch)` and `_backward(gradient, learning_rate)`
on 2-D `(samples, width)` arrays only; rank restoration is handled here.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

import numpy as np

from ._buffer import as_batch, as_buffer, check_same_shape, check_width, dtype_of
from ._layer_ops import HOST_LAYER_OPS
from ..domain._errors import MissingForwardStateError
from ..domain._layer import ILayer
from ..domain._optimizer import IOptimizer, IUpdateExecutor
from ..domain._precision import Precision


class Layer(ILayer):
    """
    Infrastructure base class for layers.

    Parameters
    ----------
    inputs_amount : int
        Width of one input example. Must be positive.
    outputs_amount : int
        Width of one output example. Must be positive.
    dtype : Any, optional
        Precision of every buffer the layer holds or produces
        (``np.float32`` or ``np.float64``). Defaults to ``np.float32``.

    Attributes
    ----------
    last_inputs : Optional[np.ndarray]
        2-D inputs of the last forward pass, or None.
    last_outputs : Optional[np.ndarray]
        2-D outputs of the last forward pass, or None.
    ops : HostLayerOps or DeviceLayerOps
        Strategy evaluating the layer arithmetic. Host by default.
    """

    def __init__(
        self, inputs_amount: int, outputs_amount: int, *, dtype: Any = np.float32
    ) -> None:
        if isinstance(inputs_amount, bool) or int(inputs_amount) <= 0:
            raise ValueError(f"inputs_amount must be a positive integer, got {inputs_amount}")
        if isinstance(outputs_amount, bool) or int(outputs_amount) <= 0:
            raise ValueError(f"outputs_amount must be a positive integer, got {outputs_amount}")

        self._inputs_amount = int(inputs_amount)
        self._outputs_amount = int(outputs_amount)
        self.precision = Precision.of(dtype)
        self._dtype = dtype_of(self.precision)

        self.last_inputs: Optional[np.ndarray] = None
        self.last_outputs: Optional[np.ndarray] = None
        self._single_example = False
        self.ops = HOST_LAYER_OPS

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def inputs_amount(self) -> int:
        return self._inputs_amount

    @property
    def outputs_amount(self) -> int:
        return self._outputs_amount

    @property
    def dtype(self) -> Any:
        return self._dtype

    def forward(self, inputs: Any) -> np.ndarray:
        """
        Compute the layer outputs and cache the forward state.

        Parameters
        ----------
        inputs : Any
            A single example `(inputs_amount,)` or a batch
            `(samples, inputs_amount)`.

        Returns
        -------
        np.ndarray
            Outputs with the same rank as `inputs`.

        Raises
        ------
        ShapeMismatchError
            If the input width differs from `inputs_amount`.
        """
        batch, single = as_batch(inputs, self.dtype)
        check_width(batch, self._inputs_amount, f"{self.name}.forward inputs")

        outputs = self._forward(batch)

        self.last_inputs = batch
        self.last_outputs = outputs
        self._single_example = single
        return outputs[0] if single else outputs

    def backward(self, loss_to_output_gradient: Any, learning_rate: float) -> np.ndarray:
        """
        Back-propagate `loss_to_output_gradient` through the layer.

        A successful call consumes the cached forward state: each backward
        pass needs its own forward pass.

        Raises
        ------
        MissingForwardStateError
            If no forward pass has been performed since construction, the
            last `clear_cache()` or the last successful `backward()`.
        ShapeMismatchError
            If the gradient shape differs from the cached output shape.
        """
        if self.last_inputs is None or self.last_outputs is None:
            raise MissingForwardStateError(self.name)

        gradient = as_buffer(loss_to_output_gradient, self.dtype)
        if gradient.ndim == 1:
            gradient = gradient.reshape(1, -1)
        check_same_shape(gradient, self.last_outputs, f"{self.name}.backward gradient")

        single = self._single_example
        input_gradient = self._backward(gradient, learning_rate)
        self.clear_cache()
        return input_gradient[0] if single else input_gradient

    def _forward(self, batch: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def _backward(self, gradient: np.ndarray, learning_rate: float) -> np.ndarray:
        raise NotImplementedError

    def optimizers(self) -> Tuple[IOptimizer, ...]:
        """Optimizers owned by this layer (empty for stateless layers)."""
        return ()

    def prepare_step(self) -> None:
        """
        Hook run by the model before the forward pass of a training step.
        """
        return None

    def use_executor(self, executor: IUpdateExecutor) -> None:
        for opt in self.optimizers():
            opt.use_executor(executor)

    def use_layer_ops(self, ops: Any) -> None:
        self.ops = ops

    def release_device_state(self) -> None:
        for opt in self.optimizers():
            opt.release_device_state()

    def clear_cache(self) -> None:
        """Drop the cached forward state."""
        self.last_inputs = None
        self.last_outputs = None
        self._single_example = False

    def __call__(self, inputs: Any) -> np.ndarray:
        return self.forward(inputs)

    def __repr__(self) -> str:
        return (
            f"{self.name}(inputs_amount={self._inputs_amount}, "
            f"outputs_amount={self._outputs_amount}, dtype={self.precision})"
        )


class ActivationLayer(Layer):
    """
    Base class for stateless elementwise (or row-wise) activations.

    Activations keep the width of their input, so `inputs_amount` and
    `outputs_amount` are both equal to `width`.
    """

    def __init__(self, width: int, *, dtype: Any = np.float32) -> None:
        super().__init__(width, width, dtype=dtype)

    @property
    def width(self) -> int:
        return self._inputs_amount

    def __repr__(self) -> str:
        return f"{self.name}(width={self.width}, dtype={self.precision})"

