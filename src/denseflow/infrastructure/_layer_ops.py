"""
Host and device strategies for layer arithmetic.

Layers hand their dense and tanh arithmetic to a layer-ops object the same
way optimizers hand their update formulas to an executor:

- ``dense_forward``:  ``inputs @ weights + biases``
- ``dense_backward``: batch-averaged weights and biases gradients plus the
  input gradient ``gradient @ weights.T``
- ``tanh_forward`` / ``tanh_backward``: ``tanh(x)`` and ``g * (1 - y^2)``

`HostLayerOps` evaluates them with NumPy in the buffers' own precision.
`DeviceLayerOps` runs the layer kernels and only accepts float32 buffers.
Results always come back as host arrays of the input dtype, so the caching
done by `Layer` is the same on both sides.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .compute._context import ComputeContext
from .compute._device_buffer import DeviceBuffer
from .compute._dispatch import (
    run_dense_biases_gradient,
    run_dense_input_gradient,
    run_dense_propagate,
    run_dense_weights_gradient,
    run_tanh_back_propagate,
    run_tanh_propagate,
)
from ..domain._errors import DeviceNotSupportedError
from ..domain._precision import Precision


class HostLayerOps:
    """NumPy implementation of the layer formulas."""

    name = "host"

    def dense_forward(
        self, inputs: np.ndarray, weights: np.ndarray, biases: np.ndarray
    ) -> np.ndarray:
        return inputs @ weights + biases

    def dense_backward(
        self, inputs: np.ndarray, gradient: np.ndarray, weights: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        samples = gradient.dtype.type(gradient.shape[0])
        weights_gradient = inputs.T @ gradient / samples
        biases_gradient = gradient.sum(axis=0) / samples
        input_gradient = gradient @ weights.T
        return weights_gradient, biases_gradient, input_gradient

    def tanh_forward(self, inputs: np.ndarray) -> np.ndarray:
        return np.tanh(inputs)

    def tanh_backward(self, outputs: np.ndarray, gradient: np.ndarray) -> np.ndarray:
        return gradient * (1 - outputs * outputs)

    def __repr__(self) -> str:
        return "HostLayerOps()"


HOST_LAYER_OPS = HostLayerOps()


class DeviceLayerOps:
    """
    Layer-kernel implementation of the layer formulas.

    Every call uploads its operands, dispatches the kernels and reads the
    results back, so layers keep host-side forward caches.

    Parameters
    ----------
    context : ComputeContext
        Shared compute context used for every dispatch.
    """

    name = "device"

    def __init__(self, context: ComputeContext) -> None:
        self.context = context

    def _require_float32(self, op: str, *buffers: np.ndarray) -> None:
        for buffer in buffers:
            if Precision.of(buffer.dtype) is not Precision.FLOAT32:
                raise DeviceNotSupportedError(
                    f"{op} on {buffer.dtype}", self.context.describe()
                )

    def dense_forward(
        self, inputs: np.ndarray, weights: np.ndarray, biases: np.ndarray
    ) -> np.ndarray:
        self._require_float32("dense_propagate", inputs, weights, biases)
        ctx = self.context
        rows, n_in = inputs.shape
        n_out = weights.shape[1]
        outputs = DeviceBuffer(ctx, rows * n_out)
        run_dense_propagate(
            ctx,
            DeviceBuffer.from_host(ctx, inputs),
            DeviceBuffer.from_host(ctx, weights),
            DeviceBuffer.from_host(ctx, biases),
            outputs,
            (rows, n_in, n_out),
        )
        return outputs.read().reshape(rows, n_out)

    def dense_backward(
        self, inputs: np.ndarray, gradient: np.ndarray, weights: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        self._require_float32("dense_input_gradient", inputs, gradient, weights)
        ctx = self.context
        rows, n_in = inputs.shape
        n_out = weights.shape[1]
        shape = (rows, n_in, n_out)

        inputs_buf = DeviceBuffer.from_host(ctx, inputs)
        gradient_buf = DeviceBuffer.from_host(ctx, gradient)
        weights_buf = DeviceBuffer.from_host(ctx, weights)
        weights_gradient = DeviceBuffer(ctx, n_in * n_out)
        biases_gradient = DeviceBuffer(ctx, n_out)
        input_gradient = DeviceBuffer(ctx, rows * n_in)

        run_dense_weights_gradient(ctx, inputs_buf, gradient_buf, weights_gradient, shape)
        run_dense_biases_gradient(ctx, gradient_buf, biases_gradient, shape)
        run_dense_input_gradient(ctx, gradient_buf, weights_buf, input_gradient, shape)

        return (
            weights_gradient.read().reshape(n_in, n_out),
            biases_gradient.read(),
            input_gradient.read().reshape(rows, n_in),
        )

    def tanh_forward(self, inputs: np.ndarray) -> np.ndarray:
        self._require_float32("tanh_propagate", inputs)
        ctx = self.context
        rows, width = inputs.shape
        outputs = DeviceBuffer(ctx, inputs.size)
        run_tanh_propagate(ctx, DeviceBuffer.from_host(ctx, inputs), outputs, rows, width)
        return outputs.read().reshape(rows, width)

    def tanh_backward(self, outputs: np.ndarray, gradient: np.ndarray) -> np.ndarray:
        self._require_float32("tanh_back_propagate", outputs, gradient)
        ctx = self.context
        rows, width = gradient.shape
        input_gradient = DeviceBuffer(ctx, gradient.size)
        run_tanh_back_propagate(
            ctx,
            DeviceBuffer.from_host(ctx, outputs),
            DeviceBuffer.from_host(ctx, gradient),
            input_gradient,
            rows,
            width,
        )
        return input_gradient.read().reshape(rows, width)

    def __repr__(self) -> str:
        return f"DeviceLayerOps(context={self.context.describe()!r})"
