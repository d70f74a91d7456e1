"""
Host and device strategies for optimizer arithmetic.

An optimizer never branches on where it runs. It holds one executor and
delegates its three elementwise formulas to it:

- ``plain_update``:   ``update = gradient * lr``
- ``momentum_update``: ``update = gradient * lr + velocity * gamma``,
  then ``velocity = update``
- ``lookahead``:      ``out = parameters - velocity * gamma`` (new buffer)

`HostUpdateExecutor` evaluates them with NumPy in the buffer's own precision.
`DeviceUpdateExecutor` evaluates them with the compute kernels and only
accepts float32 buffers.
"""

from __future__ import annotations

import numpy as np

from ._state import VelocityState
from ..compute._context import ComputeContext
from ..compute._device_buffer import DeviceBuffer
from ..compute._dispatch import (
    run_compute_plain_update,
    run_compute_update_vector,
    run_optimize_parameters,
)
from ...domain._errors import DeviceNotSupportedError
from ...domain._precision import Precision


class HostUpdateExecutor:
    """
    NumPy implementation of the update formulas.
    """

    name = "host"

    def plain_update(self, gradient: np.ndarray, learning_rate: float) -> np.ndarray:
        return gradient * gradient.dtype.type(learning_rate)

    def momentum_update(
        self,
        gradient: np.ndarray,
        velocity: VelocityState,
        momentum_gamma: float,
        learning_rate: float,
    ) -> np.ndarray:
        scalar = gradient.dtype.type
        v = velocity.host()
        update = gradient * scalar(learning_rate) + v * scalar(momentum_gamma)
        v[...] = update
        velocity.mark_host_written()
        return update

    def lookahead(
        self, parameters: np.ndarray, velocity: VelocityState, momentum_gamma: float
    ) -> np.ndarray:
        v = velocity.host()
        return parameters - v * parameters.dtype.type(momentum_gamma)

    def __repr__(self) -> str:
        return "HostUpdateExecutor()"


HOST_EXECUTOR = HostUpdateExecutor()


class DeviceUpdateExecutor:
    """
    Compute-kernel implementation of the update formulas.

    Velocity buffers stay resident on the device between steps; gradients and
    parameters are uploaded per call and the resulting update is read back so
    the owning layer can apply it.

    Parameters
    ----------
    context : ComputeContext
        Shared compute context used for every dispatch.
    """

    name = "device"

    def __init__(self, context: ComputeContext) -> None:
        self.context = context

    def _require_float32(self, op: str, buffer: np.ndarray) -> None:
        if Precision.of(buffer.dtype) is not Precision.FLOAT32:
            raise DeviceNotSupportedError(
                f"{op} on {buffer.dtype}", self.context.describe()
            )

    def plain_update(self, gradient: np.ndarray, learning_rate: float) -> np.ndarray:
        self._require_float32("compute_plain_update", gradient)
        ctx = self.context
        grad_buf = DeviceBuffer.from_host(ctx, gradient)
        update_buf = DeviceBuffer(ctx, gradient.size)
        run_compute_plain_update(ctx, grad_buf, update_buf, learning_rate)
        return update_buf.read()

    def momentum_update(
        self,
        gradient: np.ndarray,
        velocity: VelocityState,
        momentum_gamma: float,
        learning_rate: float,
    ) -> np.ndarray:
        self._require_float32("compute_update_vector", gradient)
        ctx = self.context
        grad_buf = DeviceBuffer.from_host(ctx, gradient)
        velocity_buf = velocity.device_buffer(ctx)
        update_buf = DeviceBuffer(ctx, gradient.size)
        run_compute_update_vector(
            ctx, grad_buf, velocity_buf, update_buf, momentum_gamma, learning_rate
        )
        velocity.mark_device_written()
        return update_buf.read()

    def lookahead(
        self, parameters: np.ndarray, velocity: VelocityState, momentum_gamma: float
    ) -> np.ndarray:
        self._require_float32("optimize_parameters", parameters)
        ctx = self.context
        params_buf = DeviceBuffer.from_host(ctx, parameters)
        velocity_buf = velocity.device_buffer(ctx)
        run_optimize_parameters(ctx, params_buf, velocity_buf, momentum_gamma)
        return params_buf.read()

    def __repr__(self) -> str:
        return f"DeviceUpdateExecutor(context={self.context.describe()!r})"
