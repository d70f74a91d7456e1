"""
Kernel dispatch helpers.

`dispatch` binds a uniform block plus a list of storage buffers to a cached
pipeline and submits one compute pass. The named wrappers below are the only
entry points the update executors and the device layer operations use.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np
import wgpu

from ._context import ComputeContext
from ._device_buffer import DeviceBuffer
from ._kernels import (
    COMPUTE_PLAIN_UPDATE,
    COMPUTE_UPDATE_VECTOR,
    DENSE_BIASES_GRADIENT,
    DENSE_INPUT_GRADIENT,
    DENSE_PROPAGATE,
    DENSE_WEIGHTS_GRADIENT,
    OPTIMIZE_PARAMETERS,
    SHAPE_UNIFORM,
    TANH_BACK_PROPAGATE,
    TANH_PROPAGATE,
    WORKGROUP_SIZE,
    Kernel,
)
from ...domain._errors import KernelDispatchError

MAX_WORKGROUPS_PER_DIMENSION = 65535


def workgroup_grid(size: int) -> Tuple[int, int]:
    """
    Return the `(x, y)` workgroup counts covering `size` elements.

    The grid is one row when it fits within the per-dimension limit and
    otherwise wraps into additional rows.
    """
    groups = max(1, math.ceil(size / WORKGROUP_SIZE))
    gx = min(groups, MAX_WORKGROUPS_PER_DIMENSION)
    gy = math.ceil(groups / gx)
    return gx, gy


def _pack_params(momentum_gamma: float, learning_rate: float, size: int, row_stride: int) -> np.ndarray:
    packed = np.zeros(4, dtype=np.float32)
    packed[0] = momentum_gamma
    packed[1] = learning_rate
    words = packed.view(np.uint32)
    words[2] = size
    words[3] = row_stride
    return packed


def _pack_shape(shape: Tuple[int, int, int], row_stride: int) -> np.ndarray:
    rows, inputs, outputs = shape
    return np.array([rows, inputs, outputs, row_stride], dtype=np.uint32)


def dispatch(
    context: ComputeContext,
    kernel: Kernel,
    buffers: Sequence[DeviceBuffer],
    size: int,
    *,
    momentum_gamma: float = 0.0,
    learning_rate: float = 0.0,
    shape: Tuple[int, int, int] = (0, 0, 0),
) -> None:
    """
    Run `kernel` over `size` threads.

    Parameters
    ----------
    context : ComputeContext
        Context owning the pipeline and every buffer.
    kernel : Kernel
        Kernel to run.
    buffers : Sequence[DeviceBuffer]
        Storage buffers bound at bindings `1..len(buffers)`, in kernel order.
    size : int
        Number of elements the kernel produces.
    momentum_gamma, learning_rate : float
        Uniform values for optimizer kernels.
    shape : Tuple[int, int, int]
        `(rows, inputs, outputs)` for layer kernels.

    Raises
    ------
    KernelDispatchError
        If the binding count is wrong or the device rejects the dispatch.
    """
    if len(buffers) != kernel.storage_bindings:
        raise KernelDispatchError(
            kernel.name,
            f"expected {kernel.storage_bindings} buffers, got {len(buffers)}",
        )
    if size == 0:
        return

    gx, gy = workgroup_grid(size)
    row_stride = gx * WORKGROUP_SIZE
    if kernel.uniform == SHAPE_UNIFORM:
        params = _pack_shape(shape, row_stride)
    else:
        params = _pack_params(momentum_gamma, learning_rate, size, row_stride)

    pipeline = context.pipeline(kernel)
    device = context.device
    try:
        params_buffer = device.create_buffer_with_data(
            data=params, usage=wgpu.BufferUsage.UNIFORM
        )
        entries = [
            {
                "binding": 0,
                "resource": {"buffer": params_buffer, "offset": 0, "size": params.nbytes},
            }
        ]
        for i, buf in enumerate(buffers, start=1):
            entries.append(
                {
                    "binding": i,
                    "resource": {"buffer": buf.handle, "offset": 0, "size": buf.binding_size},
                }
            )
        bind_group = device.create_bind_group(
            layout=pipeline.get_bind_group_layout(0), entries=entries
        )

        encoder = device.create_command_encoder()
        compute_pass = encoder.begin_compute_pass()
        compute_pass.set_pipeline(pipeline)
        compute_pass.set_bind_group(0, bind_group)
        compute_pass.dispatch_workgroups(gx, gy, 1)
        compute_pass.end()
        context.queue.submit([encoder.finish()])
    except wgpu.GPUError as e:
        raise KernelDispatchError(kernel.name, str(e)) from e


def run_optimize_parameters(
    context: ComputeContext,
    parameters: DeviceBuffer,
    last_update: DeviceBuffer,
    momentum_gamma: float,
) -> None:
    """`parameters[i] -= last_update[i] * momentum_gamma` in place on the device."""
    _check_lengths(OPTIMIZE_PARAMETERS, parameters, last_update)
    dispatch(
        context,
        OPTIMIZE_PARAMETERS,
        (parameters, last_update),
        len(parameters),
        momentum_gamma=momentum_gamma,
    )


def run_compute_update_vector(
    context: ComputeContext,
    gradient: DeviceBuffer,
    last_update: DeviceBuffer,
    update: DeviceBuffer,
    momentum_gamma: float,
    learning_rate: float,
) -> None:
    """Fill `update` with the momentum update and store it in `last_update`."""
    _check_lengths(COMPUTE_UPDATE_VECTOR, gradient, last_update, update)
    dispatch(
        context,
        COMPUTE_UPDATE_VECTOR,
        (gradient, last_update, update),
        len(gradient),
        momentum_gamma=momentum_gamma,
        learning_rate=learning_rate,
    )


def run_compute_plain_update(
    context: ComputeContext,
    gradient: DeviceBuffer,
    update: DeviceBuffer,
    learning_rate: float,
) -> None:
    """Fill `update` with `gradient * learning_rate`."""
    _check_lengths(COMPUTE_PLAIN_UPDATE, gradient, update)
    dispatch(
        context,
        COMPUTE_PLAIN_UPDATE,
        (gradient, update),
        len(gradient),
        learning_rate=learning_rate,
    )


def _check_lengths(kernel: Kernel, *buffers: DeviceBuffer) -> None:
    lengths = {len(b) for b in buffers}
    if len(lengths) != 1:
        raise KernelDispatchError(
            kernel.name, f"buffer lengths differ: {[len(b) for b in buffers]}"
        )


def _check_size(kernel: Kernel, buffer: DeviceBuffer, expected: int, role: str) -> None:
    if len(buffer) != expected:
        raise KernelDispatchError(
            kernel.name, f"{role} holds {len(buffer)} elements, expected {expected}"
        )


def run_dense_propagate(
    context: ComputeContext,
    inputs: DeviceBuffer,
    weights: DeviceBuffer,
    biases: DeviceBuffer,
    outputs: DeviceBuffer,
    shape: Tuple[int, int, int],
) -> None:
    """`outputs = inputs @ weights + biases` for `shape = (rows, inputs, outputs)`."""
    rows, n_in, n_out = shape
    _check_size(DENSE_PROPAGATE, inputs, rows * n_in, "inputs")
    _check_size(DENSE_PROPAGATE, weights, n_in * n_out, "weights")
    _check_size(DENSE_PROPAGATE, biases, n_out, "biases")
    _check_size(DENSE_PROPAGATE, outputs, rows * n_out, "outputs")
    dispatch(
        context,
        DENSE_PROPAGATE,
        (inputs, weights, biases, outputs),
        rows * n_out,
        shape=shape,
    )


def run_dense_input_gradient(
    context: ComputeContext,
    gradient: DeviceBuffer,
    weights: DeviceBuffer,
    input_gradient: DeviceBuffer,
    shape: Tuple[int, int, int],
) -> None:
    """`input_gradient = gradient @ weights.T`."""
    rows, n_in, n_out = shape
    _check_size(DENSE_INPUT_GRADIENT, gradient, rows * n_out, "gradient")
    _check_size(DENSE_INPUT_GRADIENT, weights, n_in * n_out, "weights")
    _check_size(DENSE_INPUT_GRADIENT, input_gradient, rows * n_in, "input_gradient")
    dispatch(
        context,
        DENSE_INPUT_GRADIENT,
        (gradient, weights, input_gradient),
        rows * n_in,
        shape=shape,
    )


def run_dense_weights_gradient(
    context: ComputeContext,
    inputs: DeviceBuffer,
    gradient: DeviceBuffer,
    weights_gradient: DeviceBuffer,
    shape: Tuple[int, int, int],
) -> None:
    """`weights_gradient = inputs.T @ gradient / rows`."""
    rows, n_in, n_out = shape
    _check_size(DENSE_WEIGHTS_GRADIENT, inputs, rows * n_in, "inputs")
    _check_size(DENSE_WEIGHTS_GRADIENT, gradient, rows * n_out, "gradient")
    _check_size(DENSE_WEIGHTS_GRADIENT, weights_gradient, n_in * n_out, "weights_gradient")
    dispatch(
        context,
        DENSE_WEIGHTS_GRADIENT,
        (inputs, gradient, weights_gradient),
        n_in * n_out,
        shape=shape,
    )


def run_dense_biases_gradient(
    context: ComputeContext,
    gradient: DeviceBuffer,
    biases_gradient: DeviceBuffer,
    shape: Tuple[int, int, int],
) -> None:
    """`biases_gradient = gradient.sum(axis=0) / rows`."""
    rows, _, n_out = shape
    _check_size(DENSE_BIASES_GRADIENT, gradient, rows * n_out, "gradient")
    _check_size(DENSE_BIASES_GRADIENT, biases_gradient, n_out, "biases_gradient")
    dispatch(
        context,
        DENSE_BIASES_GRADIENT,
        (gradient, biases_gradient),
        n_out,
        shape=shape,
    )


def run_tanh_propagate(
    context: ComputeContext,
    inputs: DeviceBuffer,
    outputs: DeviceBuffer,
    rows: int,
    width: int,
) -> None:
    _check_lengths(TANH_PROPAGATE, inputs, outputs)
    _check_size(TANH_PROPAGATE, inputs, rows * width, "inputs")
    dispatch(
        context,
        TANH_PROPAGATE,
        (inputs, outputs),
        rows * width,
        shape=(rows, width, width),
    )


def run_tanh_back_propagate(
    context: ComputeContext,
    outputs: DeviceBuffer,
    gradient: DeviceBuffer,
    input_gradient: DeviceBuffer,
    rows: int,
    width: int,
) -> None:
    """`input_gradient = gradient * (1 - outputs^2)` with the cached tanh outputs."""
    _check_lengths(TANH_BACK_PROPAGATE, outputs, gradient, input_gradient)
    _check_size(TANH_BACK_PROPAGATE, outputs, rows * width, "outputs")
    dispatch(
        context,
        TANH_BACK_PROPAGATE,
        (outputs, gradient, input_gradient),
        rows * width,
        shape=(rows, width, width),
    )
