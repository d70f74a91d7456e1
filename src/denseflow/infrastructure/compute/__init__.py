from ._context import ComputeContext, get_compute_context, is_compute_available
from ._device_buffer import DeviceBuffer
from ._dispatch import (
    dispatch,
    run_compute_plain_update,
    run_compute_update_vector,
    run_dense_biases_gradient,
    run_dense_input_gradient,
    run_dense_propagate,
    run_dense_weights_gradient,
    run_optimize_parameters,
    run_tanh_back_propagate,
    run_tanh_propagate,
    workgroup_grid,
)
from ._kernels import KERNELS, WORKGROUP_SIZE, Kernel

__all__ = [
    "ComputeContext",
    "DeviceBuffer",
    "KERNELS",
    "Kernel",
    "WORKGROUP_SIZE",
    "dispatch",
    "get_compute_context",
    "is_compute_available",
    "run_compute_plain_update",
    "run_compute_update_vector",
    "run_dense_biases_gradient",
    "run_dense_input_gradient",
    "run_dense_propagate",
    "run_dense_weights_gradient",
    "run_optimize_parameters",
    "run_tanh_back_propagate",
    "run_tanh_propagate",
    "workgroup_grid",
]
