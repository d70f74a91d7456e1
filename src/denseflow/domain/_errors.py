"""
Training- and execution-related exceptions for denseflow.

This module defines the error taxonomy used across the layer, model and
optimizer engine. Errors fall into three groups:

- Shape/dimensionality errors (`ShapeMismatchError`, `PrecisionMismatchError`):
  configuration faults detected before any numeric work is performed.
- Missing-state errors (`MissingForwardStateError`): a layer was asked to
  back-propagate without a preceding forward pass.
- Device-execution errors (`DeviceUnavailableError`, `DeviceNotSupportedError`,
  `KernelDispatchError`): raised when GPU execution is requested and cannot be
  honored. These are never silently downgraded to host execution.
"""

from __future__ import annotations

from typing import Sequence


class ShapeMismatchError(ValueError):
    """
    Raised when buffer lengths or widths disagree.

    Typical sources are adjacent layers whose widths do not match, training
    data whose width does not match the model boundaries, or an incoming
    gradient whose shape differs from the cached output of a layer.

    Attributes
    ----------
    where : str
        Short description of the place where the mismatch was detected.
    expected : object
        Expected width or shape.
    actual : object
        Width or shape that was received.
    """

    def __init__(self, where: str, expected: object, actual: object) -> None:
        super().__init__(f"{where}: expected {expected}, got {actual}.")
        self.where = where
        self.expected = expected
        self.actual = actual


class PrecisionMismatchError(TypeError):
    """
    Raised when layers of different floating-point precision are combined.

    A model computes entirely in float32 or entirely in float64; the two never
    mix within one model.
    """

    def __init__(self, where: str, dtypes: Sequence[object]) -> None:
        names = ", ".join(sorted({str(d) for d in dtypes}))
        super().__init__(f"{where}: layers mix precisions ({names}).")
        self.where = where
        self.dtypes = tuple(dtypes)


class MissingForwardStateError(RuntimeError):
    """
    Raised when `backward` is called on a layer that has no cached forward state.
    """

    def __init__(self, layer_name: str) -> None:
        super().__init__(
            f"{layer_name}.backward() called with no cached forward state; "
            "call forward() on the same batch first."
        )
        self.layer_name = layer_name


class DeviceUnavailableError(RuntimeError):
    """
    Raised when GPU execution is requested but no compute device can be acquired.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(f"No compute device available: {reason}")
        self.reason = reason


class DeviceNotSupportedError(RuntimeError):
    """
    Raised when an operation is requested on a device that cannot execute it.

    Attributes
    ----------
    op : str
        The name of the operation that was attempted.
    device : str
        Description of the device on which the operation was attempted.
    """

    def __init__(self, op: str, device: str) -> None:
        super().__init__(f"{op} is not implemented for device '{device}'.")
        self.op = op
        self.device = device


class KernelDispatchError(RuntimeError):
    """
    Raised when a compute kernel fails to compile, bind or dispatch.
    """

    def __init__(self, kernel_name: str, reason: str) -> None:
        super().__init__(f"Kernel '{kernel_name}' failed: {reason}")
        self.kernel_name = kernel_name
        self.reason = reason
