from ._errors import (
    DeviceNotSupportedError,
    DeviceUnavailableError,
    KernelDispatchError,
    MissingForwardStateError,
    PrecisionMismatchError,
    ShapeMismatchError,
)
from ._layer import ILayer
from ._loss import ILossFunction
from ._optimizer import IOptimizer, IUpdateExecutor
from ._precision import Precision
from ._training import TrainingOptions

__all__ = [
    "DeviceNotSupportedError",
    "DeviceUnavailableError",
    "ILayer",
    "ILossFunction",
    "IOptimizer",
    "IUpdateExecutor",
    "KernelDispatchError",
    "MissingForwardStateError",
    "Precision",
    "PrecisionMismatchError",
    "ShapeMismatchError",
    "TrainingOptions",
]
