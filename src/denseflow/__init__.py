"""
denseflow: dense neural networks trained by gradient descent, with optional
offload of layer and optimizer arithmetic to a WebGPU compute device.
"""

from .domain import (
    DeviceNotSupportedError,
    DeviceUnavailableError,
    KernelDispatchError,
    MissingForwardStateError,
    Precision,
    PrecisionMismatchError,
    ShapeMismatchError,
    TrainingOptions,
)
from .infrastructure import (
    BasicOptimizer,
    CategoricalCrossEntropy,
    Dense,
    History,
    MeanSquared,
    Model,
    MomentumOptimizer,
    NesterovMomentumOptimizer,
    ReLU,
    Sigmoid,
    SoftMax,
    TanH,
)

__version__ = "0.1.0"

__all__ = [
    "BasicOptimizer",
    "CategoricalCrossEntropy",
    "Dense",
    "DeviceNotSupportedError",
    "DeviceUnavailableError",
    "History",
    "KernelDispatchError",
    "MeanSquared",
    "MissingForwardStateError",
    "Model",
    "MomentumOptimizer",
    "NesterovMomentumOptimizer",
    "Precision",
    "PrecisionMismatchError",
    "ReLU",
    "ShapeMismatchError",
    "Sigmoid",
    "SoftMax",
    "TanH",
    "TrainingOptions",
]
