from ._activations import ReLU, Sigmoid, SoftMax, TanH
from ._layer import ActivationLayer, Layer
from ._layer_ops import HOST_LAYER_OPS, DeviceLayerOps, HostLayerOps
from ._losses import CategoricalCrossEntropy, MeanSquared
from .fully_connected import Dense
from .models import History, Model
from .optimizers import (
    BasicOptimizer,
    MomentumOptimizer,
    NesterovMomentumOptimizer,
    Optimizer,
)

__all__ = [
    "ActivationLayer",
    "BasicOptimizer",
    "CategoricalCrossEntropy",
    "Dense",
    "DeviceLayerOps",
    "HOST_LAYER_OPS",
    "History",
    "HostLayerOps",
    "Layer",
    "MeanSquared",
    "Model",
    "MomentumOptimizer",
    "NesterovMomentumOptimizer",
    "Optimizer",
    "ReLU",
    "Sigmoid",
    "SoftMax",
    "TanH",
]
