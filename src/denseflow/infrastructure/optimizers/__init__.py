from ._base import Optimizer
from ._basic import BasicOptimizer
from ._executors import HOST_EXECUTOR, DeviceUpdateExecutor, HostUpdateExecutor
from ._momentum import MomentumOptimizer, NesterovMomentumOptimizer
from ._state import VelocityState

__all__ = [
    "BasicOptimizer",
    "DeviceUpdateExecutor",
    "HOST_EXECUTOR",
    "HostUpdateExecutor",
    "MomentumOptimizer",
    "NesterovMomentumOptimizer",
    "Optimizer",
    "VelocityState",
]
