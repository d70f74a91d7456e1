"""
Xavier/Glorot weight initializers.

Implemented variants
--------------------
- ``xavier``:
    Xavier normal initialization using ``std = sqrt(2 / (fan_in + fan_out))``.
- ``xavier_uniform``:
    Xavier uniform initialization using
    ``U(-sqrt(6/(fan_in+fan_out)), +sqrt(6/(fan_in+fan_out)))``.

Notes
-----
- Fan-in and fan-out are computed from the array shape via
  ``_calculate_fan_in_and_fan_out``.
- Suited to tanh/sigmoid networks.
"""

import math

import numpy as np

from ._base import WeightInitializer
from ....domain.utils._weight_initialization import _calculate_fan_in_and_fan_out


@WeightInitializer.register_initializer("xavier")
def xavier(array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """
    Apply Xavier (Glorot) normal initialization in-place.
    """
    fan_in, fan_out = _calculate_fan_in_and_fan_out(tuple(array.shape))
    std = math.sqrt(2.0 / float(max(1, fan_in + fan_out)))
    array[...] = rng.normal(0.0, std, size=array.shape)
    return array


@WeightInitializer.register_initializer("xavier_uniform")
def xavier_uniform(array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """
    Apply Xavier (Glorot) uniform initialization in-place.

    Parameters
    ----------
    array:
        The array to initialize.
    rng:
        Random generator to draw from.

    Returns
    -------
    np.ndarray
        The initialized array (same object).
    """
    fan_in, fan_out = _calculate_fan_in_and_fan_out(tuple(array.shape))
    limit = math.sqrt(6.0 / float(max(1, fan_in + fan_out)))
    array[...] = rng.uniform(-limit, limit, size=array.shape)
    return array
