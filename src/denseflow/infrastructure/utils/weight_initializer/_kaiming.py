"""
Kaiming (He) weight initializers.

Implemented variants
--------------------
- ``kaiming``:
    Kaiming normal initialization using ``std = sqrt(2 / fan_in)``.
- ``kaiming_uniform``:
    Kaiming uniform initialization using
    ``U(-sqrt(6/fan_in), +sqrt(6/fan_in))``.

Intended for weights feeding ReLU activations.
"""

import math

import numpy as np

from ._base import WeightInitializer
from ....domain.utils._weight_initialization import _calculate_fan_in


@WeightInitializer.register_initializer("kaiming")
def kaiming(array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """
    Apply Kaiming (He) normal initialization in-place.

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
    fan_in = max(1, _calculate_fan_in(tuple(array.shape)))
    scale = math.sqrt(2.0 / float(fan_in))
    array[...] = rng.standard_normal(size=array.shape) * scale
    return array


@WeightInitializer.register_initializer("kaiming_uniform")
def kaiming_uniform(array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    fan_in = max(1, _calculate_fan_in(tuple(array.shape)))
    limit = math.sqrt(6.0 / float(fan_in))
    array[...] = rng.uniform(-limit, limit, size=array.shape)
    return array
