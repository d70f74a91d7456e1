"""
Uniform and constant initializers.

``uniform`` draws from ``U(-1, 1)`` and is the default for both weights and
biases of a `Dense` layer. ``zeros`` is mainly useful for biases.
"""

import numpy as np

from ._base import WeightInitializer


@WeightInitializer.register_initializer("uniform")
def uniform(array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    array[...] = rng.uniform(-1.0, 1.0, size=array.shape)
    return array


@WeightInitializer.register_initializer("zeros")
def zeros(array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    array[...] = 0
    return array
