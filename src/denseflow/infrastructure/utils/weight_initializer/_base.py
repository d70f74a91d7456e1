"""
Name-keyed registry of parameter initializers.

`Dense` resolves its ``weight_initializer`` and ``bias_initializer`` names
through `WeightInitializer` when it allocates parameters. An initializer is a
plain function ``(array, rng) -> array`` that fills `array` in place, so the
dtype chosen by the layer is kept.

    @WeightInitializer.register_initializer("uniform")
    def uniform(array, rng):
        array[...] = rng.uniform(-1.0, 1.0, size=array.shape)
        return array

    WeightInitializer("uniform")(weights, rng)
"""

from __future__ import annotations

from typing import Callable, ClassVar, Dict, Optional, Tuple, TypeVar

import numpy as np

Initializer = Callable[[np.ndarray, np.random.Generator], np.ndarray]
F = TypeVar("F", bound=Initializer)


class WeightInitializer:
    """
    Callable handle on a registered initializer.

    Parameters
    ----------
    initializer_name : str
        Key the initializer was registered under.

    Raises
    ------
    ValueError
        If `initializer_name` is not registered. The message lists the known
        names.
    """

    INITIALIZERS: ClassVar[Dict[str, Initializer]] = {}

    def __init__(self, initializer_name: str) -> None:
        func = self.INITIALIZERS.get(initializer_name)
        if func is None:
            known = ", ".join(self.available()) or "<none>"
            raise ValueError(
                f"Unsupported initializer name: {initializer_name!r}. Available: {known}"
            )
        self.name = initializer_name
        self._initializer: Initializer = func

    @classmethod
    def register_initializer(
        cls, name: str, *, overwrite: bool = False
    ) -> Callable[[F], F]:
        """
        Return a decorator that stores the decorated function under `name`.

        A second registration under the same name raises `ValueError` unless
        `overwrite` is set.
        """
        if not name or not isinstance(name, str):
            raise ValueError("initializer name must be a non-empty string")

        def register(func: F) -> F:
            if name in cls.INITIALIZERS and not overwrite:
                raise ValueError(f"an initializer named {name!r} is already registered")
            cls.INITIALIZERS[name] = func
            return func

        return register

    @classmethod
    def available(cls) -> Tuple[str, ...]:
        return tuple(sorted(cls.INITIALIZERS))

    @classmethod
    def get(cls, name: str) -> Initializer:
        return cls.INITIALIZERS[name]

    def __call__(
        self, array: np.ndarray, rng: Optional[np.random.Generator] = None
    ) -> np.ndarray:
        """Fill `array` in place, drawing from a fresh generator when `rng` is None."""
        return self._initializer(array, np.random.default_rng() if rng is None else rng)

    def __repr__(self) -> str:
        return f"WeightInitializer({self.name!r})"
