"""
Numeric precision policy.

Every model computes in exactly one floating-point precision. `Precision`
enumerates the supported widths and normalizes user-facing dtype arguments
(`"float32"`, `np.float64`, `np.dtype("float32")`, ...) into a canonical
member without importing any numeric backend.
"""

from __future__ import annotations

from enum import Enum


class Precision(Enum):
    """
    Enumeration of supported numeric precisions.

    Attributes
    ----------
    FLOAT32 : Precision
        32-bit IEEE-754 floats. Supported on host and device.
    FLOAT64 : Precision
        64-bit IEEE-754 floats. Host only; WGSL compute kernels have no
        double-precision type.
    """

    FLOAT32 = "float32"
    FLOAT64 = "float64"

    @classmethod
    def of(cls, dtype: object) -> "Precision":
        """
        Resolve a dtype-like object into a `Precision` member.

        Parameters
        ----------
        dtype : object
            A `Precision`, a dtype instance exposing `.name`, a scalar type
            exposing `__name__`, or a dtype name string.

        Returns
        -------
        Precision
            Matching precision.

        Raises
        ------
        TypeError
            If the dtype is not float32 or float64.
        """
        if isinstance(dtype, Precision):
            return dtype

        name = getattr(dtype, "name", None)
        if not isinstance(name, str):
            name = getattr(dtype, "__name__", None)
        if not isinstance(name, str):
            name = str(dtype)

        try:
            return cls(name)
        except ValueError as e:
            raise TypeError(
                f"Unsupported dtype: {dtype!r}. Expected float32 or float64."
            ) from e

    @property
    def device_supported(self) -> bool:
        """Whether compute kernels exist for this precision."""
        return self is Precision.FLOAT32

    def __str__(self) -> str:
        return self.value
