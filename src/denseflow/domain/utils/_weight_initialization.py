"""
Fan-in / fan-out computation for weight initialization.

Dense weight matrices are stored as `(inputs_amount, outputs_amount)`, so the
first axis is the fan-in and the second the fan-out.
"""

from __future__ import annotations

from typing import Tuple


def _calculate_fan_in_and_fan_out(shape: Tuple[int, ...]) -> Tuple[int, int]:
    """
    Compute both fan-in and fan-out values for a parameter shape.

    Parameters
    ----------
    shape:
        Shape of the parameter buffer.

    Returns
    -------
    tuple[int, int]
        A tuple of (fan_in, fan_out).
    """
    if len(shape) == 0:
        return 1, 1
    if len(shape) == 1:
        # bias-like vector
        return int(shape[0]), int(shape[0])
    if len(shape) == 2:
        fan_in, fan_out = shape
        return int(fan_in), int(fan_out)
    raise ValueError(f"Unsupported parameter rank {len(shape)} for shape {shape}")


def _calculate_fan_in(shape: Tuple[int, ...]) -> int:
    """Compute the fan-in value for a parameter shape."""
    return _calculate_fan_in_and_fan_out(shape)[0]
