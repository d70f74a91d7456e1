"""
Velocity state for momentum-based optimizers.

`VelocityState` is the single authoritative velocity buffer of one optimizer
instance. It keeps a host copy and, while device execution is active, a
device mirror. Two validity flags track which side holds the latest values;
the stale side is refreshed on demand, so host and device never disagree
after a read.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..compute._context import ComputeContext
from ..compute._device_buffer import DeviceBuffer
from ...domain._errors import ShapeMismatchError


class VelocityState:
    """
    Flat velocity buffer with lazy host/device synchronization.

    Parameters
    ----------
    length : int
        Number of elements (the length of the shadowed parameter buffer).
        Fixed for the lifetime of the state.
    dtype : np.dtype
        Host precision of the buffer.
    """

    def __init__(self, length: int, dtype: np.dtype) -> None:
        self._host = np.zeros(int(length), dtype=dtype)
        self._device: Optional[DeviceBuffer] = None
        self._host_valid = True
        self._device_valid = False

    @property
    def length(self) -> int:
        return int(self._host.shape[0])

    @property
    def dtype(self) -> np.dtype:
        return self._host.dtype

    @property
    def on_device(self) -> bool:
        return self._device is not None

    def check_compatible(self, buffer: np.ndarray, where: str) -> None:
        """
        Raise `ShapeMismatchError` unless `buffer` has this state's length.
        """
        if buffer.size != self.length:
            raise ShapeMismatchError(where, self.length, buffer.size)

    def host(self) -> np.ndarray:
        """
        Return the host buffer, pulling from the device first if it is stale.

        The returned array is the live buffer; callers that mutate it must
        call `mark_host_written()`.
        """
        if not self._host_valid:
            self._host[...] = self._device.read()
            self._host_valid = True
        return self._host

    def device_buffer(self, context: ComputeContext) -> DeviceBuffer:
        """
        Return the device mirror on `context`, uploading host data if stale.
        """
        if self._device is None or self._device.context is not context:
            values = self.host()
            self._device = DeviceBuffer.from_host(context, values)
            self._device_valid = True
        elif not self._device_valid:
            self._device.write(self._host)
            self._device_valid = True
        return self._device

    def mark_host_written(self) -> None:
        self._host_valid = True
        self._device_valid = False

    def mark_device_written(self) -> None:
        self._device_valid = True
        self._host_valid = False

    def reset(self) -> None:
        """Zero the velocity on both sides."""
        self._host[...] = 0
        self.mark_host_written()

    def release_device(self) -> None:
        """
        Pull the latest values to the host and drop the device mirror.
        """
        if self._device is None:
            return
        self.host()
        self._device = None
        self._device_valid = False

    def __repr__(self) -> str:
        side = "device" if self.on_device and not self._host_valid else "host"
        return f"VelocityState(length={self.length}, dtype={self.dtype}, latest={side})"
