"""
Device-resident float32 buffers.

A `DeviceBuffer` owns one storage buffer on the compute device and knows how
to upload host arrays into it and read its contents back. Buffers are
allocated at their exact length; a zero-length buffer reserves the minimum
four bytes so it can still be created and bound.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import wgpu

if TYPE_CHECKING:
    from ._context import ComputeContext

_STORAGE_USAGE = (
    wgpu.BufferUsage.STORAGE | wgpu.BufferUsage.COPY_SRC | wgpu.BufferUsage.COPY_DST
)
_ITEMSIZE = np.dtype(np.float32).itemsize


class DeviceBuffer:
    """
    Flat float32 storage buffer on the compute device.

    Parameters
    ----------
    context : ComputeContext
        Context whose device owns the buffer.
    length : int
        Number of float32 elements.
    """

    def __init__(self, context: "ComputeContext", length: int) -> None:
        if length < 0:
            raise ValueError(f"length must be >= 0, got {length}")
        self.context = context
        self.length = int(length)
        self.handle = context.device.create_buffer(
            size=max(self.nbytes, _ITEMSIZE), usage=_STORAGE_USAGE
        )

    @classmethod
    def from_host(cls, context: "ComputeContext", values: np.ndarray) -> "DeviceBuffer":
        """
        Allocate a buffer sized after `values` and upload them.
        """
        flat = np.ascontiguousarray(values, dtype=np.float32).reshape(-1)
        buf = cls(context, flat.size)
        buf.write(flat)
        return buf

    @property
    def nbytes(self) -> int:
        return self.length * _ITEMSIZE

    @property
    def binding_size(self) -> int:
        return max(self.nbytes, _ITEMSIZE)

    def write(self, values: np.ndarray) -> None:
        """
        Overwrite the buffer with `values` (same number of elements).
        """
        flat = np.ascontiguousarray(values, dtype=np.float32).reshape(-1)
        if flat.size != self.length:
            raise ValueError(
                f"cannot write {flat.size} elements into a buffer of {self.length}"
            )
        if self.length:
            self.context.queue.write_buffer(self.handle, 0, flat)

    def read(self) -> np.ndarray:
        """
        Copy the buffer back to the host through a mappable staging buffer.

        Blocks until all work submitted before the call has completed.
        """
        if self.length == 0:
            return np.zeros(0, dtype=np.float32)

        device = self.context.device
        staging = device.create_buffer(
            size=self.nbytes,
            usage=wgpu.BufferUsage.MAP_READ | wgpu.BufferUsage.COPY_DST,
        )
        encoder = device.create_command_encoder()
        encoder.copy_buffer_to_buffer(self.handle, 0, staging, 0, self.nbytes)
        self.context.queue.submit([encoder.finish()])

        staging.map_sync(wgpu.MapMode.READ)
        try:
            data = np.frombuffer(
                staging.read_mapped(), dtype=np.float32, count=self.length
            ).copy()
        finally:
            staging.unmap()
        return data

    def __len__(self) -> int:
        return self.length

    def __repr__(self) -> str:
        return f"DeviceBuffer(length={self.length})"
