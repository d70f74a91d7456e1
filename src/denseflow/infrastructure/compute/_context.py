"""
Process-wide compute context.

The compute context bundles the selected adapter, the logical device, its
submission queue and a cache of compiled kernel pipelines. It is acquired
lazily the first time a training run asks for device execution and is then
shared (read-only) by every optimizer for the lifetime of the process.

Acquisition failures are surfaced as `DeviceUnavailableError`; the engine
never silently falls back to host execution.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict

import wgpu

from ._kernels import Kernel
from ...domain._errors import DeviceUnavailableError, KernelDispatchError


class ComputeContext:
    """
    Adapter, device, queue and pipeline cache for one compute device.

    Parameters
    ----------
    adapter : Any
        The `wgpu` adapter the device was requested from.
    device : Any
        The `wgpu` logical device.

    Notes
    -----
    Pipelines are compiled on first use and cached by kernel name; a kernel
    is compiled at most once per context.
    """

    def __init__(self, adapter: Any, device: Any) -> None:
        self.adapter = adapter
        self.device = device
        self._pipelines: Dict[str, Any] = {}

    @property
    def queue(self) -> Any:
        return self.device.queue

    def describe(self) -> str:
        """Return a short, human-readable description of the adapter."""
        info = getattr(self.adapter, "info", None) or {}
        name = info.get("device") or info.get("description") or "unknown adapter"
        backend = info.get("backend_type")
        return f"{name} ({backend})" if backend else str(name)

    def pipeline(self, kernel: Kernel) -> Any:
        """
        Return the compiled compute pipeline for `kernel`.

        Raises
        ------
        KernelDispatchError
            If the WGSL module fails to compile or the pipeline cannot be
            created.
        """
        cached = self._pipelines.get(kernel.name)
        if cached is not None:
            return cached

        try:
            module = self.device.create_shader_module(code=kernel.source)
            pipeline = self.device.create_compute_pipeline(
                layout="auto",
                compute={"module": module, "entry_point": "main"},
            )
        except wgpu.GPUError as e:
            raise KernelDispatchError(kernel.name, str(e)) from e

        self._pipelines[kernel.name] = pipeline
        return pipeline

    def synchronize(self) -> None:
        """
        Block until every submitted command has completed on the device.
        """
        self.queue.on_submitted_work_done_sync()

    def __repr__(self) -> str:
        return f"ComputeContext(adapter={self.describe()!r}, pipelines={len(self._pipelines)})"


@lru_cache(maxsize=None)
def get_compute_context() -> ComputeContext:
    """
    Acquire (once) and return the shared compute context.

    The first call requests a high-performance adapter and a device from it.
    Successful results are cached for the lifetime of the process; failures
    are not cached, so a later call retries.

    Raises
    ------
    DeviceUnavailableError
        If no adapter can be found or the device cannot be created.
    """
    try:
        adapter = wgpu.gpu.request_adapter_sync(power_preference="high-performance")
    except (RuntimeError, OSError, wgpu.GPUError) as e:
        raise DeviceUnavailableError(f"adapter request failed: {e}") from e

    if adapter is None:
        raise DeviceUnavailableError("no compatible adapter found")

    try:
        device = adapter.request_device_sync()
    except (RuntimeError, OSError, wgpu.GPUError) as e:
        raise DeviceUnavailableError(f"device request failed: {e}") from e

    return ComputeContext(adapter, device)


def is_compute_available() -> bool:
    """
    Return True if a compute context can be acquired on this machine.
    """
    try:
        get_compute_context()
    except DeviceUnavailableError:
        return False
    return True
