"""
Domain-level structural typing for numeric buffers.

A numeric buffer is a flat (or row-major 2-D) sequence of floating-point
values exchanged between layers, losses, optimizers and the compute device.
`BufferLike` captures the subset of ndarray behavior the domain contracts rely
on, without introducing a dependency on NumPy in the domain layer.

Typical implementers include:
- ``numpy.ndarray``
- views returned by the infrastructure buffer helpers
"""

from __future__ import annotations

from typing import Any, Iterator, Protocol, Tuple, runtime_checkable


@runtime_checkable
class BufferLike(Protocol):
    """
    Structural interface for numeric buffers.

    Notes
    -----
    - 1-D buffers hold a single example (or a flattened parameter tensor).
    - 2-D buffers hold a batch in row-major `(samples, width)` order.
    """

    @property
    def shape(self) -> Tuple[int, ...]: ...

    @property
    def ndim(self) -> int: ...

    @property
    def size(self) -> int: ...

    @property
    def dtype(self) -> Any: ...

    def __len__(self) -> int: ...

    def __iter__(self) -> Iterator[Any]: ...

    def __getitem__(self, key: Any) -> Any: ...
