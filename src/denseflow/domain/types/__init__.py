from ._buffer import BufferLike

__all__ = [
    "BufferLike",
]
