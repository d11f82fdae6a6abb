from .surface import (
    TILE_BLOCKS,
    SurfaceDescriptor,
    Surface,
    MapState,
    Buffer,
)
from .queue import CommandQueue
from .device import Device, WEBGPU_COPY_ROW_ALIGNMENT

__all__ = [
    "TILE_BLOCKS",
    "SurfaceDescriptor",
    "Surface",
    "MapState",
    "Buffer",
    "CommandQueue",
    "Device",
    "WEBGPU_COPY_ROW_ALIGNMENT",
]
