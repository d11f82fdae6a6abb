"""Tiled surface storage and linear staging buffers for the simulated engine.

Surface memory is not row-major: blocks are grouped into square tiles of
``TILE_BLOCKS`` x ``TILE_BLOCKS`` blocks and tiles are stored one after the
other, so a linear copy must really translate addresses.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from itertools import count
from typing import List

from ..errors import E_DESTROYED, E_MIP_LEVEL, precondition, transfer_error
from ..formats import FormatInfo
from ..layout import (
    Extent,
    TextureDimension,
    max_mip_level_count,
    mip_size,
)

__all__ = [
    "TILE_BLOCKS",
    "SurfaceDescriptor",
    "Surface",
    "MapState",
    "Buffer",
]

TILE_BLOCKS = 4

_HANDLES = count(1)


@dataclass(frozen=True, slots=True)
class SurfaceDescriptor:
    format: FormatInfo
    size: Extent
    dimension: TextureDimension = TextureDimension.D2
    mip_level_count: int = 1


class Surface:
    def __init__(self, desc: SurfaceDescriptor):
        fmt = desc.format
        limit = max_mip_level_count(desc.dimension, desc.size)
        if desc.mip_level_count < 1 or desc.mip_level_count > limit:
            raise precondition(
                E_MIP_LEVEL,
                f"mip_level_count {desc.mip_level_count} outside 1..{limit}",
            )
        self.handle = next(_HANDLES)
        self.desc = desc
        self.destroyed = False
        self._sizes: List[Extent] = []
        self._tiles_per_row: List[int] = []
        self._slice_blocks: List[int] = []
        self._levels: List[bytearray] = []
        for level in range(desc.mip_level_count):
            size = mip_size(fmt, desc.dimension, desc.size, level)
            blocks_w = size.width // fmt.block_width
            blocks_h = size.height // fmt.block_height
            tiles_w = -(-blocks_w // TILE_BLOCKS)
            tiles_h = -(-blocks_h // TILE_BLOCKS)
            slice_blocks = tiles_w * tiles_h * TILE_BLOCKS * TILE_BLOCKS
            self._sizes.append(size)
            self._tiles_per_row.append(tiles_w)
            self._slice_blocks.append(slice_blocks)
            self._levels.append(
                bytearray(slice_blocks * size.depth * fmt.bytes_per_block)
            )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"Surface(#{self.handle} {self.desc.format.name} "
            f"{self.desc.size.as_tuple()} mips={self.desc.mip_level_count})"
        )

    @property
    def format(self) -> FormatInfo:
        return self.desc.format

    def ensure_alive(self) -> None:
        if self.destroyed:
            raise transfer_error(
                E_DESTROYED, f"Surface #{self.handle} was destroyed"
            )

    def level_size(self, level: int) -> Extent:
        if level < 0 or level >= len(self._sizes):
            raise precondition(
                E_MIP_LEVEL,
                f"Mip level {level} outside 0..{len(self._sizes) - 1}",
            )
        return self._sizes[level]

    def _block_offset(self, level: int, bx: int, by: int, z: int) -> int:
        tiles_w = self._tiles_per_row[level]
        tile = (by // TILE_BLOCKS) * tiles_w + bx // TILE_BLOCKS
        within = (by % TILE_BLOCKS) * TILE_BLOCKS + bx % TILE_BLOCKS
        index = z * self._slice_blocks[level] + tile * TILE_BLOCKS**2 + within
        return index * self.format.bytes_per_block

    def read_block(self, level: int, bx: int, by: int, z: int) -> bytes:
        start = self._block_offset(level, bx, by, z)
        return bytes(
            self._levels[level][start : start + self.format.bytes_per_block]
        )

    def write_block(
        self, level: int, bx: int, by: int, z: int, block: bytes
    ) -> None:
        start = self._block_offset(level, bx, by, z)
        self._levels[level][start : start + self.format.bytes_per_block] = (
            block
        )


class MapState(Enum):
    UNMAPPED = auto()
    PENDING = auto()
    MAPPED = auto()


@dataclass(eq=False)
class Buffer:
    size: int
    data: bytearray = field(default_factory=bytearray)
    handle: int = field(default_factory=lambda: next(_HANDLES))
    map_state: MapState = MapState.UNMAPPED
    destroyed: bool = False

    def __post_init__(self) -> None:
        if len(self.data) < self.size:
            self.data.extend(bytes(self.size - len(self.data)))

    def ensure_alive(self) -> None:
        if self.destroyed:
            raise transfer_error(
                E_DESTROYED, f"Buffer #{self.handle} was destroyed"
            )
