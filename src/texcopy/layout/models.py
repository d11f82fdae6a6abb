"""Dataclass models for extents, origins and linear layouts."""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Sequence


class TextureDimension(str, Enum):
    D1 = "1d"
    D2 = "2d"
    D3 = "3d"


@dataclass(frozen=True, slots=True)
class Extent:
    width: int
    height: int = 1
    depth: int = 1

    @classmethod
    def of(cls, value: Sequence[int] | "Extent") -> "Extent":
        if isinstance(value, Extent):
            return value
        return cls(*[int(v) for v in value])

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0 or self.depth == 0

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.width, self.height, self.depth)


@dataclass(frozen=True, slots=True)
class Origin:
    x: int = 0
    y: int = 0
    z: int = 0

    @classmethod
    def of(cls, value: Sequence[int] | "Origin" | None) -> "Origin":
        if value is None:
            return cls()
        if isinstance(value, Origin):
            return value
        return cls(*[int(v) for v in value])

    def offset_by(self, x: int = 0, y: int = 0, z: int = 0) -> "Origin":
        return Origin(self.x + x, self.y + y, self.z + z)

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.x, self.y, self.z)


ZERO_ORIGIN = Origin()


@dataclass(frozen=True, slots=True)
class LinearLayout:
    """How a flat byte buffer encodes a 3D region.

    ``rows_per_image`` counts texel rows (a multiple of the block height),
    not block rows.
    """

    bytes_per_row: int
    rows_per_image: int
    offset: int = 0

    def bytes_per_image(self, block_height: int) -> int:
        return (self.rows_per_image // block_height) * self.bytes_per_row

    def to_dict(self) -> Dict[str, Any]:
        return {
            "offset": self.offset,
            "bytes_per_row": self.bytes_per_row,
            "rows_per_image": self.rows_per_image,
        }


@dataclass(frozen=True, slots=True)
class TextureCopyLayout:
    """Canonical layout holding one whole mip level."""

    bytes_per_row: int
    rows_per_image: int
    byte_length: int
    mip_size: Extent

    def as_linear(self) -> LinearLayout:
        return LinearLayout(
            bytes_per_row=self.bytes_per_row,
            rows_per_image=self.rows_per_image,
            offset=0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bytes_per_row": self.bytes_per_row,
            "rows_per_image": self.rows_per_image,
            "byte_length": self.byte_length,
            "mip_size": list(self.mip_size.as_tuple()),
        }


__all__ = [
    "TextureDimension",
    "Extent",
    "Origin",
    "ZERO_ORIGIN",
    "LinearLayout",
    "TextureCopyLayout",
]
