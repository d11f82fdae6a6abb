"""Layout calculations: canonical mip layouts and minimum copy sizes.

All functions here are pure. Precondition violations (sizes or coordinates
that are not block aligned, undersized strides) raise ``PreconditionError``
and are never rounded away.
"""

from __future__ import annotations

from ..errors import (
    E_BLOCK_ALIGN,
    E_DIMENSION,
    E_MIP_LEVEL,
    E_OUT_OF_BOUNDS,
    E_ROWS_PER_IMAGE,
    E_STRIDE,
    precondition,
)
from ..formats import FormatInfo
from .models import Extent, LinearLayout, TextureCopyLayout, TextureDimension

__all__ = [
    "align_up",
    "check_block_aligned",
    "bytes_in_complete_row",
    "max_mip_level_count",
    "mip_size",
    "compute_full_layout",
    "required_bytes",
    "validate_layout",
]


def align_up(value: int, alignment: int) -> int:
    if alignment <= 1:
        return value
    return (value + alignment - 1) // alignment * alignment


def check_block_aligned(
    fmt: FormatInfo, width: int, height: int, what: str
) -> None:
    if width % fmt.block_width or height % fmt.block_height:
        raise precondition(
            E_BLOCK_ALIGN,
            f"{what} ({width}x{height}) is not aligned to the "
            f"{fmt.block_width}x{fmt.block_height} blocks of {fmt.name}",
            {"format": fmt.name, "width": width, "height": height},
        )


def bytes_in_complete_row(copy_width: int, fmt: FormatInfo) -> int:
    if copy_width % fmt.block_width:
        raise precondition(
            E_BLOCK_ALIGN,
            f"Copy width {copy_width} is not a multiple of the block width "
            f"{fmt.block_width} of {fmt.name}",
        )
    return copy_width // fmt.block_width * fmt.bytes_per_block


def max_mip_level_count(
    dimension: TextureDimension, base_size: Extent
) -> int:
    largest = base_size.width
    if dimension is not TextureDimension.D1:
        largest = max(largest, base_size.height)
    if dimension is TextureDimension.D3:
        largest = max(largest, base_size.depth)
    return max(1, largest.bit_length())


def _check_dimension(
    fmt: FormatInfo, dimension: TextureDimension, base_size: Extent
) -> None:
    if min(base_size.as_tuple()) < 1:
        raise precondition(
            E_DIMENSION,
            f"Surface size {base_size.as_tuple()} must be at least 1 in "
            "every dimension",
        )
    if dimension is TextureDimension.D1 and (
        base_size.height != 1 or base_size.depth != 1 or fmt.is_compressed
    ):
        raise precondition(
            E_DIMENSION,
            "1d surfaces need height 1, depth 1 and an uncompressed format",
            {"format": fmt.name, "size": list(base_size.as_tuple())},
        )


def mip_size(
    fmt: FormatInfo,
    dimension: TextureDimension,
    base_size: Extent,
    mip_level: int,
) -> Extent:
    """Physical texel size of ``mip_level`` (rounded up to whole blocks).

    Depth is an array layer count for 1d/2d surfaces and is only reduced
    for 3d surfaces.
    """
    _check_dimension(fmt, dimension, base_size)
    check_block_aligned(fmt, base_size.width, base_size.height, "Base size")
    if mip_level < 0 or mip_level >= max_mip_level_count(dimension, base_size):
        raise precondition(
            E_MIP_LEVEL,
            f"Mip level {mip_level} does not exist for a {dimension.value} "
            f"surface of size {base_size.as_tuple()}",
        )
    width = align_up(max(1, base_size.width >> mip_level), fmt.block_width)
    height = align_up(max(1, base_size.height >> mip_level), fmt.block_height)
    depth = base_size.depth
    if dimension is TextureDimension.D3:
        depth = max(1, depth >> mip_level)
    return Extent(width, height, depth)


def compute_full_layout(
    fmt: FormatInfo,
    dimension: TextureDimension,
    base_size: Extent,
    mip_level: int = 0,
    *,
    bytes_per_row_alignment: int = 1,
) -> TextureCopyLayout:
    """Layout holding an entire mip level with no padding beyond the
    row alignment rule."""
    size = mip_size(fmt, dimension, base_size, mip_level)
    bytes_per_row = align_up(
        bytes_in_complete_row(size.width, fmt), bytes_per_row_alignment
    )
    rows_per_image = size.height
    block_rows = rows_per_image // fmt.block_height
    return TextureCopyLayout(
        bytes_per_row=bytes_per_row,
        rows_per_image=rows_per_image,
        byte_length=bytes_per_row * block_rows * size.depth,
        mip_size=size,
    )


def required_bytes(
    layout: LinearLayout, fmt: FormatInfo, copy_extent: Extent
) -> int:
    """Minimum number of bytes after ``layout.offset`` that a copy of
    ``copy_extent`` touches.

    The last depth slice only needs ``copy_extent.height`` rows, and its
    last row only needs the bytes of the copied blocks.
    """
    if layout.rows_per_image % fmt.block_height:
        raise precondition(
            E_ROWS_PER_IMAGE,
            f"rows_per_image {layout.rows_per_image} is not a multiple of "
            f"the block height {fmt.block_height} of {fmt.name}",
        )
    check_block_aligned(
        fmt, copy_extent.width, copy_extent.height, "Copy extent"
    )
    if copy_extent.is_empty:
        return 0
    bytes_per_image = layout.bytes_per_image(fmt.block_height)
    bytes_in_last_slice = layout.bytes_per_row * (
        copy_extent.height // fmt.block_height - 1
    ) + bytes_in_complete_row(copy_extent.width, fmt)
    return bytes_per_image * (copy_extent.depth - 1) + bytes_in_last_slice


def validate_layout(
    layout: LinearLayout, fmt: FormatInfo, copy_extent: Extent
) -> None:
    if layout.offset < 0:
        raise precondition(
            E_OUT_OF_BOUNDS, f"Layout offset {layout.offset} is negative"
        )
    if layout.bytes_per_row <= 0:
        raise precondition(
            E_STRIDE,
            f"bytes_per_row must be positive, got {layout.bytes_per_row}",
        )
    if layout.rows_per_image < 0 or layout.rows_per_image % fmt.block_height:
        raise precondition(
            E_ROWS_PER_IMAGE,
            f"rows_per_image {layout.rows_per_image} is not a non-negative "
            f"multiple of the block height {fmt.block_height}",
        )
    check_block_aligned(
        fmt, copy_extent.width, copy_extent.height, "Copy extent"
    )
    if copy_extent.is_empty:
        return
    row_bytes = bytes_in_complete_row(copy_extent.width, fmt)
    if layout.bytes_per_row < row_bytes:
        raise precondition(
            E_STRIDE,
            f"bytes_per_row {layout.bytes_per_row} cannot hold a row of "
            f"{row_bytes} bytes",
            {"bytes_per_row": layout.bytes_per_row, "row_bytes": row_bytes},
        )
    if copy_extent.depth > 1 and layout.rows_per_image < copy_extent.height:
        raise precondition(
            E_ROWS_PER_IMAGE,
            f"rows_per_image {layout.rows_per_image} is smaller than the "
            f"copy height {copy_extent.height}",
        )
