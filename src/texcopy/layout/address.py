"""Byte addressing of texel blocks inside a linear layout."""

from __future__ import annotations
from typing import Optional

from ..errors import E_BLOCK_ALIGN, E_ORIGIN, precondition
from ..formats import FormatInfo
from .models import LinearLayout, Origin, ZERO_ORIGIN

__all__ = ["byte_offset_of", "block_coordinate_of"]


def byte_offset_of(
    layout: LinearLayout,
    fmt: FormatInfo,
    texel: Origin,
    origin: Origin = ZERO_ORIGIN,
) -> int:
    """Offset of the block starting at ``texel`` in a buffer laid out by
    ``layout`` whose first byte holds the block at ``origin``.

    Partial copy buffers pass the copy origin; full surface buffers pass
    the zero origin.
    """
    dx = texel.x - origin.x
    dy = texel.y - origin.y
    dz = texel.z - origin.z
    if dx < 0 or dy < 0 or dz < 0:
        raise precondition(
            E_ORIGIN,
            f"Texel {texel.as_tuple()} lies before origin {origin.as_tuple()}",
            {"texel": list(texel.as_tuple()), "origin": list(origin.as_tuple())},
        )
    if dx % fmt.block_width or dy % fmt.block_height:
        raise precondition(
            E_BLOCK_ALIGN,
            f"Texel {texel.as_tuple()} is not on a block boundary relative "
            f"to origin {origin.as_tuple()} for {fmt.name}",
        )
    return (
        layout.offset
        + dz * layout.bytes_per_image(fmt.block_height)
        + dy // fmt.block_height * layout.bytes_per_row
        + dx // fmt.block_width * fmt.bytes_per_block
    )


def block_coordinate_of(
    layout: LinearLayout,
    fmt: FormatInfo,
    offset: int,
    origin: Origin = ZERO_ORIGIN,
    row_bytes: Optional[int] = None,
) -> Optional[Origin]:
    """Texel coordinate of the block containing byte ``offset``.

    Returns None for bytes before ``layout.offset`` or inside the image
    padding of a slice; also for row padding when ``row_bytes`` (the
    meaningful bytes of one block row) is given.
    """
    rel = offset - layout.offset
    if rel < 0:
        return None
    bytes_per_image = layout.bytes_per_image(fmt.block_height)
    if bytes_per_image:
        z, rel = divmod(rel, bytes_per_image)
    else:
        z = 0
    block_row, rel = divmod(rel, layout.bytes_per_row)
    if bytes_per_image and block_row * fmt.block_height >= layout.rows_per_image:
        return None
    if row_bytes is not None and rel >= row_bytes:
        return None
    block_col = rel // fmt.bytes_per_block
    return Origin(
        origin.x + block_col * fmt.block_width,
        origin.y + block_row * fmt.block_height,
        origin.z + z,
    )
