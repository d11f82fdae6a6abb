from __future__ import annotations

"""Layout calculator tests.

Covers:
- required_bytes for empty extents, padded strides and compressed formats
- mip level sizes (block rounding, depth only shrinking for 3d)
- canonical full layouts with and without row alignment
- layout validation error codes
"""

import pytest

from texcopy.errors import (
    E_BLOCK_ALIGN,
    E_DIMENSION,
    E_MIP_LEVEL,
    E_ROWS_PER_IMAGE,
    E_STRIDE,
    PreconditionError,
)
from texcopy.formats import lookup
from texcopy.layout import (
    Extent,
    LinearLayout,
    TextureDimension,
    align_up,
    bytes_in_complete_row,
    compute_full_layout,
    max_mip_level_count,
    mip_size,
    required_bytes,
    validate_layout,
)

RGBA8 = lookup("rgba8unorm")
BC1 = lookup("bc1-rgba-unorm")
D2 = TextureDimension.D2
D3 = TextureDimension.D3


@pytest.mark.parametrize(
    "fmt, extent",
    [
        (RGBA8, Extent(0, 4, 1)),
        (RGBA8, Extent(4, 0, 1)),
        (RGBA8, Extent(4, 4, 0)),
        (BC1, Extent(0, 8, 2)),
        (BC1, Extent(8, 0, 2)),
        (BC1, Extent(8, 8, 0)),
    ],
)
def test_required_bytes_zero_for_empty_extent(fmt, extent):
    layout = LinearLayout(bytes_per_row=256, rows_per_image=8)
    assert required_bytes(layout, fmt, extent) == 0


def test_required_bytes_last_slice_is_not_padded():
    layout = LinearLayout(bytes_per_row=256, rows_per_image=8)
    # 256 * 8 * (3 - 1) for the first two slices, 256 * 6 + 15 * 4 for the
    # last one.
    assert required_bytes(layout, RGBA8, Extent(15, 7, 3)) == 5692


def test_required_bytes_ignores_offset():
    layout = LinearLayout(bytes_per_row=256, rows_per_image=8, offset=100)
    assert required_bytes(layout, RGBA8, Extent(15, 7, 3)) == 5692


def test_required_bytes_compressed_counts_block_rows():
    # 8x8 bc1: 2 block rows of 2 blocks (16 bytes) per slice.
    layout = LinearLayout(bytes_per_row=16, rows_per_image=8)
    assert required_bytes(layout, BC1, Extent(8, 8, 2)) == 32 + 16 + 16


def test_required_bytes_rejects_misaligned_extent():
    layout = LinearLayout(bytes_per_row=16, rows_per_image=8)
    with pytest.raises(PreconditionError) as exc:
        required_bytes(layout, BC1, Extent(6, 4, 1))
    assert exc.value.code == E_BLOCK_ALIGN


def test_required_bytes_rejects_partial_block_rows_per_image():
    layout = LinearLayout(bytes_per_row=16, rows_per_image=6)
    with pytest.raises(PreconditionError) as exc:
        required_bytes(layout, BC1, Extent(8, 4, 1))
    assert exc.value.code == E_ROWS_PER_IMAGE


def test_align_up_and_row_bytes():
    assert align_up(60, 256) == 256
    assert align_up(256, 256) == 256
    assert align_up(7, 1) == 7
    assert bytes_in_complete_row(15, RGBA8) == 60
    assert bytes_in_complete_row(12, BC1) == 24


def test_mip_size_2d_keeps_array_layers():
    assert mip_size(RGBA8, D2, Extent(16, 8, 4), 2) == Extent(4, 2, 4)


def test_mip_size_3d_shrinks_depth():
    assert mip_size(RGBA8, D3, Extent(16, 8, 4), 2) == Extent(4, 2, 1)


def test_mip_size_rounds_up_to_whole_blocks():
    assert mip_size(BC1, D2, Extent(16, 16, 1), 3) == Extent(4, 4, 1)
    assert mip_size(BC1, D2, Extent(16, 16, 1), 4) == Extent(4, 4, 1)


def test_mip_level_out_of_range():
    assert max_mip_level_count(D2, Extent(16, 16, 1)) == 5
    with pytest.raises(PreconditionError) as exc:
        mip_size(RGBA8, D2, Extent(16, 16, 1), 5)
    assert exc.value.code == E_MIP_LEVEL


def test_1d_surface_requires_flat_size():
    with pytest.raises(PreconditionError) as exc:
        mip_size(RGBA8, TextureDimension.D1, Extent(16, 2, 1), 0)
    assert exc.value.code == E_DIMENSION


def test_full_layout_tight_and_aligned():
    tight = compute_full_layout(RGBA8, D2, Extent(15, 7, 3))
    assert tight.bytes_per_row == 60
    assert tight.rows_per_image == 7
    assert tight.byte_length == 60 * 7 * 3

    aligned = compute_full_layout(
        RGBA8, D2, Extent(15, 7, 3), bytes_per_row_alignment=256
    )
    assert aligned.bytes_per_row == 256
    assert aligned.byte_length == 256 * 7 * 3
    assert aligned.mip_size == Extent(15, 7, 3)


def test_full_layout_of_compressed_mip():
    layout = compute_full_layout(BC1, D2, Extent(32, 16, 1), 1)
    assert layout.mip_size == Extent(16, 8, 1)
    assert layout.bytes_per_row == 4 * 8
    assert layout.byte_length == 32 * 2


def test_validate_layout_errors():
    extent = Extent(4, 4, 2)
    with pytest.raises(PreconditionError) as exc:
        validate_layout(LinearLayout(8, 4), RGBA8, extent)
    assert exc.value.code == E_STRIDE
    with pytest.raises(PreconditionError) as exc:
        validate_layout(LinearLayout(16, 3), RGBA8, extent)
    assert exc.value.code == E_ROWS_PER_IMAGE
    with pytest.raises(PreconditionError) as exc:
        validate_layout(LinearLayout(0, 4), RGBA8, extent)
    assert exc.value.code == E_STRIDE


def test_validate_layout_single_slice_allows_zero_rows_per_image():
    validate_layout(LinearLayout(16, 0), RGBA8, Extent(4, 4, 1))
