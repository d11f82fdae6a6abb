from __future__ import annotations

"""Verification tests: partial and full checks, shadow update.

Ensures:
- the full check sees exactly the written texels change
- mismatches are collected row by row, never raised
- row and image padding is never compared
- tight and padded strides give the same surface content
"""

from texcopy.data import generate_data
from texcopy.engine import Device, SurfaceDescriptor
from texcopy.formats import lookup
from texcopy.layout import (
    Extent,
    LinearLayout,
    Origin,
    TextureDimension,
    ZERO_ORIGIN,
    byte_offset_of,
    compute_full_layout,
    required_bytes,
)
from texcopy.verify import (
    capture_full,
    compare_full,
    compare_partial,
    expected_after_write,
    full_check,
    partial_check,
    update_full_data,
)

R8 = lookup("r8unorm")
RGBA8 = lookup("rgba8unorm")
D2 = TextureDimension.D2


def _surface(device, fmt, size):
    return device.create_surface(
        SurfaceDescriptor(format=fmt, size=Extent.of(size))
    )


def test_full_check_sees_only_written_texels():
    full = compute_full_layout(R8, D2, Extent(4, 4, 1))
    prior = bytes(range(100, 116))
    region_origin = Origin(1, 1, 0)
    region = Extent(2, 2, 1)
    layout = LinearLayout(bytes_per_row=2, rows_per_image=2, offset=0)
    data = bytes([7, 9, 11, 13])
    with Device() as device:
        surface = _surface(device, R8, (4, 4, 1))
        device.write_linear_into_surface(
            surface, 0, ZERO_ORIGIN, full.as_linear(), prior, full.mip_size
        )
        shadow = capture_full(device, surface, 0, full)
        device.write_linear_into_surface(
            surface, 0, region_origin, layout, data, region
        )
        expected = expected_after_write(
            shadow, R8, full, layout, region, region_origin, data
        )
        result = full_check(device, surface, 0, full, expected).result(
            timeout=5
        )
        assert result.passed, result.summary()
        assert result.compared_bytes == 16

        assert surface.read_block(0, 1, 1, 0) == bytes([7])
        assert surface.read_block(0, 2, 1, 0) == bytes([9])
        assert surface.read_block(0, 1, 2, 0) == bytes([11])
        assert surface.read_block(0, 2, 2, 0) == bytes([13])

    after = expected.result()
    written = {5: 7, 6: 9, 9: 11, 10: 13}
    for i in range(16):
        assert after[i] == written.get(i, prior[i])


def test_update_full_data_maps_partial_rows():
    full = compute_full_layout(RGBA8, D2, Extent(4, 4, 2))
    layout = LinearLayout(bytes_per_row=12, rows_per_image=3, offset=4)
    extent = Extent(2, 2, 2)
    origin = Origin(2, 1, 0)
    partial = generate_data(4 + required_bytes(layout, RGBA8, extent))
    shadow = bytearray(full.byte_length)
    update_full_data(RGBA8, full, layout, extent, origin, partial, shadow)

    for z in range(2):
        for y in range(2):
            texel = origin.offset_by(y=y, z=z)
            src = byte_offset_of(layout, RGBA8, texel, origin)
            dst = byte_offset_of(full.as_linear(), RGBA8, texel)
            assert shadow[dst : dst + 8] == partial[src : src + 8]
    touched = sum(1 for b in shadow if b)
    assert touched <= 2 * 2 * 2 * 8


def test_partial_compare_reports_every_bad_row():
    layout = LinearLayout(bytes_per_row=20, rows_per_image=2)
    extent = Extent(4, 2, 2)
    expected = generate_data(required_bytes(layout, RGBA8, extent))
    actual = bytearray(expected)
    # Row padding differs: not compared.
    actual[16:20] = b"\xff\xff\xff\xff"
    actual[5] ^= 0xFF
    actual[40 + 20 + 8] ^= 0xFF

    result = compare_partial(
        RGBA8, layout, ZERO_ORIGIN, extent, expected, bytes(actual)
    )
    assert not result.passed
    assert result.mismatch_count == 2
    first, second = result.mismatches
    assert first.offset == 5 and first.block == Origin(1, 0, 0)
    assert first.expected == expected[5]
    assert first.actual == expected[5] ^ 0xFF
    assert second.offset == 68 and second.block == Origin(2, 1, 1)


def test_mismatch_reporting_is_capped():
    layout = LinearLayout(bytes_per_row=16, rows_per_image=4)
    extent = Extent(4, 4, 1)
    expected = generate_data(64)
    actual = bytes(b ^ 0x01 for b in expected)
    result = compare_partial(
        RGBA8, layout, ZERO_ORIGIN, extent, expected, actual, max_reported=1
    )
    assert len(result.mismatches) == 1
    assert result.truncated == 3
    assert result.mismatch_count == 4
    assert result.to_dict()["passed"] is False


def test_full_compare_skips_row_padding():
    full = compute_full_layout(
        RGBA8, D2, Extent(4, 4, 1), bytes_per_row_alignment=256
    )
    expected = bytes(full.byte_length)
    actual = bytearray(expected)
    actual[20] = 1
    actual[256 + 200] = 1
    result = compare_full(RGBA8, full, expected, bytes(actual))
    assert result.passed
    assert result.compared_bytes == 64


def test_partial_check_round_trip_through_device():
    layout = LinearLayout(bytes_per_row=24, rows_per_image=5, offset=8)
    origin = Origin(2, 1, 1)
    extent = Extent(4, 3, 2)
    data = generate_data(8 + required_bytes(layout, RGBA8, extent))
    with Device() as device:
        surface = _surface(device, RGBA8, (8, 8, 4))
        device.write_linear_into_surface(
            surface, 0, origin, layout, data, extent
        )
        result = partial_check(
            device, surface, 0, origin, extent, layout, data
        ).result(timeout=5)
    assert result.passed, result.summary()
    assert result.compared_bytes == 3 * 2 * 16


def _read_full(device, surface, full):
    return capture_full(device, surface, 0, full).result(timeout=5)


def test_tight_and_padded_rows_give_same_content():
    extent = Extent(4, 3, 2)
    tight = LinearLayout(bytes_per_row=16, rows_per_image=3)
    padded = LinearLayout(bytes_per_row=48, rows_per_image=5, offset=4)
    tight_data = generate_data(required_bytes(tight, RGBA8, extent))
    padded_data = bytearray(
        padded.offset + required_bytes(padded, RGBA8, extent)
    )
    for z in range(extent.depth):
        for y in range(extent.height):
            texel = Origin(0, y, z)
            src = byte_offset_of(tight, RGBA8, texel)
            dst = byte_offset_of(padded, RGBA8, texel)
            padded_data[dst : dst + 16] = tight_data[src : src + 16]

    full = compute_full_layout(RGBA8, D2, extent)
    with Device() as device:
        a = _surface(device, RGBA8, extent.as_tuple())
        b = _surface(device, RGBA8, extent.as_tuple())
        device.write_linear_into_surface(
            a, 0, ZERO_ORIGIN, tight, tight_data, extent
        )
        device.write_linear_into_surface(
            b, 0, ZERO_ORIGIN, padded, bytes(padded_data), extent
        )
        content = _read_full(device, a, full)
        assert content == _read_full(device, b, full)
    assert content == tight_data
