from __future__ import annotations

"""Run orchestrator tests.

Covers:
- every init/check pair passes on uncompressed, compressed, mip and 3d cases
- both init methods give the same check outcome
- preconditions raise before any device work is issued
- injected write faults surface as several recorded mismatches
- a check that outlives its timeout raises a coded transfer error
"""

import threading

import pytest

from texcopy.engine import Device, WEBGPU_COPY_ROW_ALIGNMENT
from texcopy.errors import (
    E_BLOCK_ALIGN,
    E_BUFFER_SIZE,
    E_OUT_OF_BOUNDS,
    E_STRIDE,
    E_STRIDE_ALIGN,
    E_TIMEOUT,
    E_UNSUPPORTED,
    PreconditionError,
    TransferError,
)
from texcopy.formats import lookup
from texcopy.layout import (
    Extent,
    LinearLayout,
    Origin,
    TextureDimension,
    byte_offset_of,
)
from texcopy.runner import CheckMethod, CopyCase, InitMethod, run_case

RGBA8 = lookup("rgba8unorm")
BC1 = lookup("bc1-rgba-unorm")

ALL_PAIRS = [(i, c) for i in InitMethod for c in CheckMethod]


def _case(**overrides) -> CopyCase:
    params = dict(
        format=RGBA8,
        base_size=Extent(16, 16, 1),
        copy_extent=Extent(8, 8, 1),
        layout=LinearLayout(bytes_per_row=32, rows_per_image=8),
        origin=Origin(4, 4, 0),
        prefill=True,
    )
    params.update(overrides)
    return CopyCase(**params)


@pytest.mark.parametrize("init, check", ALL_PAIRS)
def test_sub_region_copy_passes(init, check):
    result = run_case(_case(init_method=init, check_method=check))
    assert result.passed, result.summary()


@pytest.mark.parametrize("init, check", ALL_PAIRS)
@pytest.mark.parametrize("bytes_per_row", [32, 36, 96, 512])
def test_row_padding_does_not_change_outcome(init, check, bytes_per_row):
    case = _case(
        init_method=init,
        check_method=check,
        layout=LinearLayout(
            bytes_per_row=bytes_per_row, rows_per_image=10, offset=12
        ),
    )
    assert run_case(case).passed


def test_init_methods_are_interchangeable():
    results = {
        init: run_case(
            _case(init_method=init, check_method=CheckMethod.PARTIAL)
        )
        for init in InitMethod
    }
    a, b = results.values()
    assert a.passed and b.passed
    assert a.compared_bytes == b.compared_bytes


@pytest.mark.parametrize("init, check", ALL_PAIRS)
def test_small_mip_level(init, check):
    case = _case(
        init_method=init,
        check_method=check,
        mip_level=2,
        mip_level_count=3,
        origin=Origin(),
        copy_extent=Extent(4, 4, 1),
        layout=LinearLayout(bytes_per_row=16, rows_per_image=4),
    )
    assert run_case(case).passed


@pytest.mark.parametrize("init, check", ALL_PAIRS)
def test_compressed_format(init, check):
    case = _case(
        init_method=init,
        check_method=check,
        format=BC1,
        layout=LinearLayout(bytes_per_row=16, rows_per_image=8),
    )
    assert run_case(case).passed


def test_compressed_mip_is_padded_to_whole_blocks():
    case = _case(
        format=BC1,
        check_method=CheckMethod.FULL,
        mip_level=3,
        origin=Origin(),
        copy_extent=Extent(4, 4, 1),
        layout=LinearLayout(bytes_per_row=8, rows_per_image=4),
    )
    assert run_case(case).passed


@pytest.mark.parametrize("init, check", ALL_PAIRS)
def test_3d_surface(init, check):
    case = _case(
        init_method=init,
        check_method=check,
        dimension=TextureDimension.D3,
        base_size=Extent(8, 8, 4),
        mip_level=1,
        origin=Origin(),
        copy_extent=Extent(4, 4, 2),
        layout=LinearLayout(bytes_per_row=16, rows_per_image=6),
    )
    assert run_case(case).passed


@pytest.mark.parametrize("init, check", ALL_PAIRS)
def test_webgpu_row_alignment(init, check):
    case = _case(
        init_method=init,
        check_method=check,
        base_size=Extent(15, 7, 3),
        origin=Origin(),
        copy_extent=Extent(15, 7, 3),
        layout=LinearLayout(bytes_per_row=256, rows_per_image=7),
    )
    result = run_case(case, copy_row_alignment=WEBGPU_COPY_ROW_ALIGNMENT)
    assert result.passed, result.summary()


def test_unaligned_stride_rejected_for_buffer_copies():
    case = _case(init_method=InitMethod.COPY_BUFFER_TO_TEXTURE)
    with pytest.raises(PreconditionError) as exc:
        run_case(case, copy_row_alignment=WEBGPU_COPY_ROW_ALIGNMENT)
    assert exc.value.code == E_STRIDE_ALIGN


def test_direct_write_with_full_check_ignores_stride_alignment():
    case = _case(
        init_method=InitMethod.WRITE_TEXTURE, check_method=CheckMethod.FULL
    )
    assert run_case(case, copy_row_alignment=WEBGPU_COPY_ROW_ALIGNMENT).passed


def test_explicit_data_is_written():
    case = _case(
        check_method=CheckMethod.FULL,
        copy_extent=Extent(2, 1, 1),
        layout=LinearLayout(bytes_per_row=8, rows_per_image=1),
        data=bytes(range(1, 9)),
    )
    assert run_case(case).passed


@pytest.mark.parametrize(
    "overrides, code",
    [
        (dict(format=lookup("depth24plus")), E_UNSUPPORTED),
        (
            dict(
                format=BC1,
                origin=Origin(2, 0, 0),
                layout=LinearLayout(16, 8),
            ),
            E_BLOCK_ALIGN,
        ),
        (dict(origin=Origin(12, 0, 0)), E_OUT_OF_BOUNDS),
        (dict(layout=LinearLayout(16, 8)), E_STRIDE),
        (dict(data=bytes(10)), E_BUFFER_SIZE),
    ],
)
def test_preconditions_raise_before_device_work(overrides, code):
    with Device() as device:
        with pytest.raises(PreconditionError) as exc:
            run_case(_case(**overrides), device=device)
        assert exc.value.code == code
        assert device.queue.submitted == 0


class CorruptingDevice(Device):
    """Flips the first byte of every block row written into a surface."""

    def _transfer(
        self, surface, mip_level, origin, extent, layout, linear, to_surface
    ):
        if to_surface:
            fmt = surface.format
            linear = bytearray(linear)
            for z in range(extent.depth):
                for y in range(0, extent.height, fmt.block_height):
                    at = byte_offset_of(
                        layout, fmt, origin.offset_by(y=y, z=z), origin
                    )
                    linear[at] ^= 0xFF
        super()._transfer(
            surface, mip_level, origin, extent, layout, linear, to_surface
        )


@pytest.mark.parametrize("init, check", ALL_PAIRS)
def test_corrupted_rows_are_all_reported(init, check):
    case = _case(
        init_method=init,
        check_method=check,
        base_size=Extent(4, 4, 1),
        origin=Origin(),
        copy_extent=Extent(4, 4, 1),
        layout=LinearLayout(bytes_per_row=16, rows_per_image=4),
        prefill=False,
    )
    with CorruptingDevice() as device:
        result = run_case(case, device=device)
    assert not result.passed
    assert result.mismatch_count == 4
    assert [m.offset for m in result.mismatches] == [0, 16, 32, 48]
    assert [m.block for m in result.mismatches] == [
        Origin(0, y, 0) for y in range(4)
    ]


class StallingDevice(Device):
    """Holds every read-back behind a gate that only ``close`` opens."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.gate = threading.Event()

    def request_readback(self, buffer):
        self.queue.submit("stall", self.gate.wait)
        return super().request_readback(buffer)

    def close(self):
        self.gate.set()
        super().close()


@pytest.mark.parametrize("check", list(CheckMethod))
def test_check_timeout_is_a_transfer_error(check):
    with StallingDevice() as device:
        with pytest.raises(TransferError) as exc:
            run_case(_case(check_method=check), device=device, timeout=0.05)
    assert exc.value.code == E_TIMEOUT
    assert exc.value.context == {"timeout": 0.05}
