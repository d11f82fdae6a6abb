"""Verification of surface contents after a linear copy.

Two strategies:

partial
    Copy the written region back out with the same linear layout and
    compare it, block row by block row, with the data that was written.
    Row and image padding is never compared.

full
    Read the whole mip level into a shadow buffer before the write,
    patch the shadow on the host with the rows that were written, then
    read the whole level again and compare. This also catches writes that
    land outside the region.

Every read-back is asynchronous: the check functions return a future and
the comparison runs as the single continuation of the read-back. A
mismatch never raises; it is recorded and comparison carries on so one
check can report several locations.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

from .engine import Buffer, Device, Surface
from .formats import FormatInfo
from .layout import (
    Extent,
    LinearLayout,
    Origin,
    TextureCopyLayout,
    ZERO_ORIGIN,
    block_coordinate_of,
    byte_offset_of,
    bytes_in_complete_row,
)

__all__ = [
    "DEFAULT_MAX_REPORTED_MISMATCHES",
    "Mismatch",
    "CheckResult",
    "compare_partial",
    "compare_full",
    "update_full_data",
    "partial_check",
    "capture_full",
    "expected_after_write",
    "full_check",
]

DEFAULT_MAX_REPORTED_MISMATCHES = 16

T = TypeVar("T")
U = TypeVar("U")


@dataclass(slots=True)
class Mismatch:
    offset: int  # in the read-back buffer
    expected: int
    actual: int
    block: Optional[Origin] = None

    def describe(self) -> str:
        where = f"byte {self.offset}"
        if self.block is not None:
            where += f" (block at {self.block.as_tuple()})"
        return f"{where}: expected 0x{self.expected:02x} got 0x{self.actual:02x}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "offset": self.offset,
            "expected": self.expected,
            "actual": self.actual,
            "block": list(self.block.as_tuple()) if self.block else None,
        }


@dataclass(slots=True)
class CheckResult:
    method: str
    compared_bytes: int = 0
    mismatches: List[Mismatch] = field(default_factory=list)
    truncated: int = 0
    max_reported: int = DEFAULT_MAX_REPORTED_MISMATCHES

    @property
    def passed(self) -> bool:
        return not self.mismatches and not self.truncated

    @property
    def mismatch_count(self) -> int:
        return len(self.mismatches) + self.truncated

    def record(self, mismatch: Mismatch) -> None:
        if len(self.mismatches) < self.max_reported:
            self.mismatches.append(mismatch)
        else:
            self.truncated += 1

    def summary(self) -> str:
        if self.passed:
            return f"{self.method}: {self.compared_bytes} bytes match"
        first = self.mismatches[0].describe()
        return (
            f"{self.method}: {self.mismatch_count} mismatching row(s), "
            f"first at {first}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "passed": self.passed,
            "compared_bytes": self.compared_bytes,
            "mismatches": [m.to_dict() for m in self.mismatches],
            "truncated": self.truncated,
        }


def _compare_row(
    result: CheckResult,
    fmt: FormatInfo,
    layout: LinearLayout,
    origin: Origin,
    expected: bytes,
    actual: bytes,
    at: int,
    length: int,
) -> None:
    want = expected[at : at + length]
    got = actual[at : at + length]
    result.compared_bytes += length
    if want == got:
        return
    i = next(
        (k for k, (a, b) in enumerate(zip(want, got)) if a != b),
        min(len(want), len(got)),
    )
    result.record(
        Mismatch(
            offset=at + i,
            expected=want[i] if i < len(want) else -1,
            actual=got[i] if i < len(got) else -1,
            block=block_coordinate_of(
                layout, fmt, at + i, origin, row_bytes=length
            ),
        )
    )


def compare_partial(
    fmt: FormatInfo,
    layout: LinearLayout,
    origin: Origin,
    extent: Extent,
    expected: bytes,
    actual: bytes,
    max_reported: int = DEFAULT_MAX_REPORTED_MISMATCHES,
) -> CheckResult:
    result = CheckResult("partial", max_reported=max_reported)
    row_bytes = bytes_in_complete_row(extent.width, fmt)
    for y in range(0, extent.height, fmt.block_height):
        for z in range(extent.depth):
            at = byte_offset_of(
                layout, fmt, origin.offset_by(y=y, z=z), origin
            )
            _compare_row(
                result, fmt, layout, origin, expected, actual, at, row_bytes
            )
    return result


def compare_full(
    fmt: FormatInfo,
    full_layout: TextureCopyLayout,
    expected: bytes,
    actual: bytes,
    max_reported: int = DEFAULT_MAX_REPORTED_MISMATCHES,
) -> CheckResult:
    result = CheckResult("full", max_reported=max_reported)
    full = full_layout.as_linear()
    size = full_layout.mip_size
    row_bytes = bytes_in_complete_row(size.width, fmt)
    for z in range(size.depth):
        for y in range(0, size.height, fmt.block_height):
            at = byte_offset_of(full, fmt, Origin(0, y, z))
            _compare_row(
                result, fmt, full, ZERO_ORIGIN, expected, actual, at, row_bytes
            )
    return result


def update_full_data(
    fmt: FormatInfo,
    full_layout: TextureCopyLayout,
    layout: LinearLayout,
    extent: Extent,
    origin: Origin,
    partial_data: bytes,
    shadow: bytearray,
) -> None:
    """Apply a region write to ``shadow``, a full-level buffer.

    The same texel is located with ``layout`` relative to ``origin`` in
    the partial data and with the full layout relative to the zero origin
    in the shadow.
    """
    full = full_layout.as_linear()
    row_bytes = bytes_in_complete_row(extent.width, fmt)
    for y in range(0, extent.height, fmt.block_height):
        for z in range(extent.depth):
            texel = origin.offset_by(y=y, z=z)
            src = byte_offset_of(layout, fmt, texel, origin)
            dst = byte_offset_of(full, fmt, texel, ZERO_ORIGIN)
            shadow[dst : dst + row_bytes] = partial_data[src : src + row_bytes]


def _chain(source: "Future[T]", fn: Callable[[T], U]) -> "Future[U]":
    out: "Future[U]" = Future()

    def _continuation(done: "Future[T]") -> None:
        try:
            value = fn(done.result())
        except Exception as exc:
            out.set_exception(exc)
        else:
            out.set_result(value)

    source.add_done_callback(_continuation)
    return out


def _read_and_release(
    device: Device, buffer: Buffer, fn: Callable[[bytes], T]
) -> "Future[T]":
    """Request a read-back of ``buffer``; ``fn`` runs on the mapped bytes
    and the buffer is destroyed once it has returned."""
    out: "Future[T]" = Future()

    def _continuation(done: "Future[bytes]") -> None:
        try:
            value = fn(done.result())
        except Exception as exc:
            device.destroy(buffer)
            out.set_exception(exc)
        else:
            device.destroy(buffer)
            out.set_result(value)

    device.request_readback(buffer).add_done_callback(_continuation)
    return out


def partial_check(
    device: Device,
    surface: Surface,
    mip_level: int,
    origin: Origin,
    extent: Extent,
    layout: LinearLayout,
    data: bytes,
    *,
    max_reported: int = DEFAULT_MAX_REPORTED_MISMATCHES,
) -> "Future[CheckResult]":
    fmt = surface.format
    buffer = device.copy_surface_into_linear(
        surface, mip_level, origin, extent, layout, len(data)
    )
    return _read_and_release(
        device,
        buffer,
        lambda actual: compare_partial(
            fmt, layout, origin, extent, data, actual, max_reported
        ),
    )


def _copy_full(
    device: Device,
    surface: Surface,
    mip_level: int,
    full_layout: TextureCopyLayout,
) -> Buffer:
    return device.copy_surface_into_linear(
        surface,
        mip_level,
        ZERO_ORIGIN,
        full_layout.mip_size,
        full_layout.as_linear(),
        full_layout.byte_length,
    )


def capture_full(
    device: Device,
    surface: Surface,
    mip_level: int,
    full_layout: TextureCopyLayout,
) -> "Future[bytes]":
    buffer = _copy_full(device, surface, mip_level, full_layout)
    return _read_and_release(device, buffer, lambda data: data)


def expected_after_write(
    shadow: "Future[bytes]",
    fmt: FormatInfo,
    full_layout: TextureCopyLayout,
    layout: LinearLayout,
    extent: Extent,
    origin: Origin,
    partial_data: bytes,
) -> "Future[bytes]":
    def _patch(prior: bytes) -> bytes:
        updated = bytearray(prior)
        update_full_data(
            fmt, full_layout, layout, extent, origin, partial_data, updated
        )
        return bytes(updated)

    return _chain(shadow, _patch)


def full_check(
    device: Device,
    surface: Surface,
    mip_level: int,
    full_layout: TextureCopyLayout,
    expected: Union[bytes, "Future[bytes]"],
    *,
    max_reported: int = DEFAULT_MAX_REPORTED_MISMATCHES,
) -> "Future[CheckResult]":
    fmt = surface.format
    buffer = _copy_full(device, surface, mip_level, full_layout)

    def _compare(actual: bytes) -> CheckResult:
        # A shadow future was queued before this read-back and is done.
        want = expected.result() if isinstance(expected, Future) else expected
        return compare_full(fmt, full_layout, want, actual, max_reported)

    return _read_and_release(device, buffer, _compare)
