"""Run orchestration for a single copy case.

A case is one (format, size, mip, origin, extent, layout) tuple together
with an init method (how data gets into the surface) and a check method
(how it is verified). Every init/check pair is legal and the outcome of a
check must not depend on the init method used.
"""

from __future__ import annotations

from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .data import generate_data
from .engine import Buffer, Device, Surface, SurfaceDescriptor
from .errors import (
    E_BLOCK_ALIGN,
    E_BUFFER_SIZE,
    E_MIP_LEVEL,
    E_ORIGIN,
    E_OUT_OF_BOUNDS,
    E_STRIDE_ALIGN,
    E_TIMEOUT,
    E_UNSUPPORTED,
    internal_error,
    precondition,
    transfer_error,
)
from .formats import FormatInfo, supports_copy
from .layout import (
    Extent,
    LinearLayout,
    Origin,
    TextureDimension,
    ZERO_ORIGIN,
    compute_full_layout,
    mip_size,
    required_bytes,
    validate_layout,
)
from .logging import get_logger
from .verify import (
    DEFAULT_MAX_REPORTED_MISMATCHES,
    CheckResult,
    capture_full,
    expected_after_write,
    full_check,
    partial_check,
)

__all__ = [
    "InitMethod",
    "CheckMethod",
    "CopyCase",
    "validate_case",
    "run_case",
]


class InitMethod(str, Enum):
    WRITE_TEXTURE = "WriteTexture"
    COPY_BUFFER_TO_TEXTURE = "CopyB2T"


class CheckMethod(str, Enum):
    PARTIAL = "PartialCopyT2B"
    FULL = "FullCopyT2B"


@dataclass(slots=True)
class CopyCase:
    format: FormatInfo
    base_size: Extent
    copy_extent: Extent
    layout: LinearLayout
    init_method: InitMethod = InitMethod.WRITE_TEXTURE
    check_method: CheckMethod = CheckMethod.PARTIAL
    origin: Origin = ZERO_ORIGIN
    mip_level: int = 0
    mip_level_count: Optional[int] = None
    dimension: TextureDimension = TextureDimension.D2
    # Fill the mip level with non-reference bytes before the write.
    prefill: bool = False
    # Explicit bytes to write instead of generated reference data.
    data: Optional[bytes] = None

    @property
    def levels(self) -> int:
        if self.mip_level_count is not None:
            return self.mip_level_count
        return self.mip_level + 1

    @property
    def data_size(self) -> int:
        return self.layout.offset + required_bytes(
            self.layout, self.format, self.copy_extent
        )

    @property
    def case_id(self) -> str:
        w, h, d = self.base_size.as_tuple()
        lay = self.layout
        return (
            f"{self.format.name} {self.dimension.value} {w}x{h}x{d} "
            f"mip{self.mip_level} @{self.origin.as_tuple()}"
            f"+{self.copy_extent.as_tuple()} bpr={lay.bytes_per_row} "
            f"rpi={lay.rows_per_image} off={lay.offset} "
            f"{self.init_method.value}/{self.check_method.value}"
        )

    def surface_descriptor(self) -> SurfaceDescriptor:
        return SurfaceDescriptor(
            format=self.format,
            size=self.base_size,
            dimension=self.dimension,
            mip_level_count=self.levels,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format.name,
            "dimension": self.dimension.value,
            "base_size": list(self.base_size.as_tuple()),
            "mip_level": self.mip_level,
            "origin": list(self.origin.as_tuple()),
            "copy_extent": list(self.copy_extent.as_tuple()),
            "layout": self.layout.to_dict(),
            "init_method": self.init_method.value,
            "check_method": self.check_method.value,
        }


def _uses_buffer_copy(case: CopyCase) -> bool:
    # Partial checks read the region back through a texture -> buffer copy
    # with the case layout.
    return (
        case.init_method is InitMethod.COPY_BUFFER_TO_TEXTURE
        or case.check_method is CheckMethod.PARTIAL
    )


def validate_case(case: CopyCase, copy_row_alignment: int = 1) -> None:
    """Raise PreconditionError for any authoring error in ``case``."""
    fmt = case.format
    if not supports_copy(fmt):
        raise precondition(
            E_UNSUPPORTED,
            f"{fmt.name} does not support linear copies in both directions",
        )
    if not 0 <= case.mip_level < case.levels:
        raise precondition(
            E_MIP_LEVEL,
            f"Mip level {case.mip_level} outside 0..{case.levels - 1}",
        )
    size = mip_size(fmt, case.dimension, case.base_size, case.mip_level)
    origin, extent = case.origin, case.copy_extent
    if min(origin.as_tuple()) < 0:
        raise precondition(
            E_ORIGIN, f"Origin {origin.as_tuple()} has a negative component"
        )
    if origin.x % fmt.block_width or origin.y % fmt.block_height:
        raise precondition(
            E_BLOCK_ALIGN,
            f"Origin {origin.as_tuple()} is not on a {fmt.block_width}x"
            f"{fmt.block_height} block boundary",
        )
    if (
        origin.x + extent.width > size.width
        or origin.y + extent.height > size.height
        or origin.z + extent.depth > size.depth
    ):
        raise precondition(
            E_OUT_OF_BOUNDS,
            f"Region {origin.as_tuple()}+{extent.as_tuple()} exceeds mip "
            f"{case.mip_level} of size {size.as_tuple()}",
        )
    validate_layout(case.layout, fmt, extent)
    stride = case.layout.bytes_per_row
    if _uses_buffer_copy(case) and stride % copy_row_alignment:
        raise precondition(
            E_STRIDE_ALIGN,
            f"bytes_per_row {stride} must be a multiple "
            f"of {copy_row_alignment} for buffer copies",
        )
    if case.data is not None and len(case.data) < case.data_size:
        raise precondition(
            E_BUFFER_SIZE,
            f"Explicit data has {len(case.data)} bytes, case needs "
            f"{case.data_size}",
        )


def _prefill(device: Device, surface: Surface, case: CopyCase) -> None:
    full = compute_full_layout(
        case.format, case.dimension, case.base_size, case.mip_level
    )
    filler = bytes(255 - b for b in generate_data(full.byte_length))
    device.write_linear_into_surface(
        surface,
        case.mip_level,
        ZERO_ORIGIN,
        full.as_linear(),
        filler,
        full.mip_size,
    )


def _init(
    device: Device, surface: Surface, case: CopyCase, data: bytes
) -> Optional[Buffer]:
    method = case.init_method
    if method is InitMethod.WRITE_TEXTURE:
        device.write_linear_into_surface(
            surface,
            case.mip_level,
            case.origin,
            case.layout,
            data,
            case.copy_extent,
        )
        return None
    if method is InitMethod.COPY_BUFFER_TO_TEXTURE:
        return device.stage_and_copy(
            surface,
            case.mip_level,
            case.origin,
            case.layout,
            data,
            case.copy_extent,
        )
    raise internal_error(f"Unhandled init method {method!r}")


def _init_and_check(
    device: Device,
    surface: Surface,
    case: CopyCase,
    data: bytes,
    staging: List[Buffer],
    max_reported: int,
) -> "Future[CheckResult]":
    method = case.check_method
    if method is CheckMethod.PARTIAL:
        buf = _init(device, surface, case, data)
        if buf is not None:
            staging.append(buf)
        return partial_check(
            device,
            surface,
            case.mip_level,
            case.origin,
            case.copy_extent,
            case.layout,
            data,
            max_reported=max_reported,
        )
    if method is CheckMethod.FULL:
        full_layout = compute_full_layout(
            case.format,
            case.dimension,
            case.base_size,
            case.mip_level,
            bytes_per_row_alignment=device.copy_row_alignment,
        )
        shadow = capture_full(device, surface, case.mip_level, full_layout)
        buf = _init(device, surface, case, data)
        if buf is not None:
            staging.append(buf)
        expected = expected_after_write(
            shadow,
            case.format,
            full_layout,
            case.layout,
            case.copy_extent,
            case.origin,
            data,
        )
        return full_check(
            device,
            surface,
            case.mip_level,
            full_layout,
            expected,
            max_reported=max_reported,
        )
    raise internal_error(f"Unhandled check method {method!r}")


def run_case(
    case: CopyCase,
    *,
    device: Device | None = None,
    copy_row_alignment: int = 1,
    timeout: float | None = None,
    max_reported: int = DEFAULT_MAX_REPORTED_MISMATCHES,
) -> CheckResult:
    """Run one case to completion and return the check outcome.

    Preconditions are checked before any device work; violations raise
    PreconditionError. A check that outlives ``timeout`` raises
    TransferError (E_TIMEOUT). Mismatches are reported in the returned
    result.
    The surface lives for this call only.
    """
    logger = get_logger()
    owned = device is None
    if device is None:
        device = Device(copy_row_alignment=copy_row_alignment)
    try:
        validate_case(case, device.copy_row_alignment)
        data = (
            case.data
            if case.data is not None
            else generate_data(case.data_size)
        )
        logger.debug("run %s (%d bytes)", case.case_id, len(data))
        surface = device.create_surface(case.surface_descriptor())
        staging: List[Buffer] = []
        try:
            if case.prefill:
                _prefill(device, surface, case)
            pending = _init_and_check(
                device, surface, case, data, staging, max_reported
            )
            try:
                result = pending.result(timeout=timeout)
            except FutureTimeoutError as e:
                raise transfer_error(
                    E_TIMEOUT,
                    f"Check for {case.case_id} did not finish within "
                    f"{timeout}s",
                    {"timeout": timeout},
                ) from e
        finally:
            for buf in staging:
                device.destroy(buf)
            device.destroy(surface)
        logger.debug("done %s: %s", case.case_id, result.summary())
        return result
    finally:
        if owned:
            device.close()
