"""Simulated transfer engine.

Implements the three ways linear data moves in and out of a surface:

- ``write_linear_into_surface``: direct write from host memory;
- ``stage_and_copy``: upload into a staging buffer, then buffer -> surface;
- ``copy_surface_into_linear``: surface -> fresh buffer.

Argument checks run synchronously on the calling thread; the data
movement itself is queued on the device's ``CommandQueue``.
``request_readback`` returns a future resolved once every earlier command
has executed.
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import Union

from ..errors import (
    E_BUFFER_SIZE,
    E_COMMAND_FAILED,
    E_OUT_OF_BOUNDS,
    E_PENDING_MAP,
    E_STRIDE_ALIGN,
    E_UNSUPPORTED,
    transfer_error,
)
from ..layout import (
    Extent,
    LinearLayout,
    Origin,
    byte_offset_of,
    required_bytes,
    validate_layout,
)
from ..logging import get_logger
from .queue import CommandQueue
from .surface import Buffer, MapState, Surface, SurfaceDescriptor

__all__ = ["Device", "WEBGPU_COPY_ROW_ALIGNMENT"]

# bytesPerRow alignment WebGPU imposes on buffer <-> texture copies.
WEBGPU_COPY_ROW_ALIGNMENT = 256


class Device:
    def __init__(self, copy_row_alignment: int = 1, name: str = "device"):
        if copy_row_alignment < 1:
            raise ValueError("copy_row_alignment must be >= 1")
        self.name = name
        self.copy_row_alignment = copy_row_alignment
        self.queue = CommandQueue(name)
        self._closed = False

    def __enter__(self) -> "Device":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self.queue.close(wait=True)

    # Resources ----------------------------------------------------------------
    def create_surface(self, desc: SurfaceDescriptor) -> Surface:
        surface = Surface(desc)
        get_logger().debug("%s: created %r", self.name, surface)
        return surface

    def create_buffer(self, size: int, data: bytes = b"") -> Buffer:
        """Buffer mapped at creation: ``data`` is visible immediately."""
        if len(data) > size:
            raise transfer_error(
                E_BUFFER_SIZE,
                f"Initial data ({len(data)} bytes) exceeds buffer size {size}",
            )
        return Buffer(size=size, data=bytearray(data))

    def destroy(self, handle: Union[Surface, Buffer]) -> None:
        if isinstance(handle, Buffer) and handle.map_state is MapState.PENDING:
            raise transfer_error(
                E_PENDING_MAP,
                f"Buffer #{handle.handle} has a read-back in flight",
            )
        if isinstance(handle, Buffer):
            handle.map_state = MapState.UNMAPPED
        handle.destroyed = True

    # Validation ----------------------------------------------------------------
    def _check_region(
        self,
        surface: Surface,
        mip_level: int,
        origin: Origin,
        extent: Extent,
        layout: LinearLayout,
        linear_size: int,
    ) -> None:
        surface.ensure_alive()
        fmt = surface.format
        size = surface.level_size(mip_level)
        if (
            origin.x % fmt.block_width
            or origin.y % fmt.block_height
            or origin.x + extent.width > size.width
            or origin.y + extent.height > size.height
            or origin.z + extent.depth > size.depth
        ):
            raise transfer_error(
                E_OUT_OF_BOUNDS,
                f"Region {origin.as_tuple()}+{extent.as_tuple()} does not fit "
                f"mip {mip_level} of size {size.as_tuple()}",
            )
        validate_layout(layout, fmt, extent)
        needed = layout.offset + required_bytes(layout, fmt, extent)
        if not extent.is_empty and linear_size < needed:
            raise transfer_error(
                E_BUFFER_SIZE,
                f"Linear data holds {linear_size} bytes, copy needs {needed}",
                {"size": linear_size, "required": needed},
            )

    def _check_buffer_copy(self, layout: LinearLayout) -> None:
        if layout.bytes_per_row % self.copy_row_alignment:
            raise transfer_error(
                E_STRIDE_ALIGN,
                f"bytes_per_row {layout.bytes_per_row} is not a multiple of "
                f"{self.copy_row_alignment}",
            )

    # Data movement ----------------------------------------------------------
    def _transfer(
        self,
        surface: Surface,
        mip_level: int,
        origin: Origin,
        extent: Extent,
        layout: LinearLayout,
        linear: bytearray,
        to_surface: bool,
    ) -> None:
        fmt = surface.format
        bpb = fmt.bytes_per_block
        bx0 = origin.x // fmt.block_width
        by0 = origin.y // fmt.block_height
        for z in range(extent.depth):
            for row in range(extent.height // fmt.block_height):
                for col in range(extent.width // fmt.block_width):
                    texel = origin.offset_by(
                        col * fmt.block_width, row * fmt.block_height, z
                    )
                    at = byte_offset_of(layout, fmt, texel, origin)
                    if to_surface:
                        surface.write_block(
                            mip_level,
                            bx0 + col,
                            by0 + row,
                            origin.z + z,
                            bytes(linear[at : at + bpb]),
                        )
                    else:
                        linear[at : at + bpb] = surface.read_block(
                            mip_level, bx0 + col, by0 + row, origin.z + z
                        )

    def write_linear_into_surface(
        self,
        surface: Surface,
        mip_level: int,
        origin: Origin,
        layout: LinearLayout,
        data: bytes,
        extent: Extent,
    ) -> "Future[None]":
        if not surface.format.copy_dst:
            raise transfer_error(
                E_UNSUPPORTED, f"{surface.format.name} cannot be written"
            )
        self._check_region(
            surface, mip_level, origin, extent, layout, len(data)
        )
        # Host data is captured at submission time.
        snapshot = bytearray(data)
        return self.queue.submit(
            "write_texture",
            self._transfer,
            surface,
            mip_level,
            origin,
            extent,
            layout,
            snapshot,
            True,
        )

    def copy_buffer_to_surface(
        self,
        buffer: Buffer,
        layout: LinearLayout,
        surface: Surface,
        mip_level: int,
        origin: Origin,
        extent: Extent,
    ) -> "Future[None]":
        buffer.ensure_alive()
        if not surface.format.copy_dst:
            raise transfer_error(
                E_UNSUPPORTED, f"{surface.format.name} cannot be a copy target"
            )
        self._check_buffer_copy(layout)
        self._check_region(
            surface, mip_level, origin, extent, layout, buffer.size
        )
        return self.queue.submit(
            "copy_buffer_to_texture",
            self._transfer,
            surface,
            mip_level,
            origin,
            extent,
            layout,
            buffer.data,
            True,
        )

    def stage_and_copy(
        self,
        surface: Surface,
        mip_level: int,
        origin: Origin,
        layout: LinearLayout,
        data: bytes,
        extent: Extent,
    ) -> Buffer:
        staging = self.create_buffer(len(data), data)
        self.copy_buffer_to_surface(
            staging, layout, surface, mip_level, origin, extent
        )
        return staging

    def copy_surface_into_linear(
        self,
        surface: Surface,
        mip_level: int,
        origin: Origin,
        extent: Extent,
        layout: LinearLayout,
        size: int,
    ) -> Buffer:
        if not surface.format.copy_src:
            raise transfer_error(
                E_UNSUPPORTED, f"{surface.format.name} cannot be a copy source"
            )
        self._check_buffer_copy(layout)
        self._check_region(surface, mip_level, origin, extent, layout, size)
        buffer = self.create_buffer(size)
        self.queue.submit(
            "copy_texture_to_buffer",
            self._transfer,
            surface,
            mip_level,
            origin,
            extent,
            layout,
            buffer.data,
            False,
        )
        return buffer

    def request_readback(self, buffer: Buffer) -> "Future[bytes]":
        buffer.ensure_alive()
        if buffer.map_state is not MapState.UNMAPPED:
            raise transfer_error(
                E_PENDING_MAP, f"Buffer #{buffer.handle} is already mapped"
            )
        buffer.map_state = MapState.PENDING

        def _map() -> bytes:
            buffer.map_state = MapState.MAPPED
            if self.queue.failures:
                raise transfer_error(
                    E_COMMAND_FAILED,
                    f"An earlier command failed: {self.queue.failures[0]}",
                )
            return bytes(buffer.data)

        return self.queue.submit("map_read", _map)
