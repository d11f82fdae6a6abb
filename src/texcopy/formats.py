"""Texture format capability table.

Each entry describes the block geometry of a format (uncompressed formats
use 1x1 blocks) and whether the format may be used as the source or the
destination of a linear copy.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List

from .errors import E_UNKNOWN_FORMAT, precondition

__all__ = [
    "FormatInfo",
    "lookup",
    "all_formats",
    "supports_copy",
    "FORMATS",
]


@dataclass(frozen=True, slots=True)
class FormatInfo:
    name: str
    block_width: int
    block_height: int
    bytes_per_block: int
    copy_src: bool = True
    copy_dst: bool = True

    @property
    def is_compressed(self) -> bool:
        return self.block_width > 1 or self.block_height > 1


def _fmt(
    name: str,
    bytes_per_block: int,
    block: int = 1,
    *,
    copy_src: bool = True,
    copy_dst: bool = True,
) -> FormatInfo:
    return FormatInfo(name, block, block, bytes_per_block, copy_src, copy_dst)


FORMATS: Dict[str, FormatInfo] = {
    f.name: f
    for f in [
        # 8-bit per texel
        _fmt("r8unorm", 1),
        _fmt("r8snorm", 1),
        _fmt("r8uint", 1),
        _fmt("r8sint", 1),
        # 16-bit per texel
        _fmt("r16uint", 2),
        _fmt("r16float", 2),
        _fmt("rg8unorm", 2),
        _fmt("rg8uint", 2),
        # 32-bit per texel
        _fmt("r32uint", 4),
        _fmt("r32float", 4),
        _fmt("rg16float", 4),
        _fmt("rgba8unorm", 4),
        _fmt("rgba8unorm-srgb", 4),
        _fmt("bgra8unorm", 4),
        _fmt("rgb10a2unorm", 4),
        _fmt("rg11b10ufloat", 4),
        # 64/128-bit per texel
        _fmt("rg32float", 8),
        _fmt("rgba16float", 8),
        _fmt("rgba32uint", 16),
        _fmt("rgba32float", 16),
        # block compressed
        _fmt("bc1-rgba-unorm", 8, 4),
        _fmt("bc2-rgba-unorm", 16, 4),
        _fmt("bc3-rgba-unorm", 16, 4),
        _fmt("bc4-r-unorm", 8, 4),
        _fmt("bc5-rg-unorm", 16, 4),
        _fmt("bc6h-rgb-ufloat", 16, 4),
        _fmt("bc7-rgba-unorm", 16, 4),
        _fmt("etc2-rgb8unorm", 8, 4),
        _fmt("eac-r11unorm", 8, 4),
        # depth/stencil: partial or no linear copy support
        _fmt("depth32float", 4, copy_dst=False),
        _fmt("depth24plus", 4, copy_src=False, copy_dst=False),
        _fmt("depth24plus-stencil8", 4, copy_src=False, copy_dst=False),
    ]
}


def lookup(name: str) -> FormatInfo:
    try:
        return FORMATS[name]
    except KeyError:
        raise precondition(
            E_UNKNOWN_FORMAT, f"Unknown texture format '{name}'"
        ) from None


def all_formats() -> List[FormatInfo]:
    return list(FORMATS.values())


def supports_copy(info: FormatInfo) -> bool:
    """True when linear data can be both written into and read out of
    a surface of this format, which every init/check pair requires."""
    return info.copy_src and info.copy_dst
