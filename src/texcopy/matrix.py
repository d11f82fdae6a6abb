"""Case enumeration: cross products of copy parameters.

Combinations that cannot form a legal case for a format (an origin outside
a small mip, an origin off the block grid, a format without linear copy
support) are dropped here with a reason and reported as skipped; they are
never handed to the runner.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Sequence, Tuple

from .config import RunConfig
from .formats import FormatInfo, lookup, supports_copy
from .layout import (
    Extent,
    LinearLayout,
    Origin,
    TextureDimension,
    align_up,
    bytes_in_complete_row,
    max_mip_level_count,
    mip_size,
)
from .runner import CheckMethod, CopyCase, InitMethod

__all__ = [
    "poptions",
    "combine",
    "SkippedCase",
    "MatrixPlan",
    "copy_whole_texture_cases",
    "cases_from_config",
]

ALL_INIT_METHODS: Tuple[InitMethod, ...] = tuple(InitMethod)
ALL_CHECK_METHODS: Tuple[CheckMethod, ...] = tuple(CheckMethod)


def poptions(name: str, values: Iterable[Any]) -> List[Dict[str, Any]]:
    return [{name: v} for v in values]


def combine(
    *option_lists: Sequence[Dict[str, Any]],
) -> Iterator[Dict[str, Any]]:
    """Cross product of option lists, merged into one dict per combination."""
    for combo in itertools.product(*option_lists):
        merged: Dict[str, Any] = {}
        for part in combo:
            merged.update(part)
        yield merged


@dataclass(slots=True)
class SkippedCase:
    description: str
    reason: str


@dataclass(slots=True)
class MatrixPlan:
    cases: List[CopyCase] = field(default_factory=list)
    skipped: List[SkippedCase] = field(default_factory=list)


def copy_whole_texture_cases(
    widths: Sequence[int] = (1, 15, 16),
    heights: Sequence[int] = (1, 7, 8),
    depths: Sequence[int] = (1, 3, 4),
    format_name: str = "rgba8unorm",
    bytes_per_row: int = 256,
) -> List[CopyCase]:
    """Whole-texture copies with a fixed stride, every init/check pair."""
    fmt = lookup(format_name)
    cases = []
    for p in combine(
        poptions("init_method", ALL_INIT_METHODS),
        poptions("check_method", ALL_CHECK_METHODS),
        poptions("width", widths),
        poptions("height", heights),
        poptions("depth", depths),
    ):
        size = Extent(p["width"], p["height"], p["depth"])
        cases.append(
            CopyCase(
                format=fmt,
                base_size=size,
                copy_extent=size,
                layout=LinearLayout(
                    bytes_per_row=bytes_per_row, rows_per_image=size.height
                ),
                init_method=p["init_method"],
                check_method=p["check_method"],
            )
        )
    return cases


def _describe(fmt: FormatInfo, params: Dict[str, Any]) -> str:
    size = "x".join(str(v) for v in params["size"])
    return (
        f"{fmt.name} {size} mip{params['mip_level']} "
        f"@{tuple(params['origin'])}"
    )


def _region(
    fmt: FormatInfo,
    mip: Extent,
    origin: Origin,
    extent: Sequence[int] | None,
) -> Tuple[Extent | None, str]:
    if origin.x % fmt.block_width or origin.y % fmt.block_height:
        return None, "origin not on the block grid"
    if (
        origin.x >= mip.width
        or origin.y >= mip.height
        or origin.z >= mip.depth
    ):
        return None, "origin outside the mip level"
    if extent is None:
        return (
            Extent(
                mip.width - origin.x,
                mip.height - origin.y,
                mip.depth - origin.z,
            ),
            "",
        )
    region = Extent.of(extent)
    if region.width % fmt.block_width or region.height % fmt.block_height:
        return None, "extent not on the block grid"
    if (
        origin.x + region.width > mip.width
        or origin.y + region.height > mip.height
        or origin.z + region.depth > mip.depth
    ):
        return None, "extent does not fit the mip level"
    return region, ""


def cases_from_config(config: RunConfig) -> MatrixPlan:
    plan = MatrixPlan()
    dimension = TextureDimension(config.dimension)
    align = config.copy_row_alignment
    for name in config.formats:
        fmt = lookup(name)
        if not supports_copy(fmt):
            plan.skipped.append(
                SkippedCase(fmt.name, "format lacks linear copy support")
            )
            continue
        for p in combine(
            poptions("size", config.sizes),
            poptions("mip_level", config.mip_levels),
            poptions("origin", config.origins),
            poptions("extent", config.extents or [None]),
        ):
            desc = _describe(fmt, p)
            base = Extent.of(p["size"])
            if dimension is TextureDimension.D1 and (
                base.height != 1 or base.depth != 1 or fmt.is_compressed
            ):
                plan.skipped.append(SkippedCase(desc, "not a valid 1d surface"))
                continue
            if base.width % fmt.block_width or base.height % fmt.block_height:
                plan.skipped.append(
                    SkippedCase(desc, "size not on the block grid")
                )
                continue
            if p["mip_level"] >= max_mip_level_count(dimension, base):
                plan.skipped.append(SkippedCase(desc, "mip level too small"))
                continue
            mip = mip_size(fmt, dimension, base, p["mip_level"])
            origin = Origin.of(p["origin"])
            region, reason = _region(fmt, mip, origin, p["extent"])
            if region is None:
                plan.skipped.append(SkippedCase(desc, reason))
                continue
            # Empty regions still need a positive stride.
            row_bytes = max(
                bytes_in_complete_row(region.width, fmt), fmt.bytes_per_block
            )
            for q in combine(
                poptions("row_padding", config.row_paddings),
                poptions("rpi_padding", config.rows_per_image_paddings),
                poptions("offset", config.offsets),
                poptions("init_method", config.init_methods),
                poptions("check_method", config.check_methods),
            ):
                layout = LinearLayout(
                    bytes_per_row=align_up(row_bytes, align)
                    + q["row_padding"] * align,
                    rows_per_image=region.height
                    + q["rpi_padding"] * fmt.block_height,
                    offset=q["offset"],
                )
                plan.cases.append(
                    CopyCase(
                        format=fmt,
                        base_size=base,
                        copy_extent=region,
                        layout=layout,
                        init_method=InitMethod(q["init_method"]),
                        check_method=CheckMethod(q["check_method"]),
                        origin=origin,
                        mip_level=p["mip_level"],
                        mip_level_count=config.mip_level_count,
                        dimension=dimension,
                        prefill=config.prefill,
                    )
                )
    return plan
