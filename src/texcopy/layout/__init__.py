from .models import (
    TextureDimension,
    Extent,
    Origin,
    ZERO_ORIGIN,
    LinearLayout,
    TextureCopyLayout,
)
from .calculator import (
    align_up,
    bytes_in_complete_row,
    compute_full_layout,
    max_mip_level_count,
    mip_size,
    required_bytes,
    validate_layout,
)
from .address import byte_offset_of, block_coordinate_of

__all__ = [
    "TextureDimension",
    "Extent",
    "Origin",
    "ZERO_ORIGIN",
    "LinearLayout",
    "TextureCopyLayout",
    "align_up",
    "bytes_in_complete_row",
    "compute_full_layout",
    "max_mip_level_count",
    "mip_size",
    "required_bytes",
    "validate_layout",
    "byte_offset_of",
    "block_coordinate_of",
]
