"""Texture <-> linear buffer copy layout and verification toolkit."""

from .errors import CopyError, PreconditionError, TransferError, ConfigError
from .formats import FormatInfo, lookup
from .layout import Extent, LinearLayout, Origin, TextureDimension
from .runner import CheckMethod, CopyCase, InitMethod, run_case
from .api import RunSummary, run_cases, run_config

__version__ = "0.1.0"

__all__ = [
    "CopyError",
    "PreconditionError",
    "TransferError",
    "ConfigError",
    "FormatInfo",
    "lookup",
    "Extent",
    "LinearLayout",
    "Origin",
    "TextureDimension",
    "CheckMethod",
    "CopyCase",
    "InitMethod",
    "run_case",
    "RunSummary",
    "run_cases",
    "run_config",
    "__version__",
]
