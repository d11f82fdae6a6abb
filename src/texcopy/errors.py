"""Error definitions for texcopy."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_BLOCK_ALIGN = "E_BLOCK_ALIGN"
E_ORIGIN = "E_ORIGIN"
E_STRIDE = "E_STRIDE"
E_STRIDE_ALIGN = "E_STRIDE_ALIGN"
E_ROWS_PER_IMAGE = "E_ROWS_PER_IMAGE"
E_OUT_OF_BOUNDS = "E_OUT_OF_BOUNDS"
E_MIP_LEVEL = "E_MIP_LEVEL"
E_DIMENSION = "E_DIMENSION"
E_UNKNOWN_FORMAT = "E_UNKNOWN_FORMAT"
E_UNSUPPORTED = "E_UNSUPPORTED"
E_BUFFER_SIZE = "E_BUFFER_SIZE"
E_DESTROYED = "E_DESTROYED"
E_PENDING_MAP = "E_PENDING_MAP"
E_COMMAND_FAILED = "E_COMMAND_FAILED"
E_TIMEOUT = "E_TIMEOUT"
E_CONFIG = "E_CONFIG"
E_INTERNAL = "E_INTERNAL"


@dataclass
class CopyError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class PreconditionError(CopyError):
    """Test-authoring error detected before any device work is issued."""


class TransferError(CopyError):
    """The simulated transfer engine rejected a command."""


class ConfigError(CopyError):
    pass


def precondition(
    code: str, message: str, context: Optional[Dict[str, Any]] = None
) -> PreconditionError:
    return PreconditionError(code=code, message=message, context=context)


def transfer_error(
    code: str, message: str, context: Optional[Dict[str, Any]] = None
) -> TransferError:
    return TransferError(code=code, message=message, context=context)


def internal_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> CopyError:
    return CopyError(code=E_INTERNAL, message=message, context=context)


__all__ = [
    "CopyError",
    "PreconditionError",
    "TransferError",
    "ConfigError",
    "precondition",
    "transfer_error",
    "internal_error",
    "E_BLOCK_ALIGN",
    "E_ORIGIN",
    "E_STRIDE",
    "E_STRIDE_ALIGN",
    "E_ROWS_PER_IMAGE",
    "E_OUT_OF_BOUNDS",
    "E_MIP_LEVEL",
    "E_DIMENSION",
    "E_UNKNOWN_FORMAT",
    "E_UNSUPPORTED",
    "E_BUFFER_SIZE",
    "E_DESTROYED",
    "E_PENDING_MAP",
    "E_COMMAND_FAILED",
    "E_TIMEOUT",
    "E_CONFIG",
    "E_INTERNAL",
]
