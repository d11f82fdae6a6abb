"""Run configuration loading (JSON/YAML) for texcopy.

A run configuration describes a parameter matrix: every listed value of
every axis is combined with every other (see ``texcopy.matrix``).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import E_CONFIG, ConfigError

__all__ = ["RunConfig", "load_config", "parse_config", "READBACK_TIMEOUT_ENV"]

READBACK_TIMEOUT_ENV = "TEXCOPY_READBACK_TIMEOUT"

_INIT_METHODS = ("WriteTexture", "CopyB2T")
_CHECK_METHODS = ("PartialCopyT2B", "FullCopyT2B")
_DIMENSIONS = ("1d", "2d", "3d")


@dataclass(slots=True)
class RunConfig:
    formats: List[str] = field(default_factory=lambda: ["rgba8unorm"])
    dimension: str = "2d"
    sizes: List[List[int]] = field(default_factory=lambda: [[16, 16, 1]])
    mip_levels: List[int] = field(default_factory=lambda: [0])
    mip_level_count: Optional[int] = None
    origins: List[List[int]] = field(default_factory=lambda: [[0, 0, 0]])
    # None: copy from the origin to the end of the mip level.
    extents: Optional[List[List[int]]] = None
    # Extra bytes_per_row, in units of copy_row_alignment.
    row_paddings: List[int] = field(default_factory=lambda: [0])
    # Extra rows_per_image, in block rows.
    rows_per_image_paddings: List[int] = field(default_factory=lambda: [0])
    offsets: List[int] = field(default_factory=lambda: [0])
    init_methods: List[str] = field(
        default_factory=lambda: list(_INIT_METHODS)
    )
    check_methods: List[str] = field(
        default_factory=lambda: list(_CHECK_METHODS)
    )
    prefill: bool = True
    jobs: int = 1
    copy_row_alignment: int = 1
    readback_timeout: Optional[float] = 30.0
    max_reported_mismatches: int = 16


def _fail(message: str, key: str) -> ConfigError:
    return ConfigError(code=E_CONFIG, message=message, context={"key": key})


def _int_list(data: Dict[str, Any], key: str, minimum: int = 0) -> None:
    val = data.get(key)
    if val is None:
        return
    if not isinstance(val, list) or not val:
        raise _fail(f"'{key}' must be a non-empty list", key)
    for v in val:
        if isinstance(v, bool) or not isinstance(v, int) or v < minimum:
            raise _fail(f"'{key}' entries must be integers >= {minimum}", key)


def _triple_list(data: Dict[str, Any], key: str, minimum: int) -> None:
    val = data.get(key)
    if val is None:
        return
    if not isinstance(val, list) or not val:
        raise _fail(f"'{key}' must be a non-empty list", key)
    for v in val:
        if (
            not isinstance(v, list)
            or not 1 <= len(v) <= 3
            or any(
                isinstance(c, bool) or not isinstance(c, int) or c < minimum
                for c in v
            )
        ):
            raise _fail(
                f"'{key}' entries must be lists of 1-3 integers >= {minimum}",
                key,
            )


def _choices(data: Dict[str, Any], key: str, allowed: tuple) -> None:
    val = data.get(key)
    if val is None:
        return
    if not isinstance(val, list) or not val:
        raise _fail(f"'{key}' must be a non-empty list", key)
    bad = [v for v in val if v not in allowed]
    if bad:
        raise _fail(f"'{key}' has unknown values {bad}; use {allowed}", key)


def parse_config(data: Dict[str, Any]) -> RunConfig:
    if not isinstance(data, dict):
        raise _fail("Root of run configuration must be an object", "")
    known = {f.name for f in fields(RunConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise _fail(f"Unknown configuration keys: {unknown}", unknown[0])
    if "formats" in data and (
        not isinstance(data["formats"], list)
        or not all(isinstance(f, str) for f in data["formats"])
    ):
        raise _fail("'formats' must be a list of format names", "formats")
    if data.get("dimension", "2d") not in _DIMENSIONS:
        raise _fail(f"'dimension' must be one of {_DIMENSIONS}", "dimension")
    _triple_list(data, "sizes", 1)
    _triple_list(data, "origins", 0)
    _triple_list(data, "extents", 0)
    _int_list(data, "mip_levels")
    _int_list(data, "row_paddings")
    _int_list(data, "rows_per_image_paddings")
    _int_list(data, "offsets")
    _choices(data, "init_methods", _INIT_METHODS)
    _choices(data, "check_methods", _CHECK_METHODS)
    for key in ("jobs", "copy_row_alignment", "max_reported_mismatches"):
        val = data.get(key)
        if key in data and (
            isinstance(val, bool) or not isinstance(val, int) or val < 1
        ):
            raise _fail(f"'{key}' must be a positive integer", key)
    timeout = data.get("readback_timeout")
    if timeout is not None and (
        isinstance(timeout, bool)
        or not isinstance(timeout, (int, float))
        or timeout <= 0
    ):
        raise _fail(
            "'readback_timeout' must be a positive number or null",
            "readback_timeout",
        )
    config = RunConfig(**data)
    env_timeout = os.getenv(READBACK_TIMEOUT_ENV)
    if env_timeout:
        try:
            config.readback_timeout = float(env_timeout)
        except ValueError:
            raise _fail(
                f"{READBACK_TIMEOUT_ENV}={env_timeout!r} is not a number",
                "readback_timeout",
            ) from None
    return config


def load_config(path: str | Path) -> RunConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    text = p.read_text(encoding="utf-8")
    try:
        if p.suffix.lower() in {".yaml", ".yml"}:
            data: Any = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise _fail(f"Cannot parse {p.name}: {e}", "") from e
    return parse_config(data if data is not None else {})
