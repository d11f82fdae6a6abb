"""Deterministic reference data."""

from __future__ import annotations

__all__ = ["REFERENCE_MODULUS", "generate_data"]

# Prime modulus: keeps the sequence from repeating on power-of-two strides.
REFERENCE_MODULUS = 251


def generate_data(byte_count: int) -> bytes:
    if byte_count < 0:
        raise ValueError(f"byte_count must be non-negative, got {byte_count}")
    return bytes((i * i * i + i) % REFERENCE_MODULUS for i in range(byte_count))
