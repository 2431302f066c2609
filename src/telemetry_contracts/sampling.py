"""
This module implements the deterministic sampling score used to decide whether
a telemetry item is kept when sampling is enabled.

The score is derived from the item's operation id, so every item that belongs
to the same operation gets the same score and is kept or dropped together.
"""
from __future__ import annotations

from typing import Optional

from .telemetry import OperationTelemetry

_INT32_MAX = 2**31 - 1
_INT32_MIN = -(2**31)
_MIN_HASH_INPUT_LENGTH = 8


def get_sampling_hash_code(value: Optional[str]) -> int:
    """
    Computes a stable, non-negative 32-bit hash of ``value``.

    Short inputs are repeated until they are at least eight characters long,
    then hashed with djb2 using 32-bit signed overflow.

    Args:
        value: The string to hash.

    Returns:
        A hash between 0 and 2**31 - 1. Empty or ``None`` input hashes to 0.
    """
    if not value:
        return 0
    while len(value) < _MIN_HASH_INPUT_LENGTH:
        value = value + value
    hash_code = 5381
    for char in value:
        hash_code = ((hash_code << 5) + hash_code + ord(char)) & 0xFFFFFFFF
    if hash_code > _INT32_MAX:
        hash_code -= 2**32
    if hash_code == _INT32_MIN:
        return _INT32_MAX
    return abs(hash_code)


def get_sampling_score(value: Optional[str]) -> float:
    """Maps ``value`` to a score in [0, 100]."""
    return get_sampling_hash_code(value) / _INT32_MAX * 100


def get_item_sampling_score(item: OperationTelemetry) -> float:
    """Scores an item by its operation id, falling back to the user id and then the item id."""
    context = item.context
    key = context.operation.id or context.user.id or item.id
    return get_sampling_score(key)


def is_sampled_in(item: OperationTelemetry, sampling_percentage: float) -> bool:
    """
    Decides whether ``item`` survives sampling at ``sampling_percentage``.

    The percentage is recorded on the item so that the backend can scale
    aggregated counts back up.

    Args:
        item: The telemetry item.
        sampling_percentage: Share of operations to keep, between 0 and 100.

    Returns:
        True when the item should be sent.
    """
    item.sampling_percentage = sampling_percentage
    if item.sampling_percentage >= 100.0:
        return True
    return get_item_sampling_score(item) < item.sampling_percentage


__all__ = [
    "get_sampling_hash_code",
    "get_sampling_score",
    "get_item_sampling_score",
    "is_sampled_in",
]
