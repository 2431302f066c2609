"""
This module provides the identifier generator used for new telemetry items.

Ids follow the W3C trace-context span id shape: 16 lowercase hex characters.
Centralizing generation keeps request and dependency ids interchangeable when
they are used as parent ids in correlation.
"""
import uuid


def generate_operation_id() -> str:
    """
    Generates a random identifier for a telemetry item.

    Returns:
        A 16-character lowercase hex string.
    """
    return uuid.uuid4().hex[:16]
