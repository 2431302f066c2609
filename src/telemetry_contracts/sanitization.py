"""
This module implements the sanitization policy applied to telemetry items
before they are handed to a transport.

The ingestion endpoint rejects or silently drops items whose names, property
keys, property values or urls exceed fixed limits. These helpers trim and
truncate such fields so that an item always survives ingestion, and they fill
required fields that callers left empty. Every function is idempotent: running
it on its own output changes nothing. None of them raise on malformed input.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, MutableMapping, Optional

from .config import TelemetrySettings, get_settings

logger = logging.getLogger(__name__)

REQUIRED_KEY_PLACEHOLDER = "required"
_UNIQUE_SUFFIX_WIDTH = 3


def _resolve(settings: Optional[TelemetrySettings]) -> TelemetrySettings:
    return settings if settings is not None else get_settings()


def _trim_and_truncate(value: Optional[str], max_length: int) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) > max_length:
        value = value[:max_length].rstrip()
    return value


def _sanitize_key(key: Any, max_length: int) -> str:
    sanitized = _trim_and_truncate("" if key is None else str(key), max_length)
    return sanitized or REQUIRED_KEY_PLACEHOLDER


def _make_key_unique(key: str, taken: Dict[str, Any], max_length: int) -> str:
    if key not in taken:
        return key
    candidate = 1
    while True:
        suffix = f"{candidate:0{_UNIQUE_SUFFIX_WIDTH}d}"
        unique = key[: max_length - len(suffix)] + suffix
        if unique not in taken:
            return unique
        candidate += 1


def _replace_contents(target: MutableMapping[str, Any], sanitized: Dict[str, Any]) -> None:
    if list(target.items()) == list(sanitized.items()):
        return
    target.clear()
    target.update(sanitized)


def sanitize_name(value: Optional[str], settings: Optional[TelemetrySettings] = None) -> Optional[str]:
    """
    Trims whitespace from a name or id and truncates it to the name limit.

    Args:
        value: The raw name. ``None`` is passed through unchanged.
        settings: Optional explicit limits; defaults to `get_settings()`.

    Returns:
        The sanitized name.
    """
    return _trim_and_truncate(value, _resolve(settings).max_name_length)


def sanitize_value(value: Optional[str], settings: Optional[TelemetrySettings] = None) -> Optional[str]:
    """Trims and truncates a free-form value to the property value limit."""
    return _trim_and_truncate(value, _resolve(settings).max_value_length)


def sanitize_data(value: Optional[str], settings: Optional[TelemetrySettings] = None) -> Optional[str]:
    """Trims and truncates dependency command text to the data limit."""
    return _trim_and_truncate(value, _resolve(settings).max_data_length)


def sanitize_uri(url: Optional[str], settings: Optional[TelemetrySettings] = None) -> Optional[str]:
    """
    Truncates a url to the maximum length accepted by the ingestion endpoint.

    Args:
        url: The url string, or ``None``.
        settings: Optional explicit limits; defaults to `get_settings()`.

    Returns:
        The url, truncated when it exceeds the limit, or ``None``.
    """
    if url is None:
        return None
    url = str(url)
    max_length = _resolve(settings).max_url_length
    if len(url) > max_length:
        url = url[:max_length]
    return url


def sanitize_properties(
    properties: Optional[MutableMapping[str, str]],
    settings: Optional[TelemetrySettings] = None,
) -> None:
    """
    Sanitizes a property bag in place.

    Keys are trimmed and truncated; an empty key becomes ``"required"``. Values
    are trimmed and truncated; ``None`` becomes an empty string. When two keys
    collide after sanitization, the later one is truncated to leave room for a
    counter of at least three digits and suffixed with ``001``, ``002`` and so
    on. Entry order is preserved.

    Args:
        properties: The mapping to clean. ``None`` or empty mappings are ignored.
        settings: Optional explicit limits; defaults to `get_settings()`.
    """
    if not properties:
        return
    cfg = _resolve(settings)
    sanitized: Dict[str, str] = {}
    for key, value in list(properties.items()):
        clean_key = _make_key_unique(
            _sanitize_key(key, cfg.max_key_length), sanitized, cfg.max_key_length
        )
        clean_value = _trim_and_truncate("" if value is None else str(value), cfg.max_value_length)
        sanitized[clean_key] = clean_value
    _replace_contents(properties, sanitized)


def _sanitize_number(key: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        logger.debug("Measurement %r has unrepresentable value %r; replacing with 0", key, value)
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def sanitize_measurements(
    measurements: Optional[MutableMapping[str, float]],
    settings: Optional[TelemetrySettings] = None,
) -> None:
    """
    Sanitizes a measurement map in place.

    Keys follow the same policy as `sanitize_properties`. NaN and infinite
    values are replaced with ``0.0`` because the endpoint cannot represent them.

    Args:
        measurements: The mapping to clean. ``None`` or empty mappings are ignored.
        settings: Optional explicit limits; defaults to `get_settings()`.
    """
    if not measurements:
        return
    cfg = _resolve(settings)
    sanitized: Dict[str, float] = {}
    for key, value in list(measurements.items()):
        clean_key = _make_key_unique(
            _sanitize_key(key, cfg.max_key_length), sanitized, cfg.max_key_length
        )
        sanitized[clean_key] = _sanitize_number(clean_key, value)
    _replace_contents(measurements, sanitized)


def populate_required_string_value(value: Optional[str], field_name: str, telemetry_type: str) -> str:
    """
    Returns ``value`` unless it is empty, in which case a placeholder is used.

    The placeholder names the missing field and the telemetry type so the gap
    is visible in the backend. A warning is logged each time it is applied.

    Args:
        value: The current field value.
        field_name: The name of the required field, e.g. ``"id"``.
        telemetry_type: Fully qualified name of the telemetry class.

    Returns:
        The original value or the placeholder text.
    """
    if value:
        return value
    logger.warning("Required field %r of %s is empty; populating a placeholder", field_name, telemetry_type)
    return f"{field_name} is a required field for {telemetry_type}"


__all__ = [
    "REQUIRED_KEY_PLACEHOLDER",
    "sanitize_name",
    "sanitize_value",
    "sanitize_data",
    "sanitize_uri",
    "sanitize_properties",
    "sanitize_measurements",
    "populate_required_string_value",
]
