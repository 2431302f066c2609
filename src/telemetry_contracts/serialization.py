"""
This module defines the wire contracts for telemetry items and the writers
that turn them into transport-ready payloads.

A telemetry item never serializes itself field by field. Instead it builds an
immutable snapshot model (`RequestData`, `RemoteDependencyData`) once, and
hands that snapshot to a `SerializationWriter` in a single ``write_property``
call. The field names and their order in each snapshot are fixed by the
ingestion schema and must not change.

`serialize_envelope` wraps a snapshot in the outer envelope (name, time, iKey,
tags, baseType) and `serialize` renders a batch as newline-delimited JSON.
"""
from __future__ import annotations

import json
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from .config import get_settings

BASE_DATA_PROPERTY = "baseData"
DEFAULT_SAMPLING_PERCENTAGE = 100.0


def format_duration(value: timedelta) -> str:
    """
    Formats a duration as ``[-][d.]hh:mm:ss[.fffffff]``.

    Days are only written when non-zero, and the fractional part, expressed in
    100-nanosecond ticks, only when there is one.

    Args:
        value: The duration to format.

    Returns:
        The formatted duration string.
    """
    sign = "-" if value < timedelta(0) else ""
    value = abs(value)
    hours, remainder = divmod(value.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    text = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if value.days:
        text = f"{value.days}.{text}"
    if value.microseconds:
        text = f"{text}.{value.microseconds * 10:07d}"
    return sign + text


def format_timestamp(value: Optional[datetime]) -> str:
    """Formats a timestamp as UTC ISO-8601 with a ``Z`` suffix; ``None`` means now."""
    if value is None:
        value = datetime.now(timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class _Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """
        Returns the wire dictionary, omitting ``success`` when it was never set.

        Measurements that are NaN or infinite, possible only on items serialized
        before `sanitize()`, are written as ``null`` so the payload stays valid JSON.
        """
        payload = self.model_dump(by_alias=True)
        measurements = payload.get("measurements")
        if measurements:
            payload["measurements"] = {
                key: None if isinstance(value, float) and not math.isfinite(value) else value
                for key, value in measurements.items()
            }
        if payload.get("success") is None:
            payload.pop("success", None)
        return payload


class RequestData(_Snapshot):
    """Wire contract for a request handled by the application."""

    duration: str
    id: Optional[str] = None
    measurements: Dict[str, float] = Field(default_factory=dict)
    name: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)
    response_code: Optional[str] = Field(default=None, alias="responseCode")
    source: Optional[str] = None
    success: Optional[bool] = None
    url: Optional[str] = None


class RemoteDependencyData(_Snapshot):
    """Wire contract for an outgoing dependency call, including browser Ajax calls."""

    data: Optional[str] = None
    duration: str
    id: Optional[str] = None
    measurements: Dict[str, float] = Field(default_factory=dict)
    name: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)
    result_code: Optional[str] = Field(default=None, alias="resultCode")
    success: Optional[bool] = None
    target: Optional[str] = None
    type: Optional[str] = None


@runtime_checkable
class SerializationWriter(Protocol):
    """Sink that receives the snapshot of a telemetry item."""

    def write_property(self, name: str, value: Any) -> None:
        ...


def _to_wire(value: Any) -> Any:
    if isinstance(value, _Snapshot):
        return value.to_wire()
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    return value


class DictSerializationWriter:
    """Collects written properties into a plain dictionary."""

    def __init__(self) -> None:
        self.values: Dict[str, Any] = {}

    def write_property(self, name: str, value: Any) -> None:
        self.values[name] = _to_wire(value)


class JsonSerializationWriter(DictSerializationWriter):
    """Collects written properties and renders them as compact JSON text."""

    def getvalue(self) -> str:
        return json.dumps(self.values, separators=(",", ":"), allow_nan=False)


def serialize_envelope(item: Any, instrumentation_key: Optional[str] = None) -> Dict[str, Any]:
    """
    Wraps a telemetry item's snapshot in the ingestion envelope.

    The ``iKey`` is taken from ``instrumentation_key``, then the item's context,
    then the configured default. ``seq`` is written only when the item has a
    sequence and ``sampleRate`` only when sampling below 100% was applied.

    Args:
        item: A `RequestTelemetry` or `DependencyTelemetry`.
        instrumentation_key: Optional override for the destination key.

    Returns:
        A JSON-serializable envelope dictionary.
    """
    writer = DictSerializationWriter()
    item.serialize_data(writer)

    envelope: Dict[str, Any] = {
        "name": item.TELEMETRY_NAME,
        "time": format_timestamp(item.timestamp),
        "iKey": instrumentation_key
        or item.context.instrumentation_key
        or get_settings().instrumentation_key,
    }
    if item.sequence:
        envelope["seq"] = item.sequence
    sampling_percentage = item.sampling_percentage
    if sampling_percentage is not None and sampling_percentage != DEFAULT_SAMPLING_PERCENTAGE:
        envelope["sampleRate"] = sampling_percentage
    envelope["tags"] = item.context.to_tags()
    envelope["data"] = {
        "baseType": item.BASE_TYPE,
        BASE_DATA_PROPERTY: writer.values[BASE_DATA_PROPERTY],
    }
    return envelope


def serialize(items: Iterable[Any], instrumentation_key: Optional[str] = None) -> str:
    """Renders a batch of telemetry items as newline-delimited JSON envelopes."""
    return "\n".join(
        json.dumps(
            serialize_envelope(item, instrumentation_key),
            separators=(",", ":"),
            allow_nan=False,
        )
        for item in items
    )


__all__ = [
    "BASE_DATA_PROPERTY",
    "RequestData",
    "RemoteDependencyData",
    "SerializationWriter",
    "DictSerializationWriter",
    "JsonSerializationWriter",
    "format_duration",
    "format_timestamp",
    "serialize_envelope",
    "serialize",
]
