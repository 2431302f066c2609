"""
This module defines the telemetry envelope shared by request and dependency
telemetry.

`OperationTelemetry` holds one recorded operation: its id, name, timing,
tri-state ``success`` flag, free-form properties and measurements, the owning
`TelemetryContext` and an optional typed extension. It provides the three
behaviors every transport relies on:

- ``sanitize()`` normalizes fields and fills required defaults before send.
- ``deep_clone()`` returns a copy that shares no mutable state with the source.
- ``serialize_data(writer)`` writes an immutable snapshot, built once and cached.

Items are plain mutable objects owned by one thread until they are handed to a
transport. The only internal synchronization is the lock guarding the lazy
``metrics`` map and the cached snapshot.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, ClassVar, Dict, Optional

from .config import TelemetrySettings, get_settings
from .context import TelemetryContext
from .extension import TelemetryExtension
from .ids import generate_operation_id
from .sanitization import (
    populate_required_string_value,
    sanitize_measurements,
    sanitize_name,
    sanitize_properties,
)
from .serialization import BASE_DATA_PROPERTY, SerializationWriter

logger = logging.getLogger(__name__)

PROCESSED_BY_EXTRACTORS_KEY = "_MS.ProcessedByMetricExtractors"


class Telemetry(ABC):
    """
    Minimal contract every telemetry item satisfies.

    Attributes:
        TELEMETRY_NAME: Envelope ``name`` written on the wire.
        BASE_TYPE: Envelope ``data.baseType`` written on the wire.
    """

    TELEMETRY_NAME: ClassVar[str]
    BASE_TYPE: ClassVar[str]

    @abstractmethod
    def deep_clone(self) -> "Telemetry":
        """Returns an independent copy of this item."""

    @abstractmethod
    def sanitize(self) -> None:
        """Normalizes the item in place so that it is accepted by the ingestion endpoint."""

    @abstractmethod
    def serialize_data(self, writer: SerializationWriter) -> None:
        """Writes the item's wire snapshot to ``writer``."""


class OperationTelemetry(Telemetry):
    """
    Base class for telemetry describing a timed operation.

    Subclasses supply the snapshot model via `_build_snapshot` and hook their
    own fields into cloning and sanitization through `_copy_to`,
    `_sanitize_fields` and `_apply_required_defaults`.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._context = TelemetryContext()
        self._measurements: Optional[Dict[str, float]] = None
        self._snapshot: Any = None
        self._success: Optional[bool] = None
        self._duration = timedelta(0)
        self._sampling_percentage: Optional[float] = None

        self.id: Optional[str] = generate_operation_id()
        self.name: Optional[str] = None
        self.timestamp: Optional[datetime] = None
        self.sequence: Optional[str] = None
        self.extension: Optional[TelemetryExtension] = None
        self.metric_extractor_info: Optional[str] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, name={self.name!r})"

    @property
    def context(self) -> TelemetryContext:
        """The context owned by this item."""
        return self._context

    @property
    def success(self) -> Optional[bool]:
        """
        Whether the operation succeeded, or ``None`` if it was never set.

        Assigning ``None`` resets the flag to the unset state; the wire format
        then omits ``success`` entirely.
        """
        return self._success

    @success.setter
    def success(self, value: Optional[bool]) -> None:
        self._success = None if value is None else bool(value)

    @property
    def duration(self) -> timedelta:
        return self._duration

    @duration.setter
    def duration(self, value: timedelta) -> None:
        if not isinstance(value, timedelta):
            raise TypeError(f"duration must be a timedelta, got {type(value).__name__}")
        self._duration = value

    @property
    def sampling_percentage(self) -> Optional[float]:
        """Sampling rate applied to this item, between 0 and 100."""
        return self._sampling_percentage

    @sampling_percentage.setter
    def sampling_percentage(self, value: Optional[float]) -> None:
        if value is not None:
            value = float(value)
            if not 0.0 <= value <= 100.0:
                raise ValueError(f"sampling_percentage must be between 0 and 100, got {value}")
        self._sampling_percentage = value

    @property
    def metrics(self) -> Dict[str, float]:
        """
        Application-defined measurements, created on first access.

        Concurrent first reads all observe the same dictionary; it is never
        replaced afterwards.
        """
        measurements = self._measurements
        if measurements is None:
            with self._lock:
                if self._measurements is None:
                    self._measurements = {}
                measurements = self._measurements
        return measurements

    @property
    def properties(self) -> Dict[str, str]:
        """
        Application-defined dimensions, backed by the context's property bag.

        Reading this attribute materializes the metric-extractor marker, see
        `_materialize_extractor_marker`.
        """
        self._materialize_extractor_marker()
        return self._context.properties

    def _materialize_extractor_marker(self) -> None:
        # Tells the backend that standard metrics were already extracted from this item.
        properties = self._context.properties
        if self.metric_extractor_info and PROCESSED_BY_EXTRACTORS_KEY not in properties:
            properties[PROCESSED_BY_EXTRACTORS_KEY] = self.metric_extractor_info

    @classmethod
    def _telemetry_type_name(cls) -> str:
        return f"{cls.__module__}.{cls.__qualname__}"

    def deep_clone(self) -> "OperationTelemetry":
        """
        Returns a copy of this item that shares no mutable state with it.

        Properties and metrics are copied into fresh dictionaries, and the
        context and extension are deep-cloned. The cached snapshot is not
        carried over.
        """
        clone = type(self)()
        self._copy_to(clone)
        return clone

    def _copy_to(self, clone: "OperationTelemetry") -> None:
        clone.id = self.id
        clone.name = self.name
        clone.timestamp = self.timestamp
        clone.sequence = self.sequence
        clone._duration = self._duration
        clone._success = self._success
        clone._sampling_percentage = self._sampling_percentage
        clone._context = self._context.deep_clone()
        clone.properties.update(self.properties)
        if self._measurements:
            clone.metrics.update(self._measurements)
        clone.metric_extractor_info = self.metric_extractor_info
        clone.extension = self.extension.deep_clone() if self.extension is not None else None

    def sanitize(self) -> None:
        """
        Normalizes this item in place before it is sent.

        Trims and truncates the name, properties, measurements and
        type-specific fields, fills an empty id with a placeholder, clamps a
        negative duration to zero, defaults an unset ``success`` to ``True``
        and then applies type-specific required defaults. Never raises, and
        running it twice gives the same result as running it once.
        """
        settings = get_settings()
        self.name = sanitize_name(self.name, settings)
        sanitize_properties(self.properties, settings)
        sanitize_measurements(self.metrics, settings)
        self._sanitize_fields(settings)

        self.id = sanitize_name(self.id, settings)
        self.id = populate_required_string_value(self.id, "id", self._telemetry_type_name())

        if self._duration < timedelta(0):
            logger.warning("%s %s has negative duration %s; clamping to zero", type(self).__name__, self.id, self._duration)
            self._duration = timedelta(0)

        if self._success is None:
            self._success = True

        self._apply_required_defaults()

    def _sanitize_fields(self, settings: TelemetrySettings) -> None:
        """Sanitizes type-specific fields. Runs after measurements and before the id."""

    def _apply_required_defaults(self) -> None:
        """Fills type-specific required fields. Runs last, once ``success`` is known."""

    @property
    def snapshot(self) -> Any:
        """
        The wire snapshot of this item, built on first access.

        The snapshot is cached for the lifetime of the item: changes made after
        it was built are not reflected in later serializations.
        """
        snapshot = self._snapshot
        if snapshot is None:
            with self._lock:
                if self._snapshot is None:
                    self._snapshot = self._build_snapshot()
                snapshot = self._snapshot
        return snapshot

    @abstractmethod
    def _build_snapshot(self) -> Any:
        """Builds the immutable wire snapshot for this item."""

    def serialize_data(self, writer: SerializationWriter) -> None:
        writer.write_property(BASE_DATA_PROPERTY, self.snapshot)


__all__ = ["Telemetry", "OperationTelemetry", "PROCESSED_BY_EXTRACTORS_KEY"]
