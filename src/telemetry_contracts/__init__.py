"""
This package defines the telemetry data contracts used to describe units of
observability data before they are handed to a transport.

It provides request and dependency telemetry items, the context they carry,
the sanitization policy applied before send, and the snapshot models and
writers that produce the ingestion wire format. Transports, batching and retry
live outside this package; they only rely on ``sanitize()``, ``deep_clone()``
and ``serialize_data()``.
"""
from .config import TelemetrySettings, get_settings, reset_settings
from .context import (
    CloudContext,
    ComponentContext,
    DeviceContext,
    LocationContext,
    OperationContext,
    SessionContext,
    TelemetryContext,
    UserContext,
)
from .dependency import (
    DEPENDENCY_TYPE_AJAX,
    DEPENDENCY_TYPE_HTTP,
    DEPENDENCY_TYPE_SQL,
    DependencyTelemetry,
)
from .extension import DictExtension, TelemetryExtension
from .ids import generate_operation_id
from .logging_utils import configure_logging
from .request import RequestTelemetry
from .sampling import get_item_sampling_score, get_sampling_score, is_sampled_in
from .serialization import (
    DictSerializationWriter,
    JsonSerializationWriter,
    RemoteDependencyData,
    RequestData,
    SerializationWriter,
    format_duration,
    serialize,
    serialize_envelope,
)
from .telemetry import PROCESSED_BY_EXTRACTORS_KEY, OperationTelemetry, Telemetry

__all__ = [
    "TelemetrySettings",
    "get_settings",
    "reset_settings",
    "TelemetryContext",
    "OperationContext",
    "CloudContext",
    "UserContext",
    "SessionContext",
    "DeviceContext",
    "LocationContext",
    "ComponentContext",
    "Telemetry",
    "OperationTelemetry",
    "PROCESSED_BY_EXTRACTORS_KEY",
    "RequestTelemetry",
    "DependencyTelemetry",
    "DEPENDENCY_TYPE_HTTP",
    "DEPENDENCY_TYPE_AJAX",
    "DEPENDENCY_TYPE_SQL",
    "TelemetryExtension",
    "DictExtension",
    "SerializationWriter",
    "DictSerializationWriter",
    "JsonSerializationWriter",
    "RequestData",
    "RemoteDependencyData",
    "format_duration",
    "serialize",
    "serialize_envelope",
    "get_sampling_score",
    "get_item_sampling_score",
    "is_sampled_in",
    "generate_operation_id",
    "configure_logging",
]

__version__ = "0.1.0"
