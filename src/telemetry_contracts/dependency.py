"""
This module defines `DependencyTelemetry`, the record of an outgoing call the
application made to a remote component: an HTTP service, a database, a queue,
or, from a browser, an Ajax request.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from .config import TelemetrySettings
from .sanitization import populate_required_string_value, sanitize_data, sanitize_name
from .serialization import RemoteDependencyData, format_duration
from .telemetry import OperationTelemetry

DEPENDENCY_TYPE_HTTP = "Http"
DEPENDENCY_TYPE_AJAX = "Ajax"
DEPENDENCY_TYPE_SQL = "SQL"


class DependencyTelemetry(OperationTelemetry):
    """
    Encapsulates information about a call to a remote dependency.

    Attributes:
        type: Dependency kind, e.g. ``"Http"``, ``"Ajax"`` or ``"SQL"``.
        target: Host or server the call was made to.
        data: Command text: the full url, or the SQL statement.
        result_code: Result code reported by the dependency.
    """

    TELEMETRY_NAME = "AppDependencies"
    BASE_TYPE = "RemoteDependencyData"

    def __init__(
        self,
        dependency_type_name: Optional[str] = None,
        target: Optional[str] = None,
        dependency_name: Optional[str] = None,
        data: Optional[str] = None,
        start_time: Optional[datetime] = None,
        duration: Optional[timedelta] = None,
        result_code: Optional[str] = None,
        success: Optional[bool] = None,
    ) -> None:
        super().__init__()
        self.type: Optional[str] = dependency_type_name
        self.target: Optional[str] = target
        self.name = dependency_name
        self.data: Optional[str] = data
        self.timestamp = start_time
        if duration is not None:
            self.duration = duration
        self.result_code: Optional[str] = result_code
        self.success = success

    def _copy_to(self, clone: OperationTelemetry) -> None:
        super()._copy_to(clone)
        clone.type = self.type
        clone.target = self.target
        clone.data = self.data
        clone.result_code = self.result_code

    def _sanitize_fields(self, settings: TelemetrySettings) -> None:
        self.name = populate_required_string_value(self.name, "name", self._telemetry_type_name())
        self.target = sanitize_name(self.target, settings)
        self.type = sanitize_name(self.type, settings)
        self.result_code = sanitize_name(self.result_code, settings)
        self.data = sanitize_data(self.data, settings)

    def _build_snapshot(self) -> RemoteDependencyData:
        return RemoteDependencyData.model_construct(
            data=self.data,
            duration=format_duration(self.duration),
            id=self.id,
            measurements=dict(self.metrics),
            name=self.name,
            properties=dict(self.properties),
            resultCode=self.result_code,
            success=self.success,
            target=self.target,
            type=self.type,
        )


__all__ = [
    "DependencyTelemetry",
    "DEPENDENCY_TYPE_HTTP",
    "DEPENDENCY_TYPE_AJAX",
    "DEPENDENCY_TYPE_SQL",
]
