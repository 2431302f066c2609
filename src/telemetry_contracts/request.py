"""
This module defines `RequestTelemetry`, the record of a single incoming request
handled by the application.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from .config import TelemetrySettings
from .sanitization import sanitize_uri
from .serialization import RequestData, format_duration
from .telemetry import OperationTelemetry

HTTP_METHOD_PROPERTY = "httpMethod"
DEFAULT_SUCCESS_RESPONSE_CODE = "200"


class RequestTelemetry(OperationTelemetry):
    """
    Encapsulates information about a web request handled by the application.

    All constructor arguments are optional. A name is not required by the
    contract, but without one the request cannot be grouped meaningfully in
    the backend.

    Attributes:
        response_code: Response code returned by the application.
        source: Identifier of the caller, often a hashed instrumentation key.
        url: Requested url.
    """

    TELEMETRY_NAME = "AppRequests"
    BASE_TYPE = "RequestData"

    def __init__(
        self,
        name: Optional[str] = None,
        start_time: Optional[datetime] = None,
        duration: Optional[timedelta] = None,
        response_code: Optional[str] = None,
        success: Optional[bool] = None,
    ) -> None:
        super().__init__()
        self.name = name
        self.timestamp = start_time
        if duration is not None:
            self.duration = duration
        self.response_code: Optional[str] = response_code
        self.success = success
        self.source: Optional[str] = None
        self.url: Optional[str] = None

    @property
    def http_method(self) -> Optional[str]:
        """HTTP method of the request, stored as the ``httpMethod`` property."""
        return self.properties.get(HTTP_METHOD_PROPERTY)

    @http_method.setter
    def http_method(self, value: Optional[str]) -> None:
        self.properties[HTTP_METHOD_PROPERTY] = value

    def _copy_to(self, clone: OperationTelemetry) -> None:
        super()._copy_to(clone)
        clone.response_code = self.response_code
        clone.source = self.source
        clone.url = self.url

    def _sanitize_fields(self, settings: TelemetrySettings) -> None:
        self.url = sanitize_uri(self.url, settings)

    def _apply_required_defaults(self) -> None:
        if not self.response_code:
            self.response_code = DEFAULT_SUCCESS_RESPONSE_CODE if self.success else ""

    def _build_snapshot(self) -> RequestData:
        return RequestData.model_construct(
            duration=format_duration(self.duration),
            id=self.id,
            measurements=dict(self.metrics),
            name=self.name,
            properties=dict(self.properties),
            responseCode=self.response_code,
            source=self.source,
            success=self.success,
            url=None if self.url is None else str(self.url),
        )


__all__ = ["RequestTelemetry", "HTTP_METHOD_PROPERTY", "DEFAULT_SUCCESS_RESPONSE_CODE"]
