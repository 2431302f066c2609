"""
This module defines the Pydantic models that describe the environment a
telemetry item was recorded in.

A `TelemetryContext` carries correlation identifiers (operation id, parent id),
the identity of the emitting application (cloud role), and information about
the end user, session, device and location. It also owns the free-form
property bag that request and dependency telemetry expose as ``properties``.
On the wire the structured parts are flattened into a ``tags`` dictionary keyed
by the well-known ``ai.*`` tag names.
"""
from __future__ import annotations

from typing import ClassVar, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class _SubContext(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    TAG_NAMES: ClassVar[Dict[str, str]] = {}

    def write_tags(self, tags: Dict[str, str]) -> None:
        for field_name, tag in self.TAG_NAMES.items():
            value = getattr(self, field_name)
            if value is None or value == "":
                continue
            tags[tag] = str(value).lower() if isinstance(value, bool) else str(value)


class OperationContext(_SubContext):
    """Correlation identifiers of the logical operation the item belongs to."""

    id: Optional[str] = None
    parent_id: Optional[str] = None
    name: Optional[str] = None
    synthetic_source: Optional[str] = None
    correlation_vector: Optional[str] = None

    TAG_NAMES: ClassVar[Dict[str, str]] = {
        "id": "ai.operation.id",
        "parent_id": "ai.operation.parentId",
        "name": "ai.operation.name",
        "synthetic_source": "ai.operation.syntheticSource",
        "correlation_vector": "ai.operation.correlationVector",
    }


class CloudContext(_SubContext):
    """Identity of the emitting application role and instance."""

    role_name: Optional[str] = None
    role_instance: Optional[str] = None

    TAG_NAMES: ClassVar[Dict[str, str]] = {
        "role_name": "ai.cloud.role",
        "role_instance": "ai.cloud.roleInstance",
    }


class UserContext(_SubContext):
    """The end user on whose behalf the operation ran."""

    id: Optional[str] = None
    authenticated_user_id: Optional[str] = None
    account_id: Optional[str] = None
    user_agent: Optional[str] = None

    TAG_NAMES: ClassVar[Dict[str, str]] = {
        "id": "ai.user.id",
        "authenticated_user_id": "ai.user.authUserId",
        "account_id": "ai.user.accountId",
        "user_agent": "ai.user.userAgent",
    }


class SessionContext(_SubContext):
    """The user session, if the application tracks one."""

    id: Optional[str] = None
    is_first: Optional[bool] = None

    TAG_NAMES: ClassVar[Dict[str, str]] = {
        "id": "ai.session.id",
        "is_first": "ai.session.isFirst",
    }


class DeviceContext(_SubContext):
    """The machine or client device that produced the item."""

    id: Optional[str] = None
    type: Optional[str] = None
    os_version: Optional[str] = None
    model: Optional[str] = None

    TAG_NAMES: ClassVar[Dict[str, str]] = {
        "id": "ai.device.id",
        "type": "ai.device.type",
        "os_version": "ai.device.osVersion",
        "model": "ai.device.model",
    }


class LocationContext(_SubContext):
    """Client location, reduced to its ip address."""

    ip: Optional[str] = None

    TAG_NAMES: ClassVar[Dict[str, str]] = {"ip": "ai.location.ip"}


class ComponentContext(_SubContext):
    """Version of the emitting application component."""

    version: Optional[str] = None

    TAG_NAMES: ClassVar[Dict[str, str]] = {"version": "ai.application.ver"}


class TelemetryContext(BaseModel):
    """
    Contextual information attached to every telemetry item.

    The context is owned by exactly one telemetry item. `deep_clone` produces a
    fully independent copy so that a cloned item can be buffered or retried
    without aliasing the caller's mutable state.

    Attributes:
        instrumentation_key: Destination resource key written as ``iKey``.
        properties: Free-form string dimensions shared with the owning item.
        operation, cloud, user, session, device, location, component:
            Structured sub-contexts flattened into wire tags.
    """

    instrumentation_key: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)
    operation: OperationContext = Field(default_factory=OperationContext)
    cloud: CloudContext = Field(default_factory=CloudContext)
    user: UserContext = Field(default_factory=UserContext)
    session: SessionContext = Field(default_factory=SessionContext)
    device: DeviceContext = Field(default_factory=DeviceContext)
    location: LocationContext = Field(default_factory=LocationContext)
    component: ComponentContext = Field(default_factory=ComponentContext)

    def deep_clone(self, properties: Optional[Dict[str, str]] = None) -> "TelemetryContext":
        """
        Creates an independent copy of this context.

        The property bag is not copied: the clone uses ``properties`` when
        given, otherwise a fresh empty dictionary. Owners copy their own view
        of the properties afterwards.

        Args:
            properties: Property bag the clone should own.

        Returns:
            A new `TelemetryContext`.
        """
        clone = self.model_copy(deep=True)
        clone.properties = properties if properties is not None else {}
        return clone

    def to_tags(self) -> Dict[str, str]:
        """Flattens the structured sub-contexts into ``ai.*`` wire tags, skipping empty values."""
        tags: Dict[str, str] = {}
        for sub_context in (
            self.operation,
            self.cloud,
            self.user,
            self.session,
            self.device,
            self.location,
            self.component,
        ):
            sub_context.write_tags(tags)
        return tags


__all__ = [
    "TelemetryContext",
    "OperationContext",
    "CloudContext",
    "UserContext",
    "SessionContext",
    "DeviceContext",
    "LocationContext",
    "ComponentContext",
]
