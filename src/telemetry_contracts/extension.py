"""
This module defines the extension point that lets callers attach a strongly
typed payload to a telemetry item.

The item never inspects the payload; it only needs to copy it when the item is
cloned. Each concrete extension therefore implements its own `deep_clone`.
"""
from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, MutableMapping, Optional


class TelemetryExtension(ABC):
    """Base class for payloads attached to a telemetry item via ``extension``."""

    @abstractmethod
    def deep_clone(self) -> "TelemetryExtension":
        """Returns an independent copy of this extension."""


class DictExtension(TelemetryExtension, MutableMapping[str, Any]):
    """
    A mapping-backed extension for ad-hoc payloads.

    Values may be arbitrary nested structures; `deep_clone` copies them
    recursively so the clone shares no mutable state with the original.
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(values or {})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"DictExtension({self._values!r})"

    def deep_clone(self) -> "DictExtension":
        return DictExtension(copy.deepcopy(self._values))


__all__ = ["TelemetryExtension", "DictExtension"]
