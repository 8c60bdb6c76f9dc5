"""Capability contracts a subsystem satisfies to be monitored.

``Monitorable`` is mandatory. The two ``Describes*`` protocols are optional
extras: the probe engine queries for them and folds their output into the
result metadata when present.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Monitorable(Protocol):
    """Minimal contract for a monitored subsystem.

    Both calls must return quickly. ``is_healthy`` may be a cheap local
    check; deep liveness probing belongs to the subsystem itself.
    """

    def is_configured(self) -> bool: ...

    def is_healthy(self) -> bool: ...


@runtime_checkable
class DescribesConfiguration(Protocol):
    def get_configuration(self) -> dict[str, Any]: ...


@runtime_checkable
class DescribesCapabilities(Protocol):
    def get_capabilities(self) -> dict[str, Any]: ...
