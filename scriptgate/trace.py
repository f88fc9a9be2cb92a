"""Trace events recorded while lifecycle scripts are executed.

Each record names what happened (``event``) and where: a lifecycle phase,
a single dependency location or the top-level project. Payload values are
frozen on emission so sinks and later readers observe the same data.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import PurePath
from types import MappingProxyType
from typing import Any

__all__ = [
    "SCOPE_EVENT",
    "SCOPE_LOCATION",
    "SCOPE_PROJECT",
    "TRACE_EVENTS",
    "TraceEvent",
    "TraceEventEmitter",
    "TraceSink",
]

SCOPE_EVENT = "event"
SCOPE_LOCATION = "location"
SCOPE_PROJECT = "project"

_SCOPES = frozenset({SCOPE_EVENT, SCOPE_LOCATION, SCOPE_PROJECT})

TRACE_EVENTS = frozenset(
    {
        "lifecycle_event_start",
        "project_lifecycle_start",
        "script_start",
        "script_complete",
        "script_failed",
    }
)


def _frozen(value: Any) -> Any:
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, Mapping):
        return MappingProxyType({str(key): _frozen(item) for key, item in value.items()})
    if isinstance(value, (set, frozenset)):
        return frozenset(_frozen(item) for item in value)
    if isinstance(value, (list, tuple)):
        return tuple(_frozen(item) for item in value)
    return value


@dataclass(frozen=True, slots=True)
class TraceEvent:
    """One step of a gated run.

    ``scope_id`` is the lifecycle event name for ``"event"`` scopes, the
    qualified package name for ``"location"`` scopes and the project path for
    ``"project"`` scopes.
    """

    event: str
    scope_type: str
    scope_id: str
    payload: Mapping[str, Any]

    def to_dict(self) -> dict[str, Any]:
        body = {
            key: sorted(value) if isinstance(value, frozenset) else value
            for key, value in self.payload.items()
        }
        return {
            "event": self.event,
            "scope": {"type": self.scope_type, "id": self.scope_id},
            "payload": body,
        }


TraceSink = Callable[[TraceEvent], None]


class TraceEventEmitter:
    """Record trace events in order and fan them out to attached sinks."""

    def __init__(self, sinks: Iterable[TraceSink] = ()) -> None:
        self._events: list[TraceEvent] = []
        self._sinks: list[TraceSink] = list(sinks)

    def attach_sink(self, sink: TraceSink) -> None:
        self._sinks.append(sink)

    def detach_sink(self, sink: TraceSink) -> None:
        self._sinks = [existing for existing in self._sinks if existing != sink]

    def emit(
        self,
        event: str,
        *,
        scope_type: str,
        scope_id: str,
        payload: Mapping[str, Any] | None = None,
    ) -> TraceEvent:
        if event not in TRACE_EVENTS:
            raise ValueError(f"unknown trace event {event!r}")
        if scope_type not in _SCOPES:
            raise ValueError(f"unknown trace scope {scope_type!r}")

        record = TraceEvent(
            event=event,
            scope_type=scope_type,
            scope_id=scope_id,
            payload=_frozen(payload or {}),
        )
        self._events.append(record)
        for sink in tuple(self._sinks):
            sink(record)
        return record

    def select(
        self,
        event: str | None = None,
        *,
        scope_type: str | None = None,
        scope_id: str | None = None,
    ) -> tuple[TraceEvent, ...]:
        """Return recorded events matching every filter that is given."""

        return tuple(
            record
            for record in self._events
            if (event is None or record.event == event)
            and (scope_type is None or record.scope_type == scope_type)
            and (scope_id is None or record.scope_id == scope_id)
        )

    @property
    def events(self) -> tuple[TraceEvent, ...]:
        return tuple(self._events)

    def clear(self) -> None:
        self._events.clear()
