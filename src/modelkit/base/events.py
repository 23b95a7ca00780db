from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger("modelkit.events")

Handler = Callable[..., Any]


class Event:
    """Named hook dispatching synchronously to its subscribers in order."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[Handler] = []

    @property
    def handlers(self) -> tuple[Handler, ...]:
        return tuple(self._handlers)

    def subscribe(self, handler: Handler) -> Handler:
        """Register ``handler``; returns it so this works as a decorator."""
        self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: Handler | None = None) -> None:
        """Remove one handler, or every handler when none is given."""
        if handler is None:
            self._handlers.clear()
        elif handler in self._handlers:
            self._handlers.remove(handler)

    def emit(self, *args: Any, **kwargs: Any) -> None:
        if self._handlers:
            logger.debug(f"Emitting '{self.name}' to {len(self._handlers)} handler(s)")
        for handler in list(self._handlers):
            handler(*args, **kwargs)

    def __repr__(self) -> str:
        return f"Event({self.name!r}, handlers={len(self._handlers)})"


class EventDirectory:
    """A set of named events with custom events created on demand."""

    EVENT_NAMES: tuple[str, ...] = ()

    def __init__(self, name: str) -> None:
        self.name = name
        self._events: dict[str, Event] = {}
        for event_name in self.EVENT_NAMES:
            self.create(event_name)

    def create(self, event_name: str) -> Event:
        self._events[event_name] = Event(event_name)
        return self._events[event_name]

    def get_event(self, event_name: str) -> Event | None:
        return self._events.get(event_name)

    def subscribe(self, event_name: str, handler: Handler) -> Handler:
        event = self.get_event(event_name) or self.create(event_name)
        return event.subscribe(handler)

    def unsubscribe(self, event_name: str, handler: Handler | None = None) -> None:
        event = self.get_event(event_name)
        if event is not None:
            event.unsubscribe(handler)

    def emit(self, event_name: str, *args: Any, **kwargs: Any) -> None:
        event = self.get_event(event_name)
        if event is not None:
            event.emit(*args, **kwargs)

    def __getattr__(self, item: str) -> Event:
        events = self.__dict__.get("_events", {})
        if item in events:
            return events[item]
        raise AttributeError(f"{type(self).__name__!s} has no event '{item}'")


class ModelRegistryEvents(EventDirectory):
    """Hooks fired by a model registry."""

    EVENT_NAMES = (
        "before_register",
        "after_register",
        "before_overwrite",
        "after_overwrite",
    )


class ModelEvents(EventDirectory):
    """Lifecycle hooks of a single model."""

    EVENT_NAMES = (
        "before_init",
        "after_init",
        "before_register",
        "after_register",
        "before_create",
        "after_create",
        "before_update",
        "after_update",
        "before_delete",
        "after_delete",
    )
