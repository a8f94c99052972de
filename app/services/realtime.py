# app/services/realtime.py
"""
In-process live feed of row-level change events.

Channels are keyed by a logical scope name (``notifications:<user_id>``,
``comments:<project_id>``). There is at most one channel per scope; every
listener attached to it is called once per matching event, no matter how many
times it was registered.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"
ALL_EVENTS = "*"


@dataclass
class ChangeEvent:
    table: str
    event_type: str
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None

    @property
    def record(self) -> Dict[str, Any]:
        """The row the event is about (the old row for deletes)"""
        return self.new if self.new is not None else (self.old or {})


Listener = Callable[[ChangeEvent], Awaitable[None]]


class Channel:
    """A live feed scoped to one table and an equality filter"""

    def __init__(self, name: str, table: str, filters: Dict[str, Any], events: Sequence[str]):
        self.name = name
        self.table = table
        self.filters = dict(filters)
        self.events = tuple(events)
        self.listeners: List[Listener] = []

    def add_listener(self, listener: Listener) -> bool:
        if listener in self.listeners:
            return False
        self.listeners.append(listener)
        return True

    def remove_listener(self, listener: Listener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        if ALL_EVENTS not in self.events and event.event_type not in self.events:
            return False
        record = event.record
        return all(record.get(column) == value for column, value in self.filters.items())

    async def dispatch(self, event: ChangeEvent) -> None:
        # Copy: listeners may unsubscribe while being called
        for listener in list(self.listeners):
            try:
                await listener(event)
            except Exception as e:
                logger.error(f"Live feed listener on channel {self.name} failed: {e}")


class ChangeFeed:
    """Registry of live feed channels, one per logical scope"""

    def __init__(self):
        self.channels: Dict[str, Channel] = {}

    def channel(
        self,
        name: str,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        events: Sequence[str] = (ALL_EVENTS,),
    ) -> Channel:
        """Return the channel for a scope, opening it on first use"""
        filters = filters or {}
        existing = self.channels.get(name)
        if existing is not None:
            if existing.table != table or existing.filters != filters:
                raise ValueError(f"Channel {name} is already bound to a different table or filter")
            return existing

        channel = Channel(name, table, filters, events)
        self.channels[name] = channel
        logger.info(f"Opened live feed channel {name} on {table} {filters}")
        return channel

    def subscribe(
        self,
        name: str,
        table: str,
        filters: Optional[Dict[str, Any]],
        listener: Listener,
        events: Sequence[str] = (ALL_EVENTS,),
    ) -> Callable[[], None]:
        """Attach a listener to a scope; returns the matching unsubscribe callable"""
        channel = self.channel(name, table, filters, events)
        channel.add_listener(listener)

        def unsubscribe():
            self.unsubscribe(name, listener)

        return unsubscribe

    def unsubscribe(self, name: str, listener: Listener) -> None:
        channel = self.channels.get(name)
        if channel is None:
            return
        channel.remove_listener(listener)
        if not channel.listeners:
            del self.channels[name]
            logger.info(f"Closed live feed channel {name}")

    async def publish(self, event: ChangeEvent) -> None:
        for channel in list(self.channels.values()):
            if channel.matches(event):
                await channel.dispatch(event)

    def listener_count(self, name: str) -> int:
        channel = self.channels.get(name)
        return len(channel.listeners) if channel else 0
