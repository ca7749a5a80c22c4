"""
Base Domain Classes

Building blocks shared by the booking domain:
- Entity: objects with identity
- ValueObject: immutable objects compared by value
- Aggregate: consistency boundary that records domain events
- DomainEvent: a fact that happened, published after commit
"""

from abc import ABC
from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from typing import Any, List
from uuid import UUID, uuid4


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def _serialize(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    return value


@dataclass
class Entity(ABC):
    """
    Base class for entities

    Two entities are equal when their ids are equal, whatever their state.
    """
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def touch(self):
        self.updated_at = utcnow()


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Immutable, no identity, equal when all attributes are equal.
    """
    pass


@dataclass
class Aggregate(Entity):
    """
    Base class for aggregate roots

    Events are kept on the aggregate until the unit of work collects them.
    """
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False, compare=False)

    def add_event(self, event: 'DomainEvent'):
        self._events.append(event)

    def clear_events(self):
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Copy of the pending events"""
        return self._events.copy()


@dataclass
class DomainEvent:
    """
    Base class for domain events

    Subclasses add their own fields; `to_dict` renders all of them
    so handlers can log or forward the event without knowing its type.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utcnow)
    aggregate_id: UUID | None = None

    def to_dict(self) -> dict:
        data = {
            'event_type': self.__class__.__name__,
        }
        for item in fields(self):
            data[item.name] = _serialize(getattr(self, item.name))
        return data
