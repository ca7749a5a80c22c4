"""
Reservation Domain Events

Published on the message bus after the mutation's transaction commits.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class ReservationCreated(DomainEvent):
    """A booking was accepted"""
    booking_uid: str
    yacht_id: int
    start_at: datetime
    end_at: datetime
    source: str
    actor: str


@dataclass(kw_only=True)
class ReservationRescheduled(DomainEvent):
    """
    A booking moved to a new slot

    The booking keeps its row but gets a new uid; previous_booking_uid
    is the one clients knew before the move.
    """
    booking_uid: str
    previous_booking_uid: str
    yacht_id: int
    previous_start_at: datetime
    previous_end_at: datetime
    start_at: datetime
    end_at: datetime
    change_mode: str
    actor: str
    booking_uid_history: List[str] = field(default_factory=list)


@dataclass(kw_only=True)
class ReservationCancelled(DomainEvent):
    """A booking was cancelled and its slot released"""
    booking_uid: str
    yacht_id: int
    reason: str
    actor: str
