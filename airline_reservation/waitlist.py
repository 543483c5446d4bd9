"""In-memory waitlists, one priority forest per flight."""
from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from priority_forest import Entry, PriorityForest

from .models import WAITLISTED, Booking


class WaitlistBoard:
    """Process-local registry of flight waitlists.

    Waitlists are never persisted. :meth:`load` rebuilds them from the
    ``waitlisted`` booking rows and resumes the booking-attempt sequence after
    the highest stored priority.
    """

    def __init__(self, *, start_priority: int = 1, check_invariants: Optional[bool] = None) -> None:
        self._forests: Dict[int, PriorityForest] = {}
        self._next_priority = start_priority
        self._check = check_invariants

    @classmethod
    def load(cls, session: Session, *, check_invariants: Optional[bool] = None) -> "WaitlistBoard":
        board = cls(check_invariants=check_invariants)
        board.rebuild(session)
        return board

    def next_priority(self) -> int:
        """Hand out the next booking-attempt priority (earlier attempts sort first)."""

        priority = self._next_priority
        self._next_priority += 1
        return priority

    def forest(self, flight_id: int) -> PriorityForest:
        forest = self._forests.get(flight_id)
        if forest is None:
            forest = PriorityForest(check_invariants=self._check)
            self._forests[flight_id] = forest
        return forest

    def enqueue(self, flight_id: int, priority: int, passenger_id: int) -> None:
        self.forest(flight_id).insert(priority, passenger_id)

    def peek(self, flight_id: int) -> Optional[Entry]:
        forest = self._forests.get(flight_id)
        if forest is None or forest.is_empty():
            return None
        return forest.peek_min()

    def promote_next(self, flight_id: int) -> Optional[Entry]:
        """Remove and return the highest-priority waiting entry, if any."""

        forest = self._forests.get(flight_id)
        if forest is None or forest.is_empty():
            return None
        return forest.extract_min()

    def count(self, flight_id: int) -> int:
        forest = self._forests.get(flight_id)
        return 0 if forest is None else forest.size()

    def ordered(self, flight_id: int) -> List[Entry]:
        forest = self._forests.get(flight_id)
        return [] if forest is None else list(forest.ordered())

    def clear(self) -> None:
        for forest in self._forests.values():
            forest.clear()
        self._forests.clear()

    def rebuild(self, session: Session) -> int:
        """Recreate every waitlist from stored rows; returns the number of entries."""

        self.clear()
        rows = session.execute(
            select(Booking.flight_id, Booking.priority, Booking.passenger_id)
            .where(Booking.status == WAITLISTED)
            .order_by(Booking.priority)
        ).all()
        for row in rows:
            self.enqueue(row.flight_id, row.priority, row.passenger_id)

        highest = session.scalar(select(func.max(Booking.priority)))
        self._next_priority = max(self._next_priority, (highest or 0) + 1)
        return len(rows)

    def __len__(self) -> int:
        return sum(forest.size() for forest in self._forests.values())


__all__ = ["WaitlistBoard"]
