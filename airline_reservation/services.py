"""Business logic for the airline waitlist system."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import CANCELLED, CONFIRMED, WAITLISTED, Booking, Flight, Passenger
from .waitlist import WaitlistBoard

log = logging.getLogger(__name__)


class BookingNotFoundError(ValueError):
    """Raised when a passenger holds no booking on the flight."""


class WaitlistCancellationError(ValueError):
    """Raised when cancelling a passenger who is only on the waitlist.

    Waitlists only support removing their highest-priority entry, so a
    waiting passenger cannot be taken off the queue.
    """


@dataclass
class WaitlistRow:
    position: int
    priority: int
    passenger_id: int
    name: str


@dataclass
class FlightStatus:
    flight_number: str
    origin: str
    destination: str
    capacity: int
    booked: int
    waitlist_count: int
    confirmed: List[Tuple[int, str]] = field(default_factory=list)
    next_waitlisted: Optional[WaitlistRow] = None


@dataclass
class CancellationResult:
    cancelled: Booking
    promoted: Optional[Booking] = None


def _require_flight(session: Session, flight_number: str, *, for_update: bool = False) -> Flight:
    stmt = select(Flight).where(Flight.flight_number == flight_number.strip().upper())
    if for_update:
        stmt = stmt.with_for_update()
    flight = session.scalars(stmt).first()
    if not flight:
        raise ValueError(f"flight '{flight_number}' not found")
    return flight


def _passenger_name(session: Session, passenger_id: int) -> str:
    passenger = session.get(Passenger, passenger_id)
    return passenger.name if passenger else "<Unknown Passenger>"


def _confirmed_count(session: Session, flight_id: int) -> int:
    return session.scalar(
        select(func.count(Booking.id)).where(
            Booking.flight_id == flight_id, Booking.status == CONFIRMED
        )
    ) or 0


def add_flight(
    session: Session,
    *,
    flight_number: str,
    origin: str,
    destination: str,
    capacity: int,
) -> Flight:
    """Create a flight entry."""

    flight_number = flight_number.strip().upper()
    if not flight_number:
        raise ValueError("flight number cannot be empty")
    if capacity < 0:
        raise ValueError("capacity must be a non-negative number")

    flight = Flight(
        flight_number=flight_number,
        origin=origin.strip(),
        destination=destination.strip(),
        capacity=capacity,
    )
    with session.begin_nested():
        session.add(flight)
        try:
            session.flush()
        except IntegrityError as exc:
            raise ValueError(f"flight '{flight_number}' already exists") from exc
    return flight


def add_passenger(session: Session, *, name: str) -> Passenger:
    name = name.strip()
    if not name:
        raise ValueError("passenger name cannot be empty")
    passenger = Passenger(name=name)
    session.add(passenger)
    session.flush()
    return passenger


def list_flights(session: Session) -> List[Flight]:
    return list(session.scalars(select(Flight).order_by(Flight.flight_number)))


def list_passengers(session: Session) -> List[Passenger]:
    return list(session.scalars(select(Passenger).order_by(Passenger.id)))


def book_seat(
    session: Session,
    board: WaitlistBoard,
    *,
    flight_number: str,
    passenger_id: int,
) -> Booking:
    """Confirm a seat if one is free, otherwise put the passenger on the waitlist.

    A passenger already holding a confirmed or waitlisted booking on the flight
    gets that booking back unchanged.
    """

    with session.begin_nested():
        flight = _require_flight(session, flight_number, for_update=True)
        passenger = session.get(Passenger, passenger_id)
        if not passenger:
            raise ValueError(f"passenger {passenger_id} not found")

        existing = session.scalars(
            select(Booking)
            .where(
                Booking.flight_id == flight.id,
                Booking.passenger_id == passenger.id,
                Booking.status.in_((CONFIRMED, WAITLISTED)),
            )
            .order_by(Booking.priority)
        ).first()
        if existing is not None:
            log.info(
                "Passenger %s is already %s on flight %s", passenger.id, existing.status, flight.flight_number
            )
            return existing

        priority = board.next_priority()
        if _confirmed_count(session, flight.id) < flight.capacity:
            status = CONFIRMED
        else:
            status = WAITLISTED
        booking = Booking(flight=flight, passenger=passenger, status=status, priority=priority)
        session.add(booking)
        session.flush()

        if status == WAITLISTED:
            board.enqueue(flight.id, priority, passenger.id)
            log.info(
                "Flight %s is full; passenger %s waitlisted with priority %s",
                flight.flight_number,
                passenger.id,
                priority,
            )
        else:
            log.info("Booking confirmed for passenger %s on flight %s", passenger.id, flight.flight_number)
    return booking


def cancel_booking(
    session: Session,
    board: WaitlistBoard,
    *,
    flight_number: str,
    passenger_id: int,
) -> CancellationResult:
    """Cancel a confirmed booking and promote the next waitlisted passenger."""

    with session.begin_nested():
        flight = _require_flight(session, flight_number, for_update=True)
        bookings = list(
            session.scalars(
                select(Booking)
                .where(Booking.flight_id == flight.id, Booking.passenger_id == passenger_id)
                .order_by(Booking.priority)
            )
        )
        confirmed = next((b for b in bookings if b.status == CONFIRMED), None)
        if confirmed is None:
            if any(b.status == WAITLISTED for b in bookings):
                log.info(
                    "Refused to cancel waitlisted passenger %s on flight %s",
                    passenger_id,
                    flight.flight_number,
                )
                raise WaitlistCancellationError(
                    f"passenger {passenger_id} is waitlisted on flight {flight.flight_number}; "
                    "waitlist cancellation is not supported"
                )
            raise BookingNotFoundError(
                f"passenger {passenger_id} has no confirmed booking on flight {flight.flight_number}"
            )

        confirmed.status = CANCELLED
        log.info("Booking cancelled for passenger %s on flight %s", passenger_id, flight.flight_number)

        promoted: Optional[Booking] = None
        entry = board.peek(flight.id)
        if entry is not None:
            # The row must exist before the entry leaves the forest.
            promoted = session.scalars(select(Booking).where(Booking.priority == entry.priority)).one()
            board.promote_next(flight.id)
            promoted.status = CONFIRMED
            promoted.promoted_at = datetime.utcnow()
            log.info(
                "Passenger %s moved from waitlist to confirmed seat on flight %s",
                entry.payload,
                flight.flight_number,
            )
        session.flush()
    return CancellationResult(cancelled=confirmed, promoted=promoted)


def waitlist_order(session: Session, board: WaitlistBoard, *, flight_number: str) -> List[WaitlistRow]:
    """Return the flight's waitlist in service order without consuming it."""

    flight = _require_flight(session, flight_number)
    return [
        WaitlistRow(
            position=position,
            priority=entry.priority,
            passenger_id=entry.payload,
            name=_passenger_name(session, entry.payload),
        )
        for position, entry in enumerate(board.ordered(flight.id), start=1)
    ]


def flight_status(session: Session, board: WaitlistBoard, *, flight_number: str) -> FlightStatus:
    flight = _require_flight(session, flight_number)
    confirmed = session.execute(
        select(Passenger.id, Passenger.name)
        .join(Booking, Booking.passenger_id == Passenger.id)
        .where(Booking.flight_id == flight.id, Booking.status == CONFIRMED)
        .order_by(Booking.priority)
    ).all()

    next_waitlisted = None
    entry = board.peek(flight.id)
    if entry is not None:
        next_waitlisted = WaitlistRow(
            position=1,
            priority=entry.priority,
            passenger_id=entry.payload,
            name=_passenger_name(session, entry.payload),
        )

    return FlightStatus(
        flight_number=flight.flight_number,
        origin=flight.origin,
        destination=flight.destination,
        capacity=flight.capacity,
        booked=len(confirmed),
        waitlist_count=board.count(flight.id),
        confirmed=[(row.id, row.name) for row in confirmed],
        next_waitlisted=next_waitlisted,
    )


def summarize_capacity(session: Session, board: WaitlistBoard) -> List[dict]:
    rows = session.execute(
        select(
            Flight.id,
            Flight.flight_number,
            Flight.origin,
            Flight.destination,
            Flight.capacity,
            func.count(Booking.id).label("booked"),
        )
        .outerjoin(Booking, (Booking.flight_id == Flight.id) & (Booking.status == CONFIRMED))
        .group_by(Flight.id)
        .order_by(Flight.flight_number)
    ).all()
    return [
        {
            "flight": row.flight_number,
            "route": f"{row.origin}-{row.destination}",
            "booked": row.booked,
            "capacity": row.capacity,
            "waitlist": board.count(row.id),
        }
        for row in rows
    ]
