"""Utilities to populate the database with sample data for tests and demos."""
from __future__ import annotations

import random
from typing import Dict, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from .models import WAITLISTED, Booking, Flight, Passenger
from .services import add_flight, add_passenger, book_seat
from .waitlist import WaitlistBoard

SAMPLE_PASSENGERS: Sequence[str] = ("Alice", "Bob", "Charlie", "David", "Eve", "Frank")
SAMPLE_FLIGHTS = (
    ("AI101", "Delhi", "Mumbai", 2),
    ("BA202", "London", "NewYork", 250),
    ("LH303", "Frankfurt", "Tokyo", 3),
)
# (flight, passenger position in SAMPLE_PASSENGERS); AI101 overflows into its waitlist.
SAMPLE_BOOKINGS = (
    ("AI101", 0),
    ("AI101", 1),
    ("AI101", 2),
    ("AI101", 3),
    ("LH303", 4),
)

AIRPORTS: Sequence[str] = (
    "ATL",
    "PEK",
    "DXB",
    "LAX",
    "HND",
    "ORD",
    "LHR",
    "HKG",
    "PVG",
    "CDG",
)
FIRST_NAMES = ("Ava", "Noah", "Liam", "Mia", "Lucas", "Emma", "Ethan", "Isabella")
LAST_NAMES = ("Johnson", "Williams", "Smith", "Brown", "Garcia", "Lee")


def _summary(session: Session) -> Dict[str, int]:
    bookings = list(session.scalars(select(Booking)))
    return {
        "flights": session.scalar(select(func.count(Flight.id))) or 0,
        "passengers": session.scalar(select(func.count(Passenger.id))) or 0,
        "bookings": len(bookings),
        "waitlisted": sum(1 for booking in bookings if booking.status == WAITLISTED),
    }


def load_sample_data(session_factory: sessionmaker[Session], board: WaitlistBoard) -> Dict[str, int]:
    """Load the small demo fleet: two passengers end up waitlisted on AI101."""

    with session_factory() as session:
        passengers = [add_passenger(session, name=name) for name in SAMPLE_PASSENGERS]
        for flight_number, origin, destination, capacity in SAMPLE_FLIGHTS:
            add_flight(
                session,
                flight_number=flight_number,
                origin=origin,
                destination=destination,
                capacity=capacity,
            )
        for flight_number, index in SAMPLE_BOOKINGS:
            book_seat(session, board, flight_number=flight_number, passenger_id=passengers[index].id)
        session.commit()
        return _summary(session)


def generate_sample_data(
    session_factory: sessionmaker[Session],
    board: WaitlistBoard,
    *,
    flights: int = 10,
    passengers: int = 60,
    bookings: int = 150,
) -> Dict[str, int]:
    """Populate the database with deterministic pseudo-random traffic.

    Capacities are kept small relative to ``bookings`` so most flights build a
    waitlist.
    """

    rng = random.Random(42)
    with session_factory() as session:
        flight_numbers = []
        for index in range(flights):
            origin, destination = rng.sample(AIRPORTS, 2)
            flight = add_flight(
                session,
                flight_number=f"AR{1000 + index}",
                origin=origin,
                destination=destination,
                capacity=rng.choice((2, 4, 8)),
            )
            flight_numbers.append(flight.flight_number)
        passenger_ids = [
            add_passenger(
                session,
                name=f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
            ).id
            for _ in range(passengers)
        ]
        session.commit()

        if not flight_numbers or not passenger_ids:
            return _summary(session)
        for _ in range(bookings):
            book_seat(
                session,
                board,
                flight_number=rng.choice(flight_numbers),
                passenger_id=rng.choice(passenger_ids),
            )
        session.commit()
        return _summary(session)
