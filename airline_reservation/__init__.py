"""Airline booking layer with priority-ordered waitlists."""
from .database import create_session_factory, init_db, session_scope
from .dataset import generate_sample_data, load_sample_data
from .services import (
    BookingNotFoundError,
    CancellationResult,
    FlightStatus,
    WaitlistCancellationError,
    WaitlistRow,
    add_flight,
    add_passenger,
    book_seat,
    cancel_booking,
    flight_status,
    list_flights,
    list_passengers,
    summarize_capacity,
    waitlist_order,
)
from .waitlist import WaitlistBoard

__all__ = [
    "init_db",
    "create_session_factory",
    "session_scope",
    "generate_sample_data",
    "load_sample_data",
    "WaitlistBoard",
    "BookingNotFoundError",
    "WaitlistCancellationError",
    "CancellationResult",
    "FlightStatus",
    "WaitlistRow",
    "add_flight",
    "add_passenger",
    "book_seat",
    "cancel_booking",
    "flight_status",
    "list_flights",
    "list_passengers",
    "summarize_capacity",
    "waitlist_order",
]
