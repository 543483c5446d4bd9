"""Command line interface for flights, bookings and waitlists."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker
from tabulate import tabulate

from . import dataset, reports, services
from .database import init_db, session_scope
from .models import WAITLISTED, Flight
from .waitlist import WaitlistBoard


def _render_flights(rows: list[dict]) -> str:
    if not rows:
        return "No flights available."
    table = [[r["flight"], r["route"], r["booked"], r["capacity"], r["waitlist"]] for r in rows]
    return tabulate(table, headers=["Flight", "Route", "Booked", "Capacity", "Waitlist"], tablefmt="github")


def _render_status(status: services.FlightStatus) -> str:
    lines = [
        f"Flight Status: {status.flight_number} ({status.origin} -> {status.destination})",
        f"Capacity: {status.capacity}",
        f"Booked:   {status.booked}",
        f"Waitlist: {status.waitlist_count}",
        "",
        "Confirmed passengers:",
    ]
    if status.confirmed:
        lines.append(tabulate(status.confirmed, headers=["ID", "Name"], tablefmt="github"))
    else:
        lines.append("None")
    lines.append("")
    nxt = status.next_waitlisted
    if nxt is None:
        lines.append("Waitlist: empty")
    else:
        lines.append(f"Next on waitlist: {nxt.name} (ID {nxt.passenger_id}, priority {nxt.priority})")
    return "\n".join(lines)


def _render_waitlist(rows: list[services.WaitlistRow]) -> str:
    if not rows:
        return "Waitlist is empty."
    table = [[row.position, row.priority, row.passenger_id, row.name] for row in rows]
    return tabulate(table, headers=["Position", "Priority", "Passenger ID", "Name"], tablefmt="github")


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Book flights and manage priority waitlists.")
    parser.add_argument(
        "--db-url",
        default=None,
        help="SQLAlchemy database URL (default: $AIRLINE_DB_URL or an in-memory SQLite database).",
    )
    parser.add_argument(
        "--no-sample",
        action="store_true",
        help="Do not load the demo flights and passengers into an empty database.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log booking activity to stderr.")
    sub = parser.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed", help="Load sample data.")
    seed.add_argument("--random", action="store_true", help="Generate pseudo-random traffic instead of the demo set.")
    seed.add_argument("--flights", type=int, default=10)
    seed.add_argument("--passengers", type=int, default=60)
    seed.add_argument("--bookings", type=int, default=150)

    flights = sub.add_parser("flights", help="List all flights with booked and waitlist counts.")
    flights.add_argument("--csv", help="Also write the table to this CSV file.")

    sub.add_parser("passengers", help="List all passengers.")

    status = sub.add_parser("status", help="Show one flight's bookings and next waitlisted passenger.")
    status.add_argument("flight")

    add_flight = sub.add_parser("add-flight", help="Create a flight.")
    add_flight.add_argument("flight")
    add_flight.add_argument("origin")
    add_flight.add_argument("destination")
    add_flight.add_argument("capacity", type=int)

    add_passenger = sub.add_parser("add-passenger", help="Register a passenger.")
    add_passenger.add_argument("name")

    book = sub.add_parser("book", help="Book a seat, joining the waitlist when the flight is full.")
    book.add_argument("passenger_id", type=int)
    book.add_argument("flight")

    cancel = sub.add_parser("cancel", help="Cancel a confirmed booking and promote the waitlist.")
    cancel.add_argument("passenger_id", type=int)
    cancel.add_argument("flight")

    waitlist = sub.add_parser("waitlist", help="Show a flight's waitlist in service order.")
    waitlist.add_argument("flight")
    waitlist.add_argument("--csv", help="Also write the waitlist to this CSV file.")

    return parser.parse_args(list(argv))


def _run(args: argparse.Namespace, session_factory: sessionmaker, board: WaitlistBoard) -> str:
    if args.command == "seed":
        if args.random:
            summary = dataset.generate_sample_data(
                session_factory,
                board,
                flights=args.flights,
                passengers=args.passengers,
                bookings=args.bookings,
            )
        else:
            summary = dataset.load_sample_data(session_factory, board)
        return (
            f"Loaded {summary['flights']} flights, {summary['passengers']} passengers, "
            f"{summary['bookings']} bookings ({summary['waitlisted']} waitlisted)."
        )

    with session_scope(session_factory) as session:
        if args.command == "flights":
            rows = services.summarize_capacity(session, board)
            if args.csv:
                reports.write_csv(reports.capacity_frame(rows), args.csv)
            return _render_flights(rows)

        if args.command == "passengers":
            passengers = services.list_passengers(session)
            if not passengers:
                return "No passengers registered."
            return tabulate([[p.id, p.name] for p in passengers], headers=["ID", "Name"], tablefmt="github")

        if args.command == "status":
            return _render_status(services.flight_status(session, board, flight_number=args.flight))

        if args.command == "add-flight":
            flight = services.add_flight(
                session,
                flight_number=args.flight,
                origin=args.origin,
                destination=args.destination,
                capacity=args.capacity,
            )
            return f"Flight {flight.flight_number} added successfully."

        if args.command == "add-passenger":
            passenger = services.add_passenger(session, name=args.name)
            return f"Passenger '{passenger.name}' added with ID: {passenger.id}"

        if args.command == "book":
            booking = services.book_seat(
                session, board, flight_number=args.flight, passenger_id=args.passenger_id
            )
            if booking.status == WAITLISTED:
                return (
                    f"Flight {booking.flight.flight_number} is full. Passenger {booking.passenger_id} "
                    f"added to waitlist (Priority: {booking.priority})."
                )
            return f"Booking confirmed for Passenger {booking.passenger_id} on flight {booking.flight.flight_number}."

        if args.command == "cancel":
            result = services.cancel_booking(
                session, board, flight_number=args.flight, passenger_id=args.passenger_id
            )
            message = f"Booking cancelled for Passenger {args.passenger_id} on flight {result.cancelled.flight.flight_number}."
            if result.promoted is not None:
                message += (
                    f"\nPassenger {result.promoted.passenger_id} moved from waitlist to confirmed seat."
                )
            return message

        if args.command == "waitlist":
            rows = services.waitlist_order(session, board, flight_number=args.flight)
            if args.csv:
                reports.write_csv(reports.waitlist_frame(rows), args.csv)
            return _render_waitlist(rows)

    raise ValueError(f"Unsupported command '{args.command}'.")


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        session_factory = init_db(args.db_url)
        with session_factory() as session:
            board = WaitlistBoard.load(session)
            has_flights = session.scalar(select(func.count(Flight.id))) or 0
        if not has_flights and not args.no_sample and args.command != "seed":
            dataset.load_sample_data(session_factory, board)
        output = _run(args, session_factory, board)
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
