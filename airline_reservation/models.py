"""SQLAlchemy models for the airline waitlist system."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

CONFIRMED = "confirmed"
WAITLISTED = "waitlisted"
CANCELLED = "cancelled"


class Base(DeclarativeBase):
    pass


class Flight(Base):
    __tablename__ = "flights"
    __table_args__ = (
        UniqueConstraint("flight_number", name="uq_flight_number"),
        CheckConstraint("capacity >= 0", name="ck_capacity_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    flight_number: Mapped[str] = mapped_column(String(8), nullable=False)
    origin: Mapped[str] = mapped_column(String(60), nullable=False)
    destination: Mapped[str] = mapped_column(String(60), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)

    bookings: Mapped[List["Booking"]] = relationship(back_populates="flight", cascade="all, delete-orphan")

    @property
    def route(self) -> str:
        return f"{self.origin}-{self.destination}"


class Passenger(Base):
    __tablename__ = "passengers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)

    bookings: Mapped[List["Booking"]] = relationship(back_populates="passenger", cascade="all, delete-orphan")


class Booking(Base):
    """One booking attempt; ``priority`` is its position in the global attempt sequence."""

    __tablename__ = "bookings"
    __table_args__ = (UniqueConstraint("priority", name="uq_booking_priority"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    flight_id: Mapped[int] = mapped_column(ForeignKey("flights.id", ondelete="CASCADE"))
    passenger_id: Mapped[int] = mapped_column(ForeignKey("passengers.id", ondelete="CASCADE"))
    status: Mapped[str] = mapped_column(
        Enum(CONFIRMED, WAITLISTED, CANCELLED, name="booking_status"), nullable=False
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    promoted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    flight: Mapped[Flight] = relationship(back_populates="bookings")
    passenger: Mapped[Passenger] = relationship(back_populates="bookings")
