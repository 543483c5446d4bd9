"""Tabular exports of flight capacity and waitlists."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List

import pandas as pd

from .services import WaitlistRow


def waitlist_frame(rows: Iterable[WaitlistRow]) -> pd.DataFrame:
    data: List[Dict[str, int | str]] = [
        {
            "Position": row.position,
            "Priority": row.priority,
            "Passenger ID": row.passenger_id,
            "Name": row.name,
        }
        for row in rows
    ]
    return pd.DataFrame(data, columns=["Position", "Priority", "Passenger ID", "Name"])


def capacity_frame(rows: Iterable[dict]) -> pd.DataFrame:
    frame = pd.DataFrame(list(rows), columns=["flight", "route", "booked", "capacity", "waitlist"])
    return frame.rename(
        columns={
            "flight": "Flight",
            "route": "Route",
            "booked": "Booked",
            "capacity": "Capacity",
            "waitlist": "Waitlist",
        }
    )


def write_csv(frame: pd.DataFrame, path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(target, index=False)
    return target


__all__ = ["waitlist_frame", "capacity_frame", "write_csv"]
