# export.py
from __future__ import annotations
from datetime import datetime
from pathlib import Path
from typing import Sequence

import pandas as pd

from models import Event


def _local_wall_time(ts: datetime) -> datetime:
    # misma hora que la tabla; Excel no admite datetimes con zona horaria
    return ts.astimezone().replace(tzinfo=None)


def registers_to_frame(events: Sequence[Event]) -> pd.DataFrame:
    df = pd.DataFrame(
        {
            "timestamp": [_local_wall_time(e.timestamp) for e in events],
            "state": [e.state for e in events],
            "device_id": [e.device_id for e in events],
        },
        columns=["timestamp", "state", "device_id"],
    )
    if not df.empty:
        df["timestamp"] = pd.to_datetime(df["timestamp"])
    return df


def export_to_excel(events: Sequence[Event], output_file: Path) -> None:
    registers_to_frame(events).to_excel(output_file, index=False)
