from datetime import datetime
from typing import NamedTuple

import pytz


class GpsReading(NamedTuple):
    latitude: float
    longitude: float
    timestamp: datetime | None = None
    # km/h
    speed: float | None = None
    # meters, negative is below sea level
    elevation: float | None = None
    # degrees from true north
    bearing: float | None = None

    @property
    def utc_timestamp(self) -> datetime | None:
        if self.timestamp is None:
            return None
        if self.timestamp.tzinfo is None:
            # NOTE: Naive timestamps are assumed to already be UTC
            return pytz.utc.localize(self.timestamp)
        return self.timestamp.astimezone(pytz.utc)
