from datetime import datetime

import pytz
from piexif import GPSIFD

from .container import load_metadata
from .gps_reading import GpsReading

DATETIME_STR_FORMAT = "%Y:%m:%d %H:%M:%S"


def _text(value) -> str:
    return value.decode("ascii") if isinstance(value, bytes) else value


def rational_to_float(value: tuple[int, int]) -> float:
    numerator, denominator = value
    return numerator / denominator


def dms_to_dd(gps_exif: dict) -> tuple[float, float]:
    # convert the rational tuples by dividing each (numerator, denominator) pair
    lat = [rational_to_float(x) for x in gps_exif[GPSIFD.GPSLatitude]]
    lon = [rational_to_float(x) for x in gps_exif[GPSIFD.GPSLongitude]]

    dd_lat = lat[0] + lat[1] / 60 + lat[2] / 3600
    dd_lon = lon[0] + lon[1] / 60 + lon[2] / 3600

    # if latitude ref is 'S', make latitude negative
    if _text(gps_exif[GPSIFD.GPSLatitudeRef]) == "S":
        dd_lat = -dd_lat

    # if longitude ref is 'W', make longitude negative
    if _text(gps_exif[GPSIFD.GPSLongitudeRef]) == "W":
        dd_lon = -dd_lon

    return dd_lat, dd_lon


def extract_gps_time(gps_exif: dict) -> datetime | None:
    if GPSIFD.GPSDateStamp not in gps_exif or GPSIFD.GPSTimeStamp not in gps_exif:
        return None
    hour, minute, second = (
        int(rational_to_float(x)) for x in gps_exif[GPSIFD.GPSTimeStamp]
    )
    try:
        gps_time = datetime.strptime(
            f"{_text(gps_exif[GPSIFD.GPSDateStamp])} {hour:02d}:{minute:02d}:{second:02d}",
            DATETIME_STR_FORMAT,
        )
    except ValueError:
        return None
    return pytz.utc.localize(gps_time)


def extract_gps(gps_exif: dict) -> GpsReading | None:
    if GPSIFD.GPSLatitude not in gps_exif or GPSIFD.GPSLongitude not in gps_exif:
        return None
    try:
        latitude, longitude = dms_to_dd(gps_exif)
        speed = elevation = bearing = None
        if GPSIFD.GPSSpeed in gps_exif:
            speed = rational_to_float(gps_exif[GPSIFD.GPSSpeed])
        if GPSIFD.GPSAltitude in gps_exif:
            elevation = rational_to_float(gps_exif[GPSIFD.GPSAltitude])
            if gps_exif.get(GPSIFD.GPSAltitudeRef) == 1:
                elevation = -elevation
        if GPSIFD.GPSImgDirection in gps_exif:
            bearing = rational_to_float(gps_exif[GPSIFD.GPSImgDirection])
        timestamp = extract_gps_time(gps_exif)
    except ZeroDivisionError:
        return None
    return GpsReading(
        latitude=latitude,
        longitude=longitude,
        timestamp=timestamp,
        speed=speed,
        elevation=elevation,
        bearing=bearing,
    )


def read_gps(filename: str) -> GpsReading | None:
    loaded = load_metadata(filename)
    if loaded.exif is None:
        return None
    return extract_gps(loaded.exif["GPS"])
