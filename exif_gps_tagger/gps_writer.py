import math
from fractions import Fraction

from piexif import GPSIFD

from .gps_reading import GpsReading
from .output_set import TagDirectory

GPS_VERSION = (2, 3, 0, 0)
SPEED_REF_KMPH = "K"
IMG_DIRECTION_REF_TRUE_NORTH = "T"
ALTITUDE_ABOVE_SEA_LEVEL = 0
ALTITUDE_BELOW_SEA_LEVEL = 1
MAX_RATIONAL = 0xFFFFFFFF


def to_rational(value: float) -> tuple[int, int]:
    """
    Closest unsigned 32 bit (numerator, denominator) pair to value.

    Whole numbers are stored over 1. Values that cannot be encoded are a bug
    in the caller and raise.
    """
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"Cannot encode {value} as a rational")
    if value < 0:
        raise ValueError(f"Cannot encode {value} as an unsigned rational")
    if value > MAX_RATIONAL:
        raise OverflowError(f"{value} is too large for a rational")
    if value == int(value):
        return int(value), 1
    fraction = Fraction(value).limit_denominator(max(1, int(MAX_RATIONAL / (value + 1))))
    return fraction.numerator, fraction.denominator


def degrees_to_dms(value: float) -> tuple[tuple[int, int], ...]:
    """Whole degrees, whole minutes and fractional seconds of abs(value)"""
    value = abs(value)
    degrees = int(value)
    value = value % 1 * 60.0
    minutes = int(value)
    seconds = value % 1 * 60.0
    return to_rational(degrees), to_rational(minutes), to_rational(seconds)


def format_date_stamp(year: int, month: int, day: int) -> str:
    return f"{year:04d}:{month:02d}:{day:02d}"


def normalise_bearing(bearing: float) -> float:
    # Two steps, a negative value can land on exactly 360.0 after the first
    if bearing < 0.0:
        bearing = math.fmod(bearing, 360.0)  # (-360.0, -0.0]
        bearing += 360.0  # (0.0, 360.0]
    if bearing >= 360.0:
        bearing = math.fmod(bearing, 360.0)
    return bearing


def set_field(directory: TagDirectory, tag: int, value):
    # Duplicate entries corrupt the IFD, the old one always goes first
    directory.remove_field(tag)
    directory.add(tag, value)


def set_lat_lon(gps_directory: TagDirectory, latitude: float, longitude: float):
    set_field(gps_directory, GPSIFD.GPSLongitudeRef, "W" if longitude < 0 else "E")
    set_field(gps_directory, GPSIFD.GPSLatitudeRef, "S" if latitude < 0 else "N")
    set_field(gps_directory, GPSIFD.GPSLongitude, degrees_to_dms(longitude))
    set_field(gps_directory, GPSIFD.GPSLatitude, degrees_to_dms(latitude))


def write_gps_fields(gps_directory: TagDirectory, reading: GpsReading):
    """
    Writes the reading into the GPS IFD.

    Version and position are always written, the optional values only when
    the reading has them. Tags for missing values are left as they were.
    """
    set_field(gps_directory, GPSIFD.GPSVersionID, GPS_VERSION)

    gps_time = reading.utc_timestamp
    if gps_time is not None:
        set_field(
            gps_directory,
            GPSIFD.GPSTimeStamp,
            (
                to_rational(gps_time.hour),
                to_rational(gps_time.minute),
                to_rational(gps_time.second),
            ),
        )
        set_field(
            gps_directory,
            GPSIFD.GPSDateStamp,
            format_date_stamp(gps_time.year, gps_time.month, gps_time.day),
        )

    set_lat_lon(gps_directory, reading.latitude, reading.longitude)

    if reading.speed is not None:
        set_field(gps_directory, GPSIFD.GPSSpeedRef, SPEED_REF_KMPH)
        set_field(gps_directory, GPSIFD.GPSSpeed, to_rational(reading.speed))

    if reading.elevation is not None:
        set_field(
            gps_directory,
            GPSIFD.GPSAltitudeRef,
            ALTITUDE_ABOVE_SEA_LEVEL
            if reading.elevation >= 0
            else ALTITUDE_BELOW_SEA_LEVEL,
        )
        set_field(gps_directory, GPSIFD.GPSAltitude, to_rational(abs(reading.elevation)))

    if reading.bearing is not None:
        set_field(gps_directory, GPSIFD.GPSImgDirectionRef, IMG_DIRECTION_REF_TRUE_NORTH)
        set_field(
            gps_directory,
            GPSIFD.GPSImgDirection,
            to_rational(normalise_bearing(reading.bearing)),
        )
