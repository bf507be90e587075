import logging
from datetime import datetime

from .container import load_metadata
from .gps_reading import GpsReading
from .gps_writer import write_gps_fields
from .output_set import build_output_set
from .serializer import write_output_set

logger = logging.getLogger(__name__)


def set_gps_tag(
    source_file: str,
    dest_file: str,
    latitude: float,
    longitude: float,
    timestamp: datetime | None = None,
    speed: float | None = None,
    elevation: float | None = None,
    bearing: float | None = None,
    lossy: bool = False,
):
    """
    Writes a copy of source_file to dest_file with the GPS IFD updated.

    Everything else in the metadata is kept. Tags for optional values that
    are not given are left as they were, including an old GPS date and time.

    :param timestamp: time of the fix, naive values are taken as UTC
    :param speed: km/h
    :param elevation: meters, negative below sea level
    :param bearing: image direction in degrees, any value is folded into 0..360
    :param lossy: for JPEG, skip over data which cannot be parsed instead of failing
    :raises ReadError: source_file is not a readable JPEG or TIFF
    :raises IoOrFormatError: the new file could not be built or written
    """
    set_gps_reading(
        source_file,
        dest_file,
        GpsReading(
            latitude=latitude,
            longitude=longitude,
            timestamp=timestamp,
            speed=speed,
            elevation=elevation,
            bearing=bearing,
        ),
        lossy=lossy,
    )


def set_gps_reading(source_file: str, dest_file: str, reading: GpsReading, lossy: bool = False):
    loaded = load_metadata(source_file)
    output_set, gps_directory = build_output_set(loaded)
    write_gps_fields(gps_directory, reading)
    write_output_set(loaded, output_set, dest_file, lossy=lossy)
    logger.info(f"Tagged {dest_file} ({loaded.kind.name}) at {reading.latitude}, {reading.longitude}")
