from .errors import TaggingError, ReadError, IoOrFormatError
from .gps_reading import GpsReading
from .tagger import set_gps_tag, set_gps_reading
