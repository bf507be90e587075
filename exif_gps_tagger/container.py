import enum
import logging
import struct
from typing import NamedTuple

import piexif
from piexif import TAGS, ImageIFD, ExifIFD, InvalidImageDataError

from .errors import ReadError
from .jpeg_segments import is_jpeg, split_into_segments, get_exif

logger = logging.getLogger(__name__)

TIFF_MAGIC = (b"II*\x00", b"MM\x00*")
IFD_TABLES = {
    "0th": "Image",
    "Exif": "Exif",
    "GPS": "GPS",
    "Interop": "Interop",
    "1st": "Image",
}


class ContainerKind(enum.Enum):
    JPEG_WITH_EXIF = "jpeg_with_exif"
    BARE_TIFF = "bare_tiff"
    NONE = "none"


class LoadedMetadata(NamedTuple):
    kind: ContainerKind
    # piexif exif dict, None when the file has no Exif
    exif: dict | None
    # The whole source file
    data: bytes
    # (ifd name, tag) of entries piexif cannot carry over
    unsupported_tags: list[tuple[str, int]]


def is_tiff(data: bytes) -> bool:
    return data[0:4] in TIFF_MAGIC


def _read_ifd(tiff: bytes, endian: str, pointer: int) -> tuple[dict[int, int], int]:
    """Raw IFD entries as tag -> value field (read as a LONG), and the next IFD pointer"""
    tag_count = struct.unpack(endian + "H", tiff[pointer : pointer + 2])[0]
    entries = {}
    for x in range(tag_count):
        start = pointer + 2 + 12 * x
        tag = struct.unpack(endian + "H", tiff[start : start + 2])[0]
        entries[tag] = struct.unpack(endian + "L", tiff[start + 8 : start + 12])[0]
    end = pointer + 2 + 12 * tag_count
    next_pointer = struct.unpack(endian + "L", tiff[end : end + 4])[0]
    return entries, next_pointer


def find_unsupported_tags(tiff: bytes) -> list[tuple[str, int]]:
    """
    Lists the entries of the Exif IFD tree which piexif does not know about.

    piexif.load() skips these silently, so they cannot survive a rewrite.
    """
    endian = "<" if tiff[0:2] == b"II" else ">"
    first_pointer = struct.unpack(endian + "L", tiff[4:8])[0]
    zeroth, next_pointer = _read_ifd(tiff, endian, first_pointer)
    ifds = {"0th": zeroth}
    if ImageIFD.ExifTag in zeroth:
        ifds["Exif"] = _read_ifd(tiff, endian, zeroth[ImageIFD.ExifTag])[0]
    if ImageIFD.GPSTag in zeroth:
        ifds["GPS"] = _read_ifd(tiff, endian, zeroth[ImageIFD.GPSTag])[0]
    if ExifIFD.InteroperabilityTag in ifds.get("Exif", {}):
        pointer = ifds["Exif"][ExifIFD.InteroperabilityTag]
        ifds["Interop"] = _read_ifd(tiff, endian, pointer)[0]
    if next_pointer:
        ifds["1st"] = _read_ifd(tiff, endian, next_pointer)[0]

    return [
        (ifd_name, tag)
        for ifd_name, entries in ifds.items()
        for tag in entries
        if tag not in TAGS[IFD_TABLES[ifd_name]]
    ]


def load_metadata(filename: str) -> LoadedMetadata:
    try:
        with open(filename, "rb") as fle:
            data = fle.read()
    except OSError as e:
        raise ReadError(f"Could not read {filename}: {e}") from e

    if is_jpeg(data):
        try:
            # Only looking for the Exif here, the writer decides how picky to be
            segments = split_into_segments(data, strict=False)
        except InvalidImageDataError as e:
            raise ReadError(f"Could not parse JPEG {filename}: {e}") from e
        exif = get_exif(segments)
        if exif is None:
            logger.debug(f"{filename}: JPEG without Exif")
            return LoadedMetadata(ContainerKind.NONE, None, data, [])
        kind = ContainerKind.JPEG_WITH_EXIF
        tiff = exif[6:]
    elif is_tiff(data):
        kind = ContainerKind.BARE_TIFF
        tiff = data
    else:
        raise ReadError(f"{filename} is neither JPEG nor TIFF")

    if not is_tiff(tiff):
        raise ReadError(f"Exif in {filename} does not hold a TIFF structure")
    try:
        exif_dict = piexif.load(tiff)
        unsupported = find_unsupported_tags(tiff)
    except (ValueError, struct.error) as e:
        raise ReadError(f"Error reading Exif from {filename} - {e}") from e

    logger.debug(f"{filename}: {kind.name}, {len(unsupported)} unsupported tags")
    return LoadedMetadata(kind, exif_dict, data, unsupported)
