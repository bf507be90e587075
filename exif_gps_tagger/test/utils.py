import os.path
import struct

import piexif
from piexif import ImageIFD, ExifIFD

SOI = b"\xff\xd8"
JFIF_APP0 = (
    b"\xff\xe0" + struct.pack(">H", 16) + b"JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
)
COMMENT = b"\xff\xfe" + struct.pack(">H", 14) + b"test fixture"
SCAN = (
    b"\xff\xda"
    + struct.pack(">H", 8)
    + b"\x01\x01\x00\x00\x3f\x00"
    + b"\x12\x34\xff\x00\x56\x78"
    + b"\xff\xd9"
)
JUNK = b"\x00\x11not a segment\x00"

TIFF_PIXELS = bytes(range(10, 18))
UNKNOWN_TAG = 65000


def sample_exif(gps: dict | None = None) -> dict:
    return {
        "0th": {
            ImageIFD.Make: b"Fixture",
            ImageIFD.Software: b"exif-gps-tagger tests",
        },
        "Exif": {
            ExifIFD.DateTimeOriginal: b"2023:05:01 12:30:00",
        },
        "GPS": gps or {},
        "Interop": {},
        "1st": {},
        "thumbnail": None,
    }


def exif_segment(exif: bytes) -> bytes:
    return b"\xff\xe1" + struct.pack(">H", len(exif) + 2) + exif


def make_jpeg(
    exif_dict: dict | None = None, raw_exif: bytes | None = None, junk: bytes = b""
) -> bytes:
    """
    A minimal JPEG, only the segment structure is real.

    :param exif_dict: dumped into an Exif APP1 after the JFIF APP0
    :param raw_exif: Exif payload (with the Exif header) to use as is
    :param junk: bytes to put between the segments
    """
    segments = [SOI, JFIF_APP0]
    if exif_dict is not None:
        segments.append(exif_segment(piexif.dump(exif_dict)))
    if raw_exif is not None:
        segments.append(exif_segment(raw_exif))
    segments.append(junk)
    segments.append(COMMENT)
    segments.append(SCAN)
    return b"".join(segments)


def make_tiff(
    little_endian: bool = False, bits: int = 8, unknown_tag: bool = False, second_ifd: bool = False
) -> bytes:
    """A 4x2 grayscale TIFF with one strip, second_ifd links a 1st IFD without thumbnail"""
    endian = "<" if little_endian else ">"
    software = b"fixture\x00"
    entries = [
        (ImageIFD.ImageWidth, 3, 1, 4),
        (ImageIFD.ImageLength, 3, 1, 2),
        (ImageIFD.BitsPerSample, 3, 1, bits),
        (ImageIFD.Compression, 3, 1, 1),
        (ImageIFD.PhotometricInterpretation, 3, 1, 1),
        (ImageIFD.StripOffsets, 4, 1, None),
        (ImageIFD.RowsPerStrip, 3, 1, 2),
        (ImageIFD.StripByteCounts, 4, 1, len(TIFF_PIXELS)),
        (ImageIFD.Software, 2, len(software), None),
    ]
    if unknown_tag:
        entries.append((UNKNOWN_TAG, 3, 1, 7))

    ifd_length = 2 + 12 * len(entries) + 4
    software_offset = 8 + ifd_length
    pixels_offset = software_offset + len(software)

    ifd = struct.pack(endian + "H", len(entries))
    for tag, value_type, count, value in entries:
        if tag == ImageIFD.StripOffsets:
            value = pixels_offset
        elif tag == ImageIFD.Software:
            value = software_offset
        if value_type == 3:
            field = struct.pack(endian + "HH", value, 0)
        else:
            field = struct.pack(endian + "L", value)
        ifd += struct.pack(endian + "HHL", tag, value_type, count) + field
    tail = software + TIFF_PIXELS
    if second_ifd:
        ifd += struct.pack(endian + "L", pixels_offset + len(TIFF_PIXELS))
        tail += struct.pack(endian + "HHHL", 1, ImageIFD.ImageWidth, 3, 1)
        tail += struct.pack(endian + "HHL", 160, 0, 0)
    else:
        ifd += b"\x00\x00\x00\x00"

    header = (b"II*\x00" if little_endian else b"MM\x00*") + struct.pack(endian + "L", 8)
    return header + ifd + tail


def write_file(directory: str, name: str, data: bytes) -> str:
    path = os.path.join(directory, name)
    with open(path, "wb") as fle:
        fle.write(data)
    return path


def read_file(path: str) -> bytes:
    with open(path, "rb") as fle:
        return fle.read()
