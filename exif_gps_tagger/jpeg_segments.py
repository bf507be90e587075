import struct

from piexif import InvalidImageDataError

SOI = b"\xff\xd8"
APP0 = b"\xff\xe0"
APP1 = b"\xff\xe1"
EXIF_HEADER = b"Exif\x00\x00"
SOS_MARKER = 0xDA
EOI_MARKER = 0xD9
MAX_SEGMENT_LENGTH = 0xFFFF


def is_jpeg(data: bytes) -> bool:
    return data[0:2] == SOI


def _is_marker(data: bytes, head: int) -> bool:
    # 0xFF00 is a stuffed byte and 0xFFFF is fill, neither starts a segment
    return (
        head + 1 < len(data)
        and data[head] == 0xFF
        and data[head + 1] not in (0x00, 0xFF)
    )


def _next_marker(data: bytes, head: int) -> int:
    while head < len(data) and not _is_marker(data, head):
        head = data.find(b"\xff", head + 1)
        if head == -1:
            return len(data)
    return head


def split_into_segments(data: bytes, strict: bool = True) -> list[bytes]:
    """
    Slices the JPEG header into its marker segments.

    The first item is SOI, the last is everything from the start of scan (or
    EOI) onwards, copied verbatim. Joining the list gives back the input when
    strict is set.

    When strict is not set, bytes which are not part of a marker segment are
    skipped up to the next marker and lost.
    """
    if not is_jpeg(data):
        raise InvalidImageDataError("Given data isn't JPEG.")

    head = 2
    segments = [SOI]
    while head < len(data):
        fill = head
        while data[head : head + 2] == b"\xff\xff":
            head += 1
        if head > fill and _is_marker(data, head):
            # Fill bytes before a marker stay with the segment in front of them
            segments[-1] += data[fill:head]
        else:
            head = fill
        if not _is_marker(data, head):
            if strict:
                raise InvalidImageDataError(
                    f"Expected a JPEG marker at offset {head}, got 0x{data[head]:02X}"
                )
            head = _next_marker(data, head)
            continue
        marker = data[head + 1]
        if marker in (SOS_MARKER, EOI_MARKER):
            segments.append(data[head:])
            return segments
        if head + 4 > len(data):
            raise InvalidImageDataError(f"Truncated JPEG segment at offset {head}")
        length = struct.unpack(">H", data[head + 2 : head + 4])[0]
        end = head + 2 + length
        if length < 2 or end > len(data):
            raise InvalidImageDataError(
                f"JPEG segment 0x{marker:02X} at offset {head} has a bad length {length}"
            )
        segments.append(data[head:end])
        head = end
    raise InvalidImageDataError("Wrong JPEG data, no image scan found.")


def is_exif_segment(segment: bytes) -> bool:
    return segment[0:2] == APP1 and segment[4:10] == EXIF_HEADER


def get_exif(segments: list[bytes]) -> bytes | None:
    """Returns the Exif payload (starting with the Exif header) of the first Exif APP1"""
    for segment in segments:
        if is_exif_segment(segment):
            return segment[4:]
    return None


def make_exif_segment(exif: bytes) -> bytes:
    if exif[0:6] != EXIF_HEADER:
        raise ValueError("Given data is not exif data")
    if len(exif) + 2 > MAX_SEGMENT_LENGTH:
        raise ValueError(f"Exif data too large for one APP1 segment ({len(exif)} bytes)")
    return APP1 + struct.pack(">H", len(exif) + 2) + exif


def merge_exif(segments: list[bytes], exif: bytes, drop_duplicates: bool) -> bytes:
    """
    Puts the new Exif APP1 where the first existing one was.

    Without an existing one it goes straight after SOI, or after the JFIF APP0
    when the file starts with one. Further Exif APP1 segments are kept unless
    drop_duplicates is set.
    """
    exif_segment = make_exif_segment(exif)
    merged = []
    placed = False
    for segment in segments:
        if is_exif_segment(segment):
            if not placed:
                merged.append(exif_segment)
                placed = True
                continue
            if drop_duplicates:
                continue
        merged.append(segment)
    if not placed:
        index = 2 if merged[1][0:2] == APP0 else 1
        merged.insert(index, exif_segment)
    return b"".join(merged)
