import logging
import struct

import piexif
from piexif import ImageIFD

from .container import ContainerKind, LoadedMetadata
from .errors import IoOrFormatError
from .jpeg_segments import split_into_segments, merge_exif
from .output_set import TagOutputSet

logger = logging.getLogger(__name__)

IMAGE_DATA_TAGS = (
    (ImageIFD.StripOffsets, ImageIFD.StripByteCounts),
    (ImageIFD.TileOffsets, ImageIFD.TileByteCounts),
)


def _as_tuple(value) -> tuple:
    return value if isinstance(value, tuple) else (value,)


def rewrite_jpeg(data: bytes, exif: bytes, lossy: bool) -> bytes:
    """
    Swaps the Exif APP1 of a JPEG.

    Lossless keeps every other byte and refuses anything it cannot split into
    segments. Lossy skips over junk between segments (dropping it) and also
    drops extra Exif APP1 segments.
    """
    segments = split_into_segments(data, strict=not lossy)
    return merge_exif(segments, exif, drop_duplicates=lossy)


def rebuild_tiff(data: bytes, output_set: TagOutputSet) -> bytes:
    """
    Writes a new TIFF from the output set, followed by the image data of the
    first image copied from the source.
    """
    exif_dict = output_set.to_exif_dict()
    zeroth = exif_dict["0th"]

    if data[0:2] == b"II":
        # piexif only writes big endian, multi-byte samples would be garbled
        bits = _as_tuple(zeroth.get(ImageIFD.BitsPerSample, 1))
        if max(bits) > 8:
            raise ValueError(
                f"Cannot change byte order of a little endian TIFF with {max(bits)} bit samples"
            )

    image_data = []
    for offsets_tag, counts_tag in IMAGE_DATA_TAGS:
        if offsets_tag not in zeroth or counts_tag not in zeroth:
            continue
        offsets = _as_tuple(zeroth[offsets_tag])
        counts = _as_tuple(zeroth[counts_tag])
        if len(offsets) != len(counts):
            raise ValueError(f"TIFF has {len(offsets)} offsets for {len(counts)} byte counts")
        pieces = []
        for offset, count in zip(offsets, counts):
            piece = data[offset : offset + count]
            if len(piece) != count:
                raise ValueError(f"TIFF image data at {offset} runs past the end of the file")
            pieces.append(piece)
        image_data.append((offsets_tag, pieces))

    # The offsets keep their count, so the second dump has the same length as
    # the first and the image data lands right after it.
    position = len(piexif.dump(exif_dict)) - 6
    for offsets_tag, pieces in image_data:
        new_offsets = []
        for piece in pieces:
            new_offsets.append(position)
            position += len(piece)
        zeroth[offsets_tag] = tuple(new_offsets) if len(new_offsets) > 1 else new_offsets[0]
    tiff = piexif.dump(exif_dict)[6:]
    return tiff + b"".join(piece for _, pieces in image_data for piece in pieces)


def _format_tags(tags: list[tuple[str, int]]) -> str:
    return ", ".join(f"{ifd_name}/{tag}" for ifd_name, tag in tags)


def _dropped_tags(loaded: LoadedMetadata) -> list[tuple[str, int]]:
    """Entries that piexif.dump() will not write back"""
    dropped = list(loaded.unsupported_tags)
    # piexif only writes the 1st IFD together with a JPEG thumbnail
    if loaded.exif and loaded.exif["1st"] and loaded.exif["thumbnail"] is None:
        dropped += [("1st", tag) for tag in loaded.exif["1st"]]
    return list(dict.fromkeys(dropped))


def serialize(loaded: LoadedMetadata, output_set: TagOutputSet, lossy: bool) -> bytes:
    dropped = _dropped_tags(loaded)
    if loaded.kind == ContainerKind.BARE_TIFF:
        if dropped:
            logger.warning(f"Dropping unsupported tags {_format_tags(dropped)}")
        logger.debug("Rebuilding TIFF")
        return rebuild_tiff(loaded.data, output_set)

    # Without Exif there is no TIFF structure to rebuild, so a JPEG gets a new
    # Exif APP1 segment and its image data stays as it is
    if dropped:
        if not lossy:
            raise ValueError(f"Exif holds tags that cannot be rewritten: {_format_tags(dropped)}")
        logger.warning(f"Dropping unsupported tags {_format_tags(dropped)}")
    logger.debug(f"Rewriting JPEG {'lossy' if lossy else 'lossless'}")
    return rewrite_jpeg(loaded.data, piexif.dump(output_set.to_exif_dict()), lossy)


def write_output_set(
    loaded: LoadedMetadata, output_set: TagOutputSet, dest_file: str, lossy: bool
):
    try:
        new_data = serialize(loaded, output_set, lossy)
    except (ValueError, struct.error) as e:
        raise IoOrFormatError(f"Read/write error: {e}") from e

    try:
        with open(dest_file, "wb") as fle:
            fle.write(new_data)
    except OSError as e:
        raise IoOrFormatError(f"Read/write error: {e}") from e
