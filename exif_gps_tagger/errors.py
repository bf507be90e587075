class TaggingError(Exception):
    """Base class for errors reported by set_gps_tag"""


class ReadError(TaggingError):
    """The source file could not be parsed as a JPEG or TIFF container"""


class IoOrFormatError(TaggingError):
    """
    Writing the destination failed, either while re-serializing the metadata
    or while writing the bytes out.

    Read and write faults of the codec are reported through this one error.
    """


class DuplicateTagError(Exception):
    """A tag was added to a directory that already holds it"""
