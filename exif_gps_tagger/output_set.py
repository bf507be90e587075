from piexif import TAGS

from .container import ContainerKind, LoadedMetadata, IFD_TABLES
from .errors import DuplicateTagError

IFD_NAMES = ("0th", "Exif", "GPS", "Interop", "1st")


class TagDirectory:
    """One IFD, tag id -> value in the form piexif dumps it"""

    def __init__(self, name: str, fields: dict | None = None):
        self.name = name
        self.fields = dict(fields or {})

    def __contains__(self, tag: int) -> bool:
        return tag in self.fields

    def __getitem__(self, tag: int):
        return self.fields[tag]

    def __len__(self) -> int:
        return len(self.fields)

    def remove_field(self, tag: int):
        # Not an error when the tag isn't there
        self.fields.pop(tag, None)

    def add(self, tag: int, value):
        if tag not in TAGS[IFD_TABLES[self.name]]:
            raise KeyError(f"Tag {tag} does not belong in the {self.name} IFD")
        if tag in self.fields:
            raise DuplicateTagError(
                f"Tag {tag} already in the {self.name} IFD, remove it first"
            )
        self.fields[tag] = value


class TagOutputSet:
    def __init__(self):
        self.directories: dict[str, TagDirectory] = {}
        self.thumbnail: bytes | None = None

    @classmethod
    def from_exif(cls, exif_dict: dict) -> "TagOutputSet":
        output_set = cls()
        for name in IFD_NAMES:
            if exif_dict.get(name):
                output_set.directories[name] = TagDirectory(name, exif_dict[name])
        output_set.thumbnail = exif_dict.get("thumbnail")
        return output_set

    def get_directory(self, name: str) -> TagDirectory | None:
        return self.directories.get(name)

    def get_or_create_directory(self, name: str) -> TagDirectory:
        if name not in self.directories:
            self.directories[name] = TagDirectory(name)
        return self.directories[name]

    def get_or_create_gps_directory(self) -> TagDirectory:
        return self.get_or_create_directory("GPS")

    def to_exif_dict(self) -> dict:
        exif_dict = {
            name: dict(self.directories[name].fields) if name in self.directories else {}
            for name in IFD_NAMES
        }
        exif_dict["thumbnail"] = self.thumbnail
        return exif_dict


def build_output_set(loaded: LoadedMetadata) -> tuple[TagOutputSet, TagDirectory]:
    """
    Seeds the output set from the existing metadata so unrelated tags survive,
    or starts empty when there is none.
    """
    output_set = None
    if loaded.kind in (ContainerKind.JPEG_WITH_EXIF, ContainerKind.BARE_TIFF):
        if loaded.exif is not None:
            output_set = TagOutputSet.from_exif(loaded.exif)
    if output_set is None:
        output_set = TagOutputSet()
    return output_set, output_set.get_or_create_gps_directory()
