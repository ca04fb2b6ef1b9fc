"""Value types shared by the mpdkit protocol layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Tuple, Union

Range = Tuple[int, int]
"""Zero-based ``(start, end)`` pair, passed to the daemon unmodified."""

RangeOrIndex = Union[Range, int]


class Tag(str, Enum):
    """Metadata tags recognized by the daemon's database."""

    ARTIST = "artist"
    ARTISTSORT = "artistsort"
    ALBUM = "album"
    ALBUMSORT = "albumsort"
    ALBUMARTIST = "albumartist"
    ALBUMARTISTSORT = "albumartistsort"
    TITLE = "title"
    TITLESORT = "titlesort"
    TRACK = "track"
    NAME = "name"
    GENRE = "genre"
    MOOD = "mood"
    DATE = "date"
    COMPOSER = "composer"
    COMPOSERSORT = "composersort"
    PERFORMER = "performer"
    CONDUCTOR = "conductor"
    WORK = "work"
    ENSEMBLE = "ensemble"
    MOVEMENT = "movement"
    MOVEMENTNUMBER = "movementnumber"
    SHOWMOVEMENT = "showmovement"
    LOCATION = "location"
    GROUPING = "grouping"
    COMMENT = "comment"
    DISC = "disc"
    LABEL = "label"
    MUSICBRAINZ_ARTISTID = "musicbrainz_artistid"
    MUSICBRAINZ_ALBUMID = "musicbrainz_albumid"
    MUSICBRAINZ_ALBUMARTISTID = "musicbrainz_albumartistid"
    MUSICBRAINZ_TRACKID = "musicbrainz_trackid"
    MUSICBRAINZ_RELEASEGROUPID = "musicbrainz_releasegroupid"
    MUSICBRAINZ_RELEASETRACKID = "musicbrainz_releasetrackid"
    MUSICBRAINZ_WORKID = "musicbrainz_workid"


class CompareMethod(str, Enum):
    """Comparison operators of the filter expression syntax."""

    EQUAL = "=="
    NOT_EQUAL = "!="
    CONTAINS = "contains"
    NOT_CONTAINS = "!contains"
    STARTS_WITH = "starts_with"
    MATCH = "=~"
    NOT_MATCH = "!~"


class Subsystem(str, Enum):
    """Subsystems reported by the ``idle`` command."""

    DATABASE = "database"
    UPDATE = "update"
    STORED_PLAYLIST = "stored_playlist"
    PLAYLIST = "playlist"
    PLAYER = "player"
    MIXER = "mixer"
    OUTPUT = "output"
    OPTIONS = "options"
    PARTITION = "partition"
    STICKER = "sticker"
    SUBSCRIPTION = "subscription"
    MESSAGE = "message"
    NEIGHBOR = "neighbor"
    MOUNT = "mount"


def enum_value(value: Any) -> str:
    """Wire text for an enum member or plain value."""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass
class BinaryMeta:
    """Metadata of a binary transfer."""

    size: int
    type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"size": self.size, "type": self.type}


@dataclass
class BinaryResponse:
    """Reassembled payload of a chunked binary command."""

    meta: BinaryMeta
    binary: bytes = field(default=b"", repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {"meta": self.meta.to_dict(), "length": len(self.binary)}
