"""Domain objects produced by the extraction engine.

Every target type a pattern kit can name is default-constructible so the
matcher can allocate an empty instance and fill it field by field. Value types
(teams, fixtures, resolutions, ...) are built from captured text by the
strategy chain in :mod:`matchreel.strategies`.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

_DEFAULT_FIXTURE_TITLE = "Matchday"
_MIN_SEASON_YEAR = 1900
_MAX_SEASON_YEAR = 3000


@dataclass(slots=True)
class Competition:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(slots=True)
class Team:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True, eq=False)
class Fixture:
    """A fixture within a season; equality and ordering use the number only."""

    title: str = ""
    fixture_number: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "title", self.title.strip())

    @classmethod
    def matchday(cls, number: int) -> "Fixture":
        return cls(f"{_DEFAULT_FIXTURE_TITLE} {number}", number)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fixture):
            return NotImplemented
        return self.fixture_number == other.fixture_number

    def __hash__(self) -> int:
        return hash(self.fixture_number)

    def __lt__(self, other: "Fixture") -> bool:
        return self.fixture_number < other.fixture_number

    def __str__(self) -> str:
        return self.title


GROUP_STAGE = Fixture("Group Stage", 256)
ROUND_OF_64 = Fixture("Round of 64", 1_024 * 16)
ROUND_OF_32 = Fixture("Round of 32", 1_024 * 32)
ROUND_OF_16 = Fixture("Round of 16", 1_024 * 64)
QUARTER_FINAL = Fixture("Quarter-Final", 1_024 * 1_024)
SEMI_FINAL = Fixture("Semi-Final", 1_024 * 1_024 * 4)
PLAYOFF = Fixture("Playoff", 1_024 * 1_024 * 4 * 2)
FINAL = Fixture("Final", 1_024 * 1_024 * 4 * 4)


@dataclass(frozen=True, slots=True)
class Season:
    """A season running from August 1st of one year to May 31st of another."""

    start_date: dt.date
    end_date: dt.date

    @classmethod
    def from_years(cls, start_year: int, end_year: int) -> "Season":
        for year in (start_year, end_year):
            if year < _MIN_SEASON_YEAR or year > _MAX_SEASON_YEAR:
                raise ValueError(
                    f"Season years must be within {_MIN_SEASON_YEAR}-{_MAX_SEASON_YEAR}; "
                    f"given: {start_year}, {end_year}"
                )
        return cls(dt.date(start_year, 8, 1), dt.date(end_year, 5, 31))

    def __str__(self) -> str:
        return f"{self.start_date.year}/{self.end_date.year}"


_RESOLUTION_PATTERNS = (
    (re.compile(r"\b(?:4k|2160p|uhd)\b", re.IGNORECASE), "4K"),
    (re.compile(r"\b1080p\b", re.IGNORECASE), "1080p"),
    (re.compile(r"\b1080i\b", re.IGNORECASE), "1080i"),
    (re.compile(r"\b720p\b", re.IGNORECASE), "720p"),
    (re.compile(r"\b576p\b", re.IGNORECASE), "576p"),
    (re.compile(r"\b(?:sd|480p|360p)\b", re.IGNORECASE), "SD"),
)


class Resolution(Enum):
    R_4K = "4K"
    R_1080p = "1080p"
    R_1080i = "1080i"
    R_720p = "720p"
    R_576p = "576p"
    R_SD = "SD"

    @classmethod
    def from_string(cls, text: str) -> "Resolution":
        for pattern, value in _RESOLUTION_PATTERNS:
            if pattern.search(text):
                return cls(value)
        raise ValueError(f"Not a resolution: {text}")

    @property
    def rank(self) -> int:
        # 4K highest
        return len(Resolution) - list(Resolution).index(self)


class PartIdentifier(Enum):
    DEFAULT = ""
    PRE_MATCH = "Pre-Match"
    FIRST_HALF = "1st Half"
    SECOND_HALF = "2nd Half"
    EXTRA_TIME = "Extra-Time/Penalties"
    TROPHY_CEREMONY = "Trophy Ceremony"
    POST_MATCH = "Post-Match"

    @classmethod
    def from_string(cls, text: str) -> "PartIdentifier":
        lowered = text.lower()
        if "trophy" in lowered:
            return cls.TROPHY_CEREMONY
        if "pre" in lowered:
            return cls.PRE_MATCH
        if "1st" in lowered or "first" in lowered:
            return cls.FIRST_HALF
        if "2nd" in lowered or "second" in lowered:
            return cls.SECOND_HALF
        if "extra" in lowered or "penalt" in lowered:
            return cls.EXTRA_TIME
        if "post" in lowered:
            return cls.POST_MATCH
        raise ValueError(f"Not a part identifier: {text}")

    @property
    def order(self) -> int:
        return list(PartIdentifier).index(self)


_QUANTITY_RE = re.compile(r"^\s*(\d+(?:[.,]\d+)?)\s*([kmgt]?)", re.IGNORECASE)
_SCALE = {"": 1, "k": 1_000, "m": 1_000_000, "g": 1_000_000_000, "t": 1_000_000_000_000}
_BINARY_SCALE = {"": 1, "k": 1 << 10, "m": 1 << 20, "g": 1 << 30, "t": 1 << 40}


def _parse_quantity(text: str, scale: Dict[str, int]) -> int:
    match = _QUANTITY_RE.match(text)
    if not match:
        raise ValueError(f"Not a quantity: {text}")
    number = float(match.group(1).replace(",", "."))
    return int(round(number * scale[match.group(2).lower()]))


class Bitrate(int):
    """Bits per second; parses ``"4 Mbps"``, ``"4500 Kb/s"`` and bare numbers."""

    @classmethod
    def from_string(cls, text: str) -> "Bitrate":
        return cls(_parse_quantity(text, _SCALE))


class FileSize(int):
    """Size in bytes; parses ``"1.2 GB"``, ``"700MB"`` and bare numbers."""

    @classmethod
    def from_string(cls, text: str) -> "FileSize":
        return cls(_parse_quantity(text, _BINARY_SCALE))


@dataclass(slots=True)
class Link:
    href: Optional[str] = None

    def __str__(self) -> str:
        return self.href or ""


@dataclass(slots=True)
class VideoFile:
    title: Optional[PartIdentifier] = None
    external_url: Optional[str] = None

    @property
    def slot(self) -> PartIdentifier:
        return self.title or PartIdentifier.DEFAULT

    def set_external_url(self, link: Link) -> None:
        self.external_url = link.href

    def __str__(self) -> str:
        return f"{self.slot.value or 'Part'} - {self.external_url}"


@dataclass(slots=True)
class VideoFilePack:
    """A set of video files holding at most one file per part."""

    files: Dict[PartIdentifier, VideoFile] = field(default_factory=dict)

    def __contains__(self, part: object) -> bool:
        return part in self.files

    def __len__(self) -> int:
        return len(self.files)

    def put(self, video_file: VideoFile) -> bool:
        slot = video_file.slot
        if slot in self.files:
            return False
        self.files[slot] = video_file
        return True

    def put_all(self, files: Iterable[VideoFile]) -> None:
        for video_file in files:
            self.put(video_file)

    def get(self, part: PartIdentifier) -> Optional[VideoFile]:
        return self.files.get(part)

    def contains_any(self, files: Iterable[VideoFile]) -> bool:
        present = list(self.files.values())
        return any(video_file in present for video_file in files)

    def all_files(self) -> List[VideoFile]:
        return [self.files[part] for part in sorted(self.files, key=lambda part: part.order)]

    def first_part(self) -> Optional[VideoFile]:
        files = self.all_files()
        return files[0] if files else None

    def last_part(self) -> Optional[VideoFile]:
        files = self.all_files()
        return files[-1] if files else None


@dataclass(slots=True)
class VideoFileSource:
    """Files composing one recording of an event, plus their stream metadata."""

    channel: Optional[str] = None
    source: Optional[str] = None
    approximate_duration: Optional[str] = None
    languages: Optional[str] = None
    resolution: Optional[Resolution] = None
    media_container: Optional[str] = None
    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None
    video_bitrate: Optional[Bitrate] = None
    audio_bitrate: Optional[Bitrate] = None
    filesize: Optional[FileSize] = None
    framerate: Optional[int] = None
    audio_channels: Optional[str] = None
    video_file_packs: List[VideoFilePack] = field(default_factory=list)

    def add_video_file_pack(self, pack: VideoFilePack) -> None:
        incoming = pack.all_files()
        for existing in self.video_file_packs:
            if existing.contains_any(incoming):
                existing.put_all(incoming)
                return
        self.video_file_packs.append(pack)

    def add_all_video_file_packs(self, packs: Iterable[VideoFilePack]) -> None:
        for pack in packs:
            self.add_video_file_pack(pack)


@dataclass(slots=True)
class Event:
    competition: Optional[Competition] = None
    date: Optional[dt.date] = None
    file_sources: List[VideoFileSource] = field(default_factory=list)

    def add_file_source(self, file_source: VideoFileSource) -> None:
        self.file_sources.append(file_source)

    def add_all_file_sources(self, file_sources: Iterable[VideoFileSource]) -> None:
        for file_source in file_sources:
            self.add_file_source(file_source)

    @property
    def title(self) -> str:
        return str(self.competition or "")


@dataclass(slots=True)
class Match(Event):
    season: Optional[Season] = None
    fixture: Optional[Fixture] = None
    home_team: Optional[Team] = None
    away_team: Optional[Team] = None

    @property
    def title(self) -> str:
        parts = [str(self.competition or "")]
        if self.home_team and self.away_team:
            parts.append(f"{self.home_team} vs. {self.away_team}")
        if self.fixture:
            parts.append(str(self.fixture))
        return " - ".join(part for part in parts if part)


@dataclass(slots=True)
class Highlight(Event):
    """A highlight show; the title is free text rather than a matchup."""

    show_title: Optional[str] = None

    @property
    def title(self) -> str:
        parts = [str(self.competition or ""), self.show_title or ""]
        return " - ".join(part for part in parts if part)
