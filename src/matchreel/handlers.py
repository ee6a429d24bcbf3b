"""Built-in type handlers for the first tier of the strategy chain."""

from __future__ import annotations

import datetime as dt
import re
from typing import Any, Callable, List, Tuple

from .models import (
    FINAL,
    GROUP_STAGE,
    PLAYOFF,
    QUARTER_FINAL,
    ROUND_OF_16,
    ROUND_OF_32,
    ROUND_OF_64,
    SEMI_FINAL,
    Fixture,
    Season,
)
from .utils import parse_bool

_FIXTURE_NUMBER = re.compile(r"^\d{1,2}$")
_TITLED_FIXTURE_NUMBER = re.compile(r"^(\w+) (\d{1,2})$")
_GROUP_STAGE = re.compile(r"\bgroup\b", re.IGNORECASE)
_ROUND_ROBIN = re.compile(r"\b[roundf\s]+\b(\d+)", re.IGNORECASE)
_QUARTER_FINAL = re.compile(r"\bquarter[final]*\b", re.IGNORECASE)
_SEMI_FINAL = re.compile(r"\bsemi[final]*\b", re.IGNORECASE)
_FINAL = re.compile(r"\bfinal\b", re.IGNORECASE)
_PLAYOFF = re.compile(r"\bplay-*of+\b", re.IGNORECASE)

_KNOCKOUT_ROUNDS = {16: ROUND_OF_16, 32: ROUND_OF_32, 64: ROUND_OF_64}

# checked in order; "quarter final" must not fall through to FINAL
_TOURNAMENT_STAGES = (
    (_GROUP_STAGE, GROUP_STAGE),
    (_QUARTER_FINAL, QUARTER_FINAL),
    (_SEMI_FINAL, SEMI_FINAL),
    (_PLAYOFF, PLAYOFF),
    (_FINAL, FINAL),
)

_SEASON_SEPARATOR = re.compile(r"\s*[/-]\s*")

DATE_FORMATS = (
    "%d/%m/%Y",
    "%d/%m/%y",
    "%Y-%m-%d",
    "%d.%m.%Y",
    "%d-%m-%Y",
    "%Y/%m/%d",
    "%d %B %Y",
    "%d %b %Y",
)


def parse_fixture(text: str) -> Fixture:
    """Parse fixture labels such as ``"13"``, ``"Matchday 26"`` or ``"Semi-final"``."""
    text = text.strip()
    if _FIXTURE_NUMBER.search(text):
        return Fixture.matchday(int(text))

    titled = _TITLED_FIXTURE_NUMBER.search(text)
    if titled:
        number = int(titled.group(2))
        return Fixture(f"{titled.group(1)} {number}", number)

    for pattern, stage in _TOURNAMENT_STAGES:
        if pattern.search(text):
            return stage

    round_match = _ROUND_ROBIN.search(text)
    if round_match:
        round_of = int(round_match.group(1))
        known = _KNOCKOUT_ROUNDS.get(round_of)
        if known is not None:
            return known
        return Fixture(f"Round of {round_of}", 1_024 + round_of)

    raise ValueError(f"Not a fixture: {text}")


def _expand_year(year: int) -> int:
    if year >= 100:
        return year
    return year + 2_000 if year < 50 else year + 1_900


def parse_season(text: str) -> Season:
    """Parse ``"2021/22"``, ``"2021-2022"`` or a single starting year."""
    parts = [part for part in _SEASON_SEPARATOR.split(text.strip()) if part]
    years = [_expand_year(int(part)) for part in parts]
    if len(years) == 2:
        return Season.from_years(years[0], years[1])
    if len(years) == 1:
        return Season.from_years(years[0], years[0] + 1)
    raise ValueError(f"Not a season: {text}")


def parse_date(text: str) -> dt.date:
    cleaned = text.strip()
    for date_format in DATE_FORMATS:
        try:
            return dt.datetime.strptime(cleaned, date_format).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date: {text}")


def parse_flag(text: str) -> bool:
    value = parse_bool(text)
    if value is None:
        raise ValueError(f"Not a boolean: {text}")
    return value


BUILTIN_HANDLERS: List[Tuple[type, Callable[[str], Any]]] = [
    (Fixture, parse_fixture),
    (Season, parse_season),
    (dt.date, parse_date),
    (bool, parse_flag),
]
