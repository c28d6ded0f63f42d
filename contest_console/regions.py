"""
Eligible Regions

The closed set of US state codes a contest can accept entries from, and the
timezone each one reports under.
"""

from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Tuple


class ContestTimezone(str, Enum):
    """Contest timezone buckets"""
    EASTERN = "ET"
    CENTRAL = "CT"
    MOUNTAIN = "MT"
    PACIFIC = "PT"
    ALASKA = "AKT"
    HAWAII = "HT"


TIMEZONE_NAMES: Dict[ContestTimezone, str] = {
    ContestTimezone.EASTERN: "Eastern Time",
    ContestTimezone.CENTRAL: "Central Time",
    ContestTimezone.MOUNTAIN: "Mountain Time",
    ContestTimezone.PACIFIC: "Pacific Time",
    ContestTimezone.ALASKA: "Alaska Time",
    ContestTimezone.HAWAII: "Hawaii Time",
}


class Region(NamedTuple):
    code: str
    name: str
    timezone: ContestTimezone


_ET = ContestTimezone.EASTERN
_CT = ContestTimezone.CENTRAL
_MT = ContestTimezone.MOUNTAIN
_PT = ContestTimezone.PACIFIC

US_STATES: Dict[str, Region] = {
    r.code: r for r in (
        Region("AL", "Alabama", _CT),
        Region("AK", "Alaska", ContestTimezone.ALASKA),
        Region("AZ", "Arizona", _MT),
        Region("AR", "Arkansas", _CT),
        Region("CA", "California", _PT),
        Region("CO", "Colorado", _MT),
        Region("CT", "Connecticut", _ET),
        Region("DE", "Delaware", _ET),
        Region("FL", "Florida", _ET),
        Region("GA", "Georgia", _ET),
        Region("HI", "Hawaii", ContestTimezone.HAWAII),
        Region("ID", "Idaho", _MT),
        Region("IL", "Illinois", _CT),
        Region("IN", "Indiana", _ET),
        Region("IA", "Iowa", _CT),
        Region("KS", "Kansas", _CT),
        Region("KY", "Kentucky", _ET),
        Region("LA", "Louisiana", _CT),
        Region("ME", "Maine", _ET),
        Region("MD", "Maryland", _ET),
        Region("MA", "Massachusetts", _ET),
        Region("MI", "Michigan", _ET),
        Region("MN", "Minnesota", _CT),
        Region("MS", "Mississippi", _CT),
        Region("MO", "Missouri", _CT),
        Region("MT", "Montana", _MT),
        Region("NE", "Nebraska", _CT),
        Region("NV", "Nevada", _PT),
        Region("NH", "New Hampshire", _ET),
        Region("NJ", "New Jersey", _ET),
        Region("NM", "New Mexico", _MT),
        Region("NY", "New York", _ET),
        Region("NC", "North Carolina", _ET),
        Region("ND", "North Dakota", _CT),
        Region("OH", "Ohio", _ET),
        Region("OK", "Oklahoma", _CT),
        Region("OR", "Oregon", _PT),
        Region("PA", "Pennsylvania", _ET),
        Region("RI", "Rhode Island", _ET),
        Region("SC", "South Carolina", _ET),
        Region("SD", "South Dakota", _CT),
        Region("TN", "Tennessee", _CT),
        Region("TX", "Texas", _CT),
        Region("UT", "Utah", _MT),
        Region("VT", "Vermont", _ET),
        Region("VA", "Virginia", _ET),
        Region("WA", "Washington", _PT),
        Region("WV", "West Virginia", _ET),
        Region("WI", "Wisconsin", _CT),
        Region("WY", "Wyoming", _MT),
    )
}

# Canonical ordering for every region collection the console produces
ALL_REGION_CODES: Tuple[str, ...] = tuple(US_STATES)

_ORDER = {code: i for i, code in enumerate(ALL_REGION_CODES)}


def is_known_region(code: str) -> bool:
    return code in US_STATES


def canonical_regions(codes: Iterable[str]) -> Tuple[str, ...]:
    """Deduplicate and sort codes into canonical order. Unknown codes are kept last, in input order."""
    seen = []
    for code in codes:
        if code not in seen:
            seen.append(code)
    known = sorted((c for c in seen if c in _ORDER), key=_ORDER.__getitem__)
    unknown = [c for c in seen if c not in _ORDER]
    return tuple(known) + tuple(unknown)


def regions_in_timezone(timezone: ContestTimezone) -> Tuple[str, ...]:
    tz = ContestTimezone(timezone)
    return tuple(code for code, region in US_STATES.items() if region.timezone == tz)


def timezones_for(codes: Iterable[str]) -> List[ContestTimezone]:
    """Deduplicated timezones covering the given regions, sorted by code"""
    zones = {US_STATES[c].timezone for c in codes if c in US_STATES}
    return sorted(zones, key=lambda tz: tz.value)


def timezone_labels(codes: Iterable[str]) -> List[str]:
    return [TIMEZONE_NAMES[tz] for tz in timezones_for(codes)]


__all__ = [
    "ContestTimezone",
    "TIMEZONE_NAMES",
    "Region",
    "US_STATES",
    "ALL_REGION_CODES",
    "is_known_region",
    "canonical_regions",
    "regions_in_timezone",
    "timezones_for",
    "timezone_labels",
]
