"""
Unit Tests for Eligible Regions

Closed region set, canonical ordering and timezone grouping.
"""

import pytest

from contest_console.regions import (
    ALL_REGION_CODES,
    TIMEZONE_NAMES,
    ContestTimezone,
    US_STATES,
    canonical_regions,
    is_known_region,
    regions_in_timezone,
    timezone_labels,
    timezones_for,
)


class TestRegionSet:

    def test_fifty_states(self):
        assert len(US_STATES) == 50
        assert len(ALL_REGION_CODES) == 50

    def test_every_region_has_a_named_timezone(self):
        for region in US_STATES.values():
            assert region.timezone in TIMEZONE_NAMES

    def test_known_and_unknown_codes(self):
        assert is_known_region("CA")
        assert not is_known_region("DC")
        assert not is_known_region("ca")


class TestCanonicalRegions:

    def test_dedupes_and_orders(self):
        assert canonical_regions(["TX", "CA", "TX", "AL"]) == ("AL", "CA", "TX")

    def test_unknown_codes_kept_last_in_input_order(self):
        assert canonical_regions(["ZZ", "NY", "QQ"]) == ("NY", "ZZ", "QQ")

    def test_empty(self):
        assert canonical_regions([]) == ()


class TestTimezones:

    def test_pacific_regions(self):
        assert set(regions_in_timezone(ContestTimezone.PACIFIC)) == {"CA", "NV", "OR", "WA"}

    def test_accepts_raw_value(self):
        assert regions_in_timezone("HT") == ("HI",)

    def test_timezones_for_dedupes(self):
        assert timezones_for(["CA", "WA", "NY", "FL"]) == [
            ContestTimezone.EASTERN,
            ContestTimezone.PACIFIC,
        ]

    def test_labels(self):
        assert set(timezone_labels(["CA", "NY"])) == {"Pacific Time", "Eastern Time"}

    def test_unknown_codes_ignored(self):
        assert timezones_for(["ZZ"]) == []

    @pytest.mark.parametrize("tz", list(ContestTimezone))
    def test_every_timezone_has_regions(self, tz):
        assert regions_in_timezone(tz)
