"""Tests for the HPD regulated rent schedule."""

from __future__ import annotations

from feasibility.optimizer.rent_limits import (
    HPD_RENTS_2025,
    NYC_METRO_AMI_100,
    RENT_SCHEDULE_YEAR,
    get_rent_limit,
    rent_limit_lookup_for_year,
    scaled_rent_limit_lookup,
)


class TestGetRentLimit:
    """Test regulated rent lookups."""

    def test_exact_band(self):
        assert get_rent_limit("2BR", 60) == 2187
        assert get_rent_limit("Studio", 30) == 850

    def test_nearest_band(self):
        # 55 is equidistant from 50 and 60; the lower band wins
        assert get_rent_limit("1BR", 55) == 1518
        assert get_rent_limit("3BR", 150) == HPD_RENTS_2025[165]["3BR"]

    def test_unknown_unit_type(self):
        assert get_rent_limit("Penthouse", 60) is None

    def test_unknown_year(self):
        assert get_rent_limit("2BR", 60, year=1999) is None

    def test_rents_rise_with_ami(self):
        for unit_type in ("Studio", "1BR", "2BR", "3BR"):
            rents = [HPD_RENTS_2025[band][unit_type] for band in sorted(HPD_RENTS_2025)]
            assert rents == sorted(rents)

    def test_constants(self):
        assert RENT_SCHEDULE_YEAR == 2025
        assert NYC_METRO_AMI_100 == 145800


class TestLookupFactories:
    """Test lookup binding and scaling."""

    def test_year_binding(self):
        lookup = rent_limit_lookup_for_year(2025)
        assert lookup("2BR", 80) == 2916
        assert rent_limit_lookup_for_year(1999)("2BR", 80) is None

    def test_scaled(self):
        scaled = scaled_rent_limit_lookup(get_rent_limit, 1.10)
        assert scaled("2BR", 60) == round(2187 * 1.10)

    def test_scaled_passes_through_misses(self):
        scaled = scaled_rent_limit_lookup(get_rent_limit, 1.10)
        assert scaled("Penthouse", 60) is None
