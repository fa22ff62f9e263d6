"""Tests for affordable-housing program presets."""

from __future__ import annotations

import pytest

from feasibility.optimizer.programs import (
    PROGRAM_PRESETS,
    get_program_constraint,
    list_program_keys,
    select_program_constraints,
)


class TestPresets:
    """Test the preset registry."""

    def test_all_presets_registered(self):
        assert list_program_keys() == [
            "mih_option_1", "mih_option_2", "mih_deep_affordability", "mih_workforce",
            "485x_a", "485x_b", "uap", "467m",
        ]

    def test_band_shares_sum_to_one(self):
        for preset in PROGRAM_PRESETS.values():
            c = preset.constraint
            assert sum(c.min_pct_by_band.values()) == pytest.approx(1.0), preset.key
            assert c.ami_bands == list(c.min_pct_by_band)

    def test_mih_option_1(self):
        c = get_program_constraint("mih_option_1")
        assert c.program == "MIH Option 1"
        assert c.min_affordable_pct == 0.25
        assert c.ami_bands == [40, 60, 80]
        assert c.requires_proportional_bedrooms
        assert c.stacking_conflicts == []

    def test_uap(self):
        c = get_program_constraint("uap")
        assert c.bedroom_mix.min_2br_plus_pct == 0.50
        assert c.unit_min_sizes["1BR"] == 575
        assert not c.requires_proportional_bedrooms

    def test_467m(self):
        c = get_program_constraint("467m")
        assert c.weighted_avg_ami_max == 80
        assert set(c.stacking_conflicts) == {"421-a", "485-x"}

    def test_485x_conflicts(self):
        assert set(get_program_constraint("485x_b").stacking_conflicts) == {"421-a", "467-m"}

    def test_copy_is_independent(self):
        c = get_program_constraint("mih_option_1")
        c.min_pct_by_band[40] = 0.9
        assert PROGRAM_PRESETS["mih_option_1"].constraint.min_pct_by_band[40] == 0.10

    def test_unknown_key(self):
        with pytest.raises(KeyError):
            get_program_constraint("bogus")

    def test_to_dict(self):
        data = PROGRAM_PRESETS["485x_a"].to_dict()
        assert data["key"] == "485x_a"
        assert data["name"] == "485-x Option A"
        assert data["ami_bands"] == [60, 80, 100]
        assert data["min_affordable_pct"] == 0.25


class TestSelection:
    """Test stacking-aware selection."""

    def test_compatible_programs_kept(self):
        selected = select_program_constraints(["mih_option_1", "uap"])
        assert [c.program for c in selected] == ["MIH Option 1", "UAP"]

    def test_conflicting_program_dropped(self):
        selected = select_program_constraints(["485x_a", "467m"])
        assert [c.program for c in selected] == ["485-x Option A"]

    def test_first_selected_wins(self):
        selected = select_program_constraints(["467m", "mih_option_1", "485x_b"])
        assert [c.program for c in selected] == ["467-m", "MIH Option 1"]

    def test_same_family_options_stack(self):
        # 485-x does not list itself as a conflict
        selected = select_program_constraints(["485x_a", "485x_b"])
        assert len(selected) == 2

    def test_empty(self):
        assert select_program_constraints([]) == []
