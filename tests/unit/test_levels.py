"""Unit tests for the level catalog."""

import pytest

from certgate.engines.certification.levels import (
    MAX_LEVEL,
    CommissionTier,
    commission_rate_for,
    commission_tier_for,
    get_level,
    is_requestable,
    list_levels,
    next_level,
)


class TestCatalog:
    """Tests for the static level catalog."""

    def test_five_levels_in_order(self):
        levels = list_levels()
        assert [info.level for info in levels] == [1, 2, 3, 4, 5]
        assert [info.code for info in levels] == ["PCP-L1", "PCP-L2", "PCP-L3", "PCP-L4", "PCP-L5"]

    def test_commission_rates_decrease_with_level(self):
        rates = [info.commission_rate for info in list_levels()]
        assert rates == [15.0, 13.0, 12.0, 10.0, 8.0]

    def test_level_zero_not_in_catalog(self):
        with pytest.raises(KeyError):
            get_level(0)


class TestRequestable:
    @pytest.mark.parametrize("level", [1, 2, 3, 4, 5])
    def test_valid_levels(self, level):
        assert is_requestable(level)

    @pytest.mark.parametrize("level", [-1, 0, 6, 100])
    def test_out_of_range(self, level):
        assert not is_requestable(level)


class TestDerivedValues:
    """Tier and rate follow the highest completed level."""

    def test_uncertified_has_no_tier(self):
        assert commission_tier_for(0) == CommissionTier.NONE
        assert commission_rate_for(0) is None

    def test_tiers_by_level(self):
        assert commission_tier_for(1) == CommissionTier.ENTRY
        assert commission_tier_for(2) == CommissionTier.CERTIFIED
        assert commission_tier_for(3) == CommissionTier.ADVANCED
        assert commission_tier_for(4) == CommissionTier.MASTER
        assert commission_tier_for(5) == CommissionTier.GRAND_MASTER

    def test_next_level(self):
        assert next_level(0) == 1
        assert next_level(4) == 5
        assert next_level(MAX_LEVEL) is None
