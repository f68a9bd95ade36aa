"""Tests for Step 3: Classification."""

import pytest
from pipeline.step_03_classify import (
    apply_amount_overrides,
    classify_sponsors,
    find_past_tier,
    is_past_tier,
    order_tiers_for_display,
)


def _tier_of(classified, login):
    for title, members in classified.items():
        if any(s["login"] == login for s in members):
            return title
    return None


class TestTotality:
    def test_every_tier_key_present(self, sponsors, tiers):
        classified = classify_sponsors(sponsors, tiers)
        assert list(classified) == [t["title"] for t in tiers]

    def test_every_sponsor_exactly_once(self, sponsors, tiers):
        classified = classify_sponsors(sponsors, tiers)
        placed = [s["login"] for members in classified.values() for s in members]
        assert sorted(placed) == sorted(s["login"] for s in sponsors)

    def test_empty_sponsor_list(self, tiers):
        classified = classify_sponsors([], tiers)
        assert all(members == [] for members in classified.values())
        assert len(classified) == len(tiers)

    def test_deterministic(self, sponsors, tiers):
        first = classify_sponsors(sponsors, tiers)
        second = classify_sponsors(sponsors, tiers)
        assert {k: [s["login"] for s in v] for k, v in first.items()} == \
               {k: [s["login"] for s in v] for k, v in second.items()}

    def test_preserves_input_order_within_tier(self, make_sponsor, tiers):
        group = [make_sponsor(name, 10) for name in ["zed", "amy", "kim"]]
        classified = classify_sponsors(group, tiers)
        assert [s["login"] for s in classified["Lunch"]] == ["zed", "amy", "kim"]


class TestPastSponsors:
    def test_inactive_goes_to_past(self, sponsors, tiers):
        classified = classify_sponsors(sponsors, tiers)
        assert _tier_of(classified, "erin") == "Past Sponsors"
        assert _tier_of(classified, "frank") == "Past Sponsors"

    def test_inactive_ignores_amount_and_tier_name(self, make_sponsor, tiers):
        whale = make_sponsor("whale", 1000, active=False, tier_title="Rent Relief")
        classified = classify_sponsors([whale], tiers)
        assert _tier_of(classified, "whale") == "Past Sponsors"

    def test_past_match_is_case_insensitive(self, make_sponsor):
        tiers = [{"title": "PAST Backers", "monthly_dollars": -1}, {"title": "Backers", "monthly_dollars": 0}]
        classified = classify_sponsors([make_sponsor("gone", 50, active=False)], tiers)
        assert _tier_of(classified, "gone") == "PAST Backers"

    def test_no_past_tier_uses_amount(self, make_sponsor):
        tiers = [{"title": "Small", "monthly_dollars": 0}, {"title": "Big", "monthly_dollars": 50}]
        classified = classify_sponsors([make_sponsor("gone", 60, active=False)], tiers)
        assert _tier_of(classified, "gone") == "Big"


class TestTierNameMatching:
    def test_exact_name(self, sponsors, tiers):
        classified = classify_sponsors(sponsors, tiers)
        assert _tier_of(classified, "alice") == "Rent Relief"
        assert _tier_of(classified, "carol") == "Drink"

    def test_case_insensitive_name_beats_amount(self, make_sponsor, tiers):
        sponsor = make_sponsor("x", 1, tier_title="lUnCh")
        classified = classify_sponsors([sponsor], tiers)
        assert _tier_of(classified, "x") == "Lunch"

    def test_unknown_name_falls_back_to_amount(self, make_sponsor, tiers):
        sponsor = make_sponsor("x", 30, tier_title="$30 a month")
        classified = classify_sponsors([sponsor], tiers)
        assert _tier_of(classified, "x") == "Dinner"


class TestAmountFallback:
    def test_highest_qualifying_tier_wins(self, make_sponsor, tiers):
        """Thresholds 0/4/8/24/64/256, pledge 10 → the 8 tier."""
        classified = classify_sponsors([make_sponsor("bob", 10)], tiers)
        assert _tier_of(classified, "bob") == "Lunch"

    def test_threshold_is_inclusive(self, make_sponsor, tiers):
        classified = classify_sponsors([make_sponsor("x", 24)], tiers)
        assert _tier_of(classified, "x") == "Dinner"

    def test_configured_order_does_not_matter(self, make_sponsor):
        tiers = [
            {"title": "Big", "monthly_dollars": 64},
            {"title": "Tiny", "monthly_dollars": 1},
            {"title": "Mid", "monthly_dollars": 8},
        ]
        group = [make_sponsor("a", 10), make_sponsor("b", 100), make_sponsor("c", 2)]
        classified = classify_sponsors(group, tiers)
        assert _tier_of(classified, "a") == "Mid"
        assert _tier_of(classified, "b") == "Big"
        assert _tier_of(classified, "c") == "Tiny"

    def test_below_every_threshold_goes_to_first_non_past(self, make_sponsor):
        tiers = [
            {"title": "Past Sponsors", "monthly_dollars": -1},
            {"title": "Drink", "monthly_dollars": 4},
            {"title": "Lunch", "monthly_dollars": 8},
        ]
        classified = classify_sponsors([make_sponsor("cheap", 1)], tiers)
        assert _tier_of(classified, "cheap") == "Drink"

    def test_zero_tier_catches_small_pledges(self, sponsors, tiers):
        classified = classify_sponsors(sponsors, tiers)
        assert _tier_of(classified, "dave") == "Free"

    def test_only_past_tier_configured(self, make_sponsor):
        tiers = [{"title": "Past", "monthly_dollars": -1}]
        classified = classify_sponsors([make_sponsor("x", 10)], tiers)
        assert _tier_of(classified, "x") == "Past"


class TestEndToEndScenario:
    def test_ten_dollar_active_sponsor_lands_in_lunch(self, make_sponsor):
        tiers = [
            {"title": "Past", "monthly_dollars": -1},
            {"title": "Free", "monthly_dollars": 0},
            {"title": "Drink", "monthly_dollars": 4},
            {"title": "Lunch", "monthly_dollars": 8},
        ]
        classified = classify_sponsors([make_sponsor("solo", 10)], tiers)
        assert [s["login"] for s in classified["Lunch"]] == ["solo"]
        assert classified["Past"] == classified["Free"] == classified["Drink"] == []


class TestAmountOverrides:
    def test_override_replaces_amount_and_clears_tier(self, make_sponsor, tiers):
        sponsor = make_sponsor("vip", 5, tier_title="Drink")
        apply_amount_overrides([sponsor], {"vip": 256})
        assert sponsor["monthly_dollars"] == 256
        assert sponsor["tier"] is None
        classified = classify_sponsors([sponsor], tiers)
        assert _tier_of(classified, "vip") == "Rent Relief"

    def test_other_sponsors_untouched(self, make_sponsor):
        sponsor = make_sponsor("regular", 5, tier_title="Drink")
        apply_amount_overrides([sponsor], {"vip": 256})
        assert sponsor["monthly_dollars"] == 5
        assert sponsor["tier"]["title"] == "Drink"


class TestTierHelpers:
    @pytest.mark.parametrize("title,expected", [
        ("Past Sponsors", True),
        ("past", True),
        ("Pastry Club", True),
        ("Lunch", False),
    ])
    def test_is_past_tier(self, title, expected):
        assert is_past_tier({"title": title, "monthly_dollars": 0}) is expected

    def test_find_past_tier(self, tiers):
        assert find_past_tier(tiers)["title"] == "Past Sponsors"
        assert find_past_tier(tiers[1:]) is None

    def test_display_order(self, tiers):
        ordered = [t["title"] for t in order_tiers_for_display(tiers)]
        assert ordered == ["Rent Relief", "Salon", "Dinner", "Lunch", "Drink", "Free", "Past Sponsors"]
