"""Shared pytest fixtures for the sponsor wall pipeline."""

import pytest
from pathlib import Path


BASE_DIR = Path(__file__).parent


def _make_sponsor(login, dollars=5, active=True, tier_title=None, avatar=""):
    tier = {"title": tier_title, "monthly_dollars": dollars} if tier_title else None
    return {
        "login": login,
        "name": login.title(),
        "avatar_url": f"https://avatars.githubusercontent.com/{login}",
        "profile": f"https://github.com/{login}",
        "monthly_dollars": dollars,
        "is_active": active,
        "tier": tier,
        "avatar_data_uri": avatar,
    }


@pytest.fixture
def base_dir():
    return BASE_DIR


@pytest.fixture
def tiers():
    return [
        {"title": "Past Sponsors", "monthly_dollars": -1},
        {"title": "Free", "monthly_dollars": 0},
        {"title": "Drink", "monthly_dollars": 4},
        {"title": "Lunch", "monthly_dollars": 8},
        {"title": "Dinner", "monthly_dollars": 24},
        {"title": "Salon", "monthly_dollars": 64},
        {"title": "Rent Relief", "monthly_dollars": 256},
    ]


@pytest.fixture
def sponsors():
    return [
        _make_sponsor("alice", 256, tier_title="Rent Relief"),
        _make_sponsor("bob", 10),
        _make_sponsor("carol", 4, tier_title="Drink"),
        _make_sponsor("dave", 1),
        _make_sponsor("erin", 64, active=False),
        _make_sponsor("frank", 5, active=False),
    ]


@pytest.fixture
def make_sponsor():
    return _make_sponsor
