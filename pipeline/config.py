"""Sponsor wall configuration, loaded from sponsors.yaml and environment variables."""

import copy
import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(REPO_ROOT / ".env")

DEFAULT_CONFIG_PATH = REPO_ROOT / "sponsors.yaml"

DEFAULTS = {
    "width": 800,
    "min_height": 600,
    "output_dir": ".",
    "tiers": [
        {"title": "Past Sponsors", "monthly_dollars": -1},
        {"title": "Sponsors", "monthly_dollars": 0},
    ],
    "amount_overrides": {},
}


class ConfigError(Exception):
    """Fatal configuration problem. The pipeline aborts on this."""


def github_token() -> str:
    return os.environ.get("GITHUB_TOKEN") or os.environ.get("SPONSORKIT_GITHUB_TOKEN", "")


def github_login() -> str:
    return os.environ.get("GITHUB_LOGIN") or os.environ.get("SPONSORKIT_GITHUB_LOGIN", "")


def load_config(path: Optional[Path] = None) -> Dict:
    """Load sponsors.yaml (or `path`) over DEFAULTS and validate it.

    An explicit path that does not exist is an error; a missing default
    file just means "use the defaults".
    """
    explicit = path is not None or bool(os.environ.get("SPONSORS_CONFIG"))
    config_path = Path(path or os.environ.get("SPONSORS_CONFIG") or DEFAULT_CONFIG_PATH)

    config = copy.deepcopy(DEFAULTS)
    if config_path.exists():
        with open(config_path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_path}: top level must be a mapping")
        config.update(loaded)
    elif explicit:
        raise ConfigError(f"Config file not found: {config_path}")

    _validate(config)
    return config


def _validate(config: Dict):
    width = config.get("width")
    if not isinstance(width, int) or isinstance(width, bool) or width <= 0:
        raise ConfigError(f"width must be a positive integer, got {width!r}")

    min_height = config.get("min_height")
    if not isinstance(min_height, (int, float)) or min_height < 0:
        raise ConfigError(f"min_height must be a non-negative number, got {min_height!r}")

    output_dir = config.get("output_dir")
    if not isinstance(output_dir, str) or not output_dir.strip():
        raise ConfigError(f"output_dir must be a non-empty path, got {output_dir!r}")

    tiers = config.get("tiers")
    if not tiers or not isinstance(tiers, list):
        raise ConfigError("At least one tier must be configured")

    seen = set()
    for i, tier in enumerate(tiers):
        if not isinstance(tier, dict) or not tier.get("title"):
            raise ConfigError(f"Tier {i + 1} needs a title")
        title = str(tier["title"])
        if title in seen:
            raise ConfigError(f"Duplicate tier title: {title}")
        seen.add(title)
        amount = tier.get("monthly_dollars", 0)
        if not isinstance(amount, (int, float)) or isinstance(amount, bool):
            raise ConfigError(f"Tier {title!r}: monthly_dollars must be a number")
        tier["title"] = title
        tier["monthly_dollars"] = amount

    overrides = config.get("amount_overrides") or {}
    if not isinstance(overrides, dict):
        raise ConfigError("amount_overrides must map login -> dollars")
    for login, amount in overrides.items():
        if not isinstance(amount, (int, float)) or isinstance(amount, bool):
            raise ConfigError(f"amount_overrides[{login!r}] must be a number")
    config["amount_overrides"] = {str(k): v for k, v in overrides.items()}
