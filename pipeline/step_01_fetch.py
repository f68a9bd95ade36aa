"""
Step 1: Fetch Sponsors

Pulls sponsorships from the GitHub Sponsors GraphQL API.

Two paginated queries: active-only, then all-time. Anyone in the
all-time list who is missing from the active list is a past sponsor.
Records without tier information are skipped (they can't be classified),
unless an amount override exists for that login.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import requests

from pipeline.config import ConfigError

logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://api.github.com/graphql"
PAGE_SIZE = 100
REQUEST_TIMEOUT = 30

SPONSORS_QUERY = """
query($login: String!, $cursor: String, $activeOnly: Boolean!) {
  user(login: $login) {
    sponsorshipsAsMaintainer(first: %d, after: $cursor, activeOnly: $activeOnly) {
      totalCount
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        tier {
          name
          monthlyPriceInCents
        }
        sponsorEntity {
          __typename
          ... on User { login name avatarUrl url }
          ... on Organization { login name avatarUrl url }
        }
      }
    }
  }
}
""" % PAGE_SIZE


class GraphQLError(RuntimeError):
    """The API answered 200 but reported query errors."""


def get_gh_token() -> Optional[str]:
    """Token from the GitHub CLI, if it is installed and logged in."""
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return result.stdout.strip() or None


def resolve_token(token: Optional[str]) -> str:
    """Explicit token first, then `gh auth token`. Neither → ConfigError."""
    if token:
        return token

    gh_token = get_gh_token()
    if gh_token:
        logger.info("Using GitHub CLI authentication")
        return gh_token

    raise ConfigError(
        "GitHub token is required. Either:\n"
        "  1. Set GITHUB_TOKEN or SPONSORKIT_GITHUB_TOKEN environment variable\n"
        "  2. Install GitHub CLI (gh) and authenticate with: gh auth login"
    )


def _node_to_sponsor(node: Dict, amount_overrides: Dict) -> Optional[Dict]:
    entity = node.get("sponsorEntity") or {}
    login = entity.get("login")
    if not login:
        return None

    tier = node.get("tier")
    if tier:
        dollars = tier["monthlyPriceInCents"] / 100
        sponsor_tier = {"title": tier["name"], "monthly_dollars": dollars}
    elif login in amount_overrides:
        dollars = float(amount_overrides[login])
        sponsor_tier = None
    else:
        return None

    return {
        "login": login,
        "name": entity.get("name") or login,
        "avatar_url": entity.get("avatarUrl") or "",
        "profile": entity.get("url") or f"https://github.com/{login}",
        "monthly_dollars": dollars,
        "is_active": True,
        "tier": sponsor_tier,
    }


def fetch_sponsorships(
    token: str,
    login: str,
    active_only: bool,
    amount_overrides: Optional[Dict] = None,
) -> List[Dict]:
    """Run the sponsorships query page by page until hasNextPage is false."""
    amount_overrides = amount_overrides or {}
    headers = {
        "Authorization": f"bearer {token}",
        "User-Agent": "sponsor-wall",
    }

    sponsors = []
    seen = set()
    cursor = None
    while True:
        resp = requests.post(
            GRAPHQL_URL,
            json={
                "query": SPONSORS_QUERY,
                "variables": {"login": login, "cursor": cursor, "activeOnly": active_only},
            },
            headers=headers,
            timeout=REQUEST_TIMEOUT,
        )
        resp.raise_for_status()
        payload = resp.json()

        if payload.get("errors"):
            messages = "; ".join(e.get("message", str(e)) for e in payload["errors"])
            raise GraphQLError(f"GitHub GraphQL error: {messages}")

        user = (payload.get("data") or {}).get("user")
        if user is None:
            raise GraphQLError(f"GitHub user not found: {login}")

        sponsorships = user["sponsorshipsAsMaintainer"]
        for node in sponsorships["nodes"]:
            sponsor = _node_to_sponsor(node, amount_overrides)
            if sponsor is None or sponsor["login"] in seen:
                continue
            seen.add(sponsor["login"])
            sponsors.append(sponsor)

        page_info = sponsorships["pageInfo"]
        if not page_info["hasNextPage"]:
            break
        cursor = page_info["endCursor"]

    return sponsors


def fetch_sponsors(
    token: Optional[str],
    login: str,
    amount_overrides: Optional[Dict] = None,
) -> List[Dict]:
    """Active sponsors first, then past sponsors, unique by login."""
    auth_token = resolve_token(token)

    active = fetch_sponsorships(auth_token, login, True, amount_overrides)
    active_logins = {s["login"] for s in active}

    everyone = fetch_sponsorships(auth_token, login, False, amount_overrides)
    past = []
    for sponsor in everyone:
        if sponsor["login"] not in active_logins:
            sponsor["is_active"] = False
            past.append(sponsor)

    logger.info("Active: %d, Past: %d", len(active), len(past))
    return active + past


# ── JSON snapshot ────────────────────────────────────────────

SNAPSHOT_FIELDS = ["login", "name", "avatar_url", "profile", "monthly_dollars", "is_active", "tier"]


def save_sponsors_json(sponsors: List[Dict], path: Path):
    """Write the fetched list without embedded avatars."""
    data = [{key: s.get(key) for key in SNAPSHOT_FIELDS} for s in sponsors]
    with open(path, "w") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def load_sponsors_json(path: Path) -> List[Dict]:
    """Reload a snapshot written by save_sponsors_json."""
    with open(path) as f:
        data = json.load(f)

    sponsors = []
    for entry in data:
        sponsors.append({
            "login": entry["login"],
            "name": entry.get("name") or entry["login"],
            "avatar_url": entry.get("avatar_url") or "",
            "profile": entry.get("profile") or f"https://github.com/{entry['login']}",
            "monthly_dollars": float(entry.get("monthly_dollars") or 0),
            "is_active": bool(entry.get("is_active", True)),
            "tier": entry.get("tier"),
        })
    return sponsors
