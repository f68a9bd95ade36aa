"""
Step 3: Classify Sponsors

Assigns every sponsor to exactly one configured tier.

Priority, first match wins:
  1. Inactive sponsor → the "past" tier (title contains "past")
  2. Upstream tier name matches a configured title (case-insensitive)
  3. Highest non-past tier whose threshold the pledge meets
  4. First non-past tier in configured order
"""

from typing import Dict, List, Optional


def is_past_tier(tier: Dict) -> bool:
    return "past" in tier["title"].lower()


def find_past_tier(tiers: List[Dict]) -> Optional[Dict]:
    for tier in tiers:
        if is_past_tier(tier):
            return tier
    return None


def order_tiers_for_display(tiers: List[Dict]) -> List[Dict]:
    """Highest threshold first, past tier last."""
    active = [t for t in tiers if not is_past_tier(t)]
    past = [t for t in tiers if is_past_tier(t)]
    active = sorted(active, key=lambda t: t.get("monthly_dollars") or 0, reverse=True)
    return active + past


def apply_amount_overrides(sponsors: List[Dict], overrides: Dict) -> List[Dict]:
    """Replace the pledge for overridden logins and let the amount decide the tier."""
    for sponsor in sponsors:
        if sponsor["login"] in overrides:
            sponsor["monthly_dollars"] = float(overrides[sponsor["login"]])
            sponsor["tier"] = None
    return sponsors


def _pick_tier(sponsor: Dict, tiers: List[Dict], past_tier: Optional[Dict], by_amount: List[Dict]) -> Dict:
    if not sponsor.get("is_active", True) and past_tier:
        return past_tier

    upstream = (sponsor.get("tier") or {}).get("title")
    if upstream:
        wanted = upstream.lower()
        for tier in tiers:
            if tier["title"].lower() == wanted:
                return tier

    amount = sponsor.get("monthly_dollars") or 0
    for tier in by_amount:
        if amount >= tier["monthly_dollars"]:
            return tier

    # Catch-all: first non-past tier, else the past tier if that's all there is
    for tier in tiers:
        if not is_past_tier(tier):
            return tier
    return past_tier


def classify_sponsors(sponsors: List[Dict], tiers: List[Dict]) -> Dict[str, List[Dict]]:
    """Map tier title → sponsors. Every configured title is a key."""
    classified = {tier["title"]: [] for tier in tiers}

    past_tier = find_past_tier(tiers)
    by_amount = sorted(
        (t for t in tiers if not is_past_tier(t)),
        key=lambda t: t["monthly_dollars"],
        reverse=True,
    )

    for sponsor in sponsors:
        tier = _pick_tier(sponsor, tiers, past_tier, by_amount)
        classified[tier["title"]].append(sponsor)

    return classified
