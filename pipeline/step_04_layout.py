"""
Step 4: Layout

Computes avatar placements for each non-empty tier on a fixed-width
canvas. Tiers are laid out highest threshold first, past tier last.
Each row is centered on its own item count, so a short last row is
centered too. Canvas height falls out of the vertical cursor.
"""

import math
from typing import Dict, List

from pipeline.step_03_classify import is_past_tier, order_tiers_for_display

PADDING = 64
HEADER_HEIGHT = 80

TITLE_HEIGHT = 56
PAST_TITLE_HEIGHT = 36
SECTION_GAP = 72
PAST_SECTION_GAP = 48

# Avatar diameter by display rank (position among all non-past tiers, empty ones included)
RANK_SIZES = [80, 68, 56, 48]
SMALLEST_RANK_SIZE = 44
PAST_SIZE = 36
PAST_GAP = 12
HERO_SIZE = 120
HERO_THRESHOLD = 256
MIN_GAP = 16
GAP_RATIO = 0.3


def avatar_size_for(tier: Dict, rank: int) -> int:
    if is_past_tier(tier):
        return PAST_SIZE
    if (tier.get("monthly_dollars") or 0) >= HERO_THRESHOLD:
        return HERO_SIZE
    if rank < len(RANK_SIZES):
        return RANK_SIZES[rank]
    return SMALLEST_RANK_SIZE


def gap_for(tier: Dict, size: float) -> float:
    if is_past_tier(tier):
        return PAST_GAP
    return max(MIN_GAP, size * GAP_RATIO)


def items_per_row(width: float, size: float, gap: float) -> int:
    return max(1, math.floor((width - PADDING * 2 + gap) / (size + gap)))


def _display_order(tier_sponsors: List[List[Dict]], tiers: List[Dict]) -> List[tuple]:
    """(rank, tier, sponsors) for non-empty tiers, highest first, past last.

    Rank is the tier's position in the full display order, so adding a
    sponsor to an empty tier never shrinks the avatars of the tiers below it.
    """
    members = {id(tier): sponsors for tier, sponsors in zip(tiers, tier_sponsors)}
    ordered = []
    rank = 0
    for tier in order_tiers_for_display(tiers):
        if members[id(tier)]:
            ordered.append((rank, tier, members[id(tier)]))
        if not is_past_tier(tier):
            rank += 1
    return ordered


def compute_layout(
    tier_sponsors: List[List[Dict]],
    tiers: List[Dict],
    width: int = 800,
    min_height: int = 600,
) -> Dict:
    """Place every sponsor. `tier_sponsors[i]` belongs to `tiers[i]`.

    Pure: inputs are not modified, same input gives the same output.
    """
    if len(tier_sponsors) != len(tiers):
        raise ValueError(
            f"tier_sponsors has {len(tier_sponsors)} entries for {len(tiers)} tiers"
        )

    center_x = width / 2
    cursor_y = PADDING + HEADER_HEIGHT
    sections = []

    for rank, tier, sponsors in _display_order(tier_sponsors, tiers):
        past = is_past_tier(tier)
        size = avatar_size_for(tier, rank)
        gap = gap_for(tier, size)
        per_row = items_per_row(width, size, gap)
        rows = math.ceil(len(sponsors) / per_row)

        title_y = cursor_y
        cursor_y += PAST_TITLE_HEIGHT if past else TITLE_HEIGHT

        avatars = []
        for i, sponsor in enumerate(sponsors):
            row = i // per_row
            col = i % per_row
            in_row = min(len(sponsors) - row * per_row, per_row)
            row_width = in_row * size + (in_row - 1) * gap
            start_x = center_x - row_width / 2
            avatars.append({
                "x": start_x + col * (size + gap),
                "y": cursor_y + row * (size + gap),
                "size": size,
                "row": row,
                "col": col,
                "sponsor": sponsor,
            })

        content_height = rows * (size + gap) - gap
        sections.append({
            "tier": tier,
            "is_past": past,
            "rank": rank,
            "title_y": title_y,
            "avatar_size": size,
            "gap": gap,
            "per_row": per_row,
            "rows": rows,
            "avatars": avatars,
        })

        cursor_y += content_height + (PAST_SECTION_GAP if past else SECTION_GAP)

    return {
        "width": width,
        "height": max(min_height, cursor_y + PADDING),
        "padding": PADDING,
        "min_height": min_height,
        "sections": sections,
    }
