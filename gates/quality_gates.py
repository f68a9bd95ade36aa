"""
Quality Gates: one assertion function per pipeline step.

Each gate function raises AssertionError if the gate fails.
Gates 1-5 halt the pipeline. Gate 6 runs per PNG variant; the caller
downgrades its failure to a warning for that variant.
"""

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List

from PIL import Image

REQUIRED_SPONSOR_KEYS = ["login", "name", "avatar_url", "profile", "monthly_dollars", "is_active"]

# Float slack for layout coordinates
EPSILON = 1e-6


def _is_past(title: str) -> bool:
    return "past" in title.lower()


# ── Gate 1: Sponsor List ─────────────────────────────────────

def gate_1_sponsors(sponsors: List[Dict]):
    """Validate fetched sponsors are complete and unique by login."""
    logins = set()
    for i, sponsor in enumerate(sponsors):
        for key in REQUIRED_SPONSOR_KEYS:
            assert key in sponsor, f"Gate 1: Sponsor {i + 1} missing '{key}'"

        login = sponsor["login"]
        assert login, f"Gate 1: Sponsor {i + 1} has empty login"
        assert login not in logins, f"Gate 1: Duplicate sponsor login: {login}"
        logins.add(login)

        assert sponsor["monthly_dollars"] >= 0, (
            f"Gate 1: {login} has negative monthly_dollars {sponsor['monthly_dollars']}"
        )


# ── Gate 2: Avatars ──────────────────────────────────────────

def gate_2_avatars(sponsors: List[Dict]):
    """Every sponsor went through embedding; payloads are data URIs or empty."""
    for sponsor in sponsors:
        assert "avatar_data_uri" in sponsor, (
            f"Gate 2: {sponsor['login']} was not processed by avatar embedding"
        )
        uri = sponsor["avatar_data_uri"]
        assert uri == "" or uri.startswith("data:image/"), (
            f"Gate 2: {sponsor['login']} has a malformed avatar payload"
        )


# ── Gate 3: Classification ───────────────────────────────────

def gate_3_classification(classified: Dict[str, List[Dict]], sponsors: List[Dict], tiers: List[Dict]):
    """Every tier present, every sponsor placed exactly once."""
    for tier in tiers:
        assert tier["title"] in classified, f"Gate 3: Tier missing from result: {tier['title']}"

    extra = set(classified) - {t["title"] for t in tiers}
    assert not extra, f"Gate 3: Unknown tiers in result: {sorted(extra)}"

    placed = {}
    for title, members in classified.items():
        for sponsor in members:
            login = sponsor["login"]
            assert login not in placed, (
                f"Gate 3: {login} placed in both '{placed[login]}' and '{title}'"
            )
            placed[login] = title

    for sponsor in sponsors:
        assert sponsor["login"] in placed, f"Gate 3: {sponsor['login']} was not classified"

    assert len(placed) == len(sponsors), (
        f"Gate 3: {len(placed)} sponsors classified, expected {len(sponsors)}"
    )

    past_titles = [t["title"] for t in tiers if _is_past(t["title"])]
    if past_titles:
        for sponsor in sponsors:
            if not sponsor.get("is_active", True):
                assert _is_past(placed[sponsor["login"]]), (
                    f"Gate 3: Past sponsor {sponsor['login']} placed in '{placed[sponsor['login']]}'"
                )


# ── Gate 4: Layout ───────────────────────────────────────────

def gate_4_layout(layout: Dict):
    """No overlaps within a row, everything on the canvas, height sane."""
    width = layout["width"]
    height = layout["height"]
    assert height >= layout.get("min_height", 0), (
        f"Gate 4: Canvas height {height} below minimum {layout.get('min_height')}"
    )

    for section in layout["sections"]:
        title = section["tier"]["title"]
        assert section["avatars"], f"Gate 4: Empty section laid out: {title}"

        size = section["avatar_size"]
        gap = section["gap"]
        rows = {}
        for avatar in section["avatars"]:
            rows.setdefault(avatar["row"], []).append(avatar["x"])
            assert avatar["y"] + size <= height + EPSILON, (
                f"Gate 4: {avatar['sponsor']['login']} falls below the canvas"
            )
            if section["per_row"] > 1:
                assert avatar["x"] >= -EPSILON and avatar["x"] + size <= width + EPSILON, (
                    f"Gate 4: {avatar['sponsor']['login']} falls outside the canvas width"
                )

        for row, xs in rows.items():
            for left, right in zip(xs, xs[1:]):
                assert right - left >= size + gap - EPSILON, (
                    f"Gate 4: Overlapping avatars in '{title}' row {row}"
                )


# ── Gate 5: SVG ──────────────────────────────────────────────

def gate_5_svg(svg_content: str, layout: Dict):
    """SVG parses and its size matches the layout."""
    try:
        root = ET.fromstring(svg_content.encode("utf-8"))
    except ET.ParseError as e:
        raise AssertionError(f"Gate 5: Invalid SVG XML: {e}")

    assert root.tag == "{http://www.w3.org/2000/svg}svg", f"Gate 5: Root tag is {root.tag}"

    for attr, expected in [("width", layout["width"]), ("height", layout["height"])]:
        value = root.get(attr)
        assert value is not None, f"Gate 5: SVG has no {attr}"
        assert abs(float(value) - expected) < 0.01, (
            f"Gate 5: SVG {attr} {value} does not match layout {expected}"
        )


# ── Gate 6: PNG ──────────────────────────────────────────────

def gate_6_png(png_path: Path, expected_width: int):
    """PNG exists, decodes, and is as wide as the canvas."""
    assert png_path.exists(), f"Gate 6: PNG not created at {png_path}"

    try:
        with Image.open(png_path) as img:
            fmt = img.format
            width, height = img.size
    except OSError as e:
        raise AssertionError(f"Gate 6: Unreadable PNG {png_path.name}: {e}")

    assert fmt == "PNG", f"Gate 6: {png_path.name} is {fmt}, not PNG"
    assert width == expected_width, (
        f"Gate 6: {png_path.name} is {width}px wide, expected {expected_width}"
    )
    assert height > 0, f"Gate 6: {png_path.name} has zero height"
