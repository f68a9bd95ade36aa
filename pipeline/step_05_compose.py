"""
Step 5: Compose SVG

Renders a computed layout as a standalone SVG document, plus the HTML
wrapper used for iframe embedding.

Three variants per run (opaque, transparent, transparent + dark text).
Each is a separate compose_svg() call; nothing is shared between them.
"""

import html as _html
import re
from typing import Dict, List

from pipeline.step_04_layout import compute_layout

OUTPUT_VARIANTS = [
    {"name": "sponsors", "transparent": False, "dark_text": False},
    {"name": "sponsors-transparent", "transparent": True, "dark_text": False},
    {"name": "sponsors-transparent-dark", "transparent": True, "dark_text": True},
]

LIGHT_TEXT = {
    "title_large": "#fff",
    "title_medium": "rgba(255,255,255,0.85)",
    "title_small": "rgba(255,255,255,0.6)",
    "header": "rgba(255,255,255,0.4)",
    "line": "rgba(255,255,255,0.08)",
    "title_line": "rgba(255,255,255,0.15)",
    "ring": "rgba(255,255,255,0.1)",
    "fallback_avatar": "#1a1a1a",
}

DARK_TEXT = {
    "title_large": "#212121",
    "title_medium": "rgba(33,33,33,0.85)",
    "title_small": "rgba(33,33,33,0.6)",
    "header": "rgba(33,33,33,0.4)",
    "line": "rgba(33,33,33,0.08)",
    "title_line": "rgba(33,33,33,0.15)",
    "ring": "rgba(33,33,33,0.1)",
    "fallback_avatar": "#e0e0e0",
}

FONT_IMPORT = "https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600&display=swap"
HEADER_TEXT = "Sponsors"
PAST_OPACITY = 0.5


def _esc(text) -> str:
    """XML-escape a string for text content and attribute values."""
    return _html.escape(str(text)) if text else ""


def _n(value) -> str:
    """Format a coordinate: no trailing zeros, at most 2 decimals."""
    text = f"{float(value):.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def sanitize_id(login: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_-]", "_", login)


# ── SVG Helpers ─────────────────────────────────────────────


def _svg_line(x1, y1, x2, y2, stroke, stroke_width=1) -> str:
    return (
        f'<line x1="{_n(x1)}" y1="{_n(y1)}" x2="{_n(x2)}" y2="{_n(y2)}"'
        f' stroke="{stroke}" stroke-width="{stroke_width}"/>'
    )


def _svg_text(x, y, text, cls) -> str:
    return f'<text x="{_n(x)}" y="{_n(y)}" text-anchor="middle" class="{cls}">{_esc(text)}</text>'


def _style_block(colors: Dict) -> str:
    return f"""<style>
@import url('{_esc(FONT_IMPORT)}');
text {{ font-family: 'Inter', -apple-system, BlinkMacSystemFont, 'SF Pro Display', sans-serif; }}
.tier-title {{ font-weight: 300; letter-spacing: 0.25em; text-transform: uppercase; }}
.tier-title-large {{ font-size: 24px; fill: {colors['title_large']}; }}
.tier-title-medium {{ font-size: 18px; fill: {colors['title_medium']}; }}
.tier-title-small {{ font-size: 14px; fill: {colors['title_small']}; }}
.header-text {{ font-weight: 500; font-size: 11px; letter-spacing: 0.3em; text-transform: uppercase; fill: {colors['header']}; }}
a:hover g {{ opacity: 0.8; }}
</style>"""


def _title_class(section_idx: int, is_past: bool) -> str:
    if is_past:
        return "tier-title tier-title-small"
    if section_idx == 0:
        return "tier-title tier-title-large"
    if section_idx <= 2:
        return "tier-title tier-title-medium"
    return "tier-title tier-title-small"


def _avatar(avatar: Dict, is_past: bool, colors: Dict) -> List[str]:
    sponsor = avatar["sponsor"]
    size = avatar["size"]
    r = size / 2
    clip_id = sanitize_id(sponsor["login"])
    href = sponsor.get("avatar_data_uri") or sponsor.get("avatar_url") or ""
    opacity = PAST_OPACITY if is_past else 1

    parts = [
        f'<a href="{_esc(sponsor.get("profile") or "#")}" target="_blank">',
        f'<g transform="translate({_n(avatar["x"])}, {_n(avatar["y"])})" opacity="{opacity}">',
        f"<title>{_esc(sponsor.get('name') or sponsor['login'])}</title>",
    ]
    if not is_past:
        parts.append(
            f'<circle cx="{_n(r)}" cy="{_n(r)}" r="{_n(r + 2)}" fill="none"'
            f' stroke="{colors["ring"]}" stroke-width="1"/>'
        )
    if href:
        parts.append(
            f'<image x="0" y="0" width="{_n(size)}" height="{_n(size)}" href="{_esc(href)}"'
            f' clip-path="url(#clip-{clip_id})" preserveAspectRatio="xMidYMid slice"/>'
        )
    else:
        parts.append(f'<circle cx="{_n(r)}" cy="{_n(r)}" r="{_n(r)}" fill="{colors["fallback_avatar"]}"/>')
    parts.append("</g>")
    parts.append("</a>")
    return parts


def compose_svg(layout: Dict, transparent: bool = False, dark_text: bool = False) -> str:
    """Render a layout from step 4 into an SVG document string."""
    width = layout["width"]
    height = layout["height"]
    padding = layout["padding"]
    center_x = width / 2
    colors = DARK_TEXT if dark_text else LIGHT_TEXT

    out = ['<?xml version="1.0" encoding="UTF-8"?>']
    out.append(
        f'<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink"'
        f' viewBox="0 0 {_n(width)} {_n(height)}" width="{_n(width)}" height="{_n(height)}">'
    )
    out.append(_style_block(colors))

    # Defs: background gradient + one circular clip per avatar
    out.append("<defs>")
    out.append(
        '<linearGradient id="bgGrad" x1="0%" y1="0%" x2="0%" y2="100%">'
        '<stop offset="0%" stop-color="#0a0a0a"/>'
        '<stop offset="100%" stop-color="#000000"/>'
        "</linearGradient>"
    )
    clip_ids = set()
    for section in layout["sections"]:
        for avatar in section["avatars"]:
            clip_id = sanitize_id(avatar["sponsor"]["login"])
            if clip_id in clip_ids:
                continue
            clip_ids.add(clip_id)
            r = avatar["size"] / 2
            out.append(
                f'<clipPath id="clip-{clip_id}"><circle cx="{_n(r)}" cy="{_n(r)}" r="{_n(r)}"/></clipPath>'
            )
    out.append("</defs>")

    if not transparent:
        out.append(f'<rect x="0" y="0" width="{_n(width)}" height="{_n(height)}" fill="url(#bgGrad)"/>')

    out.append(_svg_line(padding, padding - 20, width - padding, padding - 20, colors["line"]))
    out.append(_svg_text(center_x, padding + 24, HEADER_TEXT, "header-text"))

    for section_idx, section in enumerate(layout["sections"]):
        tier = section["tier"]
        is_past = section["is_past"]
        title_y = section["title_y"]

        out.append(_svg_text(center_x, title_y, tier["title"], _title_class(section_idx, is_past)))

        if not is_past and section_idx < 3:
            line_width = min(120, len(tier["title"]) * 12)
            out.append(_svg_line(
                center_x - line_width / 2, title_y + 12,
                center_x + line_width / 2, title_y + 12,
                colors["title_line"],
            ))

        for avatar in section["avatars"]:
            out.extend(_avatar(avatar, is_past, colors))

    out.append(_svg_line(padding, height - padding + 20, width - padding, height - padding + 20, colors["line"]))
    out.append("</svg>")
    return "\n".join(out)


def render_svg(
    tier_sponsors: List[List[Dict]],
    tiers: List[Dict],
    width: int = 800,
    min_height: int = 600,
    transparent: bool = False,
    dark_text: bool = False,
) -> str:
    """Layout + compose in one call."""
    layout = compute_layout(tier_sponsors, tiers, width, min_height)
    return compose_svg(layout, transparent=transparent, dark_text=dark_text)


def _strip_xml_declaration(svg_content: str) -> str:
    return re.sub(r"^\s*<\?xml[^>]*\?>\s*", "", svg_content)


def generate_html_wrapper(svg_content: str) -> str:
    """HTML page around the SVG, for iframe embedding."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Sponsors</title>
  <style>
    body {{
      margin: 0;
      padding: 0;
      background: #0A0A0A;
      display: flex;
      justify-content: center;
      align-items: flex-start;
      min-height: 100vh;
    }}
    svg {{
      display: block;
      max-width: 100%;
      height: auto;
    }}
  </style>
</head>
<body>
{_strip_xml_declaration(svg_content)}
</body>
</html>"""
