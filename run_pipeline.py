#!/usr/bin/env python3
"""
Sponsor Wall: single-command sponsor image pipeline.

Usage:
    python run_pipeline.py
    python run_pipeline.py --login octocat --output-dir dist
    python run_pipeline.py --from-json sponsors.json --skip-png

Fetches GitHub Sponsors, classifies them into tiers, lays them out and
writes SVG/PNG variants plus an HTML wrapper. If any quality gate fails,
the pipeline HALTS with a clear error (PNG variants only warn).
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

import requests

from pipeline.config import ConfigError, github_login, github_token, load_config
from pipeline.step_01_fetch import GraphQLError, fetch_sponsors, load_sponsors_json, save_sponsors_json
from pipeline.step_02_avatars import embed_avatar_images
from pipeline.step_03_classify import apply_amount_overrides, classify_sponsors
from pipeline.step_04_layout import compute_layout
from pipeline.step_05_compose import OUTPUT_VARIANTS, compose_svg, generate_html_wrapper
from pipeline.step_06_png import convert_to_png

from gates.quality_gates import (
    gate_1_sponsors,
    gate_2_avatars,
    gate_3_classification,
    gate_4_layout,
    gate_5_svg,
    gate_6_png,
)

logger = logging.getLogger(__name__)


def run_pipeline(
    login: Optional[str] = None,
    token: Optional[str] = None,
    config_path: Optional[str] = None,
    output_dir: Optional[str] = None,
    width: Optional[int] = None,
    from_json: Optional[str] = None,
    save_json: Optional[str] = None,
    skip_avatars: bool = False,
    skip_png: bool = False,
) -> Dict:
    """Run the full sponsor wall pipeline. Returns the files written."""
    config = load_config(Path(config_path) if config_path else None)
    if width is not None:
        if width <= 0:
            raise ConfigError(f"width must be positive, got {width}")
        config["width"] = width

    out_dir = Path(output_dir or config["output_dir"])
    out_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print("SPONSOR WALL")
    print("=" * 60)

    # ── Step 1: Fetch Sponsors ───────────────────────────────
    if from_json:
        _step("1", f"LOAD SPONSORS ({from_json})")
        sponsors = load_sponsors_json(Path(from_json))
    else:
        if not login:
            raise ConfigError(
                "GitHub login is required. Set GITHUB_LOGIN or SPONSORKIT_GITHUB_LOGIN, or pass --login."
            )
        print(f"\nGitHub:  {login}")
        print(f"Output:  {out_dir}\n")
        _step("1", "FETCH SPONSORS")
        sponsors = fetch_sponsors(token, login, config["amount_overrides"])
    gate_1_sponsors(sponsors)
    _ok()

    active = sum(1 for s in sponsors if s["is_active"])
    print(f"   Sponsors: {len(sponsors)} ({active} active, {len(sponsors) - active} past)")

    if save_json:
        save_sponsors_json(sponsors, Path(save_json))
        print(f"   Snapshot: {save_json}")

    # ── Step 2: Embed Avatars ────────────────────────────────
    if skip_avatars:
        _step("2", "EMBED AVATARS [SKIPPED]")
        for sponsor in sponsors:
            sponsor.setdefault("avatar_data_uri", "")
    else:
        _step("2", "EMBED AVATARS")
        loaded, failed = embed_avatar_images(sponsors)
        print(f"   Avatars: {loaded} loaded, {failed} failed")
    gate_2_avatars(sponsors)
    _ok()

    # ── Step 3: Classify ─────────────────────────────────────
    _step("3", "CLASSIFY")
    tiers = config["tiers"]
    apply_amount_overrides(sponsors, config["amount_overrides"])
    classified = classify_sponsors(sponsors, tiers)
    gate_3_classification(classified, sponsors, tiers)
    _ok()

    for title, members in classified.items():
        if members:
            print(f"   {title}: {len(members)}")

    # ── Step 4: Layout ───────────────────────────────────────
    _step("4", "LAYOUT")
    tier_sponsors = [classified[tier["title"]] for tier in tiers]
    layout = compute_layout(tier_sponsors, tiers, config["width"], config["min_height"])
    gate_4_layout(layout)
    _ok()

    print(f"   Canvas: {layout['width']} x {layout['height']:g}")

    # ── Step 5: Compose SVG ──────────────────────────────────
    _step("5", "COMPOSE SVG")
    written = {"svg": [], "png": [], "html": None}
    rendered = []
    for variant in OUTPUT_VARIANTS:
        content = compose_svg(layout, transparent=variant["transparent"], dark_text=variant["dark_text"])
        gate_5_svg(content, layout)
        svg_path = out_dir / f"{variant['name']}.svg"
        svg_path.write_text(content, encoding="utf-8")
        written["svg"].append(svg_path)
        rendered.append((variant, content))

    html_path = out_dir / "sponsors.html"
    html_path.write_text(generate_html_wrapper(rendered[0][1]), encoding="utf-8")
    written["html"] = html_path
    _ok()

    for path in written["svg"] + [html_path]:
        print(f"   {path}")

    # ── Step 6: Generate PNG ─────────────────────────────────
    if skip_png:
        _step("6", "GENERATE PNG [SKIPPED]")
        _ok()
    else:
        for variant, content in rendered:
            _step("6", f"GENERATE PNG ({variant['name']})")
            png_path = out_dir / f"{variant['name']}.png"
            try:
                convert_to_png(content, png_path, transparent=variant["transparent"])
                gate_6_png(png_path, layout["width"])
            except Exception as e:
                logger.warning("PNG generation failed for %s: %s", variant["name"], e)
                print("... WARNING (PNG skipped)")
                continue
            written["png"].append(png_path)
            _ok()

    print("\n" + "=" * 60)
    print("PIPELINE COMPLETE")
    print(f"  Sponsors: {len(sponsors)}")
    print(f"  Output:   {out_dir}")
    print(f"  PNGs:     {len(written['png'])}/{len(OUTPUT_VARIANTS)}")
    print("=" * 60)

    return written


# ── Helpers ──────────────────────────────────────────────────

def _step(num: str, label: str):
    print(f"[Step {num}] {label} ", end="", flush=True)


def _ok():
    print("... OK")


# ── CLI ──────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(description="Sponsor Wall generator")
    parser.add_argument("--login", help="GitHub account (default: GITHUB_LOGIN)")
    parser.add_argument("--config", help="Path to sponsors.yaml")
    parser.add_argument("--output-dir", help="Where to write SVG/PNG/HTML (default: config output_dir)")
    parser.add_argument("--width", type=int, help="Canvas width in px (default: config width)")
    parser.add_argument("--from-json", help="Render from a saved sponsor snapshot instead of the API")
    parser.add_argument("--save-json", help="Save the fetched sponsor list to this JSON file")
    parser.add_argument("--skip-avatars", action="store_true", help="Reference remote avatar URLs instead of embedding")
    parser.add_argument("--skip-png", action="store_true", help="Skip PNG generation (requires Playwright)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="\n   %(levelname)s %(name)s: %(message)s")

    try:
        run_pipeline(
            login=args.login or github_login(),
            token=github_token(),
            config_path=args.config,
            output_dir=args.output_dir,
            width=args.width,
            from_json=args.from_json,
            save_json=args.save_json,
            skip_avatars=args.skip_avatars,
            skip_png=args.skip_png,
        )
    except ConfigError as e:
        print(f"\nFATAL: {e}", file=sys.stderr)
        sys.exit(1)
    except (requests.RequestException, GraphQLError) as e:
        print(f"\nFATAL: Failed to fetch sponsors: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
