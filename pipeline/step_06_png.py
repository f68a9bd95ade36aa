"""
Step 6: Generate PNG

Rasterizes an SVG with Playwright (Chromium). The SVG is wrapped in a
throwaway HTML page so embedded avatar images render; the viewport is
then resized to the SVG's intrinsic size and exactly that region is
captured.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

TEMP_HTML_NAME = ".sponsors-temp.html"
LOAD_TIMEOUT_MS = 60_000
SETTLE_MS = 2000
RESIZE_SETTLE_MS = 500
OPAQUE_BACKGROUND = "#0A0A0A"

# Runs in the page: intrinsic SVG size from viewBox, then width/height attributes
DIMENSIONS_JS = """() => {
  const svg = document.querySelector('svg');
  if (!svg) return { width: 800, height: 900 };
  const viewBox = (svg.getAttribute('viewBox') || '').trim().split(/\\s+/);
  const width = parseFloat(viewBox[2] || svg.getAttribute('width') || '800');
  const height = parseFloat(viewBox[3] || svg.getAttribute('height') || '900');
  return { width: Math.ceil(width), height: Math.ceil(height) };
}"""


def build_png_html(svg_content: str, transparent: bool = False) -> str:
    background = "transparent" if transparent else OPAQUE_BACKGROUND
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <style>
    * {{ margin: 0; padding: 0; }}
    body {{ background: {background}; }}
    svg {{ display: block; }}
  </style>
</head>
<body>
{svg_content}
</body>
</html>"""


def convert_to_png(svg_content: str, output_path: Path, transparent: bool = False):
    """Screenshot the SVG into `output_path`.

    The browser and the temporary HTML file are released on every exit
    path. Errors are logged and re-raised.
    """
    try:
        from playwright.sync_api import sync_playwright
    except ImportError:
        raise RuntimeError(
            "Playwright not installed. Run: pip install playwright && playwright install chromium"
        )

    output_path = Path(output_path)
    temp_html = output_path.parent / TEMP_HTML_NAME
    temp_html.write_text(build_png_html(svg_content, transparent), encoding="utf-8")

    try:
        with sync_playwright() as p:
            browser = p.chromium.launch()
            try:
                page = browser.new_page()
                page.goto(f"file://{os.path.abspath(temp_html)}", wait_until="load", timeout=LOAD_TIMEOUT_MS)
                page.wait_for_timeout(SETTLE_MS)

                dimensions = page.evaluate(DIMENSIONS_JS)
                width = int(dimensions["width"])
                height = int(dimensions["height"])

                page.set_viewport_size({"width": width, "height": height})
                page.wait_for_timeout(RESIZE_SETTLE_MS)

                page.screenshot(
                    path=str(output_path),
                    clip={"x": 0, "y": 0, "width": width, "height": height},
                    omit_background=transparent,
                )
            finally:
                browser.close()
    except Exception:
        logger.error("Failed to convert PNG: %s", output_path)
        raise
    finally:
        try:
            temp_html.unlink()
        except OSError:
            pass
