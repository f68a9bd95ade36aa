"""
Step 2: Embed Avatars

Downloads each sponsor avatar and inlines it as a base64 data URI so the
SVG renders without network access (GitHub image URLs don't load inside
<img>-embedded SVGs). Sequential, one sponsor at a time.
"""

import base64
import logging
import time
from typing import Dict, List, Tuple

import requests

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; sponsor-wall)"
DEFAULT_RETRIES = 3
DEFAULT_TIMEOUT = 10
BACKOFF_SECONDS = 0.5
CHUNK_SIZE = 8192


def _mime_type(url: str, content_type: str) -> str:
    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type.startswith("image/"):
        return content_type
    return "image/png" if ".png" in url else "image/jpeg"


def _download(url: str, timeout: float) -> Tuple[bytes, str]:
    # requests' timeout is per socket operation; a slow trickle needs a deadline too
    deadline = time.monotonic() + timeout
    resp = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout, stream=True)
    try:
        resp.raise_for_status()
        chunks = []
        for chunk in resp.iter_content(CHUNK_SIZE):
            if time.monotonic() > deadline:
                raise requests.Timeout(f"Download exceeded {timeout}s: {url}")
            chunks.append(chunk)
        return b"".join(chunks), resp.headers.get("Content-Type", "")
    finally:
        resp.close()


def image_url_to_data_uri(url: str, retries: int = DEFAULT_RETRIES, timeout: int = DEFAULT_TIMEOUT) -> str:
    """Fetch an image and return it as a data URI.

    Up to `retries` attempts with linear backoff. `timeout` bounds each
    whole attempt, body included. Returns "" if every attempt fails; the
    caller renders a placeholder circle instead.
    """
    last_error = None
    for attempt in range(1, retries + 1):
        try:
            content, content_type = _download(url, timeout)
            encoded = base64.b64encode(content).decode("ascii")
            mime = _mime_type(url, content_type)
            return f"data:{mime};base64,{encoded}"
        except requests.RequestException as e:
            last_error = e
            if attempt < retries:
                time.sleep(BACKOFF_SECONDS * attempt)

    logger.warning("Failed to load image after %d attempts: %s (%s)", retries, url, last_error)
    return ""


def embed_avatar_images(sponsors: List[Dict]) -> Tuple[int, int]:
    """Add `avatar_data_uri` to each sponsor in place. Returns (loaded, failed)."""
    loaded = 0
    failed = 0
    for sponsor in sponsors:
        if not sponsor.get("avatar_url"):
            sponsor["avatar_data_uri"] = ""
            continue

        sponsor["avatar_data_uri"] = image_url_to_data_uri(sponsor["avatar_url"])
        if sponsor["avatar_data_uri"]:
            loaded += 1
        else:
            failed += 1
            logger.info("%s: avatar not loaded (%s)", sponsor["login"], sponsor["avatar_url"])

    logger.info("Avatar images: %d loaded, %d failed", loaded, failed)
    return loaded, failed
