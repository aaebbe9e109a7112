from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

LATEST_RELEASE_URL = (
    "https://api.github.com/repos/amureki/metabase-explorer/releases/latest"
)
RELEASE_CHECK_TIMEOUT_SECONDS = 10.0


def normalize_version(version: str) -> str:
    return version.strip().removeprefix("v")


def is_update_available(current: str, latest: str | None) -> bool:
    """Development builds never report an update."""
    if not latest:
        return False
    current_version = normalize_version(current)
    if current_version == "dev" or current_version.endswith(".dev0"):
        return False
    return normalize_version(latest) != current_version


async def fetch_latest_release_tag(
    *, transport: httpx.AsyncBaseTransport | None = None
) -> str | None:
    """Tag name of the newest published release, or None when unknown."""
    try:
        async with httpx.AsyncClient(
            timeout=RELEASE_CHECK_TIMEOUT_SECONDS, transport=transport
        ) as client:
            response = await client.get(LATEST_RELEASE_URL)
    except httpx.HTTPError as exc:
        logger.info("Release check failed: %s", exc)
        return None

    if response.status_code != 200:
        logger.info("Release check returned status %d", response.status_code)
        return None

    try:
        tag_name = response.json().get("tag_name")
    except (ValueError, AttributeError):
        logger.info("Release check returned an unexpected payload")
        return None
    return str(tag_name) if tag_name else None
